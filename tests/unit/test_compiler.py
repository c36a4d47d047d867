"""Unit tests for parallel compilation and its fail-fast behavior."""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import STRINGS_XML, FakeBackend
from reslib.contexts.compiling.backend import CompiledUnit
from reslib.contexts.compiling.compiler import ParallelResourceCompiler
from reslib.contexts.resources.declarations import scan_resource_file
from reslib.contexts.resources.resource_set import validate_resource_set
from reslib.utils.exceptions import ResourceCompileError


def _drawables(res_tree, count):
    return res_tree({f"drawable/icon_{i}.xml": "<shape/>" for i in range(count)})


class SlowBackend(FakeBackend):
    """Records start/finish of each unit; "slow" units sleep, failing ones fail after a delay."""

    def __init__(self, fail_on=(), slow=(), delay=0.3, fail_delay=0.0):
        super().__init__(fail_on=())
        self.fail_names = set(fail_on)
        self.slow = set(slow)
        self.delay = delay
        self.fail_delay = fail_delay
        self.started = []
        self.finished = []

    def compile(self, resource_file):
        name = resource_file.path.name
        with self._lock:
            self.started.append(name)
        if name in self.fail_names:
            time.sleep(self.fail_delay)
            raise ResourceCompileError("fake failure", resource_path=resource_file.path)
        if name in self.slow:
            time.sleep(self.delay)
        unit = super().compile(resource_file)
        with self._lock:
            self.finished.append(name)
        return unit


@pytest.mark.unit
def test_units_returned_in_canonical_order(res_tree, tmp_path):
    root = res_tree(
        {
            "layout/a.xml": "<FrameLayout/>",
            "drawable/b.xml": "<shape/>",
            "values/strings.xml": STRINGS_XML,
        }
    )
    resource_set = validate_resource_set([root])
    # First unit finishes last
    backend = SlowBackend(slow={"strings.xml"}, delay=0.2)

    with ThreadPoolExecutor(max_workers=3) as executor:
        units = ParallelResourceCompiler(backend, executor, tmp_path / "compiled", 3).compile(resource_set)

    assert [unit.source for unit in units] == list(resource_set.resource_files)
    assert backend.finished[-1] == "strings.xml"


@pytest.mark.unit
def test_blobs_written_to_compiled_root(basic_res, tmp_path):
    resource_set = validate_resource_set([basic_res])

    with ThreadPoolExecutor(max_workers=2) as executor:
        units = ParallelResourceCompiler(FakeBackend(), executor, tmp_path / "compiled").compile(resource_set)

    for unit in units:
        assert unit.blob_path == tmp_path / "compiled" / unit.source.blob_name
        assert unit.blob_path.read_bytes() == unit.payload


@pytest.mark.unit
def test_empty_resource_set_compiles_to_nothing(tmp_path):
    with ThreadPoolExecutor(max_workers=1) as executor:
        units = ParallelResourceCompiler(FakeBackend(), executor, tmp_path).compile(validate_resource_set([]))
    assert units == []


@pytest.mark.unit
def test_failure_cancels_queued_units(res_tree, tmp_path):
    """With one worker, units queued behind the failure never start."""
    root = _drawables(res_tree, 5)
    resource_set = validate_resource_set([root])
    backend = SlowBackend(fail_on={"icon_0.xml"}, slow={"icon_1.xml"}, delay=0.5)

    with ThreadPoolExecutor(max_workers=1) as executor:
        compiler = ParallelResourceCompiler(backend, executor, tmp_path / "compiled", 1)
        with pytest.raises(ResourceCompileError, match="fake failure") as exc_info:
            compiler.compile(resource_set)

    assert exc_info.value.resource_path.name == "icon_0.xml"
    assert "icon_3.xml" not in backend.started
    assert "icon_4.xml" not in backend.started


@pytest.mark.unit
def test_failure_waits_for_running_units(res_tree, tmp_path):
    """A unit already running when another fails completes before the error surfaces."""
    root = _drawables(res_tree, 2)
    resource_set = validate_resource_set([root])
    backend = SlowBackend(fail_on={"icon_1.xml"}, slow={"icon_0.xml"}, delay=0.3, fail_delay=0.05)

    with ThreadPoolExecutor(max_workers=2) as executor:
        compiler = ParallelResourceCompiler(backend, executor, tmp_path / "compiled", 2)
        with pytest.raises(ResourceCompileError):
            compiler.compile(resource_set)
        assert backend.finished == ["icon_0.xml"]


@pytest.mark.unit
def test_non_compile_errors_propagate_unchanged(basic_res, tmp_path):
    class ExplodingBackend:
        def compile(self, resource_file):
            raise OSError("disk on fire")

    resource_set = validate_resource_set([basic_res])

    with ThreadPoolExecutor(max_workers=2) as executor:
        with pytest.raises(OSError, match="disk on fire"):
            ParallelResourceCompiler(ExplodingBackend(), executor, tmp_path).compile(resource_set)


@pytest.mark.unit
def test_unit_for_wrong_source_is_rejected(basic_res, tmp_path):
    resource_set = validate_resource_set([basic_res])
    other = resource_set.resource_files[0]

    class ConfusedBackend:
        def compile(self, resource_file):
            return CompiledUnit(source=other, payload=b"", declarations=scan_resource_file(other))

    with ThreadPoolExecutor(max_workers=1) as executor:
        with pytest.raises(ResourceCompileError, match="different resource file"):
            ParallelResourceCompiler(ConfusedBackend(), executor, tmp_path).compile(resource_set)
