"""
Integration tests for the compile library resources action.

Runs the full pipeline (validation, data binding, parallel compile, archive,
R files) with the in-process fake backend.
"""

import json
import zipfile

import pytest

from conftest import MAIN_LAYOUT_XML, STRINGS_XML, FakeBackend
from reslib.contexts.compiling.action import (
    CompileLibraryResourcesOptions,
    compile_library_resources,
)
from reslib.contexts.compiling.archive import CompiledResources
from reslib.contexts.resources.resource_types import ResourceType
from reslib.utils.config import CompilerConfig
from reslib.utils.exceptions import (
    ConfigurationError,
    DataBindingError,
    ResourceCompileError,
    ResourceValidationError,
)


@pytest.fixture
def config():
    return CompilerConfig(max_workers=4)


@pytest.fixture
def out(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return path


def _run(options, config, backend=None, tmp_path=None):
    return compile_library_resources(
        options, config, backend=backend or FakeBackend(), scratch_parent=tmp_path
    )


@pytest.mark.integration
def test_string_and_layout_scenario(basic_res, out, config, tmp_path):
    """values/strings.xml + layout/main.xml give string app_name 0 and layout main 1."""
    options = CompileLibraryResourcesOptions(
        resources=[basic_res],
        output=out / "compiled.zip",
        package_for_r="com.example",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert (out / "R.txt").read_text() == "int string app_name 0\nint layout main 1\n"
    assert result.unit_count == 2
    assert result.entry_count == 2
    assert result.symbols.table.package == "com.example"
    with zipfile.ZipFile(out / "R.jar") as jar:
        assert "com/example/R$string.class" in jar.namelist()
        assert "com/example/R$layout.class" in jar.namelist()


@pytest.mark.integration
def test_sinks_agree_on_every_id(res_tree, out, config, tmp_path):
    root = res_tree(
        {
            "values/strings.xml": STRINGS_XML,
            "values-fr/strings.xml": STRINGS_XML,
            "values/styles.xml": '<resources><style name="Theme.App"/></resources>',
            "layout/main.xml": MAIN_LAYOUT_XML,
            "layout/list.xml": '<ListView xmlns:android="http://schemas.android.com/apk/res/android" '
            'android:id="@+id/items"/>',
        }
    )
    options = CompileLibraryResourcesOptions(
        resources=[root],
        output=out / "compiled.zip",
        package_for_r="com.example",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
        srcjar_output=out / "R.srcjar",
    )

    result = _run(options, config, tmp_path=tmp_path)

    r_txt = (out / "R.txt").read_text().splitlines()
    assert r_txt == [
        "int string app_name 0",
        "int style Theme_App 1",
        "int layout list 2",
        "int layout main 3",
        "int id items 4",
    ]
    with zipfile.ZipFile(out / "R.srcjar") as srcjar:
        java = srcjar.read("com/example/R.java").decode("utf-8")
    for line in r_txt:
        _, resource_type, name, symbol_id = line.split()
        assert f"public static final int {name} = {symbol_id};" in java
        assert result.symbols.table.id_of(ResourceType(resource_type), name) == int(symbol_id)
    with zipfile.ZipFile(out / "R.jar") as jar:
        assert sorted(jar.namelist()) == sorted(
            ["META-INF/MANIFEST.MF", "com/example/R.class"]
            + [f"com/example/R${t}.class" for t in ("id", "layout", "string", "style")]
        )


@pytest.mark.integration
def test_archive_only_when_one_symbol_output_missing(basic_res, out, config, tmp_path):
    options = CompileLibraryResourcesOptions(
        resources=[basic_res],
        output=out / "compiled.zip",
        r_txt_out=out / "R.txt",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert result.symbols is None
    assert (out / "compiled.zip").exists()
    assert not (out / "R.txt").exists()


@pytest.mark.integration
def test_package_falls_back_to_manifest(basic_res, manifest, out, config, tmp_path):
    options = CompileLibraryResourcesOptions(
        resources=[basic_res],
        output=out / "compiled.zip",
        manifest=manifest("com.example.frommanifest"),
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert result.symbols.table.package == "com.example.frommanifest"
    with zipfile.ZipFile(out / "R.jar") as jar:
        assert "com/example/frommanifest/R.class" in jar.namelist()


@pytest.mark.integration
def test_missing_package_fails_before_compiling(basic_res, out, config, tmp_path):
    backend = FakeBackend()
    options = CompileLibraryResourcesOptions(
        resources=[basic_res],
        output=out / "compiled.zip",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    with pytest.raises(ConfigurationError, match="either a package or manifest"):
        _run(options, config, backend=backend, tmp_path=tmp_path)

    assert backend.compiled == []
    assert list(out.iterdir()) == []


@pytest.mark.integration
def test_compile_failure_leaves_no_archive(res_tree, out, config, tmp_path):
    root = res_tree(
        {
            "values/strings.xml": STRINGS_XML,
            "layout/broken.xml": MAIN_LAYOUT_XML,
            "layout/main.xml": MAIN_LAYOUT_XML,
        }
    )
    output = out / "compiled.zip"
    output.write_bytes(b"archive from an earlier run")
    options = CompileLibraryResourcesOptions(
        resources=[root],
        output=output,
        package_for_r="com.example",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    with pytest.raises(ResourceCompileError, match="broken.xml"):
        _run(options, config, backend=FakeBackend(fail_on={"broken.xml"}), tmp_path=tmp_path)

    assert list(out.iterdir()) == []
    assert [p for p in tmp_path.iterdir() if p.name.startswith("android_resources_tmp")] == []


@pytest.fixture
def binding_res(res_tree):
    return res_tree(
        {
            "values/strings.xml": STRINGS_XML,
            "layout/broken.xml": MAIN_LAYOUT_XML,
            "layout/profile.xml": """<layout xmlns:android="http://schemas.android.com/apk/res/android">
                <data><variable name="user" type="com.example.User"/></data>
                <TextView android:id="@+id/name" android:text="@{user.name}"/>
            </layout>""",
        }
    )


@pytest.mark.integration
def test_compile_failure_with_data_binding_leaves_no_outputs(
    binding_res, manifest, out, config, tmp_path
):
    options = CompileLibraryResourcesOptions(
        resources=[binding_res],
        output=out / "compiled.zip",
        manifest=manifest("com.example"),
        package_path="com/example",
        data_binding_info_out=out / "databinding.json",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    with pytest.raises(ResourceCompileError):
        _run(options, config, backend=FakeBackend(fail_on={"broken.xml"}), tmp_path=tmp_path)

    assert list(out.iterdir()) == []


@pytest.mark.integration
def test_compile_failure_with_data_binding_names_the_source_file(
    binding_res, manifest, out, config, tmp_path
):
    options = CompileLibraryResourcesOptions(
        resources=[binding_res],
        output=out / "compiled.zip",
        manifest=manifest("com.example"),
        package_path="com/example",
        data_binding_info_out=out / "databinding.json",
    )

    with pytest.raises(ResourceCompileError) as exc_info:
        _run(options, config, backend=FakeBackend(fail_on={"broken.xml"}), tmp_path=tmp_path)

    assert exc_info.value.resource_path == binding_res / "layout" / "broken.xml"
    assert f"Resource: {binding_res / 'layout' / 'broken.xml'}" in str(exc_info.value)
    assert exc_info.value.returncode == 1


@pytest.mark.integration
def test_failed_r_txt_write_keeps_committed_class_jar(basic_res, out, config, tmp_path):
    """Each sink is all-or-nothing on its own; a failed R.txt does not undo the class jar."""
    (out / "R.txt").mkdir()
    options = CompileLibraryResourcesOptions(
        resources=[basic_res],
        output=out / "compiled.zip",
        package_for_r="com.example",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    with pytest.raises(OSError):
        _run(options, config, tmp_path=tmp_path)

    with zipfile.ZipFile(out / "R.jar") as jar:
        assert jar.testzip() is None
        assert "com/example/R$string.class" in jar.namelist()
        assert "com/example/R$layout.class" in jar.namelist()
    assert (out / "R.txt").is_dir()
    assert list((out / "R.txt").iterdir()) == []
    assert sorted(p.name for p in out.iterdir()) == ["R.jar", "R.txt", "compiled.zip"]


@pytest.mark.integration
def test_resources_are_required(out, config, tmp_path):
    options = CompileLibraryResourcesOptions(output=out / "compiled.zip")

    with pytest.raises(ConfigurationError, match="Resource directories are required"):
        _run(options, config, tmp_path=tmp_path)
    assert list(out.iterdir()) == []


@pytest.mark.integration
def test_invalid_resource_tree_raises(res_tree, out, config, tmp_path):
    root = res_tree({"bogus/strings.xml": STRINGS_XML})
    options = CompileLibraryResourcesOptions(resources=[root], output=out / "compiled.zip")

    with pytest.raises(ResourceValidationError):
        _run(options, config, tmp_path=tmp_path)


@pytest.mark.integration
def test_output_is_required(basic_res, config):
    with pytest.raises(ConfigurationError, match="output path"):
        compile_library_resources(CompileLibraryResourcesOptions(resources=[basic_res]), config, FakeBackend())


@pytest.mark.integration
def test_repeated_runs_are_byte_identical(basic_res, out, config, tmp_path):
    def run(suffix):
        options = CompileLibraryResourcesOptions(
            resources=[basic_res],
            output=out / f"compiled_{suffix}.zip",
            package_for_r="com.example",
            r_txt_out=out / f"R_{suffix}.txt",
            class_jar_output=out / f"R_{suffix}.jar",
        )
        _run(options, config, tmp_path=tmp_path)

    run("a")
    run("b")

    for first, second in [
        ("compiled_a.zip", "compiled_b.zip"),
        ("R_a.txt", "R_b.txt"),
        ("R_a.jar", "R_b.jar"),
    ]:
        assert (out / first).read_bytes() == (out / second).read_bytes()


@pytest.mark.integration
def test_empty_library(tmp_path, out, config):
    options = CompileLibraryResourcesOptions(
        resources=[],
        output=out / "compiled.zip",
        package_for_r="com.example",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert result.unit_count == 0
    assert CompiledResources.open(out / "compiled.zip").units == []
    assert (out / "R.txt").read_text() == ""
    with zipfile.ZipFile(out / "R.jar") as jar:
        assert jar.namelist() == ["META-INF/MANIFEST.MF", "com/example/R.class"]


@pytest.mark.integration
def test_data_binding_pipeline(res_tree, manifest, out, config, tmp_path):
    root = res_tree(
        {
            "values/strings.xml": STRINGS_XML,
            "layout/profile.xml": """<layout xmlns:android="http://schemas.android.com/apk/res/android">
                <data><variable name="user" type="com.example.User"/></data>
                <TextView android:id="@+id/name" android:text="@{user.name}"/>
            </layout>""",
        }
    )
    options = CompileLibraryResourcesOptions(
        resources=[root],
        output=out / "compiled.zip",
        manifest=manifest("com.example"),
        package_path="com/example",
        data_binding_info_out=out / "databinding.json",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
        target_label="//lib:res",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert result.data_binding_info == out / "databinding.json"
    descriptor = json.loads((out / "databinding.json").read_text())
    assert descriptor["layouts"]["layout/profile"]["bindings"][0]["expression"] == "user.name"
    assert (out / "R.txt").read_text() == (
        "int string app_name 0\nint layout profile 1\nint id name 2\n"
    )
    archive = CompiledResources.open(out / "compiled.zip")
    assert archive.label == "//lib:res"
    assert archive.resource_roots == [str(root)]
    payload = archive.read_payload(archive.units[1])
    assert b"@{" not in payload
    assert b"layout/profile_0" in payload


@pytest.mark.integration
def test_malformed_binding_fails_the_action(res_tree, manifest, out, config, tmp_path):
    root = res_tree({"layout/main.xml": '<layout><TextView text="@{"/></layout>'})
    options = CompileLibraryResourcesOptions(
        resources=[root],
        output=out / "compiled.zip",
        manifest=manifest(),
        package_path="com/example",
        data_binding_info_out=out / "databinding.json",
    )

    with pytest.raises(DataBindingError):
        _run(options, config, tmp_path=tmp_path)
    assert list(out.iterdir()) == []


@pytest.mark.integration
def test_override_ignores_unparsable_manifest(basic_res, out, config, tmp_path):
    broken_manifest = tmp_path / "lib" / "AndroidManifest.xml"
    broken_manifest.write_text("<manifest package=")
    options = CompileLibraryResourcesOptions(
        resources=[basic_res],
        output=out / "compiled.zip",
        manifest=broken_manifest,
        package_for_r="com.example.override",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert result.symbols.table.package == "com.example.override"
    assert (out / "R.txt").exists()


@pytest.mark.integration
def test_round_trip_matches_declared_resources(res_tree, out, config, tmp_path):
    root = res_tree(
        {
            "values/values.xml": """<resources>
                <string name="app_name">Example</string>
                <dimen name="margin">4dp</dimen>
                <declare-styleable name="Chip"><attr name="chipColor" format="color"/></declare-styleable>
            </resources>""",
            "drawable/icon.png": "png",
            "layout/main.xml": MAIN_LAYOUT_XML,
        }
    )
    options = CompileLibraryResourcesOptions(
        resources=[root],
        output=out / "compiled.zip",
        package_for_r="com.example",
        r_txt_out=out / "R.txt",
        class_jar_output=out / "R.jar",
    )

    result = _run(options, config, tmp_path=tmp_path)

    assert {(s.resource_type.value, s.name) for s in result.symbols.table} == {
        ("string", "app_name"),
        ("dimen", "margin"),
        ("attr", "chipColor"),
        ("styleable", "Chip"),
        ("drawable", "icon"),
        ("layout", "main"),
    }
