"""Unit tests for compiler configuration loading."""

import pytest

from reslib.utils.config import DEFAULT_MAX_WORKERS, CompilerConfig, load_compiler_config
from reslib.utils.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("RESLIB_CONFIG", raising=False)
    monkeypatch.delenv("AAPT2", raising=False)


@pytest.mark.unit
def test_defaults():
    config = load_compiler_config()

    assert isinstance(config, CompilerConfig)
    assert config.max_workers == DEFAULT_MAX_WORKERS == 15
    assert config.aapt2 is None
    assert config.generate_pseudo_locale is False
    assert config.include_file_contents_for_validation is False


@pytest.mark.unit
def test_aapt2_from_environment(monkeypatch):
    monkeypatch.setenv("AAPT2", "/opt/build-tools/aapt2")
    assert load_compiler_config().aapt2 == "/opt/build-tools/aapt2"


@pytest.mark.unit
def test_yaml_then_overrides(tmp_path):
    config_file = tmp_path / "reslib.yaml"
    config_file.write_text("max_workers: 4\ngenerate_pseudo_locale: true\n")

    config = load_compiler_config(config_file, overrides=["max_workers=2"])

    assert config.max_workers == 2
    assert config.generate_pseudo_locale is True


@pytest.mark.unit
def test_config_path_from_environment(tmp_path, monkeypatch):
    config_file = tmp_path / "reslib.yaml"
    config_file.write_text("build_tools_version: 35.0.0\n")
    monkeypatch.setenv("RESLIB_CONFIG", str(config_file))

    assert load_compiler_config().build_tools_version == "35.0.0"


@pytest.mark.unit
def test_missing_config_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_compiler_config(tmp_path / "missing.yaml")


@pytest.mark.unit
@pytest.mark.parametrize("override", ["unknown_key=1", "max_workers=many"])
def test_invalid_override_raises(override):
    with pytest.raises(ConfigurationError, match="Invalid compiler configuration"):
        load_compiler_config(overrides=[override])


@pytest.mark.unit
def test_non_positive_workers_raise():
    with pytest.raises(ConfigurationError, match="max_workers"):
        load_compiler_config(overrides=["max_workers=0"])
