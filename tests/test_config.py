"""
Tests for configuration loading (YAML file + QAI_* environment).
"""

from pathlib import Path

import pytest

from qai.config import (
    QaiSettings,
    get_config_path,
    is_api_key_configured,
    load_config,
    load_config_file,
)
from qai.errors import ConfigError
from qai.xdg import default_history_dir


def _write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config_file():
    """No file and no environment gives the defaults."""
    settings = load_config()
    assert settings.api_key is None
    assert settings.model == "gpt-4o-mini"
    assert settings.api_base == "https://api.openai.com/v1"
    assert settings.timeout == 30.0
    assert settings.debug is False
    assert settings.history_enabled is True
    assert settings.bindings.trigger == "tab"
    assert settings.bindings.submit == "enter"


def test_config_path_uses_xdg(isolated_env):
    """The primary config lives under XDG_CONFIG_HOME/qai."""
    assert get_config_path() == isolated_env / "config" / "qai" / "qai.yml"


def test_load_from_xdg_location():
    """The XDG config file is picked up automatically."""
    _write_config(get_config_path(), "model: gpt-4.1\napi_key: sk-file\n")
    settings = load_config()
    assert settings.model == "gpt-4.1"
    assert settings.get_api_key() == "sk-file"


def test_load_from_current_directory():
    """./qai.yml is used when there is no XDG config."""
    _write_config(Path("qai.yml"), "model: local-model\n")
    assert load_config().model == "local-model"


def test_kebab_case_keys(tmp_path):
    """Keys may be written kebab-case, including nested ones."""
    path = _write_config(
        tmp_path / "qai.yml",
        "api-key: sk-kebab\napi-base: http://localhost:8080/v1\n"
        "allow-no-api-key: true\nbindings:\n  trigger: ctrl-space\n",
    )
    settings = load_config(path)
    assert settings.api_key == "sk-kebab"
    assert settings.api_base == "http://localhost:8080/v1"
    assert settings.allow_no_api_key is True
    assert settings.bindings.trigger == "ctrl-space"
    assert settings.bindings.submit == "enter"


def test_empty_file_gives_defaults(tmp_path):
    """An empty YAML document is the same as no settings."""
    path = _write_config(tmp_path / "qai.yml", "")
    assert load_config(path).model == "gpt-4o-mini"


def test_environment_overrides_file(tmp_path, monkeypatch):
    """QAI_* variables win over the file."""
    path = _write_config(tmp_path / "qai.yml", "api_key: sk-file\nmodel: file-model\n")
    monkeypatch.setenv("QAI_API_KEY", "sk-env")
    monkeypatch.setenv("QAI_BINDINGS__TRIGGER", "f1")

    settings = load_config(path)

    assert settings.api_key == "sk-env"
    assert settings.model == "file-model"
    assert settings.bindings.trigger == "f1"


def test_empty_environment_value_is_ignored(tmp_path, monkeypatch):
    """An empty QAI_API_KEY does not hide the file's key."""
    path = _write_config(tmp_path / "qai.yml", "api_key: sk-file\n")
    monkeypatch.setenv("QAI_API_KEY", "")
    assert load_config(path).api_key == "sk-file"


def test_explicit_missing_file_raises(tmp_path):
    """An explicit path must exist."""
    with pytest.raises(ConfigError, match="Failed to read config file"):
        load_config(tmp_path / "nope.yml")


def test_invalid_yaml_raises(tmp_path):
    """Broken YAML in an explicit file is an error."""
    path = _write_config(tmp_path / "qai.yml", "model: [unclosed\n")
    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config_file(path)


def test_non_mapping_raises(tmp_path):
    """The document must be a mapping."""
    path = _write_config(tmp_path / "qai.yml", "- a\n- b\n")
    with pytest.raises(ConfigError, match="expected a mapping"):
        load_config(path)


def test_invalid_value_raises(tmp_path):
    """Values are validated."""
    path = _write_config(tmp_path / "qai.yml", "timeout: -1\n")
    with pytest.raises(ConfigError, match="Invalid config file"):
        load_config(path)


def test_broken_default_file_is_skipped():
    """A broken XDG config falls through to ./qai.yml."""
    _write_config(get_config_path(), "model: [unclosed\n")
    _write_config(Path("qai.yml"), "model: fallback\n")
    assert load_config().model == "fallback"


def test_get_api_key_empty_is_none():
    """An empty key counts as unset."""
    assert QaiSettings(api_key="").get_api_key() is None
    assert QaiSettings(api_key="sk-x").get_api_key() == "sk-x"


def test_is_api_key_configured():
    """A key or the opt-out makes the API usable."""
    assert is_api_key_configured(QaiSettings(api_key="sk-x")) is True
    assert is_api_key_configured(QaiSettings()) is False
    assert is_api_key_configured(QaiSettings(allow_no_api_key=True)) is True


def test_history_dir_default_and_override(tmp_path):
    """history_dir falls back to the XDG data location."""
    assert QaiSettings().get_history_dir() == default_history_dir()
    assert QaiSettings(history_dir=tmp_path / "h").get_history_dir() == tmp_path / "h"


def test_default_history_dir_uses_xdg_data(isolated_env):
    """The default store lives under XDG_DATA_HOME/qai/history."""
    assert default_history_dir() == isolated_env / "data" / "qai" / "history"
