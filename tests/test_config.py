"""Tests for settings resolution."""

import tempfile
from pathlib import Path

import pytest
import yaml

from notemod.config import Settings, load_settings
from notemod.errors import ValidationError


def test_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        settings = load_settings(environ={"NOTEMOD_HOME": tmpdir})
        assert settings.data_dir == tmpdir
        assert settings.session_backend == "file"
        assert settings.session_ttl_hours == 24
        assert settings.default_page_size == 10
        assert settings.max_page_size == 100


def test_yaml_then_env_override():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "config.yaml").write_text(
            yaml.dump({"session_ttl_hours": 8, "default_page_size": 20, "log_level": "debug"})
        )
        settings = load_settings(
            environ={"NOTEMOD_HOME": tmpdir, "NOTEMOD_DEFAULT_PAGE_SIZE": "25",
                     "NOTEMOD_COOKIE_SECURE": "true"}
        )
        assert settings.session_ttl_hours == 8
        assert settings.default_page_size == 25
        assert settings.log_level == "DEBUG"
        assert settings.cookie_secure is True


def test_explicit_config_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "custom.yaml"
        path.write_text(yaml.dump({"session_backend": "memory"}))
        settings = load_settings(environ={"NOTEMOD_HOME": tmpdir}, config_path=str(path))
        assert settings.session_backend == "memory"


@pytest.mark.parametrize(
    "content",
    [
        {"unknown_key": 1},
        {"session_backend": "redis"},
        {"session_ttl_hours": "soon"},
        {"default_page_size": 500},
    ],
)
def test_invalid_yaml_values(content):
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "config.yaml").write_text(yaml.dump(content))
        with pytest.raises(ValidationError):
            load_settings(environ={"NOTEMOD_HOME": tmpdir})


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")
