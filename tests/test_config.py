from pathlib import Path

import pydantic
import pytest

from skyforge.config import Settings
from skyforge.errors import ValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "GOOGLE_CLOUD_PROJECT",
        "SKYFORGE_STATE_DIR",
        "SKYFORGE_POLL_INTERVAL",
        "SKYFORGE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    settings = Settings.from_env()

    assert settings.project is None
    assert settings.poll_interval == 10.0
    assert settings.log_level == "WARNING"
    assert settings.timeouts.create == 10
    assert settings.timeouts.update == 5
    assert settings.timeouts.delete == 5


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "p1")
    monkeypatch.setenv("SKYFORGE_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("SKYFORGE_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("SKYFORGE_LOG_LEVEL", "DEBUG")

    settings = Settings.from_env()

    assert settings.project == "p1"
    assert settings.state_dir == Path(tmp_path)
    assert settings.poll_interval == 2.5
    assert settings.log_level == "DEBUG"


def test_invalid_poll_interval(monkeypatch):
    monkeypatch.setenv("SKYFORGE_POLL_INTERVAL", "0")

    with pytest.raises(ValidationError, match="poll_interval"):
        Settings.from_env()


def test_log_level_is_normalized(monkeypatch):
    monkeypatch.setenv("SKYFORGE_LOG_LEVEL", "debug")
    assert Settings.from_env().log_level == "DEBUG"


def test_unknown_log_level(monkeypatch):
    monkeypatch.setenv("SKYFORGE_LOG_LEVEL", "FOO")

    with pytest.raises(ValidationError, match="log_level"):
        Settings.from_env()
    with pytest.raises(pydantic.ValidationError):
        Settings(log_level="FOO")
