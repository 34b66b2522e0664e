import os
from pathlib import Path

import pydantic
from pydantic import BaseModel, Field, field_validator

from .core import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUTS
from .errors import ValidationError

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class Timeouts(BaseModel):
    """Per-operation wait limits, in minutes."""

    create: float = Field(default=DEFAULT_TIMEOUTS["create"], gt=0)
    update: float = Field(default=DEFAULT_TIMEOUTS["update"], gt=0)
    delete: float = Field(default=DEFAULT_TIMEOUTS["delete"], gt=0)


class Settings(BaseModel):
    project: str | None = Field(
        default=None, description="Fallback project when the cluster file names none"
    )
    state_dir: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "skyforge" / "state"
    )
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    log_level: str = "WARNING"
    timeouts: Timeouts = Field(default_factory=Timeouts)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}, use one of {LOG_LEVELS}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Reads overrides from the environment:
        GOOGLE_CLOUD_PROJECT, SKYFORGE_STATE_DIR, SKYFORGE_POLL_INTERVAL,
        SKYFORGE_LOG_LEVEL.

        Raises ValidationError if a value is out of range.
        """
        values: dict[str, object] = {}
        project = os.environ.get("GOOGLE_CLOUD_PROJECT")
        if project:
            values["project"] = project
        state_dir = os.environ.get("SKYFORGE_STATE_DIR")
        if state_dir:
            values["state_dir"] = Path(state_dir)
        interval = os.environ.get("SKYFORGE_POLL_INTERVAL")
        if interval:
            values["poll_interval"] = interval
        level = os.environ.get("SKYFORGE_LOG_LEVEL")
        if level:
            values["log_level"] = level
        try:
            return cls.model_validate(values)
        except pydantic.ValidationError as e:
            fields = ", ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(f"Invalid settings from environment: {fields}") from e
