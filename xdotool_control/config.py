"""Runtime settings read from environment variables."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

ENV_BINARY = "XDOTOOL_CONTROL_BINARY"
ENV_TIMEOUT = "XDOTOOL_CONTROL_TIMEOUT"
ENV_LOG_LEVEL = "XDOTOOL_CONTROL_LOG_LEVEL"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseModel):
    """Server configuration"""
    binary: str = Field("xdotool", min_length=1, description="Name or path of the xdotool executable")
    timeout: Optional[float] = Field(
        None, gt=0, description="Seconds before a running xdotool process is killed (None = no limit)"
    )
    log_level: str = Field("INFO", description="Log level for the stderr handler")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log level must be one of {sorted(_LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the process environment (or the given mapping)."""
        env = os.environ if environ is None else environ
        values = {}

        binary = (env.get(ENV_BINARY) or "").strip()
        if binary:
            values["binary"] = binary

        # Unset, empty and "0" all mean no timeout
        timeout = (env.get(ENV_TIMEOUT) or "").strip()
        if timeout and timeout != "0":
            values["timeout"] = timeout

        log_level = (env.get(ENV_LOG_LEVEL) or "").strip()
        if log_level:
            values["log_level"] = log_level

        return cls.model_validate(values)
