"""
Data model for the xdotool control server.

Argument models validate the raw payload of each tool call. They are strict:
integers are never coerced from strings or booleans, unknown keys are rejected,
and validated instances are frozen.
"""

import shlex
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from .errors import FailureKind


class ToolName(str, Enum):
    """Closed set of tools exposed to MCP clients."""

    MOVE_MOUSE = "move_mouse"
    CLICK = "click"
    CLICK_AT = "click_at"
    TYPE_TEXT = "type_text"
    KEY_PRESS = "key_press"
    SCROLL = "scroll"
    GET_MOUSE_POSITION = "get_mouse_position"
    DOUBLE_CLICK = "double_click"
    SEARCH_WINDOW = "search_window"
    GET_ACTIVE_WINDOW = "get_active_window"
    GET_WINDOW_GEOMETRY = "get_window_geometry"
    GET_WINDOW_NAME = "get_window_name"


BUTTON_NAMES = {1: "left", 2: "middle", 3: "right"}

_BUTTON_DESCRIPTION = "Mouse button: 1 (left), 2 (middle), 3 (right). Default: 1"


class ToolArguments(BaseModel):
    """Base class for validated tool arguments."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)


def _require_non_blank(value: str, label: str) -> str:
    if not value.strip():
        raise ValueError(f"{label} must not be empty")
    return value


class MoveMouseArgs(ToolArguments):
    x: StrictInt = Field(description="X coordinate (may be negative on multi-monitor setups)")
    y: StrictInt = Field(description="Y coordinate (may be negative on multi-monitor setups)")


class ClickArgs(ToolArguments):
    button: StrictInt = Field(1, ge=1, le=3, description=_BUTTON_DESCRIPTION)


class ClickAtArgs(ToolArguments):
    x: StrictInt = Field(description="X coordinate")
    y: StrictInt = Field(description="Y coordinate")
    button: StrictInt = Field(1, ge=1, le=3, description=_BUTTON_DESCRIPTION)


class TypeTextArgs(ToolArguments):
    text: StrictStr = Field(description="Text to type. Passed to xdotool verbatim")
    delay: StrictInt = Field(12, ge=0, description="Delay between keystrokes in milliseconds. Default: 12")


class KeyPressArgs(ToolArguments):
    combo: StrictStr = Field(
        min_length=1,
        description="Key or combo to press. Examples: Return, Escape, ctrl+c, alt+Tab, super+1",
    )

    @field_validator("combo")
    @classmethod
    def _combo_not_blank(cls, value: str) -> str:
        return _require_non_blank(value, "combo")


class ScrollArgs(ToolArguments):
    direction: Literal["up", "down", "left", "right"] = Field(
        description="Scroll direction: up, down, left, right (case-insensitive)"
    )
    amount: StrictInt = Field(3, gt=0, description="Number of wheel clicks to scroll. Default: 3")

    @field_validator("direction", mode="before")
    @classmethod
    def _normalize_direction(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class NoArgs(ToolArguments):
    """Arguments of tools that take none."""


class DoubleClickArgs(ToolArguments):
    button: StrictInt = Field(1, ge=1, le=3, description=_BUTTON_DESCRIPTION)


class SearchWindowArgs(ToolArguments):
    query: StrictStr = Field(min_length=1, description="Search query (window name, class, or pattern)")
    search_type: Literal["any", "name", "class", "classname"] = Field(
        "any", description="Search by: 'name', 'class', 'classname', or 'any' (default: 'any')"
    )

    @field_validator("search_type", mode="before")
    @classmethod
    def _normalize_search_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class WindowIdArgs(ToolArguments):
    window_id: StrictStr = Field(description="Window ID (from search_window or get_active_window)")

    @field_validator("window_id", mode="before")
    @classmethod
    def _window_id_as_text(cls, value: Any) -> Any:
        # Clients often send the numeric id returned by get_active_window
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("window_id")
    @classmethod
    def _window_id_not_blank(cls, value: str) -> str:
        return _require_non_blank(value, "window_id").strip()


class Invocation(BaseModel):
    """A single external process execution request."""

    model_config = ConfigDict(frozen=True)

    program: str
    arguments: Tuple[str, ...] = ()

    @property
    def argv(self) -> List[str]:
        return [self.program, *self.arguments]

    def display(self) -> str:
        """Shell-quoted rendering, for log lines only. Never executed."""
        return shlex.join(self.argv)


class ProcessOutcome(BaseModel):
    """Exit status and captured output of one Invocation."""

    model_config = ConfigDict(frozen=True)

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


class ToolResult(BaseModel):
    """Result of a tool call returned to the MCP client"""
    success: bool
    tool: str = Field(description="Name of the tool that produced this result")
    message: Optional[str] = Field(None, description="Human-readable summary of what happened")
    payload: Optional[Dict[str, Any]] = Field(None, description="Structured data returned by query tools")
    error_kind: Optional[FailureKind] = Field(None, description="Failure category if the call failed")
    error: Optional[str] = Field(None, description="Error message if the call failed")
    warnings: Optional[List[str]] = Field(None, description="Non-fatal warnings about the environment")

    @classmethod
    def ok(
        cls,
        tool: str,
        message: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> "ToolResult":
        return cls(success=True, tool=tool, message=message, payload=payload)

    @classmethod
    def failure(cls, tool: str, kind: FailureKind, error: str) -> "ToolResult":
        return cls(success=False, tool=tool, error_kind=kind, error=error)
