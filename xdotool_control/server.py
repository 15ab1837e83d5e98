#!/usr/bin/env python3
"""
xdotool Control MCP Server

Provides tools for LLMs to drive the mouse and keyboard of an X11 desktop by
running xdotool. The server never injects input itself: every tool call is
validated, turned into one or more xdotool invocations, and the outcome is
reported back as a ToolResult.

Requirements:
- Python 3.10+
- X11 display server (or XWayland windows under Wayland)
- System packages: xdotool
"""

import os
import shutil
from typing import Any, Dict, List, Optional, Union

from mcp.server.fastmcp import FastMCP
from pydantic import StrictInt, StrictStr

from .config import Settings
from .dispatch import TOOLS, dispatch
from .logger import get_logger, setup_logging
from .models import ToolName, ToolResult
from .runner import ProcessRunner, SubprocessRunner

logger = get_logger("server")

# Settings are read lazily so that a bad environment variable is reported by
# main() instead of breaking the import of this module.
_settings: Optional[Settings] = None

# Replaced by tests with a recording fake
_runner: ProcessRunner = SubprocessRunner()


def _get_settings() -> Settings:
    """Load settings from the environment once and cache them."""
    global _settings

    if _settings is None:
        _settings = Settings.from_env()
    return _settings


# Initialize FastMCP server
mcp = FastMCP(
    "xdotool-control",
    instructions=(
        "Mouse and keyboard automation via xdotool. Move, click, type, scroll, inspect windows. "
        "Failed tool calls are still returned as normal results: check the `success` field, "
        "and read `error_kind` and `error` when it is false."
    ),
)


def _safe_display_server() -> str:
    """Return the display server name with a sane default."""
    return os.environ.get("XDG_SESSION_TYPE", "unknown").lower()


# Non-fatal warnings about the runtime environment
def _collect_env_warnings(binary: str) -> List[str]:
    """Collect non-fatal environment warnings to return with results."""
    warnings: List[str] = []
    display_server = _safe_display_server()
    if display_server != "x11":
        warnings.append(
            f"Display server is '{display_server}'. xdotool needs X11; under Wayland only XWayland windows receive input."
        )

    if not os.environ.get("DISPLAY"):
        warnings.append("DISPLAY is not set; xdotool cannot reach an X server.")

    if not shutil.which(binary):
        warnings.append(f"'{binary}' not found on PATH. Install it with `sudo apt install xdotool`.")

    return warnings


def _description(tool: ToolName) -> str:
    return TOOLS[tool].description


async def _call(tool: ToolName, arguments: Dict[str, Any]) -> ToolResult:
    """Dispatch one tool call and attach environment warnings to the result."""
    settings = _get_settings()
    result = await dispatch(tool, arguments, runner=_runner, settings=settings)
    warnings = _collect_env_warnings(settings.binary)
    if warnings:
        result = result.model_copy(update={"warnings": warnings})
    return result


@mcp.tool(name=ToolName.MOVE_MOUSE.value, description=_description(ToolName.MOVE_MOUSE))
async def move_mouse(x: StrictInt, y: StrictInt) -> ToolResult:
    """
    Move the mouse cursor to absolute screen coordinates.

    Args:
        x: X coordinate in pixels (may be negative on multi-monitor setups)
        y: Y coordinate in pixels (may be negative on multi-monitor setups)

    Examples:
        - move_mouse(x=500, y=300)
    """
    return await _call(ToolName.MOVE_MOUSE, {"x": x, "y": y})


@mcp.tool(name=ToolName.CLICK.value, description=_description(ToolName.CLICK))
async def click(button: StrictInt = 1) -> ToolResult:
    """Click at the current cursor position. Button: 1=left, 2=middle, 3=right."""
    return await _call(ToolName.CLICK, {"button": button})


@mcp.tool(name=ToolName.CLICK_AT.value, description=_description(ToolName.CLICK_AT))
async def click_at(x: StrictInt, y: StrictInt, button: StrictInt = 1) -> ToolResult:
    """
    Move to (x, y) and click there.

    The move and the click are two separate xdotool runs. If the click fails
    the cursor has already moved, and the result reports the click's error.

    Examples:
        - click_at(x=100, y=200) - Left click at (100, 200)
        - click_at(x=100, y=200, button=3) - Right click (context menu)
    """
    return await _call(ToolName.CLICK_AT, {"x": x, "y": y, "button": button})


@mcp.tool(name=ToolName.TYPE_TEXT.value, description=_description(ToolName.TYPE_TEXT))
async def type_text(text: str, delay: StrictInt = 12) -> ToolResult:
    """
    Type text using the keyboard.

    Args:
        text: The string of text to type. Passed to xdotool as a single argument.
        delay: Milliseconds between keystrokes (default 12).

    Examples:
        - type_text(text="Hello World")
        - type_text(text="ls -la", delay=50) - Types slowly
    """
    return await _call(ToolName.TYPE_TEXT, {"text": text, "delay": delay})


@mcp.tool(name=ToolName.KEY_PRESS.value, description=_description(ToolName.KEY_PRESS))
async def key_press(combo: str) -> ToolResult:
    """
    Press a key or key combination.

    Args:
        combo: xdotool key name or '+'-joined combo. Examples: 'Return', 'Escape', 'ctrl+c', 'alt+Tab'.
    """
    return await _call(ToolName.KEY_PRESS, {"combo": combo})


@mcp.tool(name=ToolName.SCROLL.value, description=_description(ToolName.SCROLL))
async def scroll(direction: str, amount: StrictInt = 3) -> ToolResult:
    """Scroll the wheel: up=button 4, down=5, left=6, right=7, repeated `amount` times."""
    return await _call(ToolName.SCROLL, {"direction": direction, "amount": amount})


@mcp.tool(name=ToolName.GET_MOUSE_POSITION.value, description=_description(ToolName.GET_MOUSE_POSITION))
async def get_mouse_position() -> ToolResult:
    return await _call(ToolName.GET_MOUSE_POSITION, {})


@mcp.tool(name=ToolName.DOUBLE_CLICK.value, description=_description(ToolName.DOUBLE_CLICK))
async def double_click(button: StrictInt = 1) -> ToolResult:
    return await _call(ToolName.DOUBLE_CLICK, {"button": button})


@mcp.tool(name=ToolName.SEARCH_WINDOW.value, description=_description(ToolName.SEARCH_WINDOW))
async def search_window(query: str, search_type: str = "any") -> ToolResult:
    """
    Find windows whose name or class matches a pattern.

    Args:
        query: Regular expression matched by xdotool against the window
        search_type: 'name', 'class', 'classname', or 'any' (default)

    Returns:
        ToolResult whose payload holds window_ids (possibly empty) and count
    """
    return await _call(ToolName.SEARCH_WINDOW, {"query": query, "search_type": search_type})


@mcp.tool(name=ToolName.GET_ACTIVE_WINDOW.value, description=_description(ToolName.GET_ACTIVE_WINDOW))
async def get_active_window() -> ToolResult:
    return await _call(ToolName.GET_ACTIVE_WINDOW, {})


@mcp.tool(name=ToolName.GET_WINDOW_GEOMETRY.value, description=_description(ToolName.GET_WINDOW_GEOMETRY))
async def get_window_geometry(window_id: Union[StrictStr, StrictInt]) -> ToolResult:
    return await _call(ToolName.GET_WINDOW_GEOMETRY, {"window_id": window_id})


@mcp.tool(name=ToolName.GET_WINDOW_NAME.value, description=_description(ToolName.GET_WINDOW_NAME))
async def get_window_name(window_id: Union[StrictStr, StrictInt]) -> ToolResult:
    return await _call(ToolName.GET_WINDOW_NAME, {"window_id": window_id})


def main():
    """Entry point for the MCP server."""
    settings = _get_settings()
    setup_logging(settings.log_level)

    for warning in _collect_env_warnings(settings.binary):
        logger.warning(warning)

    logger.info("Starting xdotool-control server (binary=%s, timeout=%s)", settings.binary, settings.timeout)
    mcp.run()
    logger.info("xdotool-control server stopped")


if __name__ == "__main__":
    main()
