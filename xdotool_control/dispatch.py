"""
Tool registry and the per-call dispatch pipeline.

A call flows through four steps: validate the raw payload against the tool's
argument model, build the xdotool invocations, run them one after another, and
translate the final outcome into a ToolResult. Any XdotoolControlError raised
along the way becomes a typed failure result; nothing is retried.

The registry is a closed table keyed by ToolName. It is built once at import
and checked for completeness, so an unmapped tool fails at startup rather than
on a client's call.
"""

from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Type, Union

from pydantic import ValidationError

from .commands import BUILDERS, Builder
from .config import Settings
from .errors import (
    ArgumentValidationError,
    CommandFailedError,
    OutputParseError,
    UnmappedToolError,
    XdotoolControlError,
)
from .logger import get_logger
from .models import (
    BUTTON_NAMES,
    ClickArgs,
    ClickAtArgs,
    DoubleClickArgs,
    KeyPressArgs,
    MoveMouseArgs,
    NoArgs,
    ProcessOutcome,
    ScrollArgs,
    SearchWindowArgs,
    ToolArguments,
    ToolName,
    ToolResult,
    TypeTextArgs,
    WindowIdArgs,
)
from .runner import ProcessRunner, SubprocessRunner

logger = get_logger("dispatch")

Payload = Optional[Dict[str, Any]]
Parser = Callable[[ProcessOutcome, Any], Payload]
Describer = Callable[[Any, Payload], str]


class ToolSpec(NamedTuple):
    """Everything the pipeline needs to serve one tool."""

    name: ToolName
    description: str
    args_model: Type[ToolArguments]
    builder: Builder
    parser: Parser
    describe: Describer
    # xdotool search exits nonzero without output when nothing matches
    silent_failure_is_empty: bool = False


# ---------------------------------------------------------------------------
# Result translation
# ---------------------------------------------------------------------------

def parse_shell_output(text: str) -> Dict[str, str]:
    """Parse the KEY=VALUE lines printed by xdotool's --shell option."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key:
            values[key] = value.strip()
    return values


def _require_ints(fields: Dict[str, str], keys: List[str], what: str, raw: str) -> Dict[str, int]:
    parsed: Dict[str, int] = {}
    for key in keys:
        try:
            parsed[key] = int(fields[key])
        except (KeyError, ValueError):
            raise OutputParseError(f"Could not parse {what} from xdotool output: {raw!r}") from None
    return parsed


def _optional_int(fields: Dict[str, str], key: str) -> Optional[int]:
    try:
        return int(fields[key])
    except (KeyError, ValueError):
        return None


def command_error_message(outcome: ProcessOutcome) -> str:
    stderr = outcome.stderr_text.strip()
    if stderr:
        return f"xdotool error: {stderr}"
    return f"command failed with exit code {outcome.exit_code}"


def _no_payload(outcome: ProcessOutcome, args: Any) -> Payload:
    return None


def parse_mouse_location(outcome: ProcessOutcome, args: Any) -> Payload:
    raw = outcome.stdout_text
    parsed = _require_ints(parse_shell_output(raw), ["X", "Y"], "mouse position", raw)
    return {"x": parsed["X"], "y": parsed["Y"]}


def parse_window_search(outcome: ProcessOutcome, args: SearchWindowArgs) -> Payload:
    window_ids = [line.strip() for line in outcome.stdout_text.splitlines() if line.strip()]
    return {"window_ids": window_ids, "count": len(window_ids)}


def parse_active_window(outcome: ProcessOutcome, args: Any) -> Payload:
    raw = outcome.stdout_text
    window_id = raw.strip()
    if not window_id.isdigit():
        raise OutputParseError(f"Could not parse active window ID from xdotool output: {raw!r}")
    return {"window_id": window_id}


def parse_window_geometry(outcome: ProcessOutcome, args: WindowIdArgs) -> Payload:
    raw = outcome.stdout_text
    fields = parse_shell_output(raw)
    parsed = _require_ints(fields, ["X", "Y", "WIDTH", "HEIGHT"], "window geometry", raw)
    payload: Dict[str, Any] = {
        "window_id": args.window_id,
        "x": parsed["X"],
        "y": parsed["Y"],
        "width": parsed["WIDTH"],
        "height": parsed["HEIGHT"],
    }
    screen = _optional_int(fields, "SCREEN")
    if screen is not None:
        payload["screen"] = screen
    return payload


def parse_window_name(outcome: ProcessOutcome, args: WindowIdArgs) -> Payload:
    return {"window_id": args.window_id, "name": outcome.stdout_text.rstrip("\r\n")}


def _describe_search(args: SearchWindowArgs, payload: Payload) -> str:
    count = payload["count"] if payload else 0
    if not count:
        return f"No windows found matching '{args.query}'"
    return f"Found {count} window(s) matching '{args.query}'"


def _describe_geometry(args: WindowIdArgs, payload: Payload) -> str:
    return (
        f"Window {args.window_id} geometry: position ({payload['x']}, {payload['y']}), "
        f"size {payload['width']}x{payload['height']}"
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_SPECS = [
    ToolSpec(
        name=ToolName.MOVE_MOUSE,
        description=(
            "Move mouse cursor to x,y coordinates on screen. "
            "Negative coordinates are allowed for monitors left of or above the primary one."
        ),
        args_model=MoveMouseArgs,
        builder=BUILDERS[ToolName.MOVE_MOUSE],
        parser=_no_payload,
        describe=lambda a, p: f"Mouse moved to ({a.x}, {a.y})",
    ),
    ToolSpec(
        name=ToolName.CLICK,
        description="Click mouse button at current cursor position. Button: 1=left, 2=middle, 3=right",
        args_model=ClickArgs,
        builder=BUILDERS[ToolName.CLICK],
        parser=_no_payload,
        describe=lambda a, p: f"Clicked {BUTTON_NAMES[a.button]} mouse button",
    ),
    ToolSpec(
        name=ToolName.CLICK_AT,
        description=(
            "Move mouse to x,y coordinates and click. Button: 1=left, 2=middle, 3=right. "
            "Runs as two steps (move, then click); if the click fails the cursor has still moved."
        ),
        args_model=ClickAtArgs,
        builder=BUILDERS[ToolName.CLICK_AT],
        parser=_no_payload,
        describe=lambda a, p: f"Clicked {BUTTON_NAMES[a.button]} at ({a.x}, {a.y})",
    ),
    ToolSpec(
        name=ToolName.TYPE_TEXT,
        description="Type text as keyboard input. Use for filling forms, search boxes, etc.",
        args_model=TypeTextArgs,
        builder=BUILDERS[ToolName.TYPE_TEXT],
        parser=_no_payload,
        describe=lambda a, p: f"Typed {len(a.text)} character(s)",
    ),
    ToolSpec(
        name=ToolName.KEY_PRESS,
        description="Press a key or combo. Examples: Return, Escape, ctrl+c, alt+Tab, super+1, ctrl+shift+t",
        args_model=KeyPressArgs,
        builder=BUILDERS[ToolName.KEY_PRESS],
        parser=_no_payload,
        describe=lambda a, p: f"Pressed key: {a.combo}",
    ),
    ToolSpec(
        name=ToolName.SCROLL,
        description="Scroll mouse wheel. Direction: up, down, left, right. Amount: number of wheel clicks",
        args_model=ScrollArgs,
        builder=BUILDERS[ToolName.SCROLL],
        parser=_no_payload,
        describe=lambda a, p: f"Scrolled {a.direction} {a.amount} click(s)",
    ),
    ToolSpec(
        name=ToolName.GET_MOUSE_POSITION,
        description="Get current mouse cursor position",
        args_model=NoArgs,
        builder=BUILDERS[ToolName.GET_MOUSE_POSITION],
        parser=parse_mouse_location,
        describe=lambda a, p: f"Mouse position: ({p['x']}, {p['y']})",
    ),
    ToolSpec(
        name=ToolName.DOUBLE_CLICK,
        description="Double-click at current mouse position. Button defaults to 1 (left)",
        args_model=DoubleClickArgs,
        builder=BUILDERS[ToolName.DOUBLE_CLICK],
        parser=_no_payload,
        describe=lambda a, p: f"Double-clicked {BUTTON_NAMES[a.button]} mouse button",
    ),
    ToolSpec(
        name=ToolName.SEARCH_WINDOW,
        description="Search for windows by name, class, or pattern. Returns window IDs.",
        args_model=SearchWindowArgs,
        builder=BUILDERS[ToolName.SEARCH_WINDOW],
        parser=parse_window_search,
        describe=_describe_search,
        silent_failure_is_empty=True,
    ),
    ToolSpec(
        name=ToolName.GET_ACTIVE_WINDOW,
        description="Get the currently focused/active window ID",
        args_model=NoArgs,
        builder=BUILDERS[ToolName.GET_ACTIVE_WINDOW],
        parser=parse_active_window,
        describe=lambda a, p: f"Active window ID: {p['window_id']}",
    ),
    ToolSpec(
        name=ToolName.GET_WINDOW_GEOMETRY,
        description="Get window geometry (position and size) for a window ID",
        args_model=WindowIdArgs,
        builder=BUILDERS[ToolName.GET_WINDOW_GEOMETRY],
        parser=parse_window_geometry,
        describe=_describe_geometry,
    ),
    ToolSpec(
        name=ToolName.GET_WINDOW_NAME,
        description="Get the window title/name for a window ID",
        args_model=WindowIdArgs,
        builder=BUILDERS[ToolName.GET_WINDOW_NAME],
        parser=parse_window_name,
        describe=lambda a, p: f"Window {a.window_id} title: {p['name']}",
    ),
]

TOOLS: Dict[ToolName, ToolSpec] = {spec.name: spec for spec in _SPECS}

_missing = [tool.value for tool in ToolName if tool not in TOOLS]
if _missing:
    raise UnmappedToolError(f"Tools without a registry entry: {', '.join(_missing)}")


def get_tool_spec(tool: ToolName) -> ToolSpec:
    try:
        return TOOLS[tool]
    except KeyError:
        raise UnmappedToolError(f"No registry entry for {tool!r}") from None


def list_tools() -> List[Dict[str, Any]]:
    """Tool listing for discovery: name, description and JSON schema of the arguments."""
    return [
        {
            "name": spec.name.value,
            "description": spec.description,
            "input_schema": spec.args_model.model_json_schema(),
        }
        for spec in _SPECS
    ]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def resolve_tool(name: Union[ToolName, str]) -> ToolName:
    try:
        return ToolName(name)
    except ValueError:
        available = ", ".join(tool.value for tool in ToolName)
        raise ArgumentValidationError(f"Unknown tool: {name!r}. Available tools: {available}") from None


def _format_validation_error(tool: ToolName, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "arguments"
        problems.append(f"{location}: {err['msg']}")
    return f"Invalid arguments for {tool.value}: " + "; ".join(problems)


def validate_arguments(tool: ToolName, payload: Optional[Mapping[str, Any]]) -> ToolArguments:
    """Validate a raw payload against the tool's argument model."""
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ArgumentValidationError(
            f"Invalid arguments for {tool.value}: expected an object, got {type(payload).__name__}"
        )
    try:
        return get_tool_spec(tool).args_model.model_validate(dict(payload))
    except ValidationError as exc:
        raise ArgumentValidationError(_format_validation_error(tool, exc)) from None


async def execute(
    spec: ToolSpec,
    args: ToolArguments,
    runner: ProcessRunner,
    program: str,
    timeout: Optional[float] = None,
) -> ToolResult:
    """Run the invocations for one validated call and translate the outcome."""
    invocations = spec.builder(args, program)
    outcome: Optional[ProcessOutcome] = None

    # Steps are strictly sequential; a failing step stops the call
    for step, invocation in enumerate(invocations, start=1):
        outcome = await runner.run(invocation, timeout=timeout)
        if outcome.exit_code == 0:
            continue
        if spec.silent_failure_is_empty and not outcome.stdout.strip() and not outcome.stderr.strip():
            break
        message = command_error_message(outcome)
        if step > 1:
            message += f" (step {step} of {len(invocations)} failed; earlier steps already took effect)"
        raise CommandFailedError(message, outcome.exit_code)

    payload = spec.parser(outcome, args)
    return ToolResult.ok(spec.name.value, message=spec.describe(args, payload), payload=payload)


def _effective_timeout(timeout: Optional[float], settings: Settings) -> Optional[float]:
    """Per-call timeout if given, else the configured one. Zero means no limit."""
    if timeout is None:
        return settings.timeout
    if timeout < 0:
        raise ArgumentValidationError(f"timeout must not be negative, got {timeout:g}")
    return timeout or None


async def dispatch(
    name: Union[ToolName, str],
    payload: Optional[Mapping[str, Any]] = None,
    *,
    runner: Optional[ProcessRunner] = None,
    settings: Optional[Settings] = None,
    timeout: Optional[float] = None,
) -> ToolResult:
    """Handle one tool call end to end.

    Args:
        name: Tool name as sent by the client.
        payload: Raw argument mapping.
        runner: Process runner; defaults to a real SubprocessRunner.
        settings: Binary name and default timeout; defaults to Settings().
        timeout: Per-call limit in seconds, overriding settings.timeout. 0 means no limit.

    Returns:
        ToolResult. Failures of the call are returned, not raised.
    """
    settings = settings or Settings()
    runner = runner or SubprocessRunner()
    label = name.value if isinstance(name, ToolName) else str(name)

    try:
        tool = resolve_tool(name)
        args = validate_arguments(tool, payload)
        effective_timeout = _effective_timeout(timeout, settings)
        result = await execute(get_tool_spec(tool), args, runner, settings.binary, effective_timeout)
    except XdotoolControlError as exc:
        logger.warning("%s failed (%s): %s", label, exc.kind.value, exc.message)
        return ToolResult.failure(label, exc.kind, exc.message)

    logger.debug("%s succeeded: %s", label, result.message)
    return result
