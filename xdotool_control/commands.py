"""
Translate validated tool arguments into xdotool invocations.

Every builder is pure and total over its validated argument model. User text
(typed text, key combos, search queries) is always a single discrete argv
element; no shell ever sees it. Where a positional value may start with '-'
(negative coordinates, combos, queries) a '--' separator ends option parsing.
"""

from typing import Callable, Dict, Tuple

from .errors import UnmappedToolError
from .models import (
    ClickArgs,
    ClickAtArgs,
    DoubleClickArgs,
    Invocation,
    KeyPressArgs,
    MoveMouseArgs,
    NoArgs,
    ScrollArgs,
    SearchWindowArgs,
    ToolArguments,
    ToolName,
    TypeTextArgs,
    WindowIdArgs,
)

DEFAULT_PROGRAM = "xdotool"

# X11 wheel buttons. Stable: clients rely on these codes.
SCROLL_BUTTONS = {"up": 4, "down": 5, "left": 6, "right": 7}

# Milliseconds between the two clicks of a double click
DOUBLE_CLICK_DELAY_MS = 100

_SEARCH_FLAGS = {"name": "--name", "class": "--class", "classname": "--classname"}

Builder = Callable[[ToolArguments, str], Tuple[Invocation, ...]]


def _invocation(program: str, *arguments: object) -> Invocation:
    return Invocation(program=program, arguments=tuple(str(a) for a in arguments))


# xdotool parses each command's options with getopt_long, which stops at "--";
# without it a negative x such as -20 is read as an unknown option.
def build_move_mouse(args: MoveMouseArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "mousemove", "--", args.x, args.y),)


def build_click(args: ClickArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "click", args.button),)


def build_click_at(args: ClickAtArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    """Move then click, as two invocations run in order."""
    return (
        _invocation(program, "mousemove", "--", args.x, args.y),
        _invocation(program, "click", args.button),
    )


def build_type_text(args: TypeTextArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "type", "--delay", args.delay, "--", args.text),)


# getopt_long again: a combo like "-" or "--clearmodifiers" would be taken as an option
def build_key_press(args: KeyPressArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "key", "--", args.combo),)


def build_scroll(args: ScrollArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "click", "--repeat", args.amount, SCROLL_BUTTONS[args.direction]),)


def build_get_mouse_position(args: NoArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "getmouselocation", "--shell"),)


def build_double_click(args: DoubleClickArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "click", "--repeat", 2, "--delay", DOUBLE_CLICK_DELAY_MS, args.button),)


def build_search_window(args: SearchWindowArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    flag = _SEARCH_FLAGS.get(args.search_type)
    if flag is None:
        # 'any' uses xdotool's default matching
        return (_invocation(program, "search", "--", args.query),)
    return (_invocation(program, "search", flag, "--", args.query),)


def build_get_active_window(args: NoArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "getactivewindow"),)


def build_get_window_geometry(args: WindowIdArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "getwindowgeometry", "--shell", args.window_id),)


def build_get_window_name(args: WindowIdArgs, program: str = DEFAULT_PROGRAM) -> Tuple[Invocation, ...]:
    return (_invocation(program, "getwindowname", args.window_id),)


BUILDERS: Dict[ToolName, Builder] = {
    ToolName.MOVE_MOUSE: build_move_mouse,
    ToolName.CLICK: build_click,
    ToolName.CLICK_AT: build_click_at,
    ToolName.TYPE_TEXT: build_type_text,
    ToolName.KEY_PRESS: build_key_press,
    ToolName.SCROLL: build_scroll,
    ToolName.GET_MOUSE_POSITION: build_get_mouse_position,
    ToolName.DOUBLE_CLICK: build_double_click,
    ToolName.SEARCH_WINDOW: build_search_window,
    ToolName.GET_ACTIVE_WINDOW: build_get_active_window,
    ToolName.GET_WINDOW_GEOMETRY: build_get_window_geometry,
    ToolName.GET_WINDOW_NAME: build_get_window_name,
}


_missing = [tool.value for tool in ToolName if tool not in BUILDERS]
if _missing:
    raise UnmappedToolError(f"Tools without a command builder: {', '.join(_missing)}")
