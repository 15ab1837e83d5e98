"""
Failure kinds and the exception hierarchy used inside the dispatch pipeline.

Every exception raised while handling a single tool call derives from
XdotoolControlError and carries the FailureKind it is reported as. The
dispatcher converts these into ToolResult failures; UnmappedToolError is the
exception to that rule and is allowed to propagate.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Typed failure categories surfaced to MCP clients."""

    VALIDATION = "validation_error"
    ENVIRONMENT = "environment_error"
    COMMAND = "command_error"
    PARSE = "parse_error"
    TIMEOUT = "timeout"


class XdotoolControlError(Exception):
    """Base exception for failures of a single tool call."""

    kind: FailureKind = FailureKind.COMMAND

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ArgumentValidationError(XdotoolControlError):
    """Raised when a tool name or argument payload is invalid."""

    kind = FailureKind.VALIDATION


class BinaryUnavailableError(XdotoolControlError):
    """Raised when the xdotool binary cannot be located or started."""

    kind = FailureKind.ENVIRONMENT


class CommandFailedError(XdotoolControlError):
    """Raised when xdotool ran but exited with a nonzero status."""

    kind = FailureKind.COMMAND

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


class OutputParseError(XdotoolControlError):
    """Raised when xdotool output does not have the expected shape."""

    kind = FailureKind.PARSE


class CommandTimeoutError(XdotoolControlError):
    """Raised when xdotool did not finish within the allowed time."""

    kind = FailureKind.TIMEOUT


class UnmappedToolError(RuntimeError):
    """A ToolName has no registry entry. This is a programming error."""
