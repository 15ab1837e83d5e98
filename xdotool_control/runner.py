"""
Process execution for built invocations.

ProcessRunner is the seam between the dispatch pipeline and the operating
system. SubprocessRunner spawns the real binary; tests substitute a fake that
records invocations and returns scripted outcomes.
"""

import asyncio
from typing import Optional, Protocol

from .errors import BinaryUnavailableError, CommandTimeoutError
from .logger import get_logger
from .models import Invocation, ProcessOutcome

logger = get_logger("runner")


class ProcessRunner(Protocol):
    async def run(self, invocation: Invocation, timeout: Optional[float] = None) -> ProcessOutcome:
        """Execute one invocation to completion and return its outcome."""
        ...


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill the child if it is still running and reap it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


class SubprocessRunner:
    """Runs invocations as child processes, capturing stdout and stderr fully.

    The argument vector is handed to exec directly; no shell is involved.
    A child never outlives the call: on timeout or cancellation it is killed
    and reaped before control returns to the caller.
    """

    async def run(self, invocation: Invocation, timeout: Optional[float] = None) -> ProcessOutcome:
        logger.debug("Running %s (timeout=%s)", invocation.display(), timeout)

        try:
            proc = await asyncio.create_subprocess_exec(
                *invocation.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise BinaryUnavailableError(
                f"'{invocation.program}' was not found. Install xdotool (e.g. `sudo apt install xdotool`) "
                f"or point XDOTOOL_CONTROL_BINARY at it."
            ) from exc
        except OSError as exc:
            raise BinaryUnavailableError(f"Failed to start '{invocation.program}': {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _terminate(proc)
            raise CommandTimeoutError(
                f"'{invocation.display()}' did not finish within {timeout:g}s and was killed"
            ) from None
        except asyncio.CancelledError:
            logger.info("Call cancelled; killing %s (pid %s)", invocation.program, proc.pid)
            await _terminate(proc)
            raise

        return ProcessOutcome(exit_code=proc.returncode, stdout=stdout, stderr=stderr)
