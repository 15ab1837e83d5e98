"""Tests for SubprocessRunner using the Python interpreter as a stand-in binary."""

import asyncio
import sys
import time

import pytest

from xdotool_control.errors import BinaryUnavailableError, CommandTimeoutError
from xdotool_control.models import Invocation
from xdotool_control.runner import SubprocessRunner


def _python(code, *extra):
    return Invocation(program=sys.executable, arguments=("-c", code, *extra))


@pytest.fixture
def spawned(monkeypatch):
    """Record every process the runner starts."""
    processes = []
    real_exec = asyncio.create_subprocess_exec

    async def recording_exec(*args, **kwargs):
        proc = await real_exec(*args, **kwargs)
        processes.append(proc)
        return proc

    monkeypatch.setattr(asyncio, "create_subprocess_exec", recording_exec)
    return processes


class TestCapture:
    @pytest.mark.asyncio
    async def test_captures_stdout_stderr_and_exit_code(self):
        code = "import sys; sys.stdout.write('X=1\\nY=2\\n'); sys.stderr.write('warn'); sys.exit(3)"

        outcome = await SubprocessRunner().run(_python(code))

        assert outcome.exit_code == 3
        assert outcome.stdout == b"X=1\nY=2\n"
        assert outcome.stderr == b"warn"

    @pytest.mark.asyncio
    async def test_success(self):
        outcome = await SubprocessRunner().run(_python("pass"))

        assert outcome.exit_code == 0
        assert outcome.stdout == b""

    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_parsed(self):
        payload = "; rm -rf ~ && echo $(whoami) `id` | cat > /tmp/x"
        code = "import sys; sys.stdout.write(repr(sys.argv[1:]))"

        outcome = await SubprocessRunner().run(_python(code, payload, ""))

        assert outcome.stdout.decode() == repr([payload, ""])


class TestEnvironmentErrors:
    @pytest.mark.asyncio
    async def test_missing_binary(self):
        with pytest.raises(BinaryUnavailableError) as exc_info:
            await SubprocessRunner().run(Invocation(program="xdotool-definitely-not-installed", arguments=("click", "1")))

        assert "not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_not_executable(self, tmp_path):
        fake = tmp_path / "xdotool"
        fake.write_text("#!/bin/sh\nexit 0\n")
        fake.chmod(0o644)

        with pytest.raises(BinaryUnavailableError):
            await SubprocessRunner().run(Invocation(program=str(fake), arguments=("click", "1")))


class TestTermination:
    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, spawned):
        start = time.monotonic()

        with pytest.raises(CommandTimeoutError) as exc_info:
            await SubprocessRunner().run(_python("import time; time.sleep(30)"), timeout=0.3)

        assert time.monotonic() - start < 10
        assert "0.3s" in exc_info.value.message
        assert len(spawned) == 1
        assert spawned[0].returncode is not None

    @pytest.mark.asyncio
    async def test_cancellation_kills_process(self, spawned):
        task = asyncio.ensure_future(SubprocessRunner().run(_python("import time; time.sleep(30)")))
        while not spawned:
            await asyncio.sleep(0.01)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert spawned[0].returncode is not None

    @pytest.mark.asyncio
    async def test_no_timeout_by_default(self):
        outcome = await SubprocessRunner().run(_python("import time; time.sleep(0.2)"))

        assert outcome.exit_code == 0
