"""Pytest configuration and shared fixtures."""

import os
import sys
from typing import List, Optional, Sequence, Union

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from xdotool_control.config import Settings
from xdotool_control.models import Invocation, ProcessOutcome


class FakeRunner:
    """Records invocations and returns scripted outcomes instead of spawning xdotool.

    Outcomes are consumed in order; once the script is exhausted every run
    succeeds with empty output. An exception in the script is raised instead
    of returned.
    """

    def __init__(self, outcomes: Sequence[Union[ProcessOutcome, Exception]] = ()):
        self._outcomes = list(outcomes)
        self.invocations: List[Invocation] = []
        self.timeouts: List[Optional[float]] = []

    def script(self, *outcomes: Union[ProcessOutcome, Exception]) -> None:
        self._outcomes.extend(outcomes)

    async def run(self, invocation: Invocation, timeout: Optional[float] = None) -> ProcessOutcome:
        self.invocations.append(invocation)
        self.timeouts.append(timeout)
        if not self._outcomes:
            return ProcessOutcome(exit_code=0)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def calls(self) -> List[List[str]]:
        """Argument lists (without the program name) of every invocation so far."""
        return [list(inv.arguments) for inv in self.invocations]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def mock_server(fake_runner, monkeypatch):
    """Point the MCP server module at the fake runner and default settings."""
    import xdotool_control.server as server
    monkeypatch.setattr(server, "_runner", fake_runner)
    monkeypatch.setattr(server, "_settings", Settings())
    return fake_runner


@pytest.fixture
def mock_x11_env(monkeypatch):
    """Mock X11 environment variables and an installed xdotool."""
    monkeypatch.setenv("DISPLAY", ":0")
    monkeypatch.setenv("XAUTHORITY", "/home/user/.Xauthority")
    monkeypatch.setenv("XDG_SESSION_TYPE", "x11")
    monkeypatch.setattr("xdotool_control.server.shutil.which", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def requires_display():
    """Skip unless a real X display and xdotool are available."""
    import shutil
    if not os.environ.get('DISPLAY'):
        pytest.skip("No DISPLAY available")
    if not shutil.which("xdotool"):
        pytest.skip("xdotool not installed")
