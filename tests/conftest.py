"""Shared test fixtures."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any

import pytest

from taskforge.bridge.executor import ProcessExecutor
from taskforge.bridge.service import ClaudeCliBridge

ECHO_AGENT_ARGV = (sys.executable, "-m", "taskforge.bridge.echo_agent")
ECHO_AGENT_COMMAND_LINE = f'"{sys.executable}" -m taskforge.bridge.echo_agent'


def make_envelope(result: Any = "ok", *, is_error: bool = False, **extra: Any) -> str:
    """Render a CLI response envelope as printed by ``--output-format json``."""

    payload: dict[str, Any] = {
        "type": "result",
        "subtype": "error" if is_error else "success",
        "cost_usd": 0.0123,
        "is_error": is_error,
        "duration_ms": 1500,
        "result": result,
        "session_id": "session-1",
    }
    payload.update(extra)
    return json.dumps(payload)


@dataclass
class FakeCall:
    args: list[str]
    input_payload: str
    deadline_ms: int | None


@dataclass
class FakeExecutor:
    """Scripted stand-in for ``ProcessExecutor``.

    ``--version`` calls answer ``version_output`` (or raise ``version_error``);
    every other call pops the next entry of ``responses``. Exceptions in
    ``responses`` are raised instead of returned.
    """

    responses: list[Any] = field(default_factory=list)
    version_output: str = "1.0.0 (Claude Code)"
    version_error: Exception | None = None
    calls: list[FakeCall] = field(default_factory=list)

    @property
    def executable(self) -> str:
        return "claude"

    @property
    def probe_calls(self) -> list[FakeCall]:
        return [call for call in self.calls if call.args == ["--version"]]

    @property
    def operation_calls(self) -> list[FakeCall]:
        return [call for call in self.calls if call.args != ["--version"]]

    def execute(
        self,
        args: list[str],
        input_payload: str = "",
        deadline_ms: int | None = None,
    ) -> str:
        self.calls.append(FakeCall(list(args), input_payload, deadline_ms))
        if args == ["--version"]:
            if self.version_error is not None:
                raise self.version_error
            return self.version_output
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def envelope():
    return make_envelope


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def bridge(fake_executor: FakeExecutor) -> ClaudeCliBridge:
    return ClaudeCliBridge(executor=fake_executor)


@pytest.fixture()
def echo_executor() -> ProcessExecutor:
    return ProcessExecutor(ECHO_AGENT_ARGV)


@pytest.fixture()
def echo_cli_env(monkeypatch) -> None:
    """Point the CLI bridge at the local echo agent."""

    monkeypatch.setenv("TASKFORGE_CLAUDE_CLI_MODE", "true")
    monkeypatch.setenv("TASKFORGE_CLAUDE_CLI_PATH", ECHO_AGENT_COMMAND_LINE)
    monkeypatch.delenv("TASKFORGE_ECHO_AGENT_ERROR", raising=False)
    monkeypatch.delenv("TASKFORGE_CLI_OPERATION_TIMEOUTS", raising=False)
    monkeypatch.delenv("TASKFORGE_CLI_TIMEOUT_MS", raising=False)
    monkeypatch.delenv("TASKFORGE_CLI_PROBE_TIMEOUT_MS", raising=False)
