from __future__ import annotations

import allure
import pytest

from taskforge.bridge.models import OperationKind
from taskforge.config import OPERATION_NAMES, BridgeSettings, Settings

pytestmark = [
    allure.epic("CLI Bridge"),
    allure.feature("Configuration"),
]

_ENV_NAMES = (
    "TASKFORGE_CLAUDE_CLI_MODE",
    "CLAUDE_CLI_MODE",
    "TASKFORGE_CLAUDE_CLI_PATH",
    "CLAUDE_CLI_PATH",
    "TASKFORGE_CLI_TIMEOUT_MS",
    "TASKFORGE_CLI_OPERATION_TIMEOUTS",
    "TASKFORGE_CLI_PROBE_TIMEOUT_MS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings.from_env()

    assert settings.bridge.cli_mode is False
    assert settings.bridge.cli_path == "claude"
    assert settings.bridge.default_timeout_ms == 120_000
    assert settings.bridge.probe_timeout_ms == 5_000
    assert settings.bridge.operation_timeouts_ms == {}


def test_operation_names_match_operation_kinds() -> None:
    assert set(OPERATION_NAMES) == {kind.value for kind in OperationKind}


def test_prefixed_variables_take_precedence(monkeypatch) -> None:
    monkeypatch.setenv("CLAUDE_CLI_MODE", "false")
    monkeypatch.setenv("TASKFORGE_CLAUDE_CLI_MODE", "yes")
    monkeypatch.setenv("CLAUDE_CLI_PATH", "/usr/bin/claude")
    monkeypatch.setenv("TASKFORGE_CLAUDE_CLI_PATH", "/opt/claude/bin/claude")

    bridge = Settings.from_env().bridge

    assert bridge.cli_mode is True
    assert bridge.cli_path == "/opt/claude/bin/claude"


def test_unprefixed_variables_are_fallbacks(monkeypatch) -> None:
    monkeypatch.setenv("CLAUDE_CLI_MODE", "1")
    monkeypatch.setenv("CLAUDE_CLI_PATH", "/usr/local/bin/claude")

    bridge = Settings.from_env().bridge

    assert bridge.cli_mode is True
    assert bridge.cli_path == "/usr/local/bin/claude"


def test_invalid_boolean_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("TASKFORGE_CLAUDE_CLI_MODE", "maybe")

    with pytest.raises(ValueError, match="Invalid boolean value for TASKFORGE_CLAUDE_CLI_MODE"):
        Settings.from_env()


def test_operation_timeouts_are_parsed(monkeypatch) -> None:
    monkeypatch.setenv(
        "TASKFORGE_CLI_OPERATION_TIMEOUTS",
        "expand_task|300000, Update_Subtask|30000,",
    )

    bridge = Settings.from_env().bridge

    assert bridge.operation_timeouts_ms == {"expand_task": 300_000, "update_subtask": 30_000}
    assert bridge.timeout_for("expand_task") == 300_000
    assert bridge.timeout_for("add_task") == 120_000


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("expand_task=300", "Expected format"),
        ("deploy|300", "operation"),
        ("expand_task|soon", "value for 'expand_task'"),
        ("expand_task|0", "must be > 0"),
    ],
)
def test_invalid_operation_timeouts_are_rejected(monkeypatch, raw: str, message: str) -> None:
    monkeypatch.setenv("TASKFORGE_CLI_OPERATION_TIMEOUTS", raw)

    with pytest.raises(ValueError, match=message):
        Settings.from_env()


def test_validate_for_cli_requires_cli_mode() -> None:
    with pytest.raises(ValueError, match="CLI bridge is disabled"):
        Settings().validate_for_cli()


def test_validate_for_cli_accepts_enabled_defaults() -> None:
    Settings(bridge=BridgeSettings(cli_mode=True)).validate_for_cli()


@pytest.mark.parametrize(
    ("bridge", "message"),
    [
        (BridgeSettings(cli_mode=True, cli_path="  "), "must not be empty"),
        (BridgeSettings(cli_mode=True, default_timeout_ms=0), "TASKFORGE_CLI_TIMEOUT_MS"),
        (BridgeSettings(cli_mode=True, probe_timeout_ms=-1), "TASKFORGE_CLI_PROBE_TIMEOUT_MS"),
        (
            BridgeSettings(cli_mode=True, operation_timeouts_ms={"deploy": 10}),
            "Unknown operation",
        ),
        (
            BridgeSettings(cli_mode=True, operation_timeouts_ms={"add_task": 0}),
            "must be positive",
        ),
    ],
)
def test_validate_for_cli_rejects_invalid_settings(bridge: BridgeSettings, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        Settings(bridge=bridge).validate_for_cli()
