"""Runtime configuration for the AI CLI bridge."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field

OPERATION_NAMES = (
    "generate_tasks",
    "expand_task",
    "add_task",
    "analyze_complexity",
    "update_subtask",
    "update_task",
    "update_tasks",
)


@dataclass(slots=True)
class BridgeSettings:
    """Settings consumed by the CLI bridge."""

    cli_mode: bool = False
    cli_path: str = "claude"
    default_timeout_ms: int = 120_000
    operation_timeouts_ms: dict[str, int] = field(default_factory=dict)
    probe_timeout_ms: int = 5_000

    def timeout_for(self, operation: str) -> int:
        return self.operation_timeouts_ms.get(operation, self.default_timeout_ms)


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    bridge: BridgeSettings = field(default_factory=BridgeSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults for local development."""

        return cls(
            bridge=BridgeSettings(
                cli_mode=_env_bool(
                    "TASKFORGE_CLAUDE_CLI_MODE",
                    default=_env_bool("CLAUDE_CLI_MODE", default=False),
                ),
                cli_path=os.getenv(
                    "TASKFORGE_CLAUDE_CLI_PATH",
                    os.getenv("CLAUDE_CLI_PATH", "claude"),
                ),
                default_timeout_ms=int(os.getenv("TASKFORGE_CLI_TIMEOUT_MS", "120000")),
                operation_timeouts_ms=_collect_operation_timeouts(),
                probe_timeout_ms=int(os.getenv("TASKFORGE_CLI_PROBE_TIMEOUT_MS", "5000")),
            ),
        )

    def validate_for_cli(self) -> None:
        """Raise configuration error if the CLI bridge cannot be used."""

        if not self.bridge.cli_mode:
            raise ValueError(
                "CLI bridge is disabled. Set TASKFORGE_CLAUDE_CLI_MODE=true "
                "(or CLAUDE_CLI_MODE=true) to run operations through the AI CLI.",
            )
        if not shlex.split(self.bridge.cli_path):
            raise ValueError("TASKFORGE_CLAUDE_CLI_PATH must not be empty.")
        if self.bridge.default_timeout_ms <= 0:
            raise ValueError("TASKFORGE_CLI_TIMEOUT_MS must be > 0.")
        if self.bridge.probe_timeout_ms <= 0:
            raise ValueError("TASKFORGE_CLI_PROBE_TIMEOUT_MS must be > 0.")
        for operation, timeout_ms in self.bridge.operation_timeouts_ms.items():
            if operation not in OPERATION_NAMES:
                raise ValueError(f"Unknown operation in timeout override: {operation!r}")
            if timeout_ms <= 0:
                raise ValueError(
                    f"Per-operation timeout must be positive: {operation!r} -> {timeout_ms}",
                )


def _collect_operation_timeouts() -> dict[str, int]:
    raw = os.getenv("TASKFORGE_CLI_OPERATION_TIMEOUTS", "").strip()
    if not raw:
        return {}

    overrides: dict[str, int] = {}
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        if "|" not in token:
            raise ValueError(
                "Invalid TASKFORGE_CLI_OPERATION_TIMEOUTS entry: "
                f"{token!r}. Expected format '<operation>|<milliseconds>'.",
            )
        operation, timeout_raw = token.rsplit("|", 1)
        operation = operation.strip().lower()
        timeout_raw = timeout_raw.strip()
        if operation not in OPERATION_NAMES:
            raise ValueError(
                f"Invalid TASKFORGE_CLI_OPERATION_TIMEOUTS operation: {operation!r}. "
                f"Use one of {', '.join(OPERATION_NAMES)}.",
            )
        try:
            timeout_ms = int(timeout_raw)
        except ValueError as error:
            raise ValueError(
                "Invalid TASKFORGE_CLI_OPERATION_TIMEOUTS value for "
                f"{operation!r}: {timeout_raw!r}",
            ) from error
        if timeout_ms <= 0:
            raise ValueError(
                "Invalid TASKFORGE_CLI_OPERATION_TIMEOUTS value for "
                f"{operation!r}: {timeout_ms!r} (must be > 0)",
            )
        overrides[operation] = timeout_ms
    return overrides


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
