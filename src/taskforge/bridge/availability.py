"""One-shot availability probe for the AI command-line tool."""

from __future__ import annotations

import logging
from typing import Protocol

from taskforge.bridge.errors import BridgeError, UnavailableError

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_MS = 5_000


class CommandRunner(Protocol):
    """Anything that can run one CLI invocation (``ProcessExecutor`` in production)."""

    @property
    def executable(self) -> str:
        """Name or path of the CLI executable."""

    def execute(
        self,
        args: list[str],
        input_payload: str = "",
        deadline_ms: int | None = None,
    ) -> str:
        """Run the CLI and return stdout."""


class AvailabilityProbe:
    """Check once that the CLI answers ``--version``, then remember it.

    Only success is cached. Staleness (the tool disappearing mid-run) is
    accepted; call ``reset`` to force a new check.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        deadline_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
    ) -> None:
        self.runner = runner
        self.deadline_ms = deadline_ms
        self.version: str | None = None
        self._available = False

    @property
    def is_cached(self) -> bool:
        return self._available

    def check(self) -> bool:
        """Return ``True`` when the CLI is usable or raise ``UnavailableError``."""

        if self._available:
            return True

        try:
            stdout = self.runner.execute(["--version"], "", self.deadline_ms)
        except BridgeError as error:
            logger.warning("CLI %s is not available: %s", self.runner.executable, error)
            raise UnavailableError(f"CLI not available: {error}") from error

        self.version = stdout.strip().splitlines()[0] if stdout.strip() else None
        self._available = True
        logger.debug("CLI %s available: %s", self.runner.executable, self.version or "<no version>")
        return True

    def reset(self) -> None:
        """Forget the cached result."""

        self._available = False
        self.version = None
