"""Error taxonomy for the CLI bridge.

Every failure raised by the bridge is a ``BridgeError`` tagged with the
terminal ``FailureClass`` of the call. Errors are surfaced to the caller
unchanged; retry and fallback policy belong to the caller.
"""

from __future__ import annotations

from enum import Enum


class FailureClass(str, Enum):
    """Terminal failure states of one bridge call."""

    UNAVAILABLE = "unavailable"
    SPAWN_FAILED = "spawn_failed"
    TIMED_OUT = "timed_out"
    PROCESS_FAILED = "process_failed"
    ENVELOPE_INVALID = "envelope_invalid"
    TOOL_REPORTED_ERROR = "tool_reported_error"
    EXTRACTION_FAILED = "extraction_failed"
    VALIDATION_FAILED = "validation_failed"


class BridgeError(RuntimeError):
    """Base class for CLI bridge failures."""

    failure_class: FailureClass


class UnavailableError(BridgeError):
    """The CLI executable is missing or does not answer the version probe."""

    failure_class = FailureClass.UNAVAILABLE


class SpawnError(BridgeError):
    """The CLI process could not be started."""

    failure_class = FailureClass.SPAWN_FAILED

    def __init__(self, message: str, *, executable: str) -> None:
        super().__init__(message)
        self.executable = executable


class ProcessTimeoutError(BridgeError, TimeoutError):
    """The CLI process exceeded its deadline and was terminated."""

    failure_class = FailureClass.TIMED_OUT

    def __init__(self, message: str, *, deadline_ms: int, pid: int | None = None) -> None:
        super().__init__(message)
        self.deadline_ms = deadline_ms
        self.pid = pid


class ProcessError(BridgeError):
    """The CLI process exited with a nonzero status."""

    failure_class = FailureClass.PROCESS_FAILED

    def __init__(self, message: str, *, exit_code: int, stderr: str) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class EnvelopeError(BridgeError):
    """CLI stdout is not a valid response envelope or carries no result."""

    failure_class = FailureClass.ENVELOPE_INVALID

    def __init__(self, message: str, *, raw_output: str = "") -> None:
        super().__init__(message)
        self.raw_output = raw_output


class ToolError(BridgeError):
    """The envelope reports a tool-level failure (``is_error``)."""

    failure_class = FailureClass.TOOL_REPORTED_ERROR

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class ExtractionError(BridgeError):
    """No extraction strategy recovered a JSON document."""

    failure_class = FailureClass.EXTRACTION_FAILED

    def __init__(self, message: str, *, preview: str, reasons: dict[str, str]) -> None:
        super().__init__(message)
        self.preview = preview
        self.reasons = reasons


class ValidationError(BridgeError):
    """Extracted JSON does not satisfy the operation schema."""

    failure_class = FailureClass.VALIDATION_FAILED

    def __init__(self, field: str, constraint: str) -> None:
        super().__init__(f"{field}: {constraint}")
        self.field = field
        self.constraint = constraint
