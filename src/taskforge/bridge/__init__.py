"""Bridge that routes task operations through the ``claude`` CLI."""

from taskforge.bridge.availability import AvailabilityProbe
from taskforge.bridge.errors import (
    BridgeError,
    EnvelopeError,
    ExtractionError,
    FailureClass,
    ProcessError,
    ProcessTimeoutError,
    SpawnError,
    ToolError,
    UnavailableError,
    ValidationError,
)
from taskforge.bridge.executor import ProcessExecutor
from taskforge.bridge.models import OperationKind, OperationResult
from taskforge.bridge.service import ClaudeCliBridge

__all__ = [
    "AvailabilityProbe",
    "BridgeError",
    "ClaudeCliBridge",
    "EnvelopeError",
    "ExtractionError",
    "FailureClass",
    "OperationKind",
    "OperationResult",
    "ProcessError",
    "ProcessExecutor",
    "ProcessTimeoutError",
    "SpawnError",
    "ToolError",
    "UnavailableError",
    "ValidationError",
]
