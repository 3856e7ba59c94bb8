"""Decoding of the JSON envelope printed by ``claude --output-format json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from taskforge.bridge.errors import EnvelopeError, ToolError

logger = logging.getLogger(__name__)

RAW_OUTPUT_PREVIEW_CHARS = 500


@dataclass(slots=True, frozen=True)
class ResponseEnvelope:
    """Structured wrapper emitted once per successful CLI run.

    Only ``is_error`` and ``result`` drive behavior; the remaining fields are
    diagnostics and are ``None`` when absent or malformed.
    """

    type: str | None
    subtype: str | None
    cost_usd: float | None
    is_error: bool
    duration_ms: float | None
    result: str | None
    session_id: str | None


def decode_envelope(raw_output: str) -> ResponseEnvelope:
    """Decode raw stdout into an envelope without judging its outcome."""

    try:
        raw = json.loads(raw_output)
    except (ValueError, RecursionError) as error:
        raise EnvelopeError(
            f"Failed to parse CLI response: {error}\n"
            f"Raw output: {_preview(raw_output)}",
            raw_output=_preview(raw_output),
        ) from error
    if not isinstance(raw, dict):
        raise EnvelopeError(
            f"CLI response must be a JSON object, got {type(raw).__name__}.\n"
            f"Raw output: {_preview(raw_output)}",
            raw_output=_preview(raw_output),
        )

    result = raw.get("result")
    return ResponseEnvelope(
        type=_optional_str(raw.get("type")),
        subtype=_optional_str(raw.get("subtype")),
        cost_usd=_optional_number(raw.get("cost_usd")),
        is_error=raw.get("is_error") is True,
        duration_ms=_optional_number(raw.get("duration_ms")),
        result=result if isinstance(result, str) else None,
        session_id=_optional_str(raw.get("session_id")),
    )


def read_envelope(raw_output: str) -> ResponseEnvelope:
    """Decode the envelope and reject tool failures and empty results."""

    envelope = decode_envelope(raw_output)
    if envelope.is_error:
        logger.warning(
            "CLI reported an error: session_id=%s result=%s",
            envelope.session_id,
            envelope.result,
        )
        raise ToolError(
            f"CLI request failed: {envelope.result or 'Unknown error'}",
            session_id=envelope.session_id,
        )
    if not envelope.result:
        raise EnvelopeError(
            "No result content in CLI response.",
            raw_output=_preview(raw_output),
        )
    return envelope


def parse_result_text(raw_output: str) -> str:
    """Return the envelope ``result`` text of a successful CLI run."""

    envelope = read_envelope(raw_output)
    return envelope.result or ""


def _preview(raw_output: str) -> str:
    if len(raw_output) <= RAW_OUTPUT_PREVIEW_CHARS:
        return raw_output
    return raw_output[:RAW_OUTPUT_PREVIEW_CHARS] + "..."


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _optional_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)
