from __future__ import annotations

import json

import allure
import pytest

from taskforge.bridge.envelope import (
    RAW_OUTPUT_PREVIEW_CHARS,
    decode_envelope,
    parse_result_text,
    read_envelope,
)
from taskforge.bridge.errors import EnvelopeError, FailureClass, ToolError

pytestmark = [
    allure.epic("CLI Bridge"),
    allure.feature("Response Envelope"),
]


class TestReadEnvelope:
    def test_success_envelope_exposes_result_and_diagnostics(self, envelope) -> None:
        parsed = read_envelope(envelope("hello"))

        assert parsed.result == "hello"
        assert parsed.cost_usd == pytest.approx(0.0123)
        assert parsed.duration_ms == 1500
        assert parsed.session_id == "session-1"
        assert parsed.is_error is False

    def test_is_error_raises_tool_error_with_result_text(self, envelope) -> None:
        with pytest.raises(ToolError, match="CLI request failed: rate limited") as error_info:
            read_envelope(envelope("rate limited", is_error=True))

        assert error_info.value.failure_class is FailureClass.TOOL_REPORTED_ERROR
        assert error_info.value.session_id == "session-1"

    def test_is_error_without_result_uses_unknown_error(self, envelope) -> None:
        with pytest.raises(ToolError, match="CLI request failed: Unknown error"):
            read_envelope(envelope(None, is_error=True))

    def test_truthy_non_boolean_is_error_is_not_an_error(self, envelope) -> None:
        parsed = read_envelope(envelope("fine", is_error="true"))

        assert parsed.is_error is False

    @pytest.mark.parametrize("result", ["", None, 42])
    def test_missing_result_raises_envelope_error(self, envelope, result) -> None:
        with pytest.raises(EnvelopeError, match="No result content in CLI response"):
            read_envelope(envelope(result))

    def test_whitespace_result_is_kept(self, envelope) -> None:
        assert read_envelope(envelope("  ")).result == "  "

    def test_non_json_output_raises_with_preview(self) -> None:
        raw = "x" * (RAW_OUTPUT_PREVIEW_CHARS + 100)

        with pytest.raises(EnvelopeError, match="Failed to parse CLI response") as error_info:
            read_envelope(raw)

        assert error_info.value.failure_class is FailureClass.ENVELOPE_INVALID
        assert error_info.value.raw_output == "x" * RAW_OUTPUT_PREVIEW_CHARS + "..."

    @pytest.mark.parametrize("raw", ["[" * 100_000, "1" * 5_000])
    def test_unloadable_json_raises_envelope_error(self, raw: str) -> None:
        with pytest.raises(EnvelopeError, match="Failed to parse CLI response") as error_info:
            decode_envelope(raw)

        assert error_info.value.raw_output.endswith("...")

    def test_json_array_is_not_an_envelope(self) -> None:
        with pytest.raises(EnvelopeError, match="must be a JSON object"):
            read_envelope("[1, 2]")


def test_malformed_metadata_becomes_none(envelope) -> None:
    parsed = decode_envelope(
        envelope("ok", cost_usd="free", duration_ms=True, session_id=7, type=None),
    )

    assert parsed.cost_usd is None
    assert parsed.duration_ms is None
    assert parsed.session_id is None
    assert parsed.type is None
    assert parsed.result == "ok"


def test_minimal_envelope_only_needs_result() -> None:
    parsed = read_envelope(json.dumps({"result": "notes"}))

    assert parsed.result == "notes"
    assert parsed.cost_usd is None
    assert parsed.subtype is None


def test_parse_result_text_returns_result(envelope) -> None:
    assert parse_result_text(envelope('{"tasks": []}')) == '{"tasks": []}'
