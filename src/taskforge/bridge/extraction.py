"""Best-effort JSON recovery from free-form model output."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from taskforge.bridge.errors import ExtractionError

CONTENT_PREVIEW_CHARS = 200

_FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class StrategyOutcome:
    """Result of one extraction strategy: a document or a failure reason."""

    strategy: str
    document: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True, frozen=True)
class ExtractedDocument:
    """JSON value recovered from result text and the strategy that found it."""

    value: Any
    strategy: str


def parse_direct(text: str) -> StrategyOutcome:
    """Parse the whole stripped text as JSON."""

    return _try_load("direct", text.strip())


def parse_fenced_block(text: str) -> StrategyOutcome:
    """Parse the interior of the first fenced code block."""

    match = _FENCED_BLOCK.search(text)
    if match is None:
        return StrategyOutcome(strategy="fenced_block", error="no code block found")
    return _try_load("fenced_block", match.group(1).strip())


def parse_brace_span(text: str) -> StrategyOutcome:
    """Parse everything from the first ``{`` to the last ``}``."""

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return StrategyOutcome(strategy="brace_span", error="no valid brace pair found")
    return _try_load("brace_span", text[start : end + 1])


EXTRACTION_STRATEGIES: tuple[Callable[[str], StrategyOutcome], ...] = (
    parse_direct,
    parse_fenced_block,
    parse_brace_span,
)


def extract_json(
    text: str,
    strategies: tuple[Callable[[str], StrategyOutcome], ...] = EXTRACTION_STRATEGIES,
) -> ExtractedDocument:
    """Return the first document recovered by ``strategies`` in order."""

    reasons: dict[str, str] = {}
    for strategy in strategies:
        outcome = strategy(text)
        if outcome.ok:
            return ExtractedDocument(value=outcome.document, strategy=outcome.strategy)
        reasons[outcome.strategy] = outcome.error or "failed"

    preview = text[:CONTENT_PREVIEW_CHARS]
    if len(text) > CONTENT_PREVIEW_CHARS:
        preview += "..."
    raise ExtractionError(
        f"Could not extract valid JSON from content: {preview}",
        preview=preview,
        reasons=reasons,
    )


def _try_load(strategy: str, raw: str) -> StrategyOutcome:
    try:
        return StrategyOutcome(strategy=strategy, document=json.loads(raw))
    except json.JSONDecodeError as error:
        return StrategyOutcome(strategy=strategy, error=f"invalid JSON: {error.msg}")
    except (ValueError, RecursionError) as error:
        return StrategyOutcome(strategy=strategy, error=f"unloadable JSON: {error}")
