"""Recover structured copy from free-text model output.

Resolution runs three stages in order and stops at the first one that
matches:

1. strict JSON: the first balanced ``{...}`` block, accepted when it carries
   ``headlines``, ``descriptions`` and ``ctas``;
2. heuristic sections: keyword-bearing lines such as ``Headline: ...``;
3. topic fallback: canned content keyed by the request context.

Each stage reports a :class:`ParseOutcome` instead of raising, and
:func:`resolve` always returns fully populated content.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import TypeAdapter, ValidationError

from plugin_copy_proxy.pipeline.content import ContentRecord, StructuredContent
from plugin_copy_proxy.pipeline.fallback import TOPIC_FALLBACKS, resolve_topic

logger = logging.getLogger(__name__)

STRUCTURED_KEYS = ("headlines", "descriptions", "ctas")
SECTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "headlines": ("headline", "title", "header"),
    "descriptions": ("description", "summary", "content"),
    "ctas": ("cta", "call-to-action", "button", "action"),
}
SECTION_MIN_CHARS = 5
SECTION_MAX_CHARS = 200
JSON_ARRAY_PATTERN = re.compile(r"\[\s*\{[\s\S]*?\}\s*\]")
_TRAILING_SEPARATOR = re.compile(r"[:\-]")
_VALUE_TRIM = " \t\"',;"
_RECORDS_ADAPTER = TypeAdapter(list[ContentRecord])


class ParseOutcome(str, Enum):
    MATCHED = "matched"
    PARTIAL_MATCH = "partial_match"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class StageResult:
    outcome: ParseOutcome
    content: StructuredContent | None = None


@dataclass(frozen=True)
class Resolution:
    content: StructuredContent
    outcome: ParseOutcome
    stage: str
    topic: str


def _balanced_from(text: str, start: int) -> str | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def find_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` block, ignoring braces inside strings.

    A ``{`` that never closes does not hide a balanced block later in the text.
    """
    start = text.find("{")
    while start >= 0:
        block = _balanced_from(text, start)
        if block is not None:
            return block
        start = text.find("{", start + 1)
    return None


def extract_json_block(text: str) -> StageResult:
    block = find_json_object(text)
    if block is None:
        return StageResult(ParseOutcome.NO_MATCH)
    try:
        parsed: Any = json.loads(block)
    except ValueError:
        logger.info("resolver.json.invalid chars=%d", len(block))
        return StageResult(ParseOutcome.NO_MATCH)
    if not isinstance(parsed, dict) or not all(key in parsed for key in STRUCTURED_KEYS):
        return StageResult(ParseOutcome.NO_MATCH)
    try:
        content = StructuredContent.model_validate({key: parsed[key] for key in STRUCTURED_KEYS})
    except ValidationError:
        logger.info("resolver.json.wrong_types keys=%s", ",".join(STRUCTURED_KEYS))
        return StageResult(ParseOutcome.NO_MATCH)
    # Keys present but possibly empty lists; the caller back-fills those.
    outcome = ParseOutcome.PARTIAL_MATCH if content.empty_fields() else ParseOutcome.MATCHED
    return StageResult(outcome, content)


def _trailing_value(line: str) -> str | None:
    parts = _TRAILING_SEPARATOR.split(line)
    if len(parts) < 2:
        return None
    value = parts[-1].strip(_VALUE_TRIM)
    if SECTION_MIN_CHARS < len(value) < SECTION_MAX_CHARS:
        return value
    return None


def extract_sections(text: str) -> StageResult:
    sections: dict[str, list[str]] = {key: [] for key in STRUCTURED_KEYS}
    for line in text.splitlines():
        lowered = line.lower()
        for key, keywords in SECTION_KEYWORDS.items():
            if not any(keyword in lowered for keyword in keywords):
                continue
            value = _trailing_value(line)
            if value is not None:
                sections[key].append(value)

    filled = sum(1 for values in sections.values() if values)
    if filled == 0:
        return StageResult(ParseOutcome.NO_MATCH)
    outcome = ParseOutcome.MATCHED if filled == len(STRUCTURED_KEYS) else ParseOutcome.PARTIAL_MATCH
    return StageResult(outcome, StructuredContent(**sections))


def _backfill(content: StructuredContent | None, fallback: StructuredContent) -> StructuredContent:
    if content is None:
        return fallback
    return StructuredContent(
        **{key: list(getattr(content, key)) or list(getattr(fallback, key)) for key in STRUCTURED_KEYS}
    )


def resolve(text: str, context: str | None = None) -> Resolution:
    topic = resolve_topic(context)
    fallback = TOPIC_FALLBACKS[topic]

    strict = extract_json_block(text)
    if strict.outcome is not ParseOutcome.NO_MATCH:
        resolution = Resolution(_backfill(strict.content, fallback), strict.outcome, "json", topic)
    else:
        heuristic = extract_sections(text)
        if heuristic.outcome is ParseOutcome.MATCHED:
            resolution = Resolution(heuristic.content, heuristic.outcome, "sections", topic)
        elif heuristic.outcome is ParseOutcome.PARTIAL_MATCH:
            resolution = Resolution(_backfill(heuristic.content, fallback), heuristic.outcome, "sections", topic)
        else:
            resolution = Resolution(fallback, ParseOutcome.NO_MATCH, "fallback", topic)

    logger.info(
        "resolver.outcome stage=%s outcome=%s topic=%s",
        resolution.stage,
        resolution.outcome.value,
        topic,
    )
    return resolution


def extract_json_array(text: str) -> list[ContentRecord] | None:
    """Parse the first ``[{...}]`` array in ``text`` as content records."""
    match = JSON_ARRAY_PATTERN.search(text)
    if match is None:
        return None
    try:
        return _RECORDS_ADAPTER.validate_json(match.group(0))
    except ValidationError as exc:
        logger.info("resolver.array.invalid errors=%d", exc.error_count())
        return None
