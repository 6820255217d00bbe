from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any

from app.schemas.ats import AIScoreResult

JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
REPLY_SCORE_PATTERNS = (
    re.compile(r'"score"\s*:\s*(\d{1,3})', re.IGNORECASE),
    re.compile(r"score\s*[:=]\s*(\d{1,3})", re.IGNORECASE),
    re.compile(r"\bscore\s+is\s+(\d{1,3})\b", re.IGNORECASE),
)
RAW_SCORE_PATTERN = re.compile(r'"score"\s*:\s*(\d{1,3})', re.IGNORECASE)


@dataclass(frozen=True)
class ParsedReply:
    parsed: dict[str, Any] | None
    result: AIScoreResult

    @property
    def has_recommendations(self) -> bool:
        return bool(self.result.recommendations)


def clamp_score(value: float) -> int:
    # Half-up rounding, not banker's rounding.
    return int(max(0, min(100, math.floor(value + 0.5))))


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def parse_reply_json(reply: str) -> dict[str, Any] | None:
    if not reply or not reply.strip():
        return None
    parsed = _loads_object(reply)
    if parsed is not None:
        return parsed
    match = JSON_OBJECT_RE.search(reply)
    if not match:
        return None
    return _loads_object(match.group(0))


def _coerce_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _search_score(text: str, patterns: tuple[re.Pattern[str], ...]) -> int | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return clamp_score(int(match.group(1)))
    return None


def derive_score(parsed: dict[str, Any] | None, reply: str, raw: Any) -> int | None:
    if parsed is not None:
        number = _coerce_number(parsed.get("score"))
        if number is not None:
            return clamp_score(number)

    if reply:
        score = _search_score(reply, REPLY_SCORE_PATTERNS)
        if score is not None:
            return score

    if raw is None:
        return None
    try:
        raw_text = json.dumps(raw, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return None
    return _search_score(raw_text, (RAW_SCORE_PATTERN,))


def _recommendations(parsed: dict[str, Any] | None) -> list[str]:
    if parsed is None:
        return []
    value = parsed.get("recommendations")
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_score_reply(reply: str, raw: Any = None) -> ParsedReply:
    """Turn the model's reply into a score result.

    ``result.score`` is ``None`` when no number can be found anywhere, and
    ``result.recommendations`` is empty when the model did not supply usable
    ones; both gaps are filled by the heuristic scorer.
    """
    reply = reply or ""
    parsed = parse_reply_json(reply)
    summary = parsed.get("summary") if parsed is not None else None
    result = AIScoreResult(
        score=derive_score(parsed, reply, raw),
        summary=summary.strip() if isinstance(summary, str) else "",
        recommendations=_recommendations(parsed),
    )
    return ParsedReply(parsed=parsed, result=result)
