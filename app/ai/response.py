"""Pull generated text out of whatever JSON shape a text-generation API returns.

Providers disagree on (and occasionally change) where the text lives, so the
lookup is an ordered chain of shape matchers. Each matcher returns ``""`` when
its shape is absent or malformed and the first non-empty result wins.
"""

from __future__ import annotations

from typing import Any, Callable

ShapeMatcher = Callable[[Any], str]

# Gemini sends {"role": "model"} with no parts when it stops early (MAX_TOKENS).
CONTENT_METADATA_KEYS = frozenset({"role"})


def _text_of(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return ""


def _first_item(payload: Any, key: str) -> Any:
    if not isinstance(payload, dict):
        return None
    items = payload.get(key)
    if isinstance(items, list) and items:
        return items[0]
    return None


def _text_from_parts(parts: Any) -> str:
    if not isinstance(parts, list):
        return ""
    for part in parts:
        if isinstance(part, dict):
            text = _text_of(part.get("text"))
            if text:
                return text
    return ""


def _text_from_entries(entries: list[Any]) -> str:
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        text = _text_from_parts(entry.get("parts")) or _text_of(entry.get("text"))
        if text:
            return text
    return ""


def _from_candidates(payload: Any) -> str:
    candidate = _first_item(payload, "candidates")
    if not isinstance(candidate, dict):
        return ""
    content = candidate.get("content")
    if isinstance(content, str):
        return _text_of(content)
    if isinstance(content, list):
        return _text_from_entries(content)
    if isinstance(content, dict):
        text = _text_from_parts(content.get("parts"))
        if text:
            return text
        for key, value in content.items():
            if key in CONTENT_METADATA_KEYS:
                continue
            if isinstance(value, str) and value.strip():
                return value
            if isinstance(value, list):
                text = _text_from_entries(value)
                if text:
                    return text
    return ""


def _from_outputs(payload: Any) -> str:
    output = _first_item(payload, "outputs")
    if not isinstance(output, dict):
        return ""
    content = output.get("content")
    if isinstance(content, list) and content and isinstance(content[0], dict):
        return _text_of(content[0].get("text"))
    return ""


def _from_choices(payload: Any) -> str:
    choice = _first_item(payload, "choices")
    if not isinstance(choice, dict):
        return ""
    message = choice.get("message")
    if isinstance(message, dict):
        text = _text_of(message.get("content"))
        if text:
            return text
    return _text_of(choice.get("text"))


def _from_top_level(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    for key in ("reply", "outputText", "text"):
        text = _text_of(payload.get(key))
        if text:
            return text
    return ""


def _from_plain_string(payload: Any) -> str:
    return _text_of(payload)


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (
    _from_candidates,
    _from_outputs,
    _from_choices,
    _from_top_level,
    _from_plain_string,
)


def extract_generated_text(payload: Any) -> str:
    for matcher in SHAPE_MATCHERS:
        text = matcher(payload)
        if text:
            return text
    return ""


def finish_reason(payload: Any) -> str | None:
    candidate = _first_item(payload, "candidates")
    if isinstance(candidate, dict) and isinstance(candidate.get("finishReason"), str):
        return candidate["finishReason"]
    if isinstance(payload, dict) and isinstance(payload.get("finishReason"), str):
        return payload["finishReason"]
    choice = _first_item(payload, "choices")
    if isinstance(choice, dict) and isinstance(choice.get("finish_reason"), str):
        return choice["finish_reason"]
    return None
