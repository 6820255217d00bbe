from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_SCORING_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"
_scoring_cache: dict[str, Any] | None = None


def scoring_config_path() -> Path:
    override = (os.getenv("SCORING_CONFIG_PATH") or "").strip()
    return Path(override) if override else _DEFAULT_SCORING_PATH


def reset_scoring_config_cache() -> None:
    global _scoring_cache
    _scoring_cache = None


def get_scoring_config() -> dict[str, Any]:
    """Load the heuristic scoring weights once and keep them for the process."""
    global _scoring_cache

    if _scoring_cache is not None:
        return _scoring_cache

    path = scoring_config_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Unable to read scoring config '{path}': {exc}") from exc

    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Scoring config '{path}' is not valid YAML: {exc}") from exc

    if not isinstance(loaded, dict):
        raise RuntimeError(f"Scoring config '{path}' must contain a mapping at the top level.")

    _scoring_cache = loaded
    return _scoring_cache


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Dot-path lookup, e.g. ``heuristic.sections.education``."""
    if not path:
        return default

    node: Any = get_scoring_config()
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node
