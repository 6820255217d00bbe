from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


def init_db() -> None:
    if not settings.analytics_enabled:
        return
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_scoring_attempts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                run_id TEXT NOT NULL,
                attempt TEXT NOT NULL,
                model TEXT NOT NULL,
                status TEXT NOT NULL,
                finish_reason TEXT,
                error_code TEXT,
                reply_chars INTEGER NOT NULL DEFAULT 0,
                latency_ms INTEGER
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_ai_scoring_attempts_created_at
            ON ai_scoring_attempts (created_at)
            """
        )
        conn.commit()


def log_ai_attempt(
    *,
    run_id: str,
    attempt: str,
    model: str,
    status: str,
    finish_reason: str | None = None,
    error_code: str | None = None,
    reply_chars: int = 0,
    latency_ms: int | None = None,
) -> None:
    if not settings.analytics_enabled:
        return
    db_path = _get_db_path()
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO ai_scoring_attempts (
                created_at, run_id, attempt, model, status, finish_reason, error_code, reply_chars, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now(),
                run_id,
                attempt,
                model,
                status,
                finish_reason,
                error_code,
                reply_chars,
                latency_ms,
            ),
        )
        conn.commit()


def purge_old_records() -> int:
    if not settings.analytics_enabled:
        return 0
    retention = max(1, int(settings.analytics_retention_days))
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            "DELETE FROM ai_scoring_attempts WHERE created_at < datetime('now', ?)",
            (f"-{retention} days",),
        )
        conn.commit()
        return int(cur.rowcount or 0)


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def get_attempt_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    with sqlite3.connect(_get_db_path()) as conn:
        total_runs = conn.execute("SELECT COUNT(DISTINCT run_id) FROM ai_scoring_attempts").fetchone()[0]
        cur = conn.execute(
            """
            SELECT attempt, status, COUNT(*) AS count
            FROM ai_scoring_attempts
            GROUP BY attempt, status
            ORDER BY attempt, status
            """
        )
        by_attempt = [_row_to_dict(cur, row) for row in cur.fetchall()]
    return {"enabled": True, "total_runs": total_runs, "by_attempt": by_attempt}


def get_latest_attempts(limit: int = 20) -> list[dict[str, Any]]:
    if not settings.analytics_enabled:
        return []
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            """
            SELECT created_at, run_id, attempt, model, status, finish_reason, error_code, reply_chars, latency_ms
            FROM ai_scoring_attempts
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [_row_to_dict(cur, row) for row in cur.fetchall()]
