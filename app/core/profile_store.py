from __future__ import annotations

import os
import sqlite3
import threading
from datetime import datetime, timezone
from functools import lru_cache

from app.core.config import settings
from app.core.errors import PersistError
from app.schemas.ats import ScoringRecord
from app.schemas.profile import UserProfile


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProfileStore:
    """SQLite-backed user profiles. Each profile carries at most one scoring record."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_profiles (
                    user_id TEXT PRIMARY KEY,
                    profile_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            self._conn = conn
            return conn

    def init(self) -> None:
        self._get_connection()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def get_profile(self, user_id: str) -> UserProfile | None:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute(
                "SELECT profile_json FROM user_profiles WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        if not row:
            return None
        return UserProfile.model_validate_json(row[0])

    def save_profile(self, profile: UserProfile) -> None:
        conn = self._get_connection()
        payload = profile.model_dump_json()
        try:
            with self._lock:
                conn.execute(
                    """
                    INSERT INTO user_profiles (user_id, profile_json, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        profile_json = excluded.profile_json,
                        updated_at = excluded.updated_at
                    """,
                    (profile.user_id, payload, _utc_now()),
                )
        except sqlite3.Error as exc:
            raise PersistError("Failed to save profile") from exc

    def save_scoring_record(self, profile: UserProfile, record: ScoringRecord) -> UserProfile:
        # Read-modify-write without a version check: concurrent scoring for the
        # same user is last-write-wins.
        updated = profile.model_copy(update={"ats_ai": record})
        self.save_profile(updated)
        return updated

    def get_scoring_record(self, user_id: str) -> ScoringRecord | None:
        profile = self.get_profile(user_id)
        return profile.ats_ai if profile else None


@lru_cache(maxsize=1)
def get_profile_store() -> ProfileStore:
    return ProfileStore(settings.profile_db_path)
