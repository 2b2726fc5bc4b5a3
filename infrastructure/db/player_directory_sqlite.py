from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from domain.errors import DirectoryUnavailable
from domain.models import PlayerProfile
from domain.repositories import PlayerDirectory

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"nickname", "high_score", "best_level", "games_played", "total_correct_answers"}
)

_COLUMNS = (
    "player_id, username, username_lower, password_hash, nickname, "
    "high_score, best_level, games_played, total_correct_answers, "
    "created_at, last_played"
)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


class SqlitePlayerDirectory(PlayerDirectory):
    """
    SQLite-backed implementation of `PlayerDirectory`.

    Manages the `players` table. Every call opens its own connection inside
    a worker thread so the event loop never waits on disk I/O. Timestamps
    come from SQLite's `CURRENT_TIMESTAMP` (UTC), not the caller's clock.
    """

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path, timeout=self._timeout)

    def _ensure_table(self) -> None:
        with closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS players (
                    player_id TEXT PRIMARY KEY,
                    username TEXT NOT NULL,
                    username_lower TEXT NOT NULL,
                    password_hash TEXT NOT NULL,
                    nickname TEXT NOT NULL,
                    high_score INTEGER NOT NULL DEFAULT 0,
                    best_level INTEGER NOT NULL DEFAULT 1,
                    games_played INTEGER NOT NULL DEFAULT 0,
                    total_correct_answers INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    last_played TEXT NOT NULL
                )
                """
            )
            # Lookup index only: uniqueness is checked by the caller.
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_players_username_lower "
                "ON players (username_lower)"
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> PlayerProfile:
        return PlayerProfile(
            player_id=row[0],
            username=row[1],
            username_lower=row[2],
            password_hash=row[3],
            nickname=row[4],
            high_score=int(row[5]),
            best_level=int(row[6]),
            games_played=int(row[7]),
            total_correct_answers=int(row[8]),
            created_at=_parse_timestamp(row[9]),
            last_played=_parse_timestamp(row[10]),
        )

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as exc:
            logger.error("SQLite player directory call failed: %s", exc)
            raise DirectoryUnavailable() from exc

    def _fetch_one(self, where: str, value: str) -> Optional[PlayerProfile]:
        with closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_COLUMNS} FROM players WHERE {where} = ? LIMIT 1", (value,))
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def _insert(self, profile: PlayerProfile) -> None:
        with closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO players (
                    player_id, username, username_lower, password_hash, nickname,
                    high_score, best_level, games_played, total_correct_answers,
                    created_at, last_played
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                """,
                (
                    profile.player_id,
                    profile.username,
                    profile.username.lower(),
                    profile.password_hash,
                    profile.nickname,
                    profile.high_score,
                    profile.best_level,
                    profile.games_played,
                    profile.total_correct_answers,
                ),
            )
            conn.commit()

    def _update(self, player_id: str, fields: Mapping[str, Any]) -> bool:
        assignments = [f"{name} = ?" for name in fields]
        assignments.append("last_played = CURRENT_TIMESTAMP")
        with closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE players SET {', '.join(assignments)} WHERE player_id = ?",
                (*fields.values(), player_id),
            )
            conn.commit()
            return cur.rowcount > 0

    async def find_by_username(self, username: str) -> Optional[PlayerProfile]:
        return await self._run(self._fetch_one, "username_lower", username.lower())

    async def get_by_id(self, player_id: str) -> Optional[PlayerProfile]:
        return await self._run(self._fetch_one, "player_id", player_id)

    async def create(self, profile: PlayerProfile) -> None:
        await self._run(self._insert, profile)

    async def update(self, player_id: str, fields: Mapping[str, Any]) -> bool:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update player fields: {', '.join(sorted(unknown))}")
        return await self._run(self._update, player_id, dict(fields))
