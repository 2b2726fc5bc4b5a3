from __future__ import annotations

import asyncio
import logging
from contextlib import closing
from typing import Any, Mapping, Optional

import psycopg2

from domain.errors import DirectoryUnavailable
from domain.models import PlayerProfile
from domain.repositories import PlayerDirectory
from infrastructure.db.player_directory_sqlite import UPDATABLE_FIELDS

logger = logging.getLogger(__name__)

_COLUMNS = (
    "player_id, username, username_lower, password_hash, nickname, "
    "high_score, best_level, games_played, total_correct_answers, "
    "created_at, last_played"
)


class PostgresPlayerDirectory(PlayerDirectory):
    """
    Postgres-backed implementation of `PlayerDirectory`.

    Uses the same `players` table layout as the SQLite directory, with
    `created_at`/`last_played` taken from the server's `NOW()`. psycopg2 is
    blocking, so each call runs in a worker thread.
    """

    def __init__(self, db_params: dict, timeout: float = 5.0) -> None:
        self._db_params = db_params
        self._timeout = timeout
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(connect_timeout=max(1, int(self._timeout)), **self._db_params)

    def _ensure_table(self) -> None:
        with closing(self._get_connection()) as conn:
            with conn.cursor() as cur:
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
                        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        last_played TIMESTAMPTZ NOT NULL DEFAULT NOW()
                    )
                    """
                )
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
            created_at=row[9],
            last_played=row[10],
        )

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except psycopg2.Error as exc:
            logger.error("Postgres player directory call failed: %s", exc)
            raise DirectoryUnavailable() from exc

    def _fetch_one(self, where: str, value: str) -> Optional[PlayerProfile]:
        with closing(self._get_connection()) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM players WHERE {where} = %s LIMIT 1",
                    (value,),
                )
                row = cur.fetchone()
                if not row:
                    return None
                return self._to_domain(row)

    def _insert(self, profile: PlayerProfile) -> None:
        with closing(self._get_connection()) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO players (
                        player_id, username, username_lower, password_hash, nickname,
                        high_score, best_level, games_played, total_correct_answers,
                        created_at, last_played
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
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
        assignments = [f"{name} = %s" for name in fields]
        assignments.append("last_played = NOW()")
        with closing(self._get_connection()) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE players SET {', '.join(assignments)} WHERE player_id = %s",
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
