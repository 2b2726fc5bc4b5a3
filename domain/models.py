from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AuthUser:
    """
    Identity of the player currently using the game in this browser context.

    Issued on sign-up/sign-in and replaced wholesale (never mutated) when
    anything about it changes.
    """

    player_id: str
    username: str
    nickname: str


@dataclass
class PlayerProfile:
    """
    Durable record of one player's credentials and cumulative statistics.

    `username_lower` is the lookup key for case-insensitive sign-in and must
    always equal `username.lower()`. `created_at`/`last_played` are assigned
    by the directory's clock and are `None` until the record has been stored.
    """

    player_id: str
    username: str
    username_lower: str
    password_hash: str
    nickname: str
    high_score: int = 0
    best_level: int = 1
    games_played: int = 0
    total_correct_answers: int = 0
    created_at: Optional[datetime] = None
    last_played: Optional[datetime] = None

    def to_auth_user(self) -> AuthUser:
        return AuthUser(
            player_id=self.player_id,
            username=self.username,
            nickname=self.nickname,
        )
