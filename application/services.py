from __future__ import annotations

import logging
import re
import secrets
import string
import time
from typing import Optional

from application.passwords import PasswordHasher
from application.session_store import SessionStore
from domain.errors import (
    DirectoryUnavailable,
    InvalidCredentials,
    InvalidNickname,
    InvalidPasswordLength,
    InvalidUsernameFormat,
    NotSignedIn,
    UsernameTaken,
)
from domain.models import AuthUser, PlayerProfile
from domain.repositories import PlayerDirectory

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 15
PASSWORD_MIN_LENGTH = 4
NICKNAME_MAX_LENGTH = 20

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LENGTH = 9


def is_valid_username(username: str) -> bool:
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return False
    # fullmatch so a trailing newline is not accepted by `$`.
    return _USERNAME_RE.fullmatch(username) is not None


def is_valid_password(password: str) -> bool:
    return len(password) >= PASSWORD_MIN_LENGTH


def _validate_nickname(nickname: str) -> str:
    cleaned = nickname.strip()
    if not 1 <= len(cleaned) <= NICKNAME_MAX_LENGTH:
        raise InvalidNickname()
    return cleaned


def generate_player_id() -> str:
    """
    Return a new player ID: ``player_<epoch millis>_<random base36>``.

    The suffix is pure randomness; it carries nothing about the player.
    """

    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"player_{millis}_{suffix}"


class AuthService:
    """
    Sign-up, sign-in and sign-out for players.

    The service is either signed-out or signed-in, and that state lives
    entirely in the injected `SessionStore`. Within one call the steps run
    strictly in order: validate, query the directory, write/verify, persist
    the session. Nothing orders or isolates concurrent calls, so two sign-ups
    racing for the same username can both succeed.
    """

    def __init__(
        self,
        directory: PlayerDirectory,
        session_store: SessionStore,
        hasher: Optional[PasswordHasher] = None,
    ) -> None:
        self._directory = directory
        self._sessions = session_store
        self._hasher = hasher or PasswordHasher()

    @property
    def is_signed_in(self) -> bool:
        return self._sessions.load() is not None

    async def is_username_available(self, username: str) -> bool:
        return await self._directory.find_by_username(username) is None

    async def sign_up(
        self,
        username: str,
        password: str,
        nickname: Optional[str] = None,
    ) -> AuthUser:
        # Validate before any I/O.
        if not is_valid_username(username):
            raise InvalidUsernameFormat()
        if not is_valid_password(password):
            raise InvalidPasswordLength()
        display_name = _validate_nickname(nickname) if nickname is not None else username

        if not await self.is_username_available(username):
            logger.info("Sign-up rejected, username %r is taken", username)
            raise UsernameTaken()

        profile = PlayerProfile(
            player_id=generate_player_id(),
            username=username,
            username_lower=username.lower(),
            password_hash=self._hasher.hash(password),
            nickname=display_name,
        )
        await self._directory.create(profile)

        user = profile.to_auth_user()
        self._sessions.save(user)
        logger.info("Player %r signed up as %s", username, user.player_id)
        return user

    async def sign_in(self, username: str, password: str) -> AuthUser:
        profile = await self._directory.find_by_username(username)
        if profile is None or not self._hasher.verify(password, profile.password_hash):
            logger.warning("Failed sign-in for username %r", username)
            raise InvalidCredentials()

        user = profile.to_auth_user()
        self._sessions.save(user)
        logger.info("Player %r signed in", profile.username)
        return user

    def get_session(self) -> Optional[AuthUser]:
        return self._sessions.load()

    def sign_out(self) -> None:
        self._sessions.clear()

    async def validate_session(self, user: AuthUser) -> bool:
        """
        Check that the player behind `user` still exists in the directory.

        Sessions are otherwise trusted as stored; callers that want a
        stronger guarantee call this explicitly. Directory failures count as
        "not valid" rather than raising.
        """

        try:
            return await self._directory.get_by_id(user.player_id) is not None
        except DirectoryUnavailable:
            logger.warning("Could not validate session for %s", user.player_id, exc_info=True)
            return False

    async def get_player_profile(self, player_id: str) -> Optional[PlayerProfile]:
        return await self._directory.get_by_id(player_id)

    def _require_session(self) -> AuthUser:
        user = self._sessions.load()
        if user is None:
            raise NotSignedIn()
        return user

    async def change_nickname(self, nickname: str) -> AuthUser:
        """Rename the signed-in player and reissue the session with the new nickname."""

        current = self._require_session()
        cleaned = _validate_nickname(nickname)

        updated = await self._directory.update(current.player_id, {"nickname": cleaned})
        if not updated:
            raise NotSignedIn()

        user = AuthUser(
            player_id=current.player_id,
            username=current.username,
            nickname=cleaned,
        )
        self._sessions.save(user)
        return user

    async def record_game_result(
        self,
        score: int,
        level: int,
        correct_answers: int,
    ) -> PlayerProfile:
        """
        Fold one finished game into the signed-in player's statistics.

        High score and best level only ever increase; games played and total
        correct answers are accumulated.
        """

        if score < 0 or level < 1 or correct_answers < 0:
            raise ValueError("Game results must be non-negative and level at least 1.")

        current = self._require_session()
        profile = await self._directory.get_by_id(current.player_id)
        if profile is None:
            raise NotSignedIn()

        fields = {
            "high_score": max(profile.high_score, score),
            "best_level": max(profile.best_level, level),
            "games_played": profile.games_played + 1,
            "total_correct_answers": profile.total_correct_answers + correct_answers,
        }
        updated = await self._directory.update(profile.player_id, fields)
        if not updated:
            raise NotSignedIn()

        for name, value in fields.items():
            setattr(profile, name, value)
        return profile
