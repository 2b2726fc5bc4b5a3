from __future__ import annotations

import json
import logging
from typing import Optional

from domain.errors import SessionCorrupted
from domain.models import AuthUser
from domain.repositories import KeyValueStorage

logger = logging.getLogger(__name__)

SESSION_KEY = "mathInvaders_session"


def _serialize(user: AuthUser) -> str:
    return json.dumps(
        {
            "playerId": user.player_id,
            "username": user.username,
            "nickname": user.nickname,
        },
        ensure_ascii=False,
    )


def _deserialize(raw: str) -> AuthUser:
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise SessionCorrupted("Session is not valid JSON") from exc

    if not isinstance(data, dict):
        raise SessionCorrupted("Session is not a JSON object")

    fields = {}
    for key in ("playerId", "username", "nickname"):
        value = data.get(key)
        if not isinstance(value, str):
            raise SessionCorrupted(f"Session field {key!r} is missing or not a string")
        fields[key] = value

    if not fields["playerId"] or not fields["username"]:
        raise SessionCorrupted("Session has an empty identity")

    return AuthUser(
        player_id=fields["playerId"],
        username=fields["username"],
        nickname=fields["nickname"],
    )


class SessionStore:
    """
    Persists the signed-in `AuthUser` under a single local storage key.

    This is the only source of truth for "who is signed in" across reloads.
    Records are accepted at face value; revalidating them against the
    directory is up to the caller.
    """

    def __init__(self, storage: KeyValueStorage, key: str = SESSION_KEY) -> None:
        self._storage = storage
        self._key = key

    def save(self, user: AuthUser) -> None:
        self._storage.set_item(self._key, _serialize(user))

    def load(self) -> Optional[AuthUser]:
        """Return the stored user, or None if absent, empty or unreadable. Never raises."""

        try:
            raw = self._storage.get_item(self._key)
        except OSError:
            logger.warning("Session storage could not be read", exc_info=True)
            return None

        if not raw:
            return None

        try:
            return _deserialize(raw)
        except SessionCorrupted as exc:
            logger.warning("Discarding corrupted session: %s", exc)
            return None

    def clear(self) -> None:
        self._storage.remove_item(self._key)
