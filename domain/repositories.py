from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .models import PlayerProfile


class PlayerDirectory(Protocol):
    """
    Abstraction over the remote store of player profiles.

    Implementations are responsible for:
    - Mapping between stored documents/rows and the `PlayerProfile` model.
    - Assigning `created_at`/`last_played` from the store's own clock.
    - Raising `DirectoryUnavailable` for any transport or driver failure.

    All methods are coroutines; they must not block the event loop.
    """

    async def find_by_username(self, username: str) -> Optional[PlayerProfile]:
        """Return the profile whose `username_lower` equals `username.lower()`."""

        ...

    async def get_by_id(self, player_id: str) -> Optional[PlayerProfile]:
        """Return the profile stored under `player_id`, or None if not found."""

        ...

    async def create(self, profile: PlayerProfile) -> None:
        """Persist a new profile keyed by its `player_id`."""

        ...

    async def update(self, player_id: str, fields: Mapping[str, Any]) -> bool:
        """
        Merge `fields` into an existing profile.

        Returns False when no profile exists under `player_id`.
        """

        ...


class KeyValueStorage(Protocol):
    """
    Persistent string key/value slots private to one client context.

    Mirrors the browser's local storage: writes are single atomic
    assignments and removing a missing key is a no-op.
    """

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...
