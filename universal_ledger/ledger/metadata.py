"""Token URI builder with an updatable, lockable base URI.

    token_uri(id) = base_uri + render(id)

where render(id) is "GeneralKey(<decimal id>)" while both affixes are empty,
and "<prefix><decimal id><suffix>" once either is set.

The admin may change the base URI and affixes until lock_base_uri() is
called. Locking is one-way: there is no unlock.
"""

from __future__ import annotations

from typing import Any, Callable

from .admin import AdminRole
from .constants import DEFAULT_KEY_PREFIX, DEFAULT_KEY_SUFFIX
from .errors import BaseURIAlreadyLocked
from .events import (
    LedgerEvent,
    locked_base_uri_event,
    updated_affixes_event,
    updated_base_uri_event,
)
from .ownership import OwnershipLedger
from .token_id import Address


class TokenURIBuilder:
    """Composes token URIs and guards their configuration."""

    base_uri: str
    prefix: str
    suffix: str
    locked: bool

    def __init__(
        self,
        ownership: OwnershipLedger,
        admin: AdminRole,
        emit: Callable[[LedgerEvent], None],
        base_uri: str,
        prefix: str = "",
        suffix: str = "",
        locked: bool = False,
    ) -> None:
        self._ownership = ownership
        self._admin = admin
        self._emit = emit
        self.base_uri = base_uri
        self.prefix = prefix
        self.suffix = suffix
        self.locked = locked

    def render(self, token_id: int) -> str:
        if not self.prefix and not self.suffix:
            return f"{DEFAULT_KEY_PREFIX}{token_id}{DEFAULT_KEY_SUFFIX}"
        return f"{self.prefix}{token_id}{self.suffix}"

    def token_uri(self, token_id: int) -> str:
        """URI of an existing token. Fails NonexistentToken like owner_of()."""
        self._ownership.owner_of(token_id)
        return self.base_uri + self.render(token_id)

    def update_base_uri(self, new_base_uri: str, caller: Address) -> None:
        self._admin.check_admin(caller)
        self._check_unlocked()
        self.base_uri = new_base_uri
        self._emit(updated_base_uri_event(new_base_uri))

    def update_affixes(self, prefix: str, suffix: str, caller: Address) -> None:
        self._admin.check_admin(caller)
        self._check_unlocked()
        self.prefix = prefix
        self.suffix = suffix
        self._emit(updated_affixes_event(prefix, suffix))

    def lock(self, caller: Address) -> None:
        self._admin.check_admin(caller)
        self._check_unlocked()
        self.locked = True
        self._emit(locked_base_uri_event(self.base_uri))

    def _check_unlocked(self) -> None:
        if self.locked:
            raise BaseURIAlreadyLocked()

    def snapshot(self) -> dict[str, Any]:
        return {
            "base_uri": self.base_uri,
            "prefix": self.prefix,
            "suffix": self.suffix,
            "locked": self.locked,
        }

    def restore(self, snap: dict[str, Any]) -> None:
        self.base_uri = snap["base_uri"]
        self.prefix = snap["prefix"]
        self.suffix = snap["suffix"]
        self.locked = snap["locked"]
