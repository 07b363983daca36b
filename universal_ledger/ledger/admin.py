"""Single-admin role for collection configuration.

One account administers the collection. It alone may change the base URI
and affixes, lock them, and hand the role to another account.
"""

from __future__ import annotations

import logging
from typing import Callable

from .constants import ZERO_ADDRESS
from .errors import InvalidOwner, UnauthorizedAccount
from .events import LedgerEvent, ownership_transferred_event
from .token_id import Address

logger = logging.getLogger(__name__)


class AdminRole:
    """Holds the admin account and gates admin-only operations."""

    _admin: Address
    _emit: Callable[[LedgerEvent], None]

    def __init__(
        self,
        initial_admin: Address,
        emit: Callable[[LedgerEvent], None],
        announce: bool = True,
    ) -> None:
        """Assign the initial admin and emit OwnershipTransferred(zero, admin).

        With announce=False the admin is restored silently (state-file load),
        and a renounced (zero) admin is accepted.

        Raises:
            InvalidOwner: If announcing a zero initial_admin.
        """
        self._emit = emit
        self._admin = ZERO_ADDRESS
        if not announce:
            self._admin = initial_admin
            return
        if initial_admin == ZERO_ADDRESS:
            raise InvalidOwner(initial_admin)
        self._set_admin(initial_admin)

    @property
    def admin(self) -> Address:
        """Current admin; the zero address once renounced."""
        return self._admin

    def check_admin(self, caller: Address) -> None:
        """Raise UnauthorizedAccount unless caller is the admin."""
        if caller != self._admin:
            raise UnauthorizedAccount(caller)

    def transfer_admin(self, new_admin: Address, caller: Address) -> None:
        """Hand the role to new_admin."""
        self.check_admin(caller)
        if new_admin == ZERO_ADDRESS:
            raise InvalidOwner(new_admin)
        self._set_admin(new_admin)

    def renounce_admin(self, caller: Address) -> None:
        """Give up the role; configuration becomes immutable in practice."""
        self.check_admin(caller)
        self._set_admin(ZERO_ADDRESS)

    def _set_admin(self, new_admin: Address) -> None:
        previous = self._admin
        self._admin = new_admin
        logger.debug("Admin changed from %s to %s", previous, new_admin)
        self._emit(ownership_transferred_event(previous, new_admin))

    def restore(self, admin: Address) -> None:
        """Reset the admin without emitting (rollback and state-file load)."""
        self._admin = admin
