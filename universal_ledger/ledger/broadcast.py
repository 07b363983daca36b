"""Broadcast - stateless replay of events for VIRTUAL tokens.

A VIRTUAL token exists without ever having been written, so indexers that
only watch events never learn about it. Anyone may ask the ledger to emit
the canonical event for such a token:

- broadcast_mint:          Transfer(zero, seed, token_id)
- broadcast_self_transfer: Transfer(seed, seed, token_id)

Broadcasting reads the override store and never writes it, so it can be
repeated any number of times. Once a token has been transferred or burned
its real history has diverged from the implicit default, and every further
broadcast fails with AlreadyTransferred.

Batch variants validate every token before emitting anything: one bad token
fails the whole batch with no events.
"""

from __future__ import annotations

from typing import Callable, Iterable

from .constants import ZERO_ADDRESS
from .errors import AlreadyTransferred, NonexistentToken
from .events import LedgerEvent, transfer_event
from .ownership import OwnershipLedger
from .token_id import Address


class Broadcaster:
    """Permissionless event replay. No caller is checked."""

    def __init__(self, ownership: OwnershipLedger, emit: Callable[[LedgerEvent], None]) -> None:
        self._ownership = ownership
        self._emit = emit

    def broadcast_mint(self, token_id: int) -> LedgerEvent:
        event = self._mint_event(token_id)
        self._emit(event)
        return event

    def broadcast_self_transfer(self, token_id: int) -> LedgerEvent:
        event = self._self_transfer_event(token_id)
        self._emit(event)
        return event

    def broadcast_mint_batch(self, token_ids: Iterable[int]) -> list[LedgerEvent]:
        events = [self._mint_event(token_id) for token_id in token_ids]
        for event in events:
            self._emit(event)
        return events

    def broadcast_self_transfer_batch(self, token_ids: Iterable[int]) -> list[LedgerEvent]:
        events = [self._self_transfer_event(token_id) for token_id in token_ids]
        for event in events:
            self._emit(event)
        return events

    def _mint_event(self, token_id: int) -> LedgerEvent:
        owner = self._replayable_owner(token_id)
        return transfer_event(ZERO_ADDRESS, owner, token_id)

    def _self_transfer_event(self, token_id: int) -> LedgerEvent:
        owner = self._replayable_owner(token_id)
        return transfer_event(owner, owner, token_id)

    def _replayable_owner(self, token_id: int) -> Address:
        if self._ownership.was_ever_transferred(token_id):
            raise AlreadyTransferred(token_id)
        owner = self._ownership.init_owner(token_id)
        if owner == ZERO_ADDRESS:
            raise NonexistentToken(token_id)
        return owner
