"""Ownership state machine with lazy default owners.

Every token starts VIRTUAL: it has no record, and its owner is whatever
address its identifier encodes (see token_id.decode_owner). Nothing is
written until the token is first transferred or burned; from then on a
record in the sparse override store is authoritative.

    VIRTUAL --transfer--> MATERIALIZED --transfer--> MATERIALIZED
    VIRTUAL --burn------> BURNED
    MATERIALIZED --burn-> BURNED

BURNED is terminal. A token never returns to VIRTUAL once it has a record,
which is what makes was_ever_transferred() monotonic.

A token whose seed is the zero address and that has no record has no owner:
ownership queries fail with NonexistentToken even though nothing was ever
written for it.

Thread-safety: This class is NOT thread-safe. Callers serialize access
(Collection runs one call at a time; the HTTP layer holds a lock).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .approvals import ApprovalRegistry
from .constants import MAX_BALANCE, ZERO_ADDRESS
from .errors import InsufficientApproval, InvalidReceiver, NonexistentToken
from .events import LedgerEvent, transfer_event
from .token_id import Address, decode_owner

logger = logging.getLogger(__name__)


class TokenState(str, Enum):
    """Lifecycle state of a token."""

    VIRTUAL = "virtual"  # No record; owner decoded from the identifier
    MATERIALIZED = "materialized"  # Record holds an explicit owner
    BURNED = "burned"  # Retired forever; no owner


@dataclass(frozen=True)
class OwnershipRecord:
    """An override store entry. Its mere presence means "left VIRTUAL"."""

    state: TokenState
    owner: Address | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.state.value, "owner": self.owner}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OwnershipRecord":
        state = TokenState(data["state"])
        if state == TokenState.VIRTUAL:
            raise ValueError("VIRTUAL tokens have no record")
        owner = data.get("owner")
        if state == TokenState.MATERIALIZED and not owner:
            raise ValueError("MATERIALIZED record requires an owner")
        return cls(state=state, owner=owner if state == TokenState.MATERIALIZED else None)


class OwnershipLedger:
    """Resolves owners and applies transfers and burns.

    Records are immutable and replaced on every transition, so a shallow
    copy of the store is a complete snapshot.
    """

    _overrides: dict[int, OwnershipRecord]
    approvals: ApprovalRegistry
    _emit: Callable[[LedgerEvent], None]

    def __init__(
        self,
        approvals: ApprovalRegistry,
        emit: Callable[[LedgerEvent], None],
        overrides: dict[int, OwnershipRecord] | None = None,
    ) -> None:
        self.approvals = approvals
        self._emit = emit
        self._overrides = dict(overrides) if overrides else {}

    # ===== QUERIES =====

    def state_of(self, token_id: int) -> TokenState:
        record = self._overrides.get(token_id)
        return record.state if record is not None else TokenState.VIRTUAL

    def init_owner(self, token_id: int) -> Address:
        """Raw decode of the identifier's seed. Never fails, even for a zero seed."""
        return decode_owner(token_id)

    def owner_of(self, token_id: int) -> Address:
        """Effective owner of a token.

        Raises:
            NonexistentToken: If the token is burned, or VIRTUAL with a zero seed.
        """
        owner = self._resolve(token_id)
        if owner is None:
            raise NonexistentToken(token_id)
        return owner

    def is_burned(self, token_id: int) -> bool:
        return self.state_of(token_id) == TokenState.BURNED

    def was_ever_transferred(self, token_id: int) -> bool:
        """True once the token has a record, whatever its state."""
        return token_id in self._overrides

    def balance_of(self, owner: Address) -> int:
        """Always MAX_BALANCE.

        Owners are derived from identifiers rather than indexed, so a real
        count is unknowable. The constant satisfies balance queries and
        signals that holdings are not enumerable.
        """
        return MAX_BALANCE

    def override_count(self) -> int:
        """Number of tokens that have left the VIRTUAL state."""
        return len(self._overrides)

    # ===== TRANSITIONS =====

    def transfer(
        self, from_: Address, to: Address, token_id: int, caller: Address
    ) -> Address:
        """Move a token from its current owner to `to`.

        Checks run before any write, in this order: receiver, existence,
        caller authorization, `from_` matching the owner.

        Returns:
            The previous owner.

        Raises:
            InvalidReceiver: If `to` is the zero address.
            NonexistentToken: If the token has no owner.
            InsufficientApproval: If caller may not move the token, or
                `from_` is not its current owner.
        """
        if to == ZERO_ADDRESS:
            raise InvalidReceiver(to)
        owner = self.owner_of(token_id)
        self.approvals.check_authorized(owner, caller, token_id)
        if from_ != owner:
            raise InsufficientApproval(caller, token_id)

        self.approvals.clear(token_id)
        self._overrides[token_id] = OwnershipRecord(TokenState.MATERIALIZED, to)
        logger.debug("Token %d materialized: %s -> %s", token_id, owner, to)
        self._emit(transfer_event(owner, to, token_id))
        return owner

    def burn(self, token_id: int, caller: Address) -> Address:
        """Retire a token forever.

        Returns:
            The owner at the time of burning.

        Raises:
            NonexistentToken: If the token is already burned or has no owner.
            InsufficientApproval: If caller may not move the token.
        """
        owner = self.owner_of(token_id)
        self.approvals.check_authorized(owner, caller, token_id)

        self.approvals.clear(token_id)
        self._overrides[token_id] = OwnershipRecord(TokenState.BURNED)
        logger.debug("Token %d burned by %s (owner %s)", token_id, caller, owner)
        self._emit(transfer_event(owner, ZERO_ADDRESS, token_id))
        return owner

    def _resolve(self, token_id: int) -> Address | None:
        record = self._overrides.get(token_id)
        if record is None:
            seed_owner = decode_owner(token_id)
            return None if seed_owner == ZERO_ADDRESS else seed_owner
        if record.state == TokenState.MATERIALIZED:
            return record.owner
        return None

    # ===== SNAPSHOT / PERSISTENCE =====

    def snapshot(self) -> dict[int, OwnershipRecord]:
        return dict(self._overrides)

    def restore(self, snap: dict[int, OwnershipRecord]) -> None:
        self._overrides = dict(snap)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the override store. Token ids are decimal strings."""
        return {str(k): v.to_dict() for k, v in sorted(self._overrides.items())}

    @staticmethod
    def records_from_dict(data: dict[str, Any]) -> dict[int, OwnershipRecord]:
        return {int(k): OwnershipRecord.from_dict(v) for k, v in data.items()}
