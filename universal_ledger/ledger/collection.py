"""Collection - the public face of the ledger.

Wires the ownership state machine, approvals, admin role, token URI builder,
broadcaster, receiver hooks and capability registry together, and runs every
mutating operation inside a single atomic call:

- state (override store, approvals, URI config, admin) is snapshotted
- events emitted during the call are buffered
- if anything raises (nested calls included), the snapshot is restored and
  the buffer is dropped
- otherwise the buffered events are committed to the EventLogger

So a call either has its full effect, events included, or none at all.
Calls are strictly sequential; the collection is not thread-safe.

Usage:
    collection = Collection(admin, "laos-kitties", "LAK", "evochain1/collectionId/")
    token_id = encode(111, alice)
    collection.owner_of(token_id)            # alice, nothing stored
    collection.transfer_from(alice, bob, token_id, caller=alice)
    collection.broadcast_mint(token_id)      # AlreadyTransferred
"""

from __future__ import annotations

import hashlib
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from .admin import AdminRole
from .approvals import ApprovalRegistry
from .broadcast import Broadcaster
from .capabilities import CapabilityRegistry
from .constants import UNIVERSAL_VERSION, ZERO_ADDRESS
from .errors import InvalidApprover, InvalidOperator, StateFileConflict
from .events import LedgerEvent, approval_event, approval_for_all_event, new_collection_event
from .logger import EventLogger
from .metadata import TokenURIBuilder
from .ownership import OwnershipLedger, OwnershipRecord, TokenState
from .receivers import ReceiverRegistry, TokenReceiver
from .token_id import Address, parse_token_id, to_address

if TYPE_CHECKING:
    from ..config_schema import AppConfig

logger = logging.getLogger(__name__)

TokenIdLike = int | str
AddressLike = str | int


def derive_collection_address(admin: Address, name: str, symbol: str) -> Address:
    """Deterministic account for a collection deployed without an explicit address."""
    digest = hashlib.sha256(f"{admin}:{name}:{symbol}".encode()).digest()
    return "0x" + digest[-20:].hex()


def read_revision(path: str | Path) -> int:
    """Revision of a state file; each save bumps it by one."""
    with open(path) as f:
        data = json.load(f)
    return int(data.get("revision", 0))


class Collection:
    """A universal token collection.

    Every token id in [0, 2**256) already exists, owned by the address in
    its low 160 bits, until it is transferred or burned.
    """

    name: str
    symbol: str
    address: Address
    event_logger: EventLogger
    ownership: OwnershipLedger
    approvals: ApprovalRegistry
    admin: AdminRole
    metadata: TokenURIBuilder
    broadcaster: Broadcaster
    receivers: ReceiverRegistry
    capabilities: CapabilityRegistry
    revision: int
    _pending: list[LedgerEvent] | None

    def __init__(
        self,
        admin: AddressLike,
        name: str,
        symbol: str,
        base_uri: str,
        *,
        prefix: str = "",
        suffix: str = "",
        address: AddressLike | None = None,
        event_logger: EventLogger | None = None,
    ) -> None:
        """Deploy a collection.

        Emits OwnershipTransferred(zero, admin) then
        NewERC721Universal(address, base_uri).

        Raises:
            InvalidOwner: If admin is the zero address.
        """
        admin_address = to_address(admin)
        self._pending = []
        self.revision = 0
        self._setup(
            name=name,
            symbol=symbol,
            address=(
                to_address(address)
                if address is not None
                else derive_collection_address(admin_address, name, symbol)
            ),
            admin=admin_address,
            announce_admin=True,
            base_uri=base_uri,
            prefix=prefix,
            suffix=suffix,
            event_logger=event_logger,
        )
        self._emit(new_collection_event(self.address, base_uri))
        committed, self._pending = self._pending, None
        self.event_logger.log_many(committed)
        logger.info("Deployed collection %s (%s) at %s", name, symbol, self.address)

    def _setup(
        self,
        *,
        name: str,
        symbol: str,
        address: Address,
        admin: Address,
        announce_admin: bool,
        base_uri: str,
        prefix: str = "",
        suffix: str = "",
        locked: bool = False,
        overrides: dict[int, OwnershipRecord] | None = None,
        approvals: ApprovalRegistry | None = None,
        event_logger: EventLogger | None = None,
    ) -> None:
        self.name = name
        self.symbol = symbol
        self.address = address
        self.event_logger = event_logger or EventLogger()
        self.approvals = approvals or ApprovalRegistry()
        self.ownership = OwnershipLedger(self.approvals, self._emit, overrides)
        self.admin = AdminRole(admin, self._emit, announce=announce_admin)
        self.metadata = TokenURIBuilder(
            self.ownership, self.admin, self._emit, base_uri, prefix, suffix, locked
        )
        self.broadcaster = Broadcaster(self.ownership, self._emit)
        self.receivers = ReceiverRegistry()
        self.capabilities = CapabilityRegistry()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        admin: AddressLike,
        event_logger: EventLogger | None = None,
    ) -> "Collection":
        """Deploy a collection using the collection section of the config."""
        cfg = config.collection
        return cls(
            admin,
            cfg.name,
            cfg.symbol,
            cfg.base_uri,
            prefix=cfg.prefix,
            suffix=cfg.suffix,
            address=cfg.address,
            event_logger=event_logger,
        )

    # ===== CALL BOUNDARY =====

    def _emit(self, event: LedgerEvent) -> None:
        if self._pending is None:
            raise RuntimeError(f"Event {event.name} emitted outside a call")
        self._pending.append(event)

    @contextmanager
    def _call(self) -> Iterator[list[LedgerEvent]]:
        """Run one atomic call and yield the list its events are buffered in.

        Nested calls (a receiver hook calling back in) join the outer call:
        their events and effects commit or roll back with it. A failed nested
        call is undone on its own, even if the hook catches the error.
        """
        outer = self._pending
        events: list[LedgerEvent] = []
        snapshot = self._snapshot()
        self._pending = events
        try:
            yield events
            if outer is None:
                self.event_logger.log_many(events)
            else:
                outer.extend(events)
        except BaseException:
            self._restore(snapshot)
            raise
        finally:
            self._pending = outer

    def _snapshot(self) -> dict[str, Any]:
        return {
            "overrides": self.ownership.snapshot(),
            "approvals": self.approvals.snapshot(),
            "metadata": self.metadata.snapshot(),
            "admin": self.admin.admin,
        }

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self.ownership.restore(snapshot["overrides"])
        self.approvals.restore(snapshot["approvals"])
        self.metadata.restore(snapshot["metadata"])
        self.admin.restore(snapshot["admin"])

    # ===== QUERIES =====

    @property
    def owner(self) -> Address:
        """The collection admin."""
        return self.admin.admin

    @property
    def base_uri(self) -> str:
        return self.metadata.base_uri

    @property
    def universal_version(self) -> int:
        return UNIVERSAL_VERSION

    def is_base_uri_locked(self) -> bool:
        return self.metadata.locked

    def token_id_affixes(self) -> tuple[str, str]:
        return self.metadata.prefix, self.metadata.suffix

    def owner_of(self, token_id: TokenIdLike) -> Address:
        return self.ownership.owner_of(parse_token_id(token_id))

    def init_owner(self, token_id: TokenIdLike) -> Address:
        return self.ownership.init_owner(parse_token_id(token_id))

    def balance_of(self, owner: AddressLike) -> int:
        return self.ownership.balance_of(to_address(owner))

    def state_of(self, token_id: TokenIdLike) -> TokenState:
        return self.ownership.state_of(parse_token_id(token_id))

    def is_burned(self, token_id: TokenIdLike) -> bool:
        return self.ownership.is_burned(parse_token_id(token_id))

    def was_ever_transferred(self, token_id: TokenIdLike) -> bool:
        return self.ownership.was_ever_transferred(parse_token_id(token_id))

    # Same predicate under its state-machine name
    was_ever_transitioned = was_ever_transferred

    def token_uri(self, token_id: TokenIdLike) -> str:
        return self.metadata.token_uri(parse_token_id(token_id))

    def supports_interface(self, interface_id: int) -> bool:
        return self.capabilities.supports_interface(interface_id)

    def get_approved(self, token_id: TokenIdLike) -> Address:
        """Account approved for the token, or the zero address."""
        tid = parse_token_id(token_id)
        self.ownership.owner_of(tid)
        return self.approvals.get_approved(tid) or ZERO_ADDRESS

    def is_approved_for_all(self, owner: AddressLike, operator: AddressLike) -> bool:
        return self.approvals.is_approved_for_all(to_address(owner), to_address(operator))

    def recent_events(self, n: int | None = None) -> list[dict[str, Any]]:
        return self.event_logger.read_recent(n)

    # ===== TRANSFERS =====

    def transfer_from(
        self, from_: AddressLike, to: AddressLike, token_id: TokenIdLike, caller: AddressLike
    ) -> list[LedgerEvent]:
        """Transfer a token. Returns the committed events."""
        tid = parse_token_id(token_id)
        with self._call() as events:
            self.ownership.transfer(to_address(from_), to_address(to), tid, to_address(caller))
        return events

    def safe_transfer_from(
        self,
        from_: AddressLike,
        to: AddressLike,
        token_id: TokenIdLike,
        caller: AddressLike,
        data: bytes = b"",
    ) -> list[LedgerEvent]:
        """Transfer a token, then require the receiver (if any) to accept it."""
        tid = parse_token_id(token_id)
        sender, receiver, operator = to_address(from_), to_address(to), to_address(caller)
        with self._call() as events:
            self.ownership.transfer(sender, receiver, tid, operator)
            self.receivers.check_on_received(operator, sender, receiver, tid, data)
        return events

    def burn(self, token_id: TokenIdLike, caller: AddressLike) -> list[LedgerEvent]:
        tid = parse_token_id(token_id)
        with self._call() as events:
            self.ownership.burn(tid, to_address(caller))
        return events

    def register_receiver(self, account: AddressLike, receiver: TokenReceiver) -> None:
        self.receivers.register(to_address(account), receiver)

    # ===== APPROVALS =====

    def approve(
        self, to: AddressLike, token_id: TokenIdLike, caller: AddressLike
    ) -> list[LedgerEvent]:
        """Approve `to` for one token. Approving the zero address clears it.

        Raises:
            NonexistentToken: If the token has no owner.
            InvalidApprover: If caller is neither owner nor operator of the owner.
        """
        tid = parse_token_id(token_id)
        approved, approver = to_address(to), to_address(caller)
        with self._call() as events:
            owner = self.ownership.owner_of(tid)
            if approver != owner and not self.approvals.is_approved_for_all(owner, approver):
                raise InvalidApprover(approver)
            self.approvals.set_approved(tid, None if approved == ZERO_ADDRESS else approved)
            self._emit(approval_event(owner, approved, tid))
        return events

    def set_approval_for_all(
        self, operator: AddressLike, approved: bool, caller: AddressLike
    ) -> list[LedgerEvent]:
        op, owner = to_address(operator), to_address(caller)
        with self._call() as events:
            if op == ZERO_ADDRESS:
                raise InvalidOperator(op)
            self.approvals.set_approval_for_all(owner, op, approved)
            self._emit(approval_for_all_event(owner, op, approved))
        return events

    # ===== METADATA (admin only) =====

    def update_base_uri(self, new_base_uri: str, caller: AddressLike) -> list[LedgerEvent]:
        with self._call() as events:
            self.metadata.update_base_uri(new_base_uri, to_address(caller))
        return events

    def update_token_id_affixes(
        self, prefix: str, suffix: str, caller: AddressLike
    ) -> list[LedgerEvent]:
        with self._call() as events:
            self.metadata.update_affixes(prefix, suffix, to_address(caller))
        return events

    def lock_base_uri(self, caller: AddressLike) -> list[LedgerEvent]:
        with self._call() as events:
            self.metadata.lock(to_address(caller))
        return events

    # ===== ADMIN =====

    def transfer_ownership(self, new_owner: AddressLike, caller: AddressLike) -> list[LedgerEvent]:
        with self._call() as events:
            self.admin.transfer_admin(to_address(new_owner), to_address(caller))
        return events

    def renounce_ownership(self, caller: AddressLike) -> list[LedgerEvent]:
        with self._call() as events:
            self.admin.renounce_admin(to_address(caller))
        return events

    # ===== BROADCAST (permissionless) =====

    def broadcast_mint(self, token_id: TokenIdLike) -> list[LedgerEvent]:
        tid = parse_token_id(token_id)
        with self._call() as events:
            self.broadcaster.broadcast_mint(tid)
        return events

    def broadcast_self_transfer(self, token_id: TokenIdLike) -> list[LedgerEvent]:
        tid = parse_token_id(token_id)
        with self._call() as events:
            self.broadcaster.broadcast_self_transfer(tid)
        return events

    def broadcast_mint_batch(self, token_ids: Iterable[TokenIdLike]) -> list[LedgerEvent]:
        tids = [parse_token_id(t) for t in token_ids]
        with self._call() as events:
            self.broadcaster.broadcast_mint_batch(tids)
        return events

    def broadcast_self_transfer_batch(
        self, token_ids: Iterable[TokenIdLike]
    ) -> list[LedgerEvent]:
        tids = [parse_token_id(t) for t in token_ids]
        with self._call() as events:
            self.broadcaster.broadcast_self_transfer_batch(tids)
        return events

    # ===== PERSISTENCE =====

    def to_dict(self) -> dict[str, Any]:
        """Everything needed to resume the collection, except receiver hooks."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "admin": self.admin.admin,
            "metadata": self.metadata.snapshot(),
            "overrides": self.ownership.to_dict(),
            "approvals": self.approvals.to_dict(),
            "event_sequence": self.event_logger.sequence,
            "revision": self.revision,
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], event_logger: EventLogger | None = None
    ) -> "Collection":
        """Resume a collection. No construction events are emitted."""
        metadata = data["metadata"]
        collection = cls.__new__(cls)
        collection._pending = None
        collection.revision = data.get("revision", 0)
        collection._setup(
            name=data["name"],
            symbol=data["symbol"],
            address=to_address(data["address"]),
            admin=to_address(data["admin"]),
            announce_admin=False,
            base_uri=metadata["base_uri"],
            prefix=metadata.get("prefix", ""),
            suffix=metadata.get("suffix", ""),
            locked=metadata.get("locked", False),
            overrides=OwnershipLedger.records_from_dict(data.get("overrides", {})),
            approvals=ApprovalRegistry.from_dict(data.get("approvals", {})),
            event_logger=event_logger or EventLogger(start_sequence=data.get("event_sequence", 0)),
        )
        return collection

    def save(self, path: str | Path, overwrite: bool = False) -> Path:
        """Write the state file and bump its revision.

        The file on disk must still be at the revision this copy was loaded
        from (or last saved at), so a concurrent writer is never clobbered.

        Raises:
            StateFileConflict: If another process saved the file since.
        """
        state_path = Path(path)
        if not overwrite and state_path.exists():
            found = read_revision(state_path)
            if found != self.revision:
                raise StateFileConflict(str(state_path), self.revision, found)
        data = self.to_dict()
        data["revision"] = self.revision + 1
        state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(state_path, "w") as f:
            json.dump(data, f, indent=2)
        self.revision = data["revision"]
        return state_path

    @classmethod
    def load(cls, path: str | Path, event_logger: EventLogger | None = None) -> "Collection":
        """Read a state file written by save().

        Raises:
            FileNotFoundError: If the state file doesn't exist.
        """
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data, event_logger=event_logger)
