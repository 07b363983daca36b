"""Ledger event types.

Event names and argument order are part of the external interface: indexers
match on them. Constructors below are the only place those names are spelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TRANSFER = "Transfer"
APPROVAL = "Approval"
APPROVAL_FOR_ALL = "ApprovalForAll"
UPDATED_BASE_URI = "UpdatedBaseURI"
UPDATED_TOKEN_ID_AFFIXES = "UpdatedTokenIdAffixes"
LOCKED_BASE_URI = "LockedBaseURI"
OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
NEW_COLLECTION = "NewERC721Universal"


@dataclass
class LedgerEvent:
    """A single emitted event: a name plus ordered, named arguments."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)

    @property
    def values(self) -> tuple[Any, ...]:
        """Arguments in emission order."""
        return tuple(self.args.values())

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON. Ints become decimal strings (token ids exceed 2**53)."""
        return {
            "event": self.name,
            "args": {
                k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
                for k, v in self.args.items()
            },
        }


def transfer_event(from_: str, to: str, token_id: int) -> LedgerEvent:
    return LedgerEvent(TRANSFER, {"from": from_, "to": to, "token_id": token_id})


def approval_event(owner: str, approved: str, token_id: int) -> LedgerEvent:
    return LedgerEvent(APPROVAL, {"owner": owner, "approved": approved, "token_id": token_id})


def approval_for_all_event(owner: str, operator: str, approved: bool) -> LedgerEvent:
    return LedgerEvent(
        APPROVAL_FOR_ALL, {"owner": owner, "operator": operator, "approved": approved}
    )


def updated_base_uri_event(new_base_uri: str) -> LedgerEvent:
    return LedgerEvent(UPDATED_BASE_URI, {"new_base_uri": new_base_uri})


def updated_affixes_event(prefix: str, suffix: str) -> LedgerEvent:
    return LedgerEvent(UPDATED_TOKEN_ID_AFFIXES, {"prefix": prefix, "suffix": suffix})


def locked_base_uri_event(base_uri: str) -> LedgerEvent:
    return LedgerEvent(LOCKED_BASE_URI, {"base_uri": base_uri})


def ownership_transferred_event(previous_owner: str, new_owner: str) -> LedgerEvent:
    return LedgerEvent(
        OWNERSHIP_TRANSFERRED,
        {"previous_owner": previous_owner, "new_owner": new_owner},
    )


def new_collection_event(address: str, base_uri: str) -> LedgerEvent:
    return LedgerEvent(
        NEW_COLLECTION, {"new_contract_address": address, "base_uri": base_uri}
    )
