"""Pydantic models for ledger API requests and responses.

Token ids are carried as decimal strings: they exceed the 2**53 range JSON
numbers can hold exactly in most clients.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class CollectionInfo(BaseModel):
    """Collection-level configuration."""
    name: str
    symbol: str
    address: str
    admin: str
    base_uri: str
    prefix: str = ""
    suffix: str = ""
    locked: bool = False
    version: int


class TokenInfo(BaseModel):
    """Everything the ledger knows about one token."""
    token_id: str
    state: Literal["virtual", "materialized", "burned"]
    owner: str | None = None  # None when the token has no owner
    token_uri: str | None = None
    init_owner: str
    slot: str
    was_ever_transferred: bool


class BalanceInfo(BaseModel):
    """balance_of() result. Always the capacity constant."""
    address: str
    balance: str


class InterfaceSupport(BaseModel):
    interface_id: str
    supported: bool


class BroadcastRequest(BaseModel):
    """Batch broadcast request. Ids as decimal or 0x-hex strings, or ints."""
    token_ids: list[str | int] = Field(min_length=1)


class EmittedEvent(BaseModel):
    event: str
    args: dict[str, Any]


class BroadcastResponse(BaseModel):
    success: bool = True
    events: list[EmittedEvent] = Field(default_factory=list)


class RecentEvents(BaseModel):
    events: list[dict[str, Any]]
    count: int
