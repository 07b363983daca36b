"""Receiver hooks for safe transfers.

An account may register a receiver: an object that is asked to accept each
token safely transferred to it. Accounts without a receiver accept
everything. A receiver accepts by returning RECEIVER_MAGIC_VALUE; returning
anything else rejects with InvalidReceiver, and raising aborts the transfer
with the receiver's own exception.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .constants import RECEIVER_MAGIC_VALUE
from .errors import InvalidReceiver
from .token_id import Address


@runtime_checkable
class TokenReceiver(Protocol):
    """Anything that can be asked to accept a token."""

    def on_token_received(
        self, operator: Address, from_: Address, token_id: int, data: bytes
    ) -> int: ...


class ReceiverRegistry:
    """Maps accounts to their receiver hooks.

    Receivers are live objects, so they are not part of the persisted state.
    """

    _receivers: dict[Address, TokenReceiver]

    def __init__(self) -> None:
        self._receivers = {}

    def register(self, account: Address, receiver: TokenReceiver) -> None:
        if not isinstance(receiver, TokenReceiver):
            raise TypeError(f"{receiver!r} does not implement on_token_received()")
        self._receivers[account] = receiver

    def unregister(self, account: Address) -> bool:
        return self._receivers.pop(account, None) is not None

    def has_receiver(self, account: Address) -> bool:
        return account in self._receivers

    def check_on_received(
        self,
        operator: Address,
        from_: Address,
        to: Address,
        token_id: int,
        data: bytes = b"",
    ) -> None:
        """Ask `to`'s receiver, if any, to accept the token.

        Raises:
            InvalidReceiver: If the receiver returns anything but the magic value.
        """
        receiver = self._receivers.get(to)
        if receiver is None:
            return
        if receiver.on_token_received(operator, from_, token_id, data) != RECEIVER_MAGIC_VALUE:
            raise InvalidReceiver(to)
