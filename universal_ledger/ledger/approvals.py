"""Approval registry - who besides the owner may move a token.

Two kinds of approval, both granted by the token's current owner:
- single-token approval: one account may move one token
- operator approval: one account may move every token of an owner

Single-token approvals are keyed by token id and cleared whenever the token
changes hands, so a stale approval never survives a transfer. Operator
approvals are keyed by owner address and survive transfers.

Like the override store, this registry holds no entry for the common case:
an absent key means "no approval".
"""

from __future__ import annotations

from typing import Any

from .errors import InsufficientApproval
from .token_id import Address


class ApprovalRegistry:
    """Bookkeeping for token and operator approvals.

    Authorization decisions for transfer and burn go through
    check_authorized(); the registry never resolves owners itself.
    """

    _token_approvals: dict[int, Address]
    _operators: dict[Address, set[Address]]

    def __init__(self) -> None:
        self._token_approvals = {}
        self._operators = {}

    def get_approved(self, token_id: int) -> Address | None:
        """Account approved for a single token, if any."""
        return self._token_approvals.get(token_id)

    def set_approved(self, token_id: int, account: Address | None) -> None:
        """Set (or with None, clear) the single-token approval."""
        if account is None:
            self._token_approvals.pop(token_id, None)
        else:
            self._token_approvals[token_id] = account

    def clear(self, token_id: int) -> None:
        self._token_approvals.pop(token_id, None)

    def is_approved_for_all(self, owner: Address, operator: Address) -> bool:
        return operator in self._operators.get(owner, ())

    def set_approval_for_all(self, owner: Address, operator: Address, approved: bool) -> None:
        operators = self._operators.setdefault(owner, set())
        if approved:
            operators.add(operator)
        else:
            operators.discard(operator)
            if not operators:
                del self._operators[owner]

    def is_authorized(self, owner: Address, spender: Address, token_id: int) -> bool:
        """True if spender is the owner, the owner's operator, or approved for the token."""
        return (
            spender == owner
            or self.is_approved_for_all(owner, spender)
            or self._token_approvals.get(token_id) == spender
        )

    def check_authorized(self, owner: Address, spender: Address, token_id: int) -> None:
        """Raise InsufficientApproval unless spender may move token_id."""
        if not self.is_authorized(owner, spender, token_id):
            raise InsufficientApproval(spender, token_id)

    # ===== SNAPSHOT / PERSISTENCE =====

    def snapshot(self) -> tuple[dict[int, Address], dict[Address, set[Address]]]:
        return dict(self._token_approvals), {k: set(v) for k, v in self._operators.items()}

    def restore(self, snap: tuple[dict[int, Address], dict[Address, set[Address]]]) -> None:
        token_approvals, operators = snap
        self._token_approvals = dict(token_approvals)
        self._operators = {k: set(v) for k, v in operators.items()}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the state file. Token ids are decimal strings."""
        return {
            "token_approvals": {str(k): v for k, v in self._token_approvals.items()},
            "operators": {k: sorted(v) for k, v in self._operators.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ApprovalRegistry":
        registry = cls()
        for token_id, account in data.get("token_approvals", {}).items():
            registry._token_approvals[int(token_id)] = account
        for owner, operators in data.get("operators", {}).items():
            if operators:
                registry._operators[owner] = set(operators)
        return registry
