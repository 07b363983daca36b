"""Tests for single-token and operator approvals."""

import pytest

from tests.testing_utils import ADDR1, ADDR2, ADDR3
from universal_ledger.ledger import (
    ZERO_ADDRESS,
    Collection,
    InsufficientApproval,
    InvalidApprover,
    InvalidOperator,
    NonexistentToken,
    encode,
)
from universal_ledger.ledger.approvals import ApprovalRegistry


class TestApprove:
    """Tests for approve and get_approved."""

    def test_owner_approves(self, collection: Collection, token_id: int) -> None:
        events = collection.approve(ADDR2, token_id, ADDR1)

        assert collection.get_approved(token_id) == ADDR2
        assert events[0].name == "Approval"
        assert events[0].values == (ADDR1, ADDR2, token_id)

    def test_no_approval_is_zero_address(self, collection: Collection, token_id: int) -> None:
        assert collection.get_approved(token_id) == ZERO_ADDRESS

    def test_approved_account_transfers(self, collection: Collection, token_id: int) -> None:
        collection.approve(ADDR2, token_id, ADDR1)
        collection.transfer_from(ADDR1, ADDR3, token_id, ADDR2)
        assert collection.owner_of(token_id) == ADDR3
        assert collection.get_approved(token_id) == ZERO_ADDRESS

    def test_approve_zero_clears(self, collection: Collection, token_id: int) -> None:
        collection.approve(ADDR2, token_id, ADDR1)
        collection.approve(ZERO_ADDRESS, token_id, ADDR1)
        assert collection.get_approved(token_id) == ZERO_ADDRESS
        with pytest.raises(InsufficientApproval):
            collection.transfer_from(ADDR1, ADDR3, token_id, ADDR2)

    def test_stranger_cannot_approve(self, collection: Collection, token_id: int) -> None:
        with pytest.raises(InvalidApprover) as exc_info:
            collection.approve(ADDR3, token_id, ADDR2)
        assert exc_info.value.approver == ADDR2

    def test_approved_account_cannot_approve(self, collection: Collection, token_id: int) -> None:
        collection.approve(ADDR2, token_id, ADDR1)
        with pytest.raises(InvalidApprover):
            collection.approve(ADDR3, token_id, ADDR2)

    def test_operator_can_approve(self, collection: Collection, token_id: int) -> None:
        collection.set_approval_for_all(ADDR2, True, ADDR1)
        events = collection.approve(ADDR3, token_id, ADDR2)
        assert collection.get_approved(token_id) == ADDR3
        assert events[0].values[0] == ADDR1

    def test_approve_nonexistent_token(self, collection: Collection) -> None:
        with pytest.raises(NonexistentToken):
            collection.approve(ADDR2, encode(1, ZERO_ADDRESS), ADDR1)

    def test_get_approved_burned_token(self, collection: Collection, token_id: int) -> None:
        collection.burn(token_id, ADDR1)
        with pytest.raises(NonexistentToken):
            collection.get_approved(token_id)

    def test_approval_does_not_survive_round_trip(
        self, collection: Collection, token_id: int
    ) -> None:
        """A transfer clears the approval even if the token comes back."""
        collection.approve(ADDR3, token_id, ADDR1)
        collection.transfer_from(ADDR1, ADDR2, token_id, ADDR1)
        collection.transfer_from(ADDR2, ADDR1, token_id, ADDR2)
        assert collection.get_approved(token_id) == ZERO_ADDRESS


class TestApprovalForAll:
    """Tests for operator approvals."""

    def test_set_and_query(self, collection: Collection) -> None:
        events = collection.set_approval_for_all(ADDR2, True, ADDR1)

        assert collection.is_approved_for_all(ADDR1, ADDR2)
        assert not collection.is_approved_for_all(ADDR2, ADDR1)
        assert events[0].name == "ApprovalForAll"
        assert events[0].values == (ADDR1, ADDR2, True)

    def test_revoke(self, collection: Collection) -> None:
        collection.set_approval_for_all(ADDR2, True, ADDR1)
        events = collection.set_approval_for_all(ADDR2, False, ADDR1)
        assert not collection.is_approved_for_all(ADDR1, ADDR2)
        assert events[0].values == (ADDR1, ADDR2, False)

    def test_zero_operator_rejected(self, collection: Collection) -> None:
        with pytest.raises(InvalidOperator):
            collection.set_approval_for_all(ZERO_ADDRESS, True, ADDR1)

    def test_operator_covers_every_token(self, collection: Collection) -> None:
        collection.set_approval_for_all(ADDR2, True, ADDR1)
        for slot in (1, 2, 3):
            tid = encode(slot, ADDR1)
            collection.transfer_from(ADDR1, ADDR3, tid, ADDR2)
            assert collection.owner_of(tid) == ADDR3

    def test_operator_can_burn(self, collection: Collection, token_id: int) -> None:
        collection.set_approval_for_all(ADDR2, True, ADDR1)
        collection.burn(token_id, ADDR2)
        assert collection.is_burned(token_id)

    def test_operator_loses_token_after_transfer(
        self, collection: Collection, token_id: int
    ) -> None:
        """Operator approval belongs to the owner, not the token."""
        collection.set_approval_for_all(ADDR3, True, ADDR1)
        collection.transfer_from(ADDR1, ADDR2, token_id, ADDR1)
        with pytest.raises(InsufficientApproval):
            collection.transfer_from(ADDR2, ADDR3, token_id, ADDR3)


class TestApprovalRegistry:
    """Tests for the registry's persistence helpers."""

    def test_round_trip(self) -> None:
        registry = ApprovalRegistry()
        registry.set_approved(7, ADDR2)
        registry.set_approval_for_all(ADDR1, ADDR3, True)

        restored = ApprovalRegistry.from_dict(registry.to_dict())
        assert restored.get_approved(7) == ADDR2
        assert restored.is_approved_for_all(ADDR1, ADDR3)

    def test_revoking_last_operator_drops_owner(self) -> None:
        registry = ApprovalRegistry()
        registry.set_approval_for_all(ADDR1, ADDR2, True)
        registry.set_approval_for_all(ADDR1, ADDR2, False)
        assert registry.to_dict()["operators"] == {}
