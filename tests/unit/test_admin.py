"""Tests for the collection admin role."""

import pytest

from tests.testing_utils import ADDR1, ADDR2, ADDR3, DEFAULT_URI
from universal_ledger.ledger import (
    ZERO_ADDRESS,
    Collection,
    InvalidOwner,
    UnauthorizedAccount,
)
from universal_ledger.ledger.admin import AdminRole
from universal_ledger.ledger.events import LedgerEvent


class TestConstruction:
    """Deployment assigns the admin."""

    def test_owner_is_deployer(self, collection: Collection) -> None:
        assert collection.owner == ADDR1

    def test_zero_admin_rejected(self) -> None:
        with pytest.raises(InvalidOwner):
            Collection(ZERO_ADDRESS, "n", "S", DEFAULT_URI)

    def test_silent_restore_accepts_zero(self) -> None:
        emitted: list[LedgerEvent] = []
        role = AdminRole(ZERO_ADDRESS, emitted.append, announce=False)
        assert role.admin == ZERO_ADDRESS
        assert emitted == []


class TestTransferOwnership:
    """Tests for transfer_ownership."""

    def test_hand_over(self, collection: Collection) -> None:
        events = collection.transfer_ownership(ADDR2, ADDR1)

        assert collection.owner == ADDR2
        assert events[0].name == "OwnershipTransferred"
        assert events[0].values == (ADDR1, ADDR2)

    def test_new_admin_has_control(self, collection: Collection) -> None:
        collection.transfer_ownership(ADDR2, ADDR1)
        collection.update_base_uri("ipfs://x/", ADDR2)
        with pytest.raises(UnauthorizedAccount):
            collection.update_base_uri("ipfs://y/", ADDR1)

    def test_non_admin_rejected(self, collection: Collection) -> None:
        with pytest.raises(UnauthorizedAccount):
            collection.transfer_ownership(ADDR3, ADDR2)
        assert collection.owner == ADDR1

    def test_zero_new_admin_rejected(self, collection: Collection) -> None:
        with pytest.raises(InvalidOwner):
            collection.transfer_ownership(ZERO_ADDRESS, ADDR1)
        assert collection.owner == ADDR1


class TestRenounceOwnership:
    """Tests for renounce_ownership."""

    def test_renounce(self, collection: Collection) -> None:
        events = collection.renounce_ownership(ADDR1)
        assert collection.owner == ZERO_ADDRESS
        assert events[0].values == (ADDR1, ZERO_ADDRESS)

    def test_configuration_frozen_after_renounce(self, collection: Collection) -> None:
        collection.renounce_ownership(ADDR1)
        with pytest.raises(UnauthorizedAccount):
            collection.update_base_uri("ipfs://x/", ADDR1)
        with pytest.raises(UnauthorizedAccount):
            collection.lock_base_uri(ADDR1)

    def test_non_admin_cannot_renounce(self, collection: Collection) -> None:
        with pytest.raises(UnauthorizedAccount):
            collection.renounce_ownership(ADDR2)
