"""Unit tests for permissionless broadcast replay."""

import pytest

from universal_ledger.ledger import (
    ZERO_ADDRESS,
    AlreadyTransferred,
    Collection,
    NonexistentToken,
    TokenState,
    encode,
)

from tests.testing_utils import ADDR1, ADDR2


@pytest.mark.feature("broadcast")
class TestBroadcastMint:
    """Tests for broadcast_mint."""

    def test_emits_mint_event(self, collection: Collection, token_id: int) -> None:
        events = collection.broadcast_mint(token_id)

        assert len(events) == 1
        assert events[0].name == "Transfer"
        assert events[0].values == (ZERO_ADDRESS, ADDR1, token_id)

    def test_does_not_write_state(self, collection: Collection, token_id: int) -> None:
        collection.broadcast_mint(token_id)
        assert collection.state_of(token_id) == TokenState.VIRTUAL
        assert not collection.was_ever_transferred(token_id)

    def test_repeatable(self, collection: Collection, token_id: int) -> None:
        first = collection.broadcast_mint(token_id)
        second = collection.broadcast_mint(token_id)
        assert first == second

    def test_after_transfer_rejected(self, collection: Collection, token_id: int) -> None:
        collection.transfer_from(ADDR1, ADDR2, token_id, ADDR1)
        with pytest.raises(AlreadyTransferred):
            collection.broadcast_mint(token_id)

    def test_after_transfer_back_rejected(self, collection: Collection, token_id: int) -> None:
        """Even when the token is back with its seed owner."""
        collection.transfer_from(ADDR1, ADDR2, token_id, ADDR1)
        collection.transfer_from(ADDR2, ADDR1, token_id, ADDR2)
        with pytest.raises(AlreadyTransferred):
            collection.broadcast_mint(token_id)

    def test_after_burn_rejected(self, collection: Collection, token_id: int) -> None:
        collection.burn(token_id, ADDR1)
        with pytest.raises(AlreadyTransferred):
            collection.broadcast_mint(token_id)

    def test_zero_seed_rejected(self, collection: Collection) -> None:
        with pytest.raises(NonexistentToken):
            collection.broadcast_mint(encode(0x34, ZERO_ADDRESS))

    def test_anyone_may_broadcast(self, collection: Collection) -> None:
        """No caller argument: broadcasting is permissionless."""
        events = collection.broadcast_mint(encode(9, ADDR2))
        assert events[0].values[1] == ADDR2


@pytest.mark.feature("broadcast")
class TestBroadcastSelfTransfer:
    """Tests for broadcast_self_transfer."""

    def test_emits_self_transfer(self, collection: Collection, token_id: int) -> None:
        events = collection.broadcast_self_transfer(token_id)
        assert events[0].values == (ADDR1, ADDR1, token_id)

    def test_after_transfer_rejected(self, collection: Collection, token_id: int) -> None:
        collection.transfer_from(ADDR1, ADDR2, token_id, ADDR1)
        with pytest.raises(AlreadyTransferred):
            collection.broadcast_self_transfer(token_id)

    def test_after_burn_rejected(self, collection: Collection, token_id: int) -> None:
        collection.burn(token_id, ADDR1)
        with pytest.raises(AlreadyTransferred):
            collection.broadcast_self_transfer(token_id)

    def test_zero_seed_rejected(self, collection: Collection) -> None:
        with pytest.raises(NonexistentToken):
            collection.broadcast_self_transfer(encode(1, ZERO_ADDRESS))


@pytest.mark.feature("broadcast")
class TestBroadcastBatch:
    """Batch variants are all or nothing."""

    def test_mint_batch_in_order(self, collection: Collection) -> None:
        ids = [encode(1, ADDR1), encode(2, ADDR2), encode(3, ADDR1)]
        events = collection.broadcast_mint_batch(ids)

        assert [e.values for e in events] == [
            (ZERO_ADDRESS, ADDR1, ids[0]),
            (ZERO_ADDRESS, ADDR2, ids[1]),
            (ZERO_ADDRESS, ADDR1, ids[2]),
        ]

    def test_self_transfer_batch_in_order(self, collection: Collection) -> None:
        ids = [encode(1, ADDR2), encode(2, ADDR1)]
        events = collection.broadcast_self_transfer_batch(ids)
        assert [e.values for e in events] == [
            (ADDR2, ADDR2, ids[0]),
            (ADDR1, ADDR1, ids[1]),
        ]

    def test_duplicates_emit_twice(self, collection: Collection, token_id: int) -> None:
        events = collection.broadcast_mint_batch([token_id, token_id])
        assert len(events) == 2

    def test_empty_batch_emits_nothing(self, collection: Collection) -> None:
        assert collection.broadcast_mint_batch([]) == []

    def test_one_bad_token_fails_whole_batch(
        self, collection: Collection, token_id: int
    ) -> None:
        moved = encode(2, ADDR1)
        collection.transfer_from(ADDR1, ADDR2, moved, ADDR1)
        logged_before = collection.event_logger.sequence

        with pytest.raises(AlreadyTransferred):
            collection.broadcast_mint_batch([token_id, moved])
        assert collection.event_logger.sequence == logged_before

    def test_zero_seed_fails_whole_batch(
        self, collection: Collection, token_id: int
    ) -> None:
        logged_before = collection.event_logger.sequence
        with pytest.raises(NonexistentToken):
            collection.broadcast_self_transfer_batch([token_id, encode(5, ZERO_ADDRESS)])
        assert collection.event_logger.sequence == logged_before
