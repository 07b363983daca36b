"""Tests for ledger errors and their standardized responses."""

import pytest

from tests.testing_utils import ADDR1, ADDR2
from universal_ledger.ledger import (
    AlreadyTransferred,
    BaseURIAlreadyLocked,
    Collection,
    ErrorCategory,
    ErrorCode,
    InsufficientApproval,
    LedgerError,
    NonexistentToken,
    UnauthorizedAccount,
)
from universal_ledger.ledger.errors import validation_error


class TestErrorResponse:
    """Tests for LedgerError.to_response."""

    def test_not_found_response(self) -> None:
        token_id = 2**200
        response = NonexistentToken(token_id).to_response()

        assert response == {
            "success": False,
            "error": f"Nonexistent token: {token_id}",
            "code": "not_found",
            "category": "resource",
            "retriable": False,
            "details": {"token_id": str(token_id)},
        }

    def test_no_details_omitted(self) -> None:
        response = BaseURIAlreadyLocked().to_response()
        assert "details" not in response
        assert response["code"] == ErrorCode.LOCKED.value

    def test_permission_errors(self) -> None:
        assert InsufficientApproval(ADDR1, 1).category == ErrorCategory.PERMISSION
        assert UnauthorizedAccount(ADDR2).code == ErrorCode.NOT_OWNER

    def test_validation_error_helper(self) -> None:
        response = validation_error("bad id", value="x")
        assert response["category"] == "validation"
        assert response["code"] == "invalid_argument"
        assert response["details"] == {"value": "x"}


class TestHierarchy:
    """All precondition failures share one base class."""

    @pytest.mark.parametrize(
        "error",
        [
            NonexistentToken(1),
            AlreadyTransferred(1),
            BaseURIAlreadyLocked(),
            UnauthorizedAccount(ADDR1),
        ],
    )
    def test_subclass_of_ledger_error(self, error: LedgerError) -> None:
        assert isinstance(error, LedgerError)
        assert str(error) == error.message

    def test_caught_as_ledger_error(self, collection: Collection, token_id: int) -> None:
        collection.burn(token_id, ADDR1)
        with pytest.raises(LedgerError) as exc_info:
            collection.broadcast_mint(token_id)
        assert exc_info.value.code == ErrorCode.ALREADY_TRANSFERRED
