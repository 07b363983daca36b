# Ledger package
from .collection import Collection, derive_collection_address
from .constants import MAX_BALANCE, RECEIVER_MAGIC_VALUE, UNIVERSAL_VERSION, ZERO_ADDRESS
from .errors import (
    AlreadyTransferred, BaseURIAlreadyLocked, ErrorCategory, ErrorCode, ErrorResponse,
    InsufficientApproval, InvalidApprover, InvalidOperator, InvalidOwner, InvalidReceiver,
    LedgerError, NonexistentToken, StateFileConflict, UnauthorizedAccount,
)
from .events import LedgerEvent
from .logger import EventLogger
from .ownership import OwnershipLedger, OwnershipRecord, TokenState
from .receivers import TokenReceiver
from .token_id import Address, decode_owner, decode_slot, encode, parse_token_id, to_address

__all__ = [
    "Collection", "derive_collection_address",
    "MAX_BALANCE", "RECEIVER_MAGIC_VALUE", "UNIVERSAL_VERSION", "ZERO_ADDRESS",
    "LedgerError", "NonexistentToken", "InvalidReceiver", "InsufficientApproval",
    "InvalidApprover", "InvalidOperator", "InvalidOwner", "AlreadyTransferred",
    "BaseURIAlreadyLocked", "StateFileConflict", "UnauthorizedAccount",
    "ErrorCategory", "ErrorCode", "ErrorResponse",
    "LedgerEvent",
    "EventLogger",
    "OwnershipLedger", "OwnershipRecord", "TokenState",
    "TokenReceiver",
    "Address", "decode_owner", "decode_slot", "encode", "parse_token_id", "to_address",
]
