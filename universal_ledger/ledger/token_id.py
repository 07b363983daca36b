"""Token identifier codec.

A token identifier is a 256-bit unsigned integer laid out as:

    [ slot: 96 bits | seed: 160 bits ]

The seed is read as an address and names the token's implicit owner until
the token is first transferred or burned. The slot is an opaque namespace
chosen by whoever minted the identifier.

Every 256-bit value is a valid identifier, so decoding never fails.

Usage:
    from universal_ledger.ledger.token_id import encode, decode_owner

    token_id = encode(111, "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266")
    decode_owner(token_id)  # "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
    decode_slot(token_id)   # 111
"""

from __future__ import annotations

from .constants import MAX_SLOT, MAX_TOKEN_ID, SEED_BITS, SEED_MASK

# Canonical form: lower-case, 0x-prefixed, 40 hex digits
Address = str


def to_address(value: str | int) -> Address:
    """Normalize an address to its canonical lower-case hex form.

    Accepts a 0x-prefixed hex string of at most 40 digits (any case) or an
    int that fits in 160 bits.

    Raises:
        ValueError: If the value cannot be read as an address.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid address: {value!r}")
    if isinstance(value, int):
        if value < 0 or value > SEED_MASK:
            raise ValueError(f"Address out of range: {value}")
        return f"0x{value:040x}"
    if not isinstance(value, str):
        raise ValueError(f"Invalid address: {value!r}")

    text = value.strip()
    if not text.lower().startswith("0x"):
        raise ValueError(f"Address must be 0x-prefixed: {value!r}")
    digits = text[2:]
    if not digits or len(digits) > 40:
        raise ValueError(f"Address must have 1-40 hex digits: {value!r}")
    try:
        as_int = int(digits, 16)
    except ValueError:
        raise ValueError(f"Address is not hexadecimal: {value!r}") from None
    return f"0x{as_int:040x}"


def parse_token_id(value: str | int) -> int:
    """Read a token identifier from an int, a decimal string or a 0x hex string.

    Raises:
        ValueError: If the value is malformed or outside [0, 2**256).
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid token id: {value!r}")
    if isinstance(value, int):
        token_id = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            token_id = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise ValueError(f"Invalid token id: {value!r}") from None
    else:
        raise ValueError(f"Invalid token id: {value!r}")
    _check_range(token_id)
    return token_id


def decode_owner(token_id: int) -> Address:
    """Return the seed (low 160 bits) as an address."""
    _check_range(token_id)
    return f"0x{token_id & SEED_MASK:040x}"


def decode_slot(token_id: int) -> int:
    """Return the slot (high 96 bits)."""
    _check_range(token_id)
    return token_id >> SEED_BITS


def encode(slot: int, owner: str | int) -> int:
    """Pack a slot and an address into a token identifier.

    Inverse of decode_slot/decode_owner. Used by tooling and tests; the
    ledger itself only ever decodes.
    """
    if slot < 0 or slot > MAX_SLOT:
        raise ValueError(f"Slot out of range: {slot}")
    seed = int(to_address(owner), 16)
    return (slot << SEED_BITS) | seed


def _check_range(token_id: int) -> None:
    if token_id < 0 or token_id > MAX_TOKEN_ID:
        raise ValueError(f"Token id out of 256-bit range: {token_id}")
