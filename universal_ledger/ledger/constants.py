"""Centralized constants for the ledger module.

Bit widths, sentinel addresses and interface identifiers live here to avoid
magic numbers scattered across modules.
"""

# Identifier layout: [ slot: 96 bits | seed: 160 bits ]
TOKEN_ID_BITS = 256
SLOT_BITS = 96
SEED_BITS = 160
MAX_TOKEN_ID = (1 << TOKEN_ID_BITS) - 1
MAX_SLOT = (1 << SLOT_BITS) - 1
SEED_MASK = (1 << SEED_BITS) - 1

# The only address that can never own a token
ZERO_ADDRESS = "0x" + "0" * 40

# Returned by balance_of() for every address. Ownership is derived from the
# identifier space, so no per-owner count exists.
MAX_BALANCE = 2**96

# Version of the universal-collection interface
UNIVERSAL_VERSION = 1

# Value a receiver hook returns to accept a safe transfer
RECEIVER_MAGIC_VALUE = 0x150B7A02

# Interface identifiers (4-byte selectors XOR'd per interface)
INTERFACE_ERC165 = 0x01FFC9A7
INTERFACE_ERC721 = 0x80AC58CD
INTERFACE_ERC721_METADATA = 0x5B5E139F
INTERFACE_UNIVERSAL = 0x9832F941
INTERFACE_UPDATABLE_BASE_URI = 0xB8382A4B
INTERFACE_BROADCAST = 0x9430F0B8
INTERFACE_INVALID = 0xFFFFFFFF

# Rendering used by token_uri() when no affixes are configured
DEFAULT_KEY_PREFIX = "GeneralKey("
DEFAULT_KEY_SUFFIX = ")"
