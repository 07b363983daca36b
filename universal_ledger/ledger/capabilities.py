"""Interface capability registry.

A static set of 4-byte interface identifiers the collection answers "yes"
to. Populated once at construction.
"""

from __future__ import annotations

from .constants import (
    INTERFACE_BROADCAST,
    INTERFACE_ERC165,
    INTERFACE_ERC721,
    INTERFACE_ERC721_METADATA,
    INTERFACE_INVALID,
    INTERFACE_UNIVERSAL,
    INTERFACE_UPDATABLE_BASE_URI,
)

COLLECTION_INTERFACES: tuple[int, ...] = (
    INTERFACE_ERC165,
    INTERFACE_ERC721,
    INTERFACE_ERC721_METADATA,
    INTERFACE_UNIVERSAL,
    INTERFACE_UPDATABLE_BASE_URI,
    INTERFACE_BROADCAST,
)


class CapabilityRegistry:
    """Answers supports_interface() queries."""

    _supported: set[int]

    def __init__(self, interface_ids: tuple[int, ...] = COLLECTION_INTERFACES) -> None:
        self._supported = set()
        for interface_id in interface_ids:
            self.register(interface_id)

    def register(self, interface_id: int) -> None:
        """Declare support for an interface. 0xffffffff can never be registered."""
        if interface_id == INTERFACE_INVALID:
            raise ValueError("0xffffffff is reserved and cannot be supported")
        if not 0 <= interface_id <= 0xFFFFFFFF:
            raise ValueError(f"Interface id must fit in 4 bytes: {interface_id:#x}")
        self._supported.add(interface_id)

    def supports_interface(self, interface_id: int) -> bool:
        return interface_id in self._supported

    def supported(self) -> list[int]:
        return sorted(self._supported)
