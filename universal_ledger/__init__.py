"""Universal Ledger source package.

This package contains:
- config: Configuration loading and management
- ledger: Token id codec, ownership state machine, broadcast, metadata
- api: HTTP query and broadcast API
"""

from __future__ import annotations

__all__: list[str] = []
