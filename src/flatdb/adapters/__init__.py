"""Adapters layer - concrete implementations of port interfaces.

Adapters provide the actual implementations:
- Inbound adapters: Handle incoming requests (CLI, REST)
- Outbound adapters: Implement external dependencies (table files)
"""

from flatdb.adapters.outbound import (
    AtomicFileCommitter,
    FileTableStorage,
)

__all__ = [
    # Outbound adapters
    "AtomicFileCommitter",
    "FileTableStorage",
]
