"""Outbound adapters - implementations of outbound ports.

These adapters implement the file system side of the engine:
table file I/O and atomic commits.
"""

from flatdb.adapters.outbound.atomic_committer import AtomicFileCommitter
from flatdb.adapters.outbound.file_table_storage import FileTableStorage

__all__ = [
    "AtomicFileCommitter",
    "FileTableStorage",
]
