"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for the file system side of the
table engine: reading table files and committing mutations.
"""

from flatdb.ports.outbound.mutation_committer import MutationCommitter
from flatdb.ports.outbound.table_storage import TableStorage

__all__ = [
    "MutationCommitter",
    "TableStorage",
]
