"""Application layer for flatdb.

The application layer orchestrates domain logic to fulfill use cases.

Exports:
    TableEngine:
        - TableEngine: Runs create/insert/select/update/delete on table files
        - OperationResult: Outcome of a mutating operation
"""

from flatdb.application.table_engine import TableEngine
from flatdb.ports.inbound import OperationResult

__all__ = [
    "TableEngine",
    "OperationResult",
]
