"""Inbound ports - API contracts for the table engine.

Inbound ports define the interfaces that clients and upper layers
use to interact with tables.
"""

from flatdb.ports.inbound.table_operations import OperationResult, TableOperations

__all__ = [
    "OperationResult",
    "TableOperations",
]
