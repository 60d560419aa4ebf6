"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: APIs offered to clients (e.g., TableOperations)
- Outbound ports: Dependencies on the file system (e.g., TableStorage,
  MutationCommitter)

Adapters implement these ports with concrete functionality.
"""

from flatdb.ports.inbound import OperationResult, TableOperations
from flatdb.ports.outbound import MutationCommitter, TableStorage

__all__ = [
    # Inbound ports
    "OperationResult",
    "TableOperations",
    # Outbound ports
    "MutationCommitter",
    "TableStorage",
]
