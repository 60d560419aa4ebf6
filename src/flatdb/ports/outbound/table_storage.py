"""Table Storage port for reading and creating table files.

This outbound port defines the contract for the on-disk table format:
one header line naming the columns, then one line per row.

The table storage is responsible for:
- Creating a table file with its header
- Reading the header back as a TableSchema
- Streaming data rows one at a time
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Iterator, Protocol, Sequence

from flatdb.domain.value_objects import ColumnIndex, TableSchema


class TableStorage(Protocol):
    """Protocol for table file I/O.

    Implementations do no locking of their own; callers that mutate a
    table must hold its lock.
    """

    @abstractmethod
    def create(self, path: str | Path, columns: Sequence[str]) -> TableSchema:
        """Create a table with the given columns.

        Args:
            path: Table file path.
            columns: Ordered column names (at least one).

        Returns:
            The schema written to the header.

        Raises:
            AlreadyExistsError: If the file exists and is non-empty.
            BadValueError: If a column name is invalid.
            IOFailureError: If the write fails.
        """
        ...

    @abstractmethod
    def read_header(self, path: str | Path) -> TableSchema:
        """Read the table's column names.

        Raises:
            TableNotFoundError: If the file does not exist or is empty.
            IOFailureError: If the read fails.
        """
        ...

    @abstractmethod
    def column_index(self, path: str | Path, name: str) -> ColumnIndex:
        """Return the 1-based index of a column.

        Raises:
            UnknownColumnError: If the header has no such column.
        """
        ...

    @abstractmethod
    def iter_rows(self, path: str | Path) -> Iterator[list[str]]:
        """Yield data rows lazily, skipping the header.

        Each call re-reads the file from the start.
        """
        ...

    @abstractmethod
    def exists(self, path: str | Path) -> bool:
        """Check if a table file exists."""
        ...
