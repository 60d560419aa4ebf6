"""Table Operations port - the API offered to callers.

This inbound port defines the five operations every adapter (CLI, REST)
drives. Arguments arrive already split into their parts; parsing of
command lines or request bodies happens in the adapters.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Mapping, Protocol, Sequence


@dataclass
class OperationResult:
    """Outcome of a mutating table operation."""

    operation: str
    table: str
    affected_rows: int = 0
    columns: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"OK: {self.operation} {self.table} ({self.affected_rows} rows)"


class TableOperations(Protocol):
    """Protocol for the table engine.

    Mutating operations hold the table's lock for their whole duration.
    select takes no lock and gives no isolation from concurrent writers.
    """

    @abstractmethod
    def create(self, path: str | Path, columns: Sequence[str]) -> OperationResult:
        """Create a table with the given ordered columns."""
        ...

    @abstractmethod
    def insert(self, path: str | Path, values: Mapping[str, str]) -> OperationResult:
        """Append one row; unlisted columns are stored as empty strings."""
        ...

    @abstractmethod
    def select(
        self,
        path: str | Path,
        columns: str | Sequence[str] | None = "*",
        where: str | None = None,
    ) -> Iterator[list[str]]:
        """Yield the projected header, then projected rows matching `where`."""
        ...

    @abstractmethod
    def update(self, path: str | Path, assignment: str, where: str) -> OperationResult:
        """Set one column (`col=value`) on every row matching `where`."""
        ...

    @abstractmethod
    def delete(self, path: str | Path, where: str) -> OperationResult:
        """Remove every row matching `where`."""
        ...
