"""Row pipeline using the Volcano iterator model.

Rows flow through a chain of pull-based operators, one row at a time:

    select:  TableScan -> Filter -> Project
    update:  TableScan -> Rewrite(replace_field)
    delete:  TableScan -> Rewrite(drop_row)

Update and delete share RewriteOperator and differ only in the transform
applied to matching rows. Every row passes through a rewrite exactly once,
so order is preserved and only matching rows change.

References:
    - Graefe, "Volcano" (1994)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterator, Optional, Sequence

from flatdb.domain.value_objects import ColumnIndex, Filter, evaluate, field_at


Row = list[str]
RowTransform = Callable[[Row], Optional[Row]]


class Operator(ABC):
    """Base class for pipeline operators (Volcano model)."""

    @abstractmethod
    def open(self) -> None:
        """Initialize the operator."""
        pass

    @abstractmethod
    def next(self) -> Row | None:
        """Return the next row or None if exhausted."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Clean up resources."""
        pass

    def __iter__(self) -> Iterator[Row]:
        """Allow iteration over operator results."""
        self.open()
        try:
            while True:
                row = self.next()
                if row is None:
                    break
                yield row
        finally:
            self.close()


class TableScanOperator(Operator):
    """Sequential scan over the data rows of a table file.

    The row source is a factory so that every open() re-reads the file
    from the start.
    """

    def __init__(self, source: Callable[[], Iterator[Row]]) -> None:
        self._source = source
        self._rows: Iterator[Row] | None = None
        self.rows_scanned = 0

    def open(self) -> None:
        self._rows = self._source()
        self.rows_scanned = 0

    def next(self) -> Row | None:
        if self._rows is None:
            return None
        row = next(self._rows, None)
        if row is not None:
            self.rows_scanned += 1
        return row

    def close(self) -> None:
        if self._rows is not None and hasattr(self._rows, "close"):
            self._rows.close()
        self._rows = None


class FilterOperator(Operator):
    """Passes only the rows a filter matches. No filter passes everything."""

    def __init__(self, child: Operator, condition: Filter | None) -> None:
        self._child = child
        self._condition = condition

    def open(self) -> None:
        self._child.open()

    def next(self) -> Row | None:
        while True:
            row = self._child.next()
            if row is None:
                return None
            if evaluate(self._condition, row):
                return row

    def close(self) -> None:
        self._child.close()


class ProjectOperator(Operator):
    """Reduces each row to the given columns, in the given order."""

    def __init__(self, child: Operator, indices: Sequence[ColumnIndex]) -> None:
        self._child = child
        self._indices = list(indices)

    def open(self) -> None:
        self._child.open()

    def next(self) -> Row | None:
        row = self._child.next()
        if row is None:
            return None
        return project(row, self._indices)

    def close(self) -> None:
        self._child.close()


class RewriteOperator(Operator):
    """Applies a transform to matching rows and passes the rest unchanged.

    A transform returning None drops the row.
    """

    def __init__(
        self,
        child: Operator,
        condition: Filter | None,
        transform: RowTransform,
    ) -> None:
        self._child = child
        self._condition = condition
        self._transform = transform
        self.rows_matched = 0

    def open(self) -> None:
        self._child.open()
        self.rows_matched = 0

    def next(self) -> Row | None:
        while True:
            row = self._child.next()
            if row is None:
                return None
            if not evaluate(self._condition, row):
                return row
            self.rows_matched += 1
            replacement = self._transform(row)
            if replacement is not None:
                return replacement

    def close(self) -> None:
        self._child.close()


def project(row: Sequence[str], indices: Sequence[ColumnIndex]) -> Row:
    """Pick fields by 1-based index; duplicates repeat, missing read as ''."""
    return [field_at(row, i) for i in indices]


def replace_field(index: ColumnIndex, value: str) -> RowTransform:
    """Build a transform setting one field, padding short rows with ''."""

    def transform(row: Row) -> Row:
        updated = list(row)
        if len(updated) < index:
            updated.extend([""] * (index - len(updated)))
        updated[index - 1] = value
        return updated

    return transform


def drop_row(row: Row) -> None:
    """Transform that removes the row from the output."""
    return None

