"""On-disk table format and table schema.

A table is a single text file. The first line is the header: a marker
prefix followed by the column names joined by the delimiter. Every other
line is a data row with one field per column. There is no escaping, so
field values may never contain the delimiter or a line terminator.

File Format:
    # id<TAB>name<TAB>email\\n
    1<TAB>Bo<TAB>bo@test.com\\n
    2<TAB>Spencer<TAB>sp@test.com\\n
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, NewType, Sequence

from flatdb.domain.errors import BadValueError, UnknownColumnError


DELIMITER = "\t"
HEADER_PREFIX = "# "
LINE_TERMINATOR = "\n"

# Projection wildcard expanding to every column in header order
ALL_COLUMNS = "*"

ColumnIndex = NewType("ColumnIndex", int)
"""1-based position of a column within the header."""


def validate_value(column: str, value: str, encoding: str = "utf-8") -> str:
    """Reject a field value that cannot be stored without corrupting the file.

    Raises:
        BadValueError: If the value contains the delimiter or a line break,
            or cannot be written in `encoding`.
    """
    if DELIMITER in value:
        raise BadValueError(f"value for {column} contains tab; refuse")
    if "\n" in value or "\r" in value:
        raise BadValueError(f"value for {column} contains a line break; refuse")
    _check_encodable(f"value for {column}", value, encoding)
    return value


def _check_encodable(what: str, text: str, encoding: str) -> None:
    # Undecodable command line bytes arrive as lone surrogates
    try:
        text.encode(encoding)
    except UnicodeEncodeError as e:
        bad = text[e.start:e.end]
        raise BadValueError(f"{what} is not valid {encoding}: {bad!r}") from None


def encode_header(columns: Sequence[str]) -> str:
    """Encode column names as a header line (without terminator)."""
    return HEADER_PREFIX + DELIMITER.join(columns)


def decode_header(line: str) -> list[str]:
    """Decode a header line into column names.

    The marker prefix is stripped when present; a header written without
    it is still accepted.
    """
    line = _strip_terminator(line)
    if line.startswith(HEADER_PREFIX):
        line = line[len(HEADER_PREFIX):]
    return line.split(DELIMITER)


def encode_row(fields: Iterable[str]) -> str:
    """Encode row fields as a data line (without terminator)."""
    return DELIMITER.join(fields)


def decode_row(line: str) -> list[str]:
    """Decode a data line into its fields."""
    return _strip_terminator(line).split(DELIMITER)


def field_at(row: Sequence[str], index: ColumnIndex) -> str:
    """Return the field at a 1-based index; fields past the end read as ''."""
    if index <= len(row):
        return row[index - 1]
    return ""


def _strip_terminator(line: str) -> str:
    # "\r" is never stored in a field, so a CRLF ending loses it too
    if line.endswith(LINE_TERMINATOR):
        line = line[: -len(LINE_TERMINATOR)]
    if line.endswith("\r"):
        line = line[:-1]
    return line


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Ordered column names of a table, fixed at creation time.

    Example:
        >>> schema = TableSchema(("id", "name"))
        >>> schema.index_of("name")
        2
        >>> schema.resolve_projection("*")
        [1, 2]
    """

    columns: tuple[str, ...]

    @classmethod
    def for_create(cls, columns: Sequence[str], encoding: str = "utf-8") -> TableSchema:
        """Validate column names for a new table.

        Raises:
            BadValueError: If no columns are given, or a name is empty,
                duplicated, contains the delimiter or a line break, or
                cannot be written in `encoding`.
        """
        if not columns:
            raise BadValueError("a table needs at least one column")
        seen: set[str] = set()
        for name in columns:
            if not name:
                raise BadValueError("column names must not be empty")
            if DELIMITER in name or "\n" in name or "\r" in name:
                raise BadValueError(f"column name {name!r} contains tab or line break")
            _check_encodable(f"column name {name!r}", name, encoding)
            if name in seen:
                raise BadValueError(f"duplicate column: {name}")
            seen.add(name)
        return cls(tuple(columns))

    def __len__(self) -> int:
        return len(self.columns)

    def index_of(self, name: str) -> ColumnIndex:
        """Return the 1-based position of a column.

        Raises:
            UnknownColumnError: If the column is not in the header.
        """
        try:
            return ColumnIndex(self.columns.index(name) + 1)
        except ValueError:
            raise UnknownColumnError(name) from None

    def resolve_projection(self, columns: str | Sequence[str] | None) -> list[ColumnIndex]:
        """Resolve a projection to 1-based indices in the requested order.

        None, "*" or ["*"] select every column in header order. Duplicate
        names are kept, each producing its own output column.
        """
        if columns is None or columns == ALL_COLUMNS or list(columns) == [ALL_COLUMNS]:
            return [ColumnIndex(i) for i in range(1, len(self.columns) + 1)]
        if isinstance(columns, str):
            columns = columns.split(",")
        return [self.index_of(name) for name in columns]
