"""File-based Table Storage implementation.

This adapter implements the TableStorage protocol using standard text
file I/O. Each table is one UTF-8 file:

File Format:
    - Line 1: "# " + column names joined by TAB
    - Line 2+: field values joined by TAB
    - Every line, including the last, ends with a single "\\n"

Files are opened with newline="" so no platform line-ending translation
happens; what is read is exactly what is on disk.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, Sequence

from flatdb.domain.errors import AlreadyExistsError, IOFailureError, TableNotFoundError
from flatdb.domain.value_objects import (
    LINE_TERMINATOR,
    ColumnIndex,
    TableSchema,
    decode_header,
    decode_row,
    encode_header,
)
from flatdb.infrastructure.logging import get_logger


logger = get_logger(__name__)


class FileTableStorage:
    """File-based implementation of the TableStorage protocol.

    Attributes:
        encoding: Text encoding of table files.
    """

    def __init__(self, encoding: str = "utf-8", fsync: bool = True) -> None:
        """Initialize the table storage.

        Args:
            encoding: Text encoding of table files.
            fsync: Whether to fsync a newly created table.
        """
        self.encoding = encoding
        self._fsync = fsync

    def exists(self, path: str | Path) -> bool:
        """Check if a table file exists."""
        return Path(path).is_file()

    def create(self, path: str | Path, columns: Sequence[str]) -> TableSchema:
        """Create a table file containing only its header.

        An existing empty file is treated as not yet created and is
        overwritten.

        Raises:
            AlreadyExistsError: If the file exists and is non-empty.
            BadValueError: If a column name is invalid.
            IOFailureError: If the write fails.
        """
        path = Path(path)
        schema = TableSchema.for_create(columns, self.encoding)

        try:
            if path.exists() and path.stat().st_size > 0:
                raise AlreadyExistsError(f"refusing to overwrite existing table: {path}")

            with open(path, "w", encoding=self.encoding, newline="") as f:
                f.write(encode_header(schema.columns) + LINE_TERMINATOR)
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
        except (OSError, UnicodeError) as e:
            raise IOFailureError(f"cannot create table {path}: {e}") from e

        logger.info("table_created", table=str(path), columns=len(schema))
        return schema

    def read_header(self, path: str | Path) -> TableSchema:
        """Read the header line of a table.

        Raises:
            TableNotFoundError: If the file does not exist or is empty.
            IOFailureError: If the read fails.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding=self.encoding, newline="") as f:
                line = f.readline()
        except FileNotFoundError:
            raise TableNotFoundError(f"no such table: {path}") from None
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailureError(f"cannot read table {path}: {e}") from e

        if not line:
            raise TableNotFoundError(f"table has no header: {path}")
        return TableSchema(tuple(decode_header(line)))

    def column_index(self, path: str | Path, name: str) -> ColumnIndex:
        """Return the 1-based index of a column in the table's header.

        Raises:
            TableNotFoundError: If the table does not exist.
            UnknownColumnError: If the header has no such column.
        """
        return self.read_header(path).index_of(name)

    def iter_rows(self, path: str | Path) -> Iterator[list[str]]:
        """Yield data rows one at a time, skipping the header.

        Raises:
            TableNotFoundError: If the file does not exist.
            IOFailureError: If the read fails.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding=self.encoding, newline="") as f:
                f.readline()
                for line in f:
                    yield decode_row(line)
        except FileNotFoundError:
            raise TableNotFoundError(f"no such table: {path}") from None
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailureError(f"cannot read table {path}: {e}") from e
