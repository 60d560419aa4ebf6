"""Error taxonomy for table operations.

Every error is terminal for the operation that raised it. Each class
carries a distinct process exit status used by the command line adapter.
"""

from __future__ import annotations


class FlatDBError(Exception):
    """Base class for all table engine errors."""

    exit_code: int = 1


class AlreadyExistsError(FlatDBError):
    """Raised when creating a table whose file already has content."""

    exit_code = 3


class TableNotFoundError(FlatDBError):
    """Raised when the table file does not exist or has no header."""

    exit_code = 4


class UnknownColumnError(FlatDBError):
    """Raised when a column name is not part of the table header."""

    exit_code = 5

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown column: {name}")
        self.name = name


class BadFilterError(FlatDBError):
    """Raised when a WHERE expression cannot be parsed."""

    exit_code = 6


class BadValueError(FlatDBError):
    """Raised when a value or column name would corrupt the file format."""

    exit_code = 7


class LockTimeoutError(FlatDBError):
    """Raised when a table lock is not acquired within the timeout."""

    exit_code = 8


class IOFailureError(FlatDBError):
    """Raised when reading, writing or renaming a table file fails."""

    exit_code = 9
