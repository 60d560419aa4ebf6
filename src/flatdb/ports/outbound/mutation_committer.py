"""Mutation Committer port for making table changes visible.

Inserts append one line to the table. Updates and deletes produce a
complete new table body that replaces the old file in a single step, so
readers see either the old content or the new content, never a mix.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Iterable, Protocol


class MutationCommitter(Protocol):
    """Protocol for committing table mutations.

    Both methods must be called while the caller holds the table's lock.
    """

    @abstractmethod
    def append_row(self, path: str | Path, line: str) -> None:
        """Append one encoded row (without terminator) to the table.

        Raises:
            IOFailureError: If the append fails.
        """
        ...

    @abstractmethod
    def commit_rewrite(self, path: str | Path, lines: Iterable[str]) -> int:
        """Replace the table with the given lines.

        The lines are written to a temporary file in the same directory
        which is then renamed over `path`. If writing fails the original
        file is left untouched.

        Args:
            path: Table file to replace.
            lines: Encoded lines (without terminators), header first.

        Returns:
            Number of lines written.

        Raises:
            IOFailureError: If the write or rename fails.
        """
        ...
