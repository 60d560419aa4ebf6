"""Atomic file committer for table mutations.

This adapter implements the MutationCommitter protocol.

Rewrite protocol (update/delete):
    1. Create a temporary file next to the table (same directory, so the
       rename never crosses file systems).
    2. Stream the new content into it, flush, optionally fsync.
    3. os.replace() the temporary file over the table.

Until step 3 the original table is untouched. If anything fails before
the rename, the temporary file is removed and the error propagates.

Append protocol (insert):
    A single write of one line to the table opened in append mode.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable

from flatdb.domain.errors import IOFailureError
from flatdb.domain.value_objects import LINE_TERMINATOR
from flatdb.infrastructure.logging import get_logger


logger = get_logger(__name__)


class AtomicFileCommitter:
    """Commits table mutations by append or by temp file and rename."""

    def __init__(self, encoding: str = "utf-8", fsync: bool = True) -> None:
        """Initialize the committer.

        Args:
            encoding: Text encoding of table files.
            fsync: Whether to fsync files (and the directory after a rename).
        """
        self.encoding = encoding
        self._fsync = fsync

    def append_row(self, path: str | Path, line: str) -> None:
        """Append one encoded row to the table.

        Raises:
            IOFailureError: If the append fails.
        """
        path = Path(path)
        try:
            with open(path, "a", encoding=self.encoding, newline="") as f:
                f.write(line + LINE_TERMINATOR)
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
        except (OSError, UnicodeError) as e:
            raise IOFailureError(f"cannot append to {path}: {e}") from e

    def commit_rewrite(self, path: str | Path, lines: Iterable[str]) -> int:
        """Replace the table's content with `lines` atomically.

        Returns:
            Number of lines written, header included.

        Raises:
            IOFailureError: If the temp file cannot be written or renamed.
        """
        path = Path(path)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
        except OSError as e:
            raise IOFailureError(f"cannot create temp file for {path}: {e}") from e
        tmp_path = Path(tmp_name)

        count = 0
        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                for line in lines:
                    f.write(line + LINE_TERMINATOR)
                    count += 1
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
            # mkstemp creates 0600 files; keep the table's permissions
            with contextlib.suppress(FileNotFoundError):
                shutil.copymode(path, tmp_path)
            os.replace(tmp_path, path)
        except (OSError, UnicodeError) as e:
            self._discard(tmp_path)
            raise IOFailureError(f"cannot rewrite {path}: {e}") from e
        except BaseException:
            self._discard(tmp_path)
            raise

        if self._fsync:
            self._sync_directory(path.parent)

        logger.debug("table_rewritten", table=str(path), lines=count)
        return count

    def _discard(self, tmp_path: Path) -> None:
        """Remove an abandoned temp file, best effort."""
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("temp_cleanup_failed", path=str(tmp_path), error=str(e))

    def _sync_directory(self, directory: Path) -> None:
        """Persist the rename by fsyncing the containing directory."""
        if not hasattr(os, "O_DIRECTORY"):
            return
        fd = os.open(directory, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
