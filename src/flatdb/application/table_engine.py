"""Table Engine - unified entry point for table operations.

This module provides the TableEngine class that orchestrates the table
components: storage format, lock manager, predicate evaluator, row
pipeline and mutation committer.

Usage:
    from flatdb.application import TableEngine

    engine = TableEngine()
    engine.create("users.tsv", ["id", "name"])
    engine.insert("users.tsv", {"id": "1", "name": "Bo"})
    for row in engine.select("users.tsv", ["name"], where="id=1"):
        print("\\t".join(row))
    engine.update("users.tsv", "name=Robert", where="id=1")
    engine.delete("users.tsv", where="name~^R")

Operation lifecycle (update/delete):
    Idle -> LockHeld -> Streaming (read old, write temp) -> Committed
    (rename) -> LockReleased

    A failure while streaming leaves the original table untouched, and
    the lock is released before the error reaches the caller.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from itertools import chain
from pathlib import Path
from typing import ContextManager, Generator, Iterator, Mapping, Sequence

from flatdb.adapters.outbound import AtomicFileCommitter, FileTableStorage
from flatdb.domain.errors import (
    BadFilterError,
    BadValueError,
    FlatDBError,
    TableNotFoundError,
    UnknownColumnError,
)
from flatdb.domain.services import (
    FilterOperator,
    Operator,
    ProjectOperator,
    RewriteOperator,
    RowTransform,
    TableLock,
    TableScanOperator,
    drop_row,
    locked,
    replace_field,
)
from flatdb.domain.value_objects import (
    Filter,
    TableSchema,
    encode_header,
    encode_row,
    parse_filter,
    validate_value,
)
from flatdb.infrastructure.config import Config, get_config
from flatdb.infrastructure.logging import get_logger
from flatdb.infrastructure.metrics import MetricsRegistry, get_metrics
from flatdb.infrastructure.tracing import trace_span
from flatdb.ports.inbound import OperationResult
from flatdb.ports.outbound import MutationCommitter, TableStorage


logger = get_logger(__name__)


class TableEngine:
    """Runs create, insert, select, update and delete against table files.

    The engine keeps no state between operations; every call re-reads the
    table. Mutating operations serialize on the table's lock directory,
    select reads without locking.
    """

    def __init__(
        self,
        config: Config | None = None,
        storage: TableStorage | None = None,
        committer: MutationCommitter | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Configuration (defaults to the global config).
            storage: Table storage adapter (defaults to FileTableStorage).
            committer: Mutation committer (defaults to AtomicFileCommitter).
            metrics: Metrics registry (defaults to the global registry).
        """
        self._config = config or get_config()
        storage_config = self._config.storage
        self._storage = storage or FileTableStorage(
            encoding=storage_config.encoding, fsync=storage_config.fsync
        )
        self._committer = committer or AtomicFileCommitter(
            encoding=storage_config.encoding, fsync=storage_config.fsync
        )
        self._metrics = metrics or get_metrics()
        self._encoding = storage_config.encoding

    @property
    def config(self) -> Config:
        return self._config

    def create(self, path: str | Path, columns: Sequence[str]) -> OperationResult:
        """Create a table.

        Raises:
            AlreadyExistsError: If the table file already has content.
            BadValueError: If the column list is empty or a name is invalid.
            LockTimeoutError: If the table lock cannot be acquired.
        """
        path = Path(path)
        with self._observe("create", path) as result:
            TableSchema.for_create(columns, self._encoding)
            with self._lock(path):
                schema = self._storage.create(path, columns)
            result.columns = list(schema.columns)
        return result

    def insert(self, path: str | Path, values: Mapping[str, str]) -> OperationResult:
        """Append one row in header column order.

        Columns missing from `values` are stored as empty strings.

        Raises:
            TableNotFoundError: If the table does not exist.
            UnknownColumnError: If `values` names a column not in the header.
            BadValueError: If a value contains a tab or line break.
            LockTimeoutError: If the table lock cannot be acquired.
        """
        path = Path(path)
        with self._observe("insert", path) as result:
            self._require_table(path)
            with self._lock(path):
                schema = self._storage.read_header(path)
                for name in values:
                    if name not in schema.columns:
                        raise UnknownColumnError(name)
                fields = [
                    validate_value(c, values.get(c, ""), self._encoding)
                    for c in schema.columns
                ]
                self._committer.append_row(path, encode_row(fields))
            result.columns = list(schema.columns)
            result.affected_rows = 1
        return result

    def select(
        self,
        path: str | Path,
        columns: str | Sequence[str] | None = "*",
        where: str | None = None,
    ) -> Iterator[list[str]]:
        """Query a table without locking it.

        The header and filter are resolved immediately, so unknown
        columns and bad filters raise here. Rows are read lazily as the
        returned iterator is consumed; each call re-reads the file.

        Args:
            path: Table file.
            columns: Column names, a comma separated string, or "*".
            where: Optional "col=value" or "col~regex" expression.

        Returns:
            Iterator yielding the projected header first, then each
            matching row projected to the same columns.

        Raises:
            TableNotFoundError: If the table does not exist.
            UnknownColumnError: If a projected or filtered column is unknown.
            BadFilterError: If `where` cannot be parsed.
        """
        path = Path(path)
        with self._observe("select", path) as result:
            schema = self._storage.read_header(path)
            indices = schema.resolve_projection(columns)
            condition = parse_filter(schema, where) if where else None
            header = [schema.columns[i - 1] for i in indices]
            result.columns = header

        scan = TableScanOperator(lambda: self._storage.iter_rows(path))
        pipeline = ProjectOperator(FilterOperator(scan, condition), indices)
        return self._stream(header, pipeline, scan)

    def update(self, path: str | Path, assignment: str, where: str) -> OperationResult:
        """Set one column on every row matching `where`.

        Args:
            path: Table file.
            assignment: "col=value"; the value may itself contain "=".
            where: Required filter expression.

        Raises:
            TableNotFoundError: If the table does not exist.
            UnknownColumnError: If the assigned or filtered column is unknown.
            BadValueError: If the assignment is malformed or the value
                contains a tab or line break.
            BadFilterError: If `where` is missing or cannot be parsed.
            LockTimeoutError: If the table lock cannot be acquired.
        """
        path = Path(path)
        with self._observe("update", path) as result:
            if "=" not in assignment:
                raise BadValueError(f"bad assignment {assignment!r} (use col=value)")
            if not where:
                raise BadFilterError("update needs a where expression")
            column, _, value = assignment.partition("=")
            validate_value(column, value, self._encoding)
            self._require_table(path)

            with self._lock(path):
                schema = self._storage.read_header(path)
                index = schema.index_of(column)
                condition = parse_filter(schema, where)
                result.affected_rows = self._rewrite(
                    "update", path, schema, condition, replace_field(index, value)
                )
            result.columns = list(schema.columns)
        return result

    def delete(self, path: str | Path, where: str) -> OperationResult:
        """Remove every row matching `where`.

        Raises:
            TableNotFoundError: If the table does not exist.
            UnknownColumnError: If the filtered column is unknown.
            BadFilterError: If `where` is missing or cannot be parsed.
            LockTimeoutError: If the table lock cannot be acquired.
        """
        path = Path(path)
        with self._observe("delete", path) as result:
            if not where:
                raise BadFilterError("delete needs a where expression")
            self._require_table(path)

            with self._lock(path):
                schema = self._storage.read_header(path)
                condition = parse_filter(schema, where)
                result.affected_rows = self._rewrite(
                    "delete", path, schema, condition, drop_row
                )
            result.columns = list(schema.columns)
        return result

    def _rewrite(
        self,
        operation: str,
        path: Path,
        schema: TableSchema,
        condition: Filter,
        transform: RowTransform,
    ) -> int:
        """Stream every row through a rewrite operator and commit the result.

        Returns:
            Number of rows the operator's filter matched.
        """
        scan = TableScanOperator(lambda: self._storage.iter_rows(path))
        rewrite = RewriteOperator(scan, condition, transform)
        lines = chain(
            [encode_header(schema.columns)],
            (encode_row(row) for row in rewrite),
        )
        self._committer.commit_rewrite(path, lines)
        self._metrics.rows_scanned_total.labels(operation=operation).inc(scan.rows_scanned)
        return rewrite.rows_matched

    def _stream(
        self, header: list[str], pipeline: Operator, scan: TableScanOperator
    ) -> Iterator[list[str]]:
        yield header
        yield from pipeline
        self._metrics.rows_scanned_total.labels(operation="select").inc(scan.rows_scanned)

    def _require_table(self, path: Path) -> None:
        if not self._storage.exists(path):
            raise TableNotFoundError(f"no such table: {path}")

    def _lock(self, path: Path) -> ContextManager[TableLock]:
        lock_config = self._config.lock
        return locked(
            path,
            retry_interval=lock_config.retry_interval_seconds,
            timeout=lock_config.timeout_seconds,
            metrics=self._metrics,
        )

    @contextmanager
    def _observe(self, operation: str, path: Path) -> Generator[OperationResult, None, None]:
        """Record logs, metrics and a trace span around one operation."""
        result = OperationResult(operation=operation, table=str(path))
        status = "error"
        start = time.perf_counter()
        try:
            with trace_span(
                f"flatdb.{operation}",
                {"flatdb.operation": operation, "flatdb.table": str(path)},
            ) as span:
                yield result
                span.set_attribute("flatdb.affected_rows", result.affected_rows)
            status = "success"
        except FlatDBError as e:
            logger.info(
                "operation_failed",
                operation=operation,
                table=str(path),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise
        finally:
            elapsed = time.perf_counter() - start
            self._metrics.operations_total.labels(operation=operation, status=status).inc()
            self._metrics.operation_latency_seconds.labels(operation=operation).observe(elapsed)

        if result.affected_rows:
            self._metrics.rows_affected_total.labels(operation=operation).inc(
                result.affected_rows
            )
        logger.info(
            "operation_completed",
            operation=operation,
            table=str(path),
            affected_rows=result.affected_rows,
            elapsed=elapsed,
        )
