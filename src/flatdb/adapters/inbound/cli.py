"""Command line adapter for flatdb.

Usage:
    flatdb create  table.tsv col1 col2 ...
    flatdb insert  table.tsv col1=val1 col2=val2 ...
    flatdb select  table.tsv [--cols=colA,colB|*] [--where='col=value'|--where='col~/regex/']
    flatdb update  table.tsv --set=col=value --where='col=value|col~/regex/'
    flatdb delete  table.tsv --where='col=value|col~/regex/'
    flatdb serve   [--host HOST] [--port PORT]

select prints tab separated lines, header first. Errors are reported on
stderr and the process exits with the error's status code; argument
errors exit with 2.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from contextlib import contextmanager
from typing import Generator, Sequence, TextIO

from flatdb import __version__
from flatdb.application import TableEngine
from flatdb.domain.errors import BadValueError, FlatDBError
from flatdb.domain.value_objects import ALL_COLUMNS, DELIMITER
from flatdb.infrastructure.config import Config, get_config
from flatdb.infrastructure.logging import setup_logging
from flatdb.infrastructure.tracing import setup_tracing
from flatdb.ports.inbound import TableOperations


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="flatdb",
        description="Flat-file tabular data store (one TSV file per table)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="create a table")
    create.add_argument("table", help="table file")
    create.add_argument("columns", nargs="+", help="column names, in order")

    insert = sub.add_parser("insert", help="append a row")
    insert.add_argument("table", help="table file")
    insert.add_argument("pairs", nargs="*", metavar="col=value", help="column values")

    select = sub.add_parser("select", help="query rows")
    select.add_argument("table", help="table file")
    select.add_argument("--cols", default=ALL_COLUMNS, help="comma separated columns or *")
    select.add_argument("--where", default=None, help="col=value or col~REGEX")

    update = sub.add_parser("update", help="set a column on matching rows")
    update.add_argument("table", help="table file")
    update.add_argument("--set", dest="assignment", required=True, help="col=value")
    update.add_argument("--where", required=True, help="col=value or col~REGEX")

    delete = sub.add_parser("delete", help="remove matching rows")
    delete.add_argument("table", help="table file")
    delete.add_argument("--where", required=True, help="col=value or col~REGEX")

    serve = sub.add_parser("serve", help="serve tables over HTTP")
    serve.add_argument("--host", default=None, help="bind address")
    serve.add_argument("--port", type=int, default=None, help="bind port")

    return parser


def parse_pairs(pairs: Sequence[str]) -> dict[str, str]:
    """Turn col=value arguments into a mapping; later pairs win.

    Raises:
        BadValueError: If an argument has no "=".
    """
    values: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise BadValueError(f"bad pair: {pair} (use col=value)")
        key, _, value = pair.partition("=")
        values[key] = value
    return values


def run(
    args: argparse.Namespace,
    engine: TableOperations,
    out: TextIO,
) -> None:
    """Execute one parsed table command against the engine."""
    if args.command == "create":
        engine.create(args.table, args.columns)
    elif args.command == "insert":
        engine.insert(args.table, parse_pairs(args.pairs))
    elif args.command == "select":
        for row in engine.select(args.table, args.cols, where=args.where or None):
            out.write(DELIMITER.join(row) + "\n")
        out.flush()
    elif args.command == "update":
        engine.update(args.table, args.assignment, where=args.where)
    elif args.command == "delete":
        engine.delete(args.table, where=args.where)


def _serve(engine: TableEngine, args: argparse.Namespace) -> None:
    from flatdb.adapters.inbound.rest_api import run_server
    from flatdb.infrastructure.metrics import setup_metrics

    config = engine.config
    config.ensure_directories()
    if config.server.metrics_enabled:
        setup_metrics(config.server.metrics_port)
    run_server(
        engine,
        host=args.host or config.server.host,
        port=args.port or config.server.port,
    )


@contextmanager
def terminate_as_exit() -> Generator[None, None, None]:
    """Turn SIGTERM into SystemExit so lock release and cleanup still run.

    Signal handlers can only be installed from the main thread; elsewhere
    this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        raise SystemExit(128 + signum)

    previous = signal.signal(signal.SIGTERM, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def main(
    argv: Sequence[str] | None = None,
    config: Config | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """CLI entry point.

    Returns:
        Process exit status: 0 on success, the error's exit_code otherwise.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    args = build_parser().parse_args(argv)

    config = config or get_config()
    observability = config.observability
    setup_logging(observability.log_level, observability.log_format, stream=err)
    if observability.otel_endpoint:
        setup_tracing(observability.otel_service_name, observability.otel_endpoint)

    engine = TableEngine(config=config)
    try:
        with terminate_as_exit():
            if args.command == "serve":
                _serve(engine, args)
            else:
                run(args, engine, out)
    except FlatDBError as e:
        err.write(f"flatdb: {e}\n")
        return e.exit_code
    return 0
