"""Inbound adapters for flatdb.

Inbound adapters handle incoming requests and convert them to
table engine operations.

Exports:
    CLI:
        - main: Command line entry point
        - build_parser: Argument parser for all subcommands
    REST API:
        - create_app: Create a FastAPI application
        - run_server: Run the REST API server
"""

from flatdb.adapters.inbound.cli import build_parser, main
from flatdb.adapters.inbound.rest_api import create_app, run_server

__all__ = [
    "main",
    "build_parser",
    "create_app",
    "run_server",
]
