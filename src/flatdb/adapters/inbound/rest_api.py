"""REST API adapter for flatdb.

This module provides a FastAPI-based REST API over the table engine.
Tables are files named ``<data_dir>/<name><table_suffix>``.

Endpoints:
    GET    /health                  - Health check
    POST   /tables/{name}           - Create a table
    POST   /tables/{name}/rows      - Insert a row
    GET    /tables/{name}/rows      - Select rows (?cols=a,b&where=expr)
    PATCH  /tables/{name}/rows      - Update matching rows
    DELETE /tables/{name}/rows      - Delete matching rows (?where=expr)

Usage:
    from flatdb.adapters.inbound.rest_api import create_app
    from flatdb.application import TableEngine

    app = create_app(TableEngine(), "data")
    # Run with uvicorn: uvicorn app:app --host 127.0.0.1 --port 8000

References:
    - FastAPI documentation: https://fastapi.tiangolo.com/
"""

from __future__ import annotations

import re
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from flatdb import __version__
from flatdb.application import TableEngine
from flatdb.domain.errors import (
    AlreadyExistsError,
    BadFilterError,
    BadValueError,
    FlatDBError,
    IOFailureError,
    LockTimeoutError,
    TableNotFoundError,
    UnknownColumnError,
)
from flatdb.domain.value_objects import ALL_COLUMNS
from flatdb.ports.inbound import OperationResult, TableOperations


TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")

ERROR_STATUS: dict[type[FlatDBError], int] = {
    TableNotFoundError: 404,
    AlreadyExistsError: 409,
    UnknownColumnError: 400,
    BadFilterError: 400,
    BadValueError: 400,
    LockTimeoutError: 503,
    IOFailureError: 500,
}


class CreateTableRequest(BaseModel):
    """Request model for table creation."""

    columns: list[str] = Field(..., min_length=1, description="Ordered column names")


class InsertRequest(BaseModel):
    """Request model for inserting a row."""

    values: dict[str, str] = Field(
        default_factory=dict, description="Column values; unlisted columns are empty"
    )


class UpdateRequest(BaseModel):
    """Request model for updating rows."""

    model_config = ConfigDict(populate_by_name=True)

    assignment: str = Field(..., alias="set", description="col=value")
    where: str = Field(..., min_length=1, description="col=value or col~REGEX")


class OperationResponse(BaseModel):
    """Response model for mutating operations."""

    success: bool = Field(True, description="Whether the operation succeeded")
    message: str = Field("", description="Status message")
    affected_rows: int = Field(0, description="Number of affected rows")
    columns: list[str] = Field(default_factory=list, description="Table columns")


class RowsResponse(BaseModel):
    """Response model for select."""

    columns: list[str] = Field(..., description="Projected column names")
    rows: list[list[str]] = Field(default_factory=list, description="Projected rows")


class ErrorResponse(BaseModel):
    """Response model for failed operations."""

    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")


def _to_response(result: OperationResult) -> OperationResponse:
    return OperationResponse(
        message=result.message,
        affected_rows=result.affected_rows,
        columns=result.columns,
    )


def create_app(
    engine: TableOperations,
    data_dir: str | Path,
    table_suffix: str = ".tsv",
) -> FastAPI:
    """Create a FastAPI application for a table engine.

    Args:
        engine: The table operations to serve.
        data_dir: Directory holding the tables.
        table_suffix: File suffix appended to table names.

    Returns:
        A configured FastAPI application.
    """
    base_dir = Path(data_dir)

    app = FastAPI(
        title="flatdb API",
        description="REST API for flat-file tables",
        version=__version__,
    )

    def table_path(name: str) -> Path:
        if not TABLE_NAME_PATTERN.match(name):
            raise HTTPException(status_code=400, detail=f"invalid table name: {name}")
        return base_dir / f"{name}{table_suffix}"

    @app.exception_handler(FlatDBError)
    async def handle_table_error(request: Request, exc: FlatDBError) -> JSONResponse:
        status = ERROR_STATUS.get(type(exc), 500)
        body = ErrorResponse(error=type(exc).__name__, message=str(exc))
        return JSONResponse(status_code=status, content=body.model_dump())

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy" if base_dir.is_dir() else "unhealthy",
            version=__version__,
        )

    @app.post(
        "/tables/{name}",
        response_model=OperationResponse,
        status_code=201,
        tags=["Tables"],
    )
    def create_table(name: str, request: CreateTableRequest) -> OperationResponse:
        """Create a table."""
        return _to_response(engine.create(table_path(name), request.columns))

    @app.post(
        "/tables/{name}/rows",
        response_model=OperationResponse,
        status_code=201,
        tags=["Rows"],
    )
    def insert_row(name: str, request: InsertRequest) -> OperationResponse:
        """Append one row."""
        return _to_response(engine.insert(table_path(name), request.values))

    @app.get("/tables/{name}/rows", response_model=RowsResponse, tags=["Rows"])
    def select_rows(
        name: str,
        cols: str = Query(ALL_COLUMNS, description="Comma separated columns or *"),
        where: str | None = Query(None, description="col=value or col~REGEX"),
    ) -> RowsResponse:
        """Select rows, header first."""
        rows = engine.select(table_path(name), cols, where=where or None)
        header = next(rows)
        return RowsResponse(columns=header, rows=list(rows))

    @app.patch("/tables/{name}/rows", response_model=OperationResponse, tags=["Rows"])
    def update_rows(name: str, request: UpdateRequest) -> OperationResponse:
        """Set one column on matching rows."""
        return _to_response(
            engine.update(table_path(name), request.assignment, where=request.where)
        )

    @app.delete("/tables/{name}/rows", response_model=OperationResponse, tags=["Rows"])
    def delete_rows(
        name: str,
        where: str = Query(..., min_length=1, description="col=value or col~REGEX"),
    ) -> OperationResponse:
        """Delete matching rows."""
        return _to_response(engine.delete(table_path(name), where=where))

    return app


def run_server(
    engine: TableEngine,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Run the REST API server.

    Args:
        engine: The table engine.
        host: Host to bind to.
        port: Port to bind to.
    """
    import uvicorn

    storage_config = engine.config.storage
    app = create_app(engine, storage_config.data_dir, storage_config.table_suffix)
    uvicorn.run(app, host=host, port=port)
