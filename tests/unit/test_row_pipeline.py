"""Unit tests for the Volcano row pipeline."""

from __future__ import annotations

import pytest

from flatdb.domain.services import (
    FilterOperator,
    ProjectOperator,
    RewriteOperator,
    TableScanOperator,
    drop_row,
    project,
    replace_field,
)
from flatdb.domain.value_objects import ColumnIndex, TableSchema, parse_filter


ROWS = [
    ["1", "Bo", "bo@test.com", "41"],
    ["2", "Spencer", "sp@test.com", "12"],
    ["3", "Sam", "sam@test.com", "12"],
]


@pytest.fixture
def schema() -> TableSchema:
    """Create a users schema for testing."""
    return TableSchema(("id", "name", "email", "age"))


@pytest.fixture
def scan() -> TableScanOperator:
    """Create a scan over copies of the sample rows."""
    return TableScanOperator(lambda: iter([list(r) for r in ROWS]))


@pytest.mark.unit
class TestTableScanOperator:
    """Tests for TableScanOperator."""

    def test_scan_all(self, scan: TableScanOperator) -> None:
        """Scan yields every row in order."""
        assert list(scan) == ROWS
        assert scan.rows_scanned == 3

    def test_rescan_reopens_source(self, scan: TableScanOperator) -> None:
        """Iterating twice reads the source twice."""
        assert list(scan) == list(scan)
        assert scan.rows_scanned == 3

    def test_next_before_open(self, scan: TableScanOperator) -> None:
        """An unopened scan is exhausted."""
        assert scan.next() is None


@pytest.mark.unit
class TestFilterAndProject:
    """Tests for FilterOperator and ProjectOperator."""

    def test_filter(self, scan: TableScanOperator, schema: TableSchema) -> None:
        """Only matching rows pass."""
        op = FilterOperator(scan, parse_filter(schema, "age=12"))
        assert [r[0] for r in op] == ["2", "3"]

    def test_filter_none_passes_all(self, scan: TableScanOperator) -> None:
        """Without a condition every row passes."""
        assert len(list(FilterOperator(scan, None))) == 3

    def test_project(self, scan: TableScanOperator) -> None:
        """Projection reorders and repeats columns."""
        op = ProjectOperator(scan, [ColumnIndex(2), ColumnIndex(1), ColumnIndex(2)])
        assert list(op)[0] == ["Bo", "1", "Bo"]

    def test_select_chain(self, scan: TableScanOperator, schema: TableSchema) -> None:
        """Scan, filter and project compose."""
        op = ProjectOperator(
            FilterOperator(scan, parse_filter(schema, "name~/^S/")),
            schema.resolve_projection("email"),
        )
        assert list(op) == [["sp@test.com"], ["sam@test.com"]]

    def test_project_short_row(self) -> None:
        """Missing fields project as empty strings."""
        assert project(["1"], [ColumnIndex(1), ColumnIndex(3)]) == ["1", ""]


@pytest.mark.unit
class TestRewriteOperator:
    """Tests for RewriteOperator with the update and delete transforms."""

    def test_update_matching_rows_only(
        self, scan: TableScanOperator, schema: TableSchema
    ) -> None:
        """Matching rows get the new value, others pass unchanged."""
        op = RewriteOperator(
            scan, parse_filter(schema, "age=12"), replace_field(ColumnIndex(4), "13")
        )
        rows = list(op)

        assert rows == [ROWS[0], ["2", "Spencer", "sp@test.com", "13"], ["3", "Sam", "sam@test.com", "13"]]
        assert op.rows_matched == 2

    def test_delete_matching_rows(
        self, scan: TableScanOperator, schema: TableSchema
    ) -> None:
        """Dropped rows vanish and order is preserved."""
        op = RewriteOperator(scan, parse_filter(schema, "name~^S"), drop_row)

        assert list(op) == [ROWS[0]]
        assert op.rows_matched == 2

    def test_no_match(self, scan: TableScanOperator, schema: TableSchema) -> None:
        """A filter matching nothing leaves every row as is."""
        op = RewriteOperator(scan, parse_filter(schema, "id=9"), drop_row)

        assert list(op) == ROWS
        assert op.rows_matched == 0

    def test_replace_field_pads_short_rows(self) -> None:
        """Setting a field past the end of a row extends it."""
        transform = replace_field(ColumnIndex(4), "x")
        assert transform(["1"]) == ["1", "", "", "x"]

    def test_replace_field_copies(self) -> None:
        """The input row is not modified."""
        row = ["1", "Bo"]
        replace_field(ColumnIndex(2), "Robert")(row)
        assert row == ["1", "Bo"]
