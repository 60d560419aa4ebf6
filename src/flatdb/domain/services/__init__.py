"""Domain services for table operations.

Services implement logic that doesn't naturally fit within a single
value object: cross-process locking and the row pipeline.
"""

from flatdb.domain.services.lock_manager import (
    LOCK_SUFFIX,
    TableLock,
    lock_path_for,
    locked,
)
from flatdb.domain.services.row_pipeline import (
    FilterOperator,
    Operator,
    ProjectOperator,
    RewriteOperator,
    Row,
    RowTransform,
    TableScanOperator,
    drop_row,
    project,
    replace_field,
)

__all__ = [
    "LOCK_SUFFIX",
    "TableLock",
    "lock_path_for",
    "locked",
    "Operator",
    "Row",
    "RowTransform",
    "TableScanOperator",
    "FilterOperator",
    "ProjectOperator",
    "RewriteOperator",
    "project",
    "replace_field",
    "drop_row",
]
