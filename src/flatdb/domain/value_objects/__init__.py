"""Value objects for the table engine domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Table Format:
        - TableSchema: Ordered column names with name -> index resolution
        - ColumnIndex: 1-based column position
        - DELIMITER, HEADER_PREFIX, LINE_TERMINATOR: File format constants
        - encode_header, decode_header, encode_row, decode_row: Line codecs

    Predicates:
        - Equals, Matches: Parsed WHERE conditions
        - parse_filter: Parse a WHERE expression
        - evaluate: Evaluate a condition against a row
"""

from flatdb.domain.value_objects.predicate import (
    Equals,
    Filter,
    Matches,
    evaluate,
    parse_filter,
)
from flatdb.domain.value_objects.table_format import (
    ALL_COLUMNS,
    DELIMITER,
    HEADER_PREFIX,
    LINE_TERMINATOR,
    ColumnIndex,
    TableSchema,
    decode_header,
    decode_row,
    encode_header,
    encode_row,
    field_at,
    validate_value,
)

__all__ = [
    # Table format
    "TableSchema",
    "ColumnIndex",
    "ALL_COLUMNS",
    "DELIMITER",
    "HEADER_PREFIX",
    "LINE_TERMINATOR",
    "encode_header",
    "decode_header",
    "encode_row",
    "decode_row",
    "field_at",
    "validate_value",
    # Predicates
    "Equals",
    "Matches",
    "Filter",
    "parse_filter",
    "evaluate",
]
