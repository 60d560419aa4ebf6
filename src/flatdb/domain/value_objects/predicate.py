"""WHERE expression parsing and evaluation.

A filter is a condition over exactly one column, in one of two forms:

    col=value    exact string equality (Equals)
    col~regex    unanchored regular expression search (Matches)

The first "~" anywhere in the expression selects the regex form; otherwise
the first "=" selects equality. Everything before the operator is the
column name, everything after it is the operand, so operands may
themselves contain "=" or "~".

Filters are plain data evaluated by evaluate(); the operand is never
embedded into generated code, so quotes and backslashes in a literal are
compared as-is and a pattern only ever reaches re.compile().
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence, Union

from flatdb.domain.errors import BadFilterError
from flatdb.domain.value_objects.table_format import ColumnIndex, TableSchema, field_at


REGEX_OPERATOR = "~"
EQUALS_OPERATOR = "="

# POSIX bracket classes and the ASCII ranges they stand for inside a set
POSIX_CLASSES = {
    "alpha": "a-zA-Z",
    "digit": "0-9",
    "alnum": "a-zA-Z0-9",
    "upper": "A-Z",
    "lower": "a-z",
    "space": r" \t\n\r\f\v",
    "blank": r" \t",
    "punct": r"!-/:-@\[-`{-~",
    "xdigit": "0-9A-Fa-f",
    "cntrl": r"\x00-\x1f\x7f",
    "print": r"\x20-\x7e",
    "graph": r"\x21-\x7e",
}


@dataclass(frozen=True, slots=True)
class Equals:
    """Field at `index` equals `literal` exactly."""

    index: ColumnIndex
    literal: str


@dataclass(frozen=True, slots=True)
class Matches:
    """Field at `index` contains a match for `pattern`."""

    index: ColumnIndex
    pattern: re.Pattern[str]


Filter = Union[Equals, Matches]


def parse_filter(schema: TableSchema, expression: str) -> Filter:
    """Parse a WHERE expression against a table schema.

    Args:
        schema: Header the column name is resolved against.
        expression: "col=value" or "col~regex". A pattern wrapped in
            slashes ("/^S/") has the slashes removed.

    Returns:
        The parsed filter holding the resolved 1-based column index.

    Raises:
        BadFilterError: If the expression has neither operator or the
            pattern does not compile.
        UnknownColumnError: If the column is not in the header.
    """
    if REGEX_OPERATOR in expression:
        column, _, pattern = expression.partition(REGEX_OPERATOR)
        index = schema.index_of(column)
        return Matches(index=index, pattern=compile_pattern(pattern))

    if EQUALS_OPERATOR in expression:
        column, _, literal = expression.partition(EQUALS_OPERATOR)
        return Equals(index=schema.index_of(column), literal=literal)

    raise BadFilterError(f"bad WHERE {expression!r} (use col=value or col~REGEX)")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a filter pattern, accepting the /regex/ literal form.

    POSIX bracket classes such as `[[:upper:]]` are translated first.

    Raises:
        BadFilterError: If the pattern does not compile or names an
            unknown bracket class.
    """
    if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
        pattern = pattern[1:-1]
    try:
        return re.compile(translate_posix_classes(pattern))
    except re.error as e:
        raise BadFilterError(f"bad regex {pattern!r}: {e}") from e


def evaluate(condition: Filter | None, row: Sequence[str]) -> bool:
    """Evaluate a filter against a data row. No filter matches every row."""
    if condition is None:
        return True
    value = field_at(row, condition.index)
    if isinstance(condition, Equals):
        return value == condition.literal
    return condition.pattern.search(value) is not None


def translate_posix_classes(pattern: str) -> str:
    """Rewrite `[:name:]` inside bracket expressions into explicit ranges.

    A literal "[" inside a set is escaped so that re does not read it as
    the start of a nested set.

    Example:
        >>> translate_posix_classes("^[[:upper:]][^[:digit:]]")
        '^[A-Z][^0-9]'

    Raises:
        BadFilterError: If a bracket class name is unknown.
    """
    out: list[str] = []
    i = 0
    in_set = False
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            out.append(pattern[i : i + 2])
            i += 2
            continue

        if not in_set:
            out.append(char)
            i += 1
            if char == "[":
                in_set = True
                if pattern.startswith("^", i):
                    out.append("^")
                    i += 1
                # A leading "]" is a member, not the end of the set
                if pattern.startswith("]", i):
                    out.append("\\]")
                    i += 1
            continue

        if pattern.startswith("[:", i):
            end = pattern.find(":]", i + 2)
            if end != -1:
                name = pattern[i + 2 : end]
                if name not in POSIX_CLASSES:
                    raise BadFilterError(f"unknown character class [:{name}:]")
                out.append(POSIX_CLASSES[name])
                i = end + 2
                continue

        if char == "[":
            out.append("\\[")
        else:
            out.append(char)
            if char == "]":
                in_set = False
        i += 1
    return "".join(out)
