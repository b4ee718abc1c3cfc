"""Filter parsing, substring search, and sorting for list endpoints.

Everything here turns partially-trusted query-string text into SQLAlchemy
expressions. Column names are only ever resolved through a
``ColumnSafelist``; values are always bound parameters.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Optional, Sequence

from sqlalchemy import BigInteger, SmallInteger, String, cast, false, or_
from sqlalchemy.sql.elements import ColumnElement

from mawaqit.common.constants import (
    FILTER_KEY_VALUE_SEPARATOR,
    FILTER_PAIR_SEPARATOR,
    INT64_MAX,
    INT64_MIN,
    SEARCH_FIELDS_SEPARATOR,
)
from mawaqit.common.safelist import ColumnSafelist

LIKE_ESCAPE = "\\"

_TRUE_STRINGS = frozenset({"true", "t", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "f", "0", "no"})


# ── Filter DSL ──────────────────────────────────────────────────────

class FilterOperator(str, enum.Enum):
    equals = "eq"


@dataclass(frozen=True)
class FilterPredicate:
    """One ``field:value`` pair that survived safelist resolution."""

    field: str
    column: Any
    value: str
    operator: FilterOperator = FilterOperator.equals

    def to_clause(self) -> ColumnElement:
        """Render as a bound equality; uncoercible values can never match."""
        try:
            coerced = coerce_value(self.column, self.value)
        except (ValueError, TypeError, ArithmeticError):
            return false()
        return self.column == coerced


def parse_filters(
    raw: Optional[str],
    safelist: ColumnSafelist,
) -> list[FilterPredicate]:
    """
    Parse ``"field1:value1,field2:value2"`` into equality predicates.

    * Pairs are split on ``,``; each pair on its first ``:``.
    * Field names are trimmed; values are kept verbatim and may be empty.
    * Pairs without a colon, or naming a column outside *safelist*, are dropped.
    * A repeated field keeps its last value.

    Values containing ``,`` cannot be expressed in this grammar.
    """
    if not raw:
        return []

    by_field: dict[str, FilterPredicate] = {}
    for pair in raw.split(FILTER_PAIR_SEPARATOR):
        field, sep, value = pair.partition(FILTER_KEY_VALUE_SEPARATOR)
        if not sep:
            continue
        field = field.strip()
        column = safelist.resolve(field)
        if column is None:
            continue
        by_field.pop(field, None)
        by_field[field] = FilterPredicate(field=field, column=column, value=value)

    return list(by_field.values())


def coerce_value(column: Any, raw: str) -> Any:
    """Convert *raw* to the Python type bound to *column*.

    Raises ``ValueError`` (or ``TypeError`` / ``ArithmeticError`` from the
    target constructor) when the text is not a valid literal for the column.
    """
    try:
        python_type = column.type.python_type
    except (AttributeError, NotImplementedError):
        return raw

    if python_type is str:
        return raw
    if python_type is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Not a boolean: {raw!r}")
    if issubclass(python_type, (date, time)):
        return python_type.fromisoformat(raw.strip())
    if python_type is uuid.UUID:
        return uuid.UUID(raw.strip())
    if python_type is int:
        value = int(raw.strip())
        low, high = _integer_bounds(column.type)
        if not low <= value <= high:
            raise ValueError(f"Integer out of range: {raw!r}")
        return value
    return python_type(raw.strip())


def _integer_bounds(sql_type: Any) -> tuple[int, int]:
    """Storage range of an integer column; values outside it can never match."""
    if isinstance(sql_type, SmallInteger):
        return -(2 ** 15), 2 ** 15 - 1
    if isinstance(sql_type, BigInteger):
        return INT64_MIN, INT64_MAX
    return -(2 ** 31), 2 ** 31 - 1


# ── Substring search ────────────────────────────────────────────────

def escape_like(term: str) -> str:
    """Escape LIKE wildcards so *term* matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_ci(column: Any, term: str) -> ColumnElement:
    """Case-insensitive literal substring match of *term* in *column*."""
    pattern = f"%{escape_like(term)}%"
    return cast(column, String).ilike(pattern, escape=LIKE_ESCAPE)


@dataclass(frozen=True)
class SearchClause:
    term: str
    fields: tuple[str, ...]
    columns: tuple[Any, ...]

    def to_clause(self) -> ColumnElement:
        return or_(*(contains_ci(col, self.term) for col in self.columns))


def expand_search(
    term: Optional[str],
    search_fields: Optional[str],
    safelist: ColumnSafelist,
    default_fields: Sequence[str] = (),
) -> Optional[SearchClause]:
    """
    Build the OR-group for ``search`` / ``searchFields``.

    The effective columns are ``searchFields`` ∩ *safelist* when that is
    non-empty, otherwise *default_fields* (or the whole safelist when no
    defaults are given). The term is matched verbatim, surrounding spaces
    included; an all-whitespace term yields ``None``.
    """
    if not term or not term.strip():
        return None

    picked: list = []
    if search_fields:
        picked = safelist.pick(search_fields.split(SEARCH_FIELDS_SEPARATOR))
    if not picked:
        picked = safelist.pick(default_fields or list(safelist))
    if not picked:
        return None

    return SearchClause(
        term=term,
        fields=tuple(name for name, _ in picked),
        columns=tuple(col for _, col in picked),
    )


# ── Sorting ─────────────────────────────────────────────────────────

def parse_sort(sort: Optional[str], safelist: ColumnSafelist) -> list[ColumnElement]:
    """
    Parse a sort string like ``"-month,day"`` into ORDER BY expressions.

    * Leading ``-`` → DESC; otherwise ASC.
    * Names outside *safelist* are ignored.
    """
    if not sort:
        return []

    order: list[ColumnElement] = []
    for part in sort.split(","):
        part = part.strip()
        descending = part.startswith("-")
        col = safelist.resolve(part.lstrip("-"))
        if col is not None:
            order.append(col.desc() if descending else col.asc())
    return order

