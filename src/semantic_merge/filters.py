"""
Row filtering applied to each source before grouping.

Unknown operators fail open: the row is kept and a warning is recorded.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import DataSource, DateRange, FilterOperator, QueryFilter, WarningCode
from .packager import WarningCollector
from .values import Row, to_date_string, to_number, to_text


def _eq(value: Any, target: Any) -> bool:
    return value == target


def _ne(value: Any, target: Any) -> bool:
    return value != target


def _gt(value: Any, target: Any) -> bool:
    left, right = to_number(value), to_number(target)
    return left is not None and right is not None and left > right


def _lt(value: Any, target: Any) -> bool:
    left, right = to_number(value), to_number(target)
    return left is not None and right is not None and left < right


def _contains(value: Any, target: Any) -> bool:
    return to_text(target).lower() in to_text(value).lower()


def _in(value: Any, target: Any) -> bool:
    return isinstance(target, (list, tuple, set, frozenset)) and value in target


OPERATORS: Dict[FilterOperator, Callable[[Any, Any], bool]] = {
    FilterOperator.EQ: _eq,
    FilterOperator.NE: _ne,
    FilterOperator.GT: _gt,
    FilterOperator.LT: _lt,
    FilterOperator.CONTAINS: _contains,
    FilterOperator.IN: _in,
}


def resolve_operator(operator: str) -> Optional[Callable[[Any, Any], bool]]:
    try:
        return OPERATORS[FilterOperator(operator)]
    except ValueError:
        return None


def filter_rows(
    source: DataSource,
    rows: Sequence[Row],
    filters: Sequence[QueryFilter],
    warnings: WarningCollector,
) -> List[Row]:
    """Keep rows that satisfy every filter"""
    if not filters:
        return list(rows)

    predicates = []
    for flt in filters:
        op = resolve_operator(flt.operator)
        if op is None:
            warnings.add(
                WarningCode.UNSUPPORTED_FILTER_OPERATOR,
                f"Unsupported filter operator '{flt.operator}' on '{flt.column}'; filter ignored",
                column=flt.column,
            )
            continue
        if not source.has_column(flt.column) and not any(flt.column in row for row in rows[:1]):
            warnings.add(
                WarningCode.UNRECOGNIZED_COLUMN,
                f"Filter column '{flt.column}' not found in source '{source.id}'",
                source_id=source.id,
                column=flt.column,
            )
        predicates.append((flt, op))

    return [
        row for row in rows
        if all(op(row.get(flt.column), flt.value) for flt, op in predicates)
    ]


def _range_key(value: Any, date_only: bool) -> Optional[str]:
    text = to_date_string(value)
    # Timestamps compare by their day against plain-date bounds
    if text is not None and date_only and len(text) > 10 and text[10] in "T ":
        return text[:10]
    return text


def filter_date_range(rows: Sequence[Row], date_range: DateRange, date_field: str = "date") -> List[Row]:
    """Inclusive lexical comparison on the ISO date field"""
    date_only = date_range.is_date_only
    return [row for row in rows if date_range.contains(_range_key(row.get(date_field), date_only))]
