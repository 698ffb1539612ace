"""
Cell value typing for raw source rows.

Rows arrive as plain dictionaries from the ingestion layer. This module gives
those values an explicit kind so grouping and aggregation can treat them
deliberately instead of relying on implicit coercion.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union

CellValue = Union[str, int, float, bool, date, datetime, Decimal, None]
Row = Dict[str, CellValue]


class ValueKind(str, Enum):
    """Tag for a cell value"""
    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """Classify a raw cell value"""
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, (date, datetime)):
        return ValueKind.DATE
    if isinstance(value, str):
        return ValueKind.STRING
    return ValueKind.OTHER


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a cell value to a float.

    Returns None when the value has no numeric reading (e.g. "n/a", a date,
    NaN). Numeric strings such as "12.5" are accepted. Booleans map to 1/0.
    """
    kind = kind_of(value)
    if kind == ValueKind.NUMBER:
        number = float(value)
    elif kind == ValueKind.BOOLEAN:
        number = 1.0 if value else 0.0
    elif kind == ValueKind.STRING:
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(Decimal(text))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_text(value: Any) -> str:
    """String form used by case-insensitive matching"""
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def to_date_string(value: Any) -> Optional[str]:
    """ISO string form of a date-like cell, for lexical range comparison"""
    kind = kind_of(value)
    if kind == ValueKind.DATE:
        return value.isoformat()
    if kind == ValueKind.STRING:
        return value
    return None


def normalize_number(value: float) -> Union[int, float]:
    """Render whole floats as ints so 250.0 reads back as 250"""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
