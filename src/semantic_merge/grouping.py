"""
Composite grouping keys.

A key is the ordered tuple of a row's grouping values, each tagged with its
kind. Keys compare by tuple, so "a|b" + "c" never equals "a" + "b|c", and the
number 1 never equals the string "1".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from .values import ValueKind, kind_of, to_text


def _hashable(value: Any) -> Any:
    if isinstance(value, (list, set, frozenset)):
        return tuple(_hashable(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((str(k), _hashable(v)) for k, v in value.items()))
    return value


@dataclass(frozen=True)
class GroupKey:
    """Ordered, type-tagged dimension values identifying one output row"""
    parts: Tuple[Tuple[ValueKind, Any], ...]

    @classmethod
    def from_values(cls, values: Sequence[Any]) -> "GroupKey":
        parts = []
        for value in values:
            kind = kind_of(value)
            # ints and floats group together (3 == 3.0); other kinds stay apart
            parts.append((kind, _hashable(value)))
        return cls(tuple(parts))

    @property
    def values(self) -> Tuple[Any, ...]:
        return tuple(value for _, value in self.parts)

    def encode(self) -> str:
        """
        Stable string form: <kind>:<length>:<text> per part.

        Length-prefixing makes the encoding unambiguous whatever characters
        the values contain.
        """
        fields = []
        for kind, value in self.parts:
            text = "" if kind == ValueKind.NULL else to_text(value)
            fields.append(f"{kind.value}:{len(text)}:{text}")
        return "".join(fields)

    def __str__(self) -> str:
        return self.encode()
