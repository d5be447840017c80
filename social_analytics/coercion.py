"""Lenient cell coercion for exported analytics tables.

Exports write numbers as "1234", "12,5", "37.2%" or leave the cell blank.
Nothing here raises: an unusable value becomes zero. The ``coerce_*``
functions also report whether that substitution happened, and ``RowReader``
tallies those substitutions per import.
"""

import math
import numbers
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, NamedTuple

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class Coerced(NamedTuple):
    value: Any
    defaulted: bool


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def coerce_number(value: Any) -> Coerced:
    """Parse a number, accepting a comma as decimal separator.

    Only the leading numeric part of a string is read, so "37,5%" gives 37.5.
    """
    if isinstance(value, bool):
        return Coerced(0.0, True)
    if isinstance(value, numbers.Real):
        number = float(value)
        if not math.isfinite(number):
            return Coerced(0.0, True)
        return Coerced(value if isinstance(value, int) else number, False)
    if is_blank(value):
        return Coerced(0.0, True)
    text = str(value).strip().replace(",", ".", 1)
    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return Coerced(0.0, True)
    return Coerced(float(match.group(0)), False)


def coerce_int(value: Any) -> Coerced:
    """Parse a number and truncate it toward zero."""
    number, defaulted = coerce_number(value)
    return Coerced(int(number), defaulted)


def coerce_duration(value: Any) -> Coerced:
    """Parse an "H:MM:SS" duration into seconds.

    Anything that is not exactly three colon-separated integers, including
    the two-part "MM:SS" form, gives 0.
    """
    if is_blank(value):
        return Coerced(0, True)
    parts = str(value).strip().split(":")
    if len(parts) != 3:
        return Coerced(0, True)
    try:
        hours, minutes, seconds = (int(part.strip()) for part in parts)
    except ValueError:
        return Coerced(0, True)
    return Coerced(hours * 3600 + minutes * 60 + seconds, False)


def parse_number(value: Any) -> float:
    return coerce_number(value).value


def parse_int(value: Any) -> int:
    return coerce_int(value).value


def parse_duration(value: Any) -> int:
    return coerce_duration(value).value


def first_present(row: Mapping[str, Any], candidates: Iterable[str]) -> Any:
    """Return the value of the first candidate column holding a non-blank value."""
    for key in candidates:
        value = row.get(key)
        if not is_blank(value):
            return value
    return None


@dataclass
class CoercionTally:
    """Counts numeric fields that fell back to zero during one import."""

    defaulted: int = 0

    def take(self, coerced: Coerced) -> Any:
        if coerced.defaulted:
            self.defaulted += 1
        return coerced.value


class RowReader:
    """Typed lookups over one raw row, each taking alternative header spellings.

    A numeric lookup whose columns are all missing from the row returns zero
    without touching the tally; only cells that exist but cannot be read are
    counted as defaulted.
    """

    def __init__(self, row: Mapping[str, Any], tally: CoercionTally | None = None):
        self.row = row
        self.tally = tally if tally is not None else CoercionTally()

    def has(self, *keys: str) -> bool:
        return any(key in self.row for key in keys)

    def raw(self, *keys: str) -> Any:
        return first_present(self.row, keys)

    def text(self, *keys: str, default: str = "") -> str:
        value = first_present(self.row, keys)
        if value is None:
            return default
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    def number(self, *keys: str) -> float:
        if not self.has(*keys):
            return 0.0
        return float(self.tally.take(coerce_number(self.raw(*keys))))

    def integer(self, *keys: str) -> int:
        if not self.has(*keys):
            return 0
        return self.tally.take(coerce_int(self.raw(*keys)))

    def duration(self, *keys: str) -> int:
        if not self.has(*keys):
            return 0
        return self.tally.take(coerce_duration(self.raw(*keys)))
