"""Weekday normalization and days-of-week list helpers.

Session forms store ``daysofweek`` as free text ("Mon, Wed", "lunes,
miércoles", "1,3"). Everything here reduces those spellings to Python
weekday indexes (0=Monday .. 6=Sunday) and renders them back in a fixed
Monday..Sunday order.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Union

__all__ = [
    "InvalidWeekdayError",
    "WEEKDAY_NAMES",
    "normalize_weekday",
    "weekday_name",
    "parse_days_of_week",
    "validate_days_of_week",
    "days_array_to_string",
    "day_labels",
    "format_days_of_week",
]


class InvalidWeekdayError(ValueError):
    """Raised when a token is not a recognized weekday spelling."""

    def __init__(self, token: Any):
        self.token = token
        super().__init__(f"Unrecognized weekday: {token!r}")


WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DAY_LABELS = {
    "en": ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"),
    "es": ("Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"),
}

# Spelling -> weekday index
DAY_MAP = {
    # English
    "monday": 0, "mon": 0, "m": 0,
    "tuesday": 1, "tue": 1, "tues": 1, "tu": 1,
    "wednesday": 2, "wed": 2, "w": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3, "th": 3,
    "friday": 4, "fri": 4, "f": 4,
    "saturday": 5, "sat": 5, "sa": 5,
    "sunday": 6, "sun": 6, "su": 6,
    # Spanish
    "lunes": 0, "lun": 0,
    "martes": 1, "mar": 1,
    "miércoles": 2, "miercoles": 2, "mié": 2, "mie": 2,
    "jueves": 3, "jue": 3,
    "viernes": 4, "vie": 4,
    "sábado": 5, "sabado": 5, "sáb": 5, "sab": 5,
    "domingo": 6, "dom": 6,
    # ISO digits; some exports use 0 for Sunday as well
    "1": 0, "2": 1, "3": 2, "4": 3, "5": 4, "6": 5, "7": 6, "0": 6,
}

_SEGMENT_SPLIT = re.compile(r"[,;|/]")

DaysInput = Union[str, Iterable[Any], None]


def normalize_weekday(token: Any) -> int:
    """Return the weekday index (0=Monday) for a name, abbreviation or digit."""
    if isinstance(token, bool):
        raise InvalidWeekdayError(token)
    # Integers read like the digit strings: ISO 1=Monday, 0 or 7=Sunday
    key = str(token if token is not None else "").strip().lower()
    try:
        return DAY_MAP[key]
    except KeyError:
        raise InvalidWeekdayError(token) from None


def _check_index(index: Any) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 6:
        raise InvalidWeekdayError(index)
    return index


def weekday_name(index: int) -> str:
    """Canonical lowercase English name for a weekday index (0=Monday)."""
    return WEEKDAY_NAMES[_check_index(index)]


def _segments(raw: str) -> List[str]:
    return [seg.strip() for seg in _SEGMENT_SPLIT.split(raw)]


def _tokens(raw: DaysInput) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [tok for seg in _segments(raw) for tok in seg.split()]
    if isinstance(raw, Mapping) or not isinstance(raw, Iterable):
        # Unquoted YAML scalars such as ``daysofweek: 1``
        return [raw]
    out: List[Any] = []
    for item in raw:
        if isinstance(item, str):
            out.extend(_tokens(item))
        else:
            out.append(item)
    return out


def parse_days_of_week(raw: DaysInput) -> List[int]:
    """Parse a days-of-week list into sorted, unique weekday indexes.

    Blank tokens are skipped; unknown tokens raise InvalidWeekdayError.

    Examples:
        'Mon, Wed' -> [0, 2]
        'miércoles,lunes,mon' -> [0, 2]
        ['sat', 'Sunday'] -> [5, 6]
        [1, 3] -> [0, 2]
    """
    return sorted({normalize_weekday(tok) for tok in _tokens(raw)})


def validate_days_of_week(raw: DaysInput) -> bool:
    """Form-level check: True only when every comma-separated entry is a weekday.

    Never raises. Blank input and empty entries (``"mon, , wed"``) are invalid.
    """
    if raw is None:
        return False
    if isinstance(raw, str):
        if not raw.strip():
            return False
        if any(not seg for seg in _segments(raw)):
            return False
    try:
        return bool(parse_days_of_week(raw))
    except (InvalidWeekdayError, TypeError):
        return False


def days_array_to_string(days: Iterable[int]) -> str:
    """Render weekday indexes as ``monday,wednesday`` in canonical order."""
    return ",".join(WEEKDAY_NAMES[i] for i in sorted({_check_index(d) for d in days}))


def day_labels(days: Iterable[int], locale: str = "en") -> str:
    """Short labels for weekday indexes, Monday first: ``Mon, Wed``."""
    try:
        labels = DAY_LABELS[locale]
    except KeyError:
        raise ValueError(f"Unsupported locale: {locale!r}") from None
    return ", ".join(labels[i] for i in sorted({_check_index(d) for d in days}))


def format_days_of_week(raw: DaysInput, locale: str = "en") -> str:
    """Human-readable day list, e.g. ``Mon, Wed`` (or ``Lun, Mié`` for 'es')."""
    return day_labels(parse_days_of_week(raw), locale)
