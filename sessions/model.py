"""Session and occurrence types plus record coercion.

Session rows come from the dashboard database (``sessionid``, ``startdate``,
``daysofweek``, ``cancel`` ...) or from hand-written YAML using camelCase or
snake_case keys. ``session_from_record`` resolves all of those shapes once so
the expansion code only ever sees a ``Session``.
"""
from __future__ import annotations

import datetime as _dt
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from core.constants import DEFAULT_REPEAT, FMT_YMD

from .weekdays import InvalidWeekdayError, days_array_to_string, parse_days_of_week, validate_days_of_week

LOG = logging.getLogger(__name__)

__all__ = [
    "Cadence",
    "Session",
    "Occurrence",
    "SessionRecordError",
    "parse_date",
    "parse_time",
    "parse_cancelled_dates",
    "serialize_cancelled_dates",
    "session_from_record",
    "session_to_record",
    "validate_session_record",
]


class SessionRecordError(ValueError):
    """A session record cannot be coerced into a Session."""


class Cadence(str, Enum):
    NONE = "none"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: Any) -> "Cadence":
        if isinstance(value, cls):
            return value
        s = str(value if value is not None else "").strip().lower()
        if not s:
            return cls(DEFAULT_REPEAT)
        try:
            return cls(s)
        except ValueError:
            raise SessionRecordError(f"Unknown repeat cadence: {value}") from None


@dataclass(frozen=True)
class Session:
    """A recurring practice definition. Never mutated; see sessions.exclusions."""

    start_date: _dt.date
    end_date: _dt.date
    start_time: str
    end_time: str
    days_of_week: FrozenSet[int]
    repeat: Cadence = Cadence.WEEKLY
    cancelled_dates: FrozenSet[_dt.date] = field(default_factory=frozenset)
    session_id: Optional[str] = None


@dataclass(frozen=True)
class Occurrence:
    """One concrete, dated instance of a session."""

    date: _dt.date
    start: _dt.datetime
    end: _dt.datetime
    session_id: Optional[str] = None

    @property
    def ymd(self) -> str:
        return self.date.strftime(FMT_YMD)


# Accepted keys for each field, most specific first
_ALIASES: Dict[str, tuple] = {
    "session_id": ("sessionid", "sessionId", "session_id", "id"),
    "start_date": ("startdate", "startDate", "start_date"),
    "end_date": ("enddate", "endDate", "end_date"),
    "start_time": ("starttime", "startTime", "start_time"),
    "end_time": ("endtime", "endTime", "end_time"),
    "days_of_week": ("daysofweek", "daysOfWeek", "days_of_week", "byday"),
    "repeat": ("repeat", "repeatCadence", "repeat_cadence", "cadence"),
    "cancelled_dates": ("cancel", "cancelledDates", "cancelled_dates", "canceled_dates", "exdates"),
}


def _pick(record: Dict[str, Any], name: str) -> Any:
    for key in _ALIASES[name]:
        if key in record and record[key] not in (None, ""):
            return record[key]
    return None


def parse_date(value: Any) -> _dt.date:
    """Coerce a date, datetime or ISO string (time part ignored) to a date."""
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    s = str(value if value is not None else "").strip()
    if not s:
        raise SessionRecordError("Missing date")
    s = s.split("T", 1)[0].split(" ", 1)[0]
    try:
        return _dt.date.fromisoformat(s)
    except ValueError:
        raise SessionRecordError(f"Invalid date: {value}") from None


def parse_time(value: Any) -> str:
    """Coerce ``H:MM``, ``HH:MM`` or ``HH:MM:SS`` to zero-padded ``HH:MM``."""
    if isinstance(value, _dt.time):
        return value.strftime("%H:%M")
    if isinstance(value, int) and not isinstance(value, bool):
        # YAML 1.1 reads an unquoted 18:00 as sexagesimal minutes
        value = f"{value // 60}:{value % 60:02d}"
    s = str(value if value is not None else "").strip()
    parts = s.split(":")
    try:
        if len(parts) not in (2, 3):
            raise ValueError(s)
        hh, mm = int(parts[0]), int(parts[1])
        if not (0 <= hh <= 23 and 0 <= mm <= 59):
            raise ValueError(s)
    except ValueError:
        raise SessionRecordError(f"Invalid time: {value}") from None
    return f"{hh:02d}:{mm:02d}"


def _cancel_entries(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, (_dt.date, _dt.datetime, dict)):
        return [raw]
    if isinstance(raw, str):
        s = raw.strip()
        if not s:
            return []
        if s.startswith("["):
            try:
                loaded = json.loads(s)
            except ValueError:
                loaded = None
            if isinstance(loaded, list):
                return loaded
        return s.split(",")
    if isinstance(raw, Iterable):
        return list(raw)
    return [raw]


def parse_cancelled_dates(raw: Any) -> FrozenSet[_dt.date]:
    """Parse the ``cancel`` column: JSON array, comma list, or list of dates.

    Exclusion rows (``{"excluded_date": ...}``) are accepted as entries too.
    Blank entries are skipped; malformed ones raise SessionRecordError.
    """
    out = set()
    for entry in _cancel_entries(raw):
        if isinstance(entry, dict):
            entry = entry.get("excluded_date") or entry.get("date")
        if entry is None or (isinstance(entry, str) and not entry.strip()):
            continue
        out.add(parse_date(entry))
    return frozenset(out)


def session_from_record(record: Dict[str, Any], exclusions: Any = None) -> Session:
    """Build a Session from a loose record.

    ``exclusions`` holds extra cancelled dates kept outside the record
    (rows of the session exclusions table, or plain dates).
    """
    if not isinstance(record, dict):
        raise SessionRecordError("Session record must be a mapping")
    start_raw = _pick(record, "start_date")
    if start_raw is None:
        raise SessionRecordError("Start date is required")
    start_date = parse_date(start_raw)
    end_raw = _pick(record, "end_date")
    end_date = parse_date(end_raw) if end_raw is not None else start_date

    times = {}
    for name, label in (("start_time", "Start"), ("end_time", "End")):
        raw = _pick(record, name)
        if raw is None or raw == "":
            raise SessionRecordError(f"{label} time is required")
        times[name] = parse_time(raw)

    try:
        days = frozenset(parse_days_of_week(_pick(record, "days_of_week")))
    except (InvalidWeekdayError, TypeError) as exc:
        raise SessionRecordError(str(exc)) from exc

    cancelled = parse_cancelled_dates(_pick(record, "cancelled_dates"))
    if exclusions:
        cancelled = cancelled | parse_cancelled_dates(exclusions)

    sid = _pick(record, "session_id")
    session = Session(
        start_date=start_date,
        end_date=end_date,
        start_time=times["start_time"],
        end_time=times["end_time"],
        days_of_week=days,
        repeat=Cadence.parse(_pick(record, "repeat")),
        cancelled_dates=cancelled,
        session_id=str(sid) if sid is not None else None,
    )
    LOG.debug("Loaded session %s (%s..%s)", session.session_id, start_date, end_date)
    return session


def serialize_cancelled_dates(dates: Iterable[_dt.date]) -> str:
    """Storage form of the ``cancel`` column: JSON array of sorted ISO dates."""
    return json.dumps(sorted(d.isoformat() for d in dates))


def session_to_record(session: Session) -> Dict[str, Any]:
    """Inverse of session_from_record using the database column names."""
    record: Dict[str, Any] = {}
    if session.session_id is not None:
        record["sessionid"] = session.session_id
    record.update({
        "startdate": session.start_date.isoformat(),
        "enddate": session.end_date.isoformat(),
        "starttime": session.start_time,
        "endtime": session.end_time,
        "daysofweek": days_array_to_string(session.days_of_week),
        "repeat": session.repeat.value,
    })
    if session.cancelled_dates:
        record["cancel"] = serialize_cancelled_dates(session.cancelled_dates)
    return record


def validate_session_record(record: Dict[str, Any]) -> List[str]:
    """Return user-facing validation messages for a session form; [] if valid."""
    errors: List[str] = []

    start_date = end_date = None
    start_raw = _pick(record, "start_date")
    if start_raw is None:
        errors.append("Start date is required")
    else:
        try:
            start_date = parse_date(start_raw)
        except SessionRecordError:
            errors.append("Invalid start date")
    end_raw = _pick(record, "end_date")
    if end_raw is not None:
        try:
            end_date = parse_date(end_raw)
        except SessionRecordError:
            errors.append("Invalid end date")
    if start_date and end_date and end_date < start_date:
        errors.append("End date must be after start date")

    times = {}
    for name, label in (("start_time", "start"), ("end_time", "end")):
        raw = _pick(record, name)
        if raw is None:
            errors.append(f"{label.capitalize()} time is required")
            continue
        try:
            times[name] = parse_time(raw)
        except SessionRecordError:
            errors.append(f"Invalid {label} time")
    if len(times) == 2 and times["end_time"] <= times["start_time"]:
        errors.append("End time must be after start time")

    if not validate_days_of_week(_pick(record, "days_of_week")):
        errors.append("Select at least one valid day of the week")

    try:
        Cadence.parse(_pick(record, "repeat"))
    except SessionRecordError as exc:
        errors.append(str(exc))

    try:
        parse_cancelled_dates(_pick(record, "cancelled_dates"))
    except SessionRecordError:
        errors.append("Invalid cancelled date")

    return errors
