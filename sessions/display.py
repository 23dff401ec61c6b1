"""Display helpers for occurrences: upcoming list, today's board, formatting."""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.constants import DEFAULT_UPCOMING_LIMIT

from .expand import ZoneLike, expand_occurrences, resolve_zone
from .model import Occurrence, Session

__all__ = [
    "TodayEntry",
    "format_time",
    "format_occurrence",
    "session_status",
    "upcoming_occurrences",
    "todays_occurrences",
]

STATUS_ACTIVE = "active"
STATUS_UPCOMING = "upcoming"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class TodayEntry:
    session_id: Optional[str]
    start: _dt.datetime
    end: _dt.datetime
    start_label: str
    end_label: str
    status: str


def _aware(now: _dt.datetime, zone: _dt.tzinfo) -> _dt.datetime:
    # Naive "now" values are read as wall-clock time in the display zone
    return now if now.tzinfo is not None else now.replace(tzinfo=zone)


def format_time(hhmm: str) -> str:
    """'15:00' -> '3:00 PM'; unparseable input is returned unchanged."""
    try:
        hours, minutes = str(hhmm).split(":")[:2]
        hour = int(hours)
    except (TypeError, ValueError):
        return hhmm
    if not minutes.isdigit():
        return hhmm
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minutes[:2]} {ampm}"


def format_occurrence(occurrence: Occurrence, tz: ZoneLike = None) -> str:
    """Render an occurrence start like 'Mon, 1 Jan 2024 - 3:00 PM'."""
    dt = occurrence.start.astimezone(resolve_zone(tz))
    return f"{dt:%a}, {dt.day} {dt:%b %Y} - {format_time(dt.strftime('%H:%M'))}"


def session_status(occurrence: Occurrence, now: _dt.datetime) -> str:
    now = _aware(now, occurrence.start.tzinfo)
    if occurrence.start <= now <= occurrence.end:
        return STATUS_ACTIVE
    if now < occurrence.start:
        return STATUS_UPCOMING
    return STATUS_COMPLETED


def upcoming_occurrences(
    session: Session,
    now: _dt.datetime,
    limit: int = DEFAULT_UPCOMING_LIMIT,
    tz: ZoneLike = None,
) -> List[Occurrence]:
    """The next ``limit`` occurrences starting at or after ``now``."""
    zone = resolve_zone(tz)
    now = _aware(now, zone)
    upcoming = [occ for occ in expand_occurrences(session, zone) if occ.start >= now]
    return upcoming[: max(0, limit)]


def todays_occurrences(
    sessions: Iterable[Session],
    now: _dt.datetime,
    tz: ZoneLike = None,
) -> List[TodayEntry]:
    """Every occurrence on ``now``'s date in the display zone, sorted by start."""
    zone = resolve_zone(tz)
    now = _aware(now, zone).astimezone(zone)
    today = now.date()
    entries: List[TodayEntry] = []
    for session in sessions:
        if not (session.start_date <= today <= session.end_date):
            continue
        for occ in expand_occurrences(session, zone):
            if occ.start.astimezone(zone).date() != today:
                continue
            entries.append(TodayEntry(
                session_id=session.session_id,
                start=occ.start,
                end=occ.end,
                start_label=format_time(session.start_time),
                end_label=format_time(session.end_time),
                status=session_status(occ, now),
            ))
    entries.sort(key=lambda e: e.start)
    return entries
