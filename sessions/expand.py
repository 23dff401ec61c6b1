"""Recurring session expansion.

Walks the session date range day by day and keeps the days that match its
weekdays and repeat cadence. Cancelled dates are skipped; the rest get the
session time of day attached in the display zone.
"""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Iterator, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from core.constants import DEFAULT_DISPLAY_TZ

from .model import Cadence, Occurrence, Session

LOG = logging.getLogger(__name__)

__all__ = [
    "MONTHLY_PERIOD_DAYS",
    "resolve_zone",
    "matches_cadence",
    "iter_occurrence_dates",
    "expand_occurrences",
]

# "monthly" repeats on a fixed four-week cycle from the start date
MONTHLY_PERIOD_DAYS = 28

ZoneLike = Union[str, _dt.tzinfo, None]


def resolve_zone(tz: ZoneLike) -> _dt.tzinfo:
    """Return a tzinfo for a zone name, passing tzinfo objects through."""
    if tz is None:
        return ZoneInfo(DEFAULT_DISPLAY_TZ)
    if isinstance(tz, _dt.tzinfo):
        return tz
    return ZoneInfo(str(tz))


def _week_start(d: _dt.date) -> _dt.date:
    return d - _dt.timedelta(days=d.weekday())


def matches_cadence(d: _dt.date, start: _dt.date, repeat: Cadence) -> bool:
    """True when ``d`` falls in a period the cadence keeps, counted from ``start``."""
    if repeat is Cadence.BIWEEKLY:
        weeks = (_week_start(d) - _week_start(start)).days // 7
        return weeks % 2 == 0
    if repeat is Cadence.MONTHLY:
        return (d - start).days % MONTHLY_PERIOD_DAYS == 0
    return True


def iter_occurrence_dates(session: Session) -> Iterator[_dt.date]:
    """Yield matching, non-cancelled dates in ascending order."""
    if not session.days_of_week or session.start_date > session.end_date:
        return
    d = session.start_date
    one_day = _dt.timedelta(days=1)
    while d <= session.end_date:
        if d.weekday() in session.days_of_week and matches_cadence(d, session.start_date, session.repeat):
            if d in session.cancelled_dates:
                LOG.debug("Skipping cancelled date %s for session %s", d, session.session_id)
            else:
                yield d
        d += one_day


def _clock(hhmm: str) -> Tuple[int, int]:
    hh, mm = (hhmm or "00:00").split(":", 1)
    return int(hh), int(mm[:2])


def _make_occurrence(session: Session, d: _dt.date, zone: _dt.tzinfo) -> Occurrence:
    sh, sm = _clock(session.start_time)
    eh, em = _clock(session.end_time)
    start = _dt.datetime(d.year, d.month, d.day, sh, sm, tzinfo=zone)
    end = _dt.datetime(d.year, d.month, d.day, eh, em, tzinfo=zone)
    if end <= start:
        # Overnight or unvalidated times: never end before the start
        nxt = d + _dt.timedelta(days=1)
        end = _dt.datetime(nxt.year, nxt.month, nxt.day, eh, em, tzinfo=zone)
    return Occurrence(date=d, start=start, end=end, session_id=session.session_id)


def expand_occurrences(session: Session, tz: ZoneLike = None) -> List[Occurrence]:
    """Expand a session into its concrete occurrences, ascending by date.

    Reversed date ranges and empty weekday sets produce an empty list.

    Args:
        session: The session to expand; not modified.
        tz: Display zone name or tzinfo (default America/New_York).

    Returns:
        One Occurrence per matching, non-cancelled date.
    """
    zone = resolve_zone(tz)
    out = [_make_occurrence(session, d, zone) for d in iter_occurrence_dates(session)]
    LOG.debug(
        "Expanded session %s (%s) into %d occurrences",
        session.session_id, session.repeat.value, len(out),
    )
    return out
