"""Cancel and restore single practice dates.

A cancellation never edits a session in place: each call returns a new
Session whose ``cancelled_dates`` differs by one day.
"""
from __future__ import annotations

import dataclasses
import datetime as _dt
import logging
from typing import Any

from .model import Session, parse_date

LOG = logging.getLogger(__name__)

__all__ = ["cancel_date", "restore_date", "is_cancelled"]


def is_cancelled(session: Session, day: Any) -> bool:
    return parse_date(day) in session.cancelled_dates


def cancel_date(session: Session, day: Any) -> Session:
    """Return a copy of ``session`` with ``day`` cancelled (no-op if already)."""
    d: _dt.date = parse_date(day)
    if d in session.cancelled_dates:
        return session
    LOG.debug("Cancelling %s for session %s", d, session.session_id)
    return dataclasses.replace(session, cancelled_dates=session.cancelled_dates | {d})


def restore_date(session: Session, day: Any) -> Session:
    """Return a copy of ``session`` with ``day`` no longer cancelled."""
    d = parse_date(day)
    if d not in session.cancelled_dates:
        return session
    LOG.debug("Restoring %s for session %s", d, session.session_id)
    return dataclasses.replace(session, cancelled_dates=session.cancelled_dates - {d})
