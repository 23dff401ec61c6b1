"""Sessions CLI pipeline components."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from core.cli_errors import NotFoundError, UsageError
from core.cli_output import OutputFormat
from core.pipeline import BaseProducer, RequestConsumer, SafeProcessor
from core.yamlio import dump_config, extract_records, load_config, load_records

from .display import TodayEntry, format_occurrence, format_time, todays_occurrences, upcoming_occurrences
from .exclusions import cancel_date, restore_date
from .expand import expand_occurrences, resolve_zone
from .model import (
    Occurrence,
    Session,
    parse_date,
    parse_time,
    serialize_cancelled_dates,
    session_from_record,
    validate_session_record,
)
from .weekdays import day_labels

LOG = logging.getLogger(__name__)


def _load_session_records(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        raise NotFoundError(f"Sessions file not found: {path}")
    return load_records(str(path))


def _record_id(record: Dict[str, Any]) -> Optional[str]:
    for key in ("sessionid", "sessionId", "session_id", "id"):
        if record.get(key) not in (None, ""):
            return str(record[key])
    return None


def _select(records: List[Dict[str, Any]], session_id: Optional[str]) -> List[Dict[str, Any]]:
    if not session_id:
        return records
    picked = [r for r in records if _record_id(r) == str(session_id)]
    if not picked:
        raise NotFoundError(f"Session not found: {session_id}")
    return picked


def _load_sessions(path: Path, session_id: Optional[str]) -> List[Session]:
    return [session_from_record(r) for r in _select(_load_session_records(path), session_id)]


def _parse_now(value: Optional[str], tz: Optional[_dt.tzinfo]) -> _dt.datetime:
    zone = resolve_zone(tz)
    if not value:
        return _dt.datetime.now(zone)
    try:
        now = _dt.datetime.fromisoformat(value)
    except ValueError:
        raise UsageError(f"Invalid --now value: {value}", hint="Use ISO format, e.g. 2024-01-15T16:00") from None
    return now if now.tzinfo is not None else now.replace(tzinfo=zone)


def occurrence_row(occ: Occurrence) -> Dict[str, Any]:
    return {
        "session": occ.session_id or "",
        "date": occ.date.isoformat(),
        "start": occ.start.isoformat(),
        "end": occ.end.isoformat(),
        "when": format_occurrence(occ, occ.start.tzinfo),
    }


class _RowsProducer(BaseProducer):
    """Print rows as a table/JSON/YAML, or one ``when`` line per row in text mode."""

    empty_message = "No occurrences."
    headers = ["session", "date", "when"]

    def _produce_success(self, payload: "OccurrenceResult", diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.config.format != OutputFormat.TEXT:
            self.writer.print_data(payload.rows, self.headers if self.writer.config.format == OutputFormat.TABLE else None)
            return
        if not payload.rows:
            self.writer.print(self.empty_message)
            return
        current = object()
        for row in payload.rows:
            if row.get("session") != current:
                current = row.get("session")
                self.writer.print(f"Session {current or '(no id)'}:")
            self.writer.print(f"  {self._line(row)}")

    def _line(self, row: Dict[str, Any]) -> str:
        return str(row["when"])


# -----------------------------------------------------------------------------
# expand / upcoming
# -----------------------------------------------------------------------------


@dataclass
class ExpandRequest:
    path: Path
    session_id: Optional[str] = None
    tz: Optional[_dt.tzinfo] = None


@dataclass
class OccurrenceResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)


class ExpandProcessor(SafeProcessor[ExpandRequest, OccurrenceResult]):
    """Expand every selected session into its occurrences."""

    def _process_safe(self, payload: ExpandRequest) -> OccurrenceResult:
        rows: List[Dict[str, Any]] = []
        for session in _load_sessions(payload.path, payload.session_id):
            LOG.debug("Session %s: %s", session.session_id, describe_session(session))
            rows.extend(occurrence_row(o) for o in expand_occurrences(session, payload.tz))
        return OccurrenceResult(rows=rows)


class ExpandProducer(_RowsProducer):
    pass


@dataclass
class UpcomingRequest:
    path: Path
    session_id: Optional[str] = None
    now: Optional[str] = None
    limit: int = 5
    tz: Optional[_dt.tzinfo] = None


class UpcomingProcessor(SafeProcessor[UpcomingRequest, OccurrenceResult]):
    """Next practices per session, starting at or after --now."""

    def _process_safe(self, payload: UpcomingRequest) -> OccurrenceResult:
        sessions = _load_sessions(payload.path, payload.session_id)
        now = _parse_now(payload.now, payload.tz)
        rows: List[Dict[str, Any]] = []
        for session in sessions:
            occ = upcoming_occurrences(session, now, limit=payload.limit, tz=payload.tz)
            rows.extend(occurrence_row(o) for o in occ)
        return OccurrenceResult(rows=rows)


class UpcomingProducer(_RowsProducer):
    empty_message = "No upcoming practices."


# -----------------------------------------------------------------------------
# today
# -----------------------------------------------------------------------------


@dataclass
class TodayRequest:
    path: Path
    now: Optional[str] = None
    tz: Optional[_dt.tzinfo] = None


class TodayProcessor(SafeProcessor[TodayRequest, OccurrenceResult]):
    """Today's practices across all sessions with active/upcoming/completed status."""

    def _process_safe(self, payload: TodayRequest) -> OccurrenceResult:
        sessions = _load_sessions(payload.path, None)
        now = _parse_now(payload.now, payload.tz)
        entries: List[TodayEntry] = todays_occurrences(sessions, now, tz=payload.tz)
        rows = [
            {
                "session": e.session_id or "",
                "time": f"{e.start_label} - {e.end_label}",
                "status": e.status,
                "start": e.start.isoformat(),
                "end": e.end.isoformat(),
            }
            for e in entries
        ]
        return OccurrenceResult(rows=rows)


class TodayProducer(_RowsProducer):
    empty_message = "No practices today."
    headers = ["session", "time", "status"]

    def _produce_success(self, payload: OccurrenceResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.config.format != OutputFormat.TEXT:
            super()._produce_success(payload, diagnostics)
            return
        if not payload.rows:
            self.writer.print(self.empty_message)
            return
        for row in payload.rows:
            self.writer.print(f"{row['time']}  [{row['status']}]  session {row['session'] or '(no id)'}")


# -----------------------------------------------------------------------------
# check
# -----------------------------------------------------------------------------


@dataclass
class CheckRequest:
    path: Path


CheckRequestConsumer = RequestConsumer[CheckRequest]


@dataclass
class CheckResult:
    reports: List[Tuple[str, List[str]]]

    @property
    def valid(self) -> bool:
        return all(not errors for _, errors in self.reports)


class CheckProcessor(SafeProcessor[CheckRequest, CheckResult]):
    """Run form-level validation over every record in the file."""

    def _process_safe(self, payload: CheckRequest) -> CheckResult:
        reports = []
        for i, record in enumerate(_load_session_records(payload.path)):
            label = _record_id(record) or f"#{i + 1}"
            reports.append((label, validate_session_record(record)))
        return CheckResult(reports=reports)


class CheckProducer(BaseProducer):
    def _produce_success(self, payload: CheckResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.structured:
            self.writer.print_data([{"session": s, "errors": errs} for s, errs in payload.reports])
            return
        for label, errors in payload.reports:
            if errors:
                self.writer.print(f"Session {label}: invalid")
                self.writer.print_list(errors, indent=2)
            else:
                self.writer.print(f"Session {label}: ok")


# -----------------------------------------------------------------------------
# cancel-date
# -----------------------------------------------------------------------------


@dataclass
class CancelDateRequest:
    path: Path
    session_id: str
    date: str
    restore: bool = False
    apply: bool = False


@dataclass
class CancelDateResult:
    session_id: str
    date: str
    action: str
    changed: bool
    applied: bool
    cancelled: List[str]
    path: Path


_TIME_KEYS = ("starttime", "startTime", "start_time", "endtime", "endTime", "end_time")


def _restore_times(records: List[Dict[str, Any]]) -> None:
    """Turn sexagesimal ints (unquoted 18:00 in YAML) back into HH:MM strings."""
    for record in records:
        for key in _TIME_KEYS:
            value = record.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                record[key] = parse_time(value)


def _set_cancel(record: Dict[str, Any], session: Session) -> None:
    for key in ("cancelledDates", "cancelled_dates", "canceled_dates", "exdates"):
        record.pop(key, None)
    if session.cancelled_dates:
        record["cancel"] = serialize_cancelled_dates(session.cancelled_dates)
    else:
        record.pop("cancel", None)


class CancelDateProcessor(SafeProcessor[CancelDateRequest, CancelDateResult]):
    """Cancel (or restore) one date of a session; writes the file only with --apply."""

    def _process_safe(self, payload: CancelDateRequest) -> CancelDateResult:
        day = parse_date(payload.date)
        if not payload.path.exists():
            raise NotFoundError(f"Sessions file not found: {payload.path}")
        document = load_config(str(payload.path))
        records = extract_records(document)
        target = _select(records, payload.session_id)[0]

        before = session_from_record(target)
        after = restore_date(before, day) if payload.restore else cancel_date(before, day)
        changed = after.cancelled_dates != before.cancelled_dates
        if changed and payload.apply:
            # records are the document's own dicts, so this edits it in place
            _set_cancel(target, after)
            _restore_times(records)
            dump_config(str(payload.path), document)
            LOG.debug("Wrote %s", payload.path)

        return CancelDateResult(
            session_id=str(payload.session_id),
            date=day.isoformat(),
            action="restore" if payload.restore else "cancel",
            changed=changed,
            applied=bool(changed and payload.apply),
            cancelled=sorted(d.isoformat() for d in after.cancelled_dates),
            path=payload.path,
        )


class CancelDateProducer(BaseProducer):
    def _produce_success(self, payload: CancelDateResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.structured:
            self.writer.print_data(payload)
            return
        verb = "Restored" if payload.action == "restore" else "Cancelled"
        if not payload.changed:
            state = "not cancelled" if payload.action == "restore" else "already cancelled"
            self.writer.print(f"{payload.date} is {state} for session {payload.session_id}; nothing to do.")
            return
        if payload.applied:
            self.writer.print(f"{verb} {payload.date} for session {payload.session_id} -> {payload.path}")
        else:
            self.writer.print_dry_run(
                f"Would {payload.action} {payload.date} for session {payload.session_id} (use --apply)"
            )
        self.writer.print(f"Cancelled dates: {', '.join(payload.cancelled) or 'none'}")


# -----------------------------------------------------------------------------
# summaries
# -----------------------------------------------------------------------------


def describe_session(session: Session) -> str:
    """One-line summary used in verbose output."""
    return (
        f"{day_labels(session.days_of_week)} "
        f"{format_time(session.start_time)}-{format_time(session.end_time)} "
        f"{session.repeat.value} {session.start_date}..{session.end_date}"
    )
