"""Sessions CLI

Expand DisciplineRift practice sessions into dated occurrences:
- expand / upcoming / today read session records from a YAML file
- check runs the same validation the session form applies
- cancel-date edits the ``cancel`` column (dry-run unless --apply)
- days parse|validate|format work on a free-text weekday list
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from core.cli_errors import ExitCode, UsageError
from core.cli_framework import CLIApp
from core.pipeline import run_pipeline

from . import __version__
from .config import ScheduleSettings, load_settings
from .pipeline import (
    CancelDateProcessor,
    CancelDateProducer,
    CancelDateRequest,
    CheckProcessor,
    CheckProducer,
    CheckRequest,
    CheckRequestConsumer,
    ExpandProcessor,
    ExpandProducer,
    ExpandRequest,
    TodayProcessor,
    TodayProducer,
    TodayRequest,
    UpcomingProcessor,
    UpcomingProducer,
    UpcomingRequest,
)
from .weekdays import (
    InvalidWeekdayError,
    days_array_to_string,
    format_days_of_week,
    parse_days_of_week,
    validate_days_of_week,
)

LOG = logging.getLogger("sessions")

app = CLIApp(
    "sessions",
    "Sessions CLI for practice schedule expansion.",
    version=__version__,
    add_common_args=True,
)


def _settings(args: argparse.Namespace) -> ScheduleSettings:
    return load_settings(
        getattr(args, "profile", None),
        timezone=getattr(args, "tz", None),
        upcoming_limit=getattr(args, "limit", None),
    )


@app.command("expand", help="List every occurrence of the sessions in a file")
@app.argument("--file", "-f", dest="file", required=True, help="Sessions YAML (sessions: [...])")
@app.argument("--id", dest="session_id", help="Only this session id")
@app.argument("--tz", help="Display timezone (default America/New_York)")
def cmd_expand(args: argparse.Namespace) -> int:
    settings = _settings(args)
    LOG.debug("Expanding %s in %s", args.file, settings.timezone)
    request = ExpandRequest(path=Path(args.file), session_id=args.session_id, tz=settings.zone)
    return run_pipeline(request, ExpandProcessor(), ExpandProducer(args._output))


@app.command("upcoming", help="Show the next practices of each session")
@app.argument("--file", "-f", dest="file", required=True, help="Sessions YAML")
@app.argument("--id", dest="session_id", help="Only this session id")
@app.argument("--now", help="Reference time, ISO (default: current time)")
@app.argument("--limit", type=int, help="Practices per session (default 5)")
@app.argument("--tz", help="Display timezone")
def cmd_upcoming(args: argparse.Namespace) -> int:
    if args.limit is not None and args.limit <= 0:
        raise UsageError("--limit must be positive")
    settings = _settings(args)
    request = UpcomingRequest(
        path=Path(args.file),
        session_id=args.session_id,
        now=args.now,
        limit=settings.upcoming_limit,
        tz=settings.zone,
    )
    return run_pipeline(request, UpcomingProcessor(), UpcomingProducer(args._output))


@app.command("today", help="Today's practices across all sessions with their status")
@app.argument("--file", "-f", dest="file", required=True, help="Sessions YAML")
@app.argument("--now", help="Reference time, ISO (default: current time)")
@app.argument("--tz", help="Display timezone")
def cmd_today(args: argparse.Namespace) -> int:
    settings = _settings(args)
    request = TodayRequest(path=Path(args.file), now=args.now, tz=settings.zone)
    return run_pipeline(request, TodayProcessor(), TodayProducer(args._output))


@app.command("check", help="Validate session records like the session form does")
@app.argument("--file", "-f", dest="file", required=True, help="Sessions YAML")
def cmd_check(args: argparse.Namespace) -> int:
    request = CheckRequest(path=Path(args.file))
    envelope = CheckProcessor().process(CheckRequestConsumer(request).consume())
    CheckProducer(args._output).produce(envelope)
    if not envelope.ok():
        return envelope.exit_code
    return int(ExitCode.SUCCESS) if envelope.unwrap().valid else int(ExitCode.ERROR)


@app.command("cancel-date", help="Cancel (or restore) a single practice date (dry-run by default)")
@app.argument("--file", "-f", dest="file", required=True, help="Sessions YAML")
@app.argument("--id", dest="session_id", required=True, help="Session id")
@app.argument("--date", required=True, help="Date to cancel (YYYY-MM-DD)")
@app.argument("--restore", action="store_true", help="Un-cancel the date instead")
@app.argument("--apply", action="store_true", help="Write the file (omit for dry-run)")
def cmd_cancel_date(args: argparse.Namespace) -> int:
    request = CancelDateRequest(
        path=Path(args.file),
        session_id=args.session_id,
        date=args.date,
        restore=bool(args.restore),
        apply=bool(args.apply),
    )
    return run_pipeline(request, CancelDateProcessor(), CancelDateProducer(args._output))


days = app.group("days", help="Parse, validate or format a days-of-week list")


@days.command("parse", help="Print canonical weekday names")
@days.argument("value", help="e.g. 'Mon, Wed' or 'lunes,miércoles'")
def cmd_days_parse(args: argparse.Namespace) -> int:
    out = args._output
    try:
        parsed = parse_days_of_week(args.value)
    except InvalidWeekdayError as exc:
        out.print_error(str(exc))
        return int(ExitCode.USAGE)
    if out.structured:
        out.print_data({"indexes": parsed, "days": days_array_to_string(parsed).split(",") if parsed else []})
    else:
        out.print(days_array_to_string(parsed))
    return 0


@days.command("validate", help="Exit 0 when the list is valid, 1 otherwise")
@days.argument("value", help="Comma-separated weekdays")
def cmd_days_validate(args: argparse.Namespace) -> int:
    ok = validate_days_of_week(args.value)
    out = args._output
    if out.structured:
        out.print_data({"value": args.value, "valid": ok})
    else:
        out.print("valid" if ok else "invalid")
    return 0 if ok else int(ExitCode.ERROR)


@days.command("format", help="Print display labels in Monday..Sunday order")
@days.argument("value", help="Comma-separated weekdays")
@days.argument("--locale", choices=["en", "es"], default="en", help="Label language (default en)")
def cmd_days_format(args: argparse.Namespace) -> int:
    try:
        label = format_days_of_week(args.value, locale=args.locale)
    except InvalidWeekdayError as exc:
        args._output.print_error(str(exc))
        return int(ExitCode.USAGE)
    args._output.print(label)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI."""
    return app.run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
