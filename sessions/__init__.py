"""Practice session scheduling: weekday parsing and occurrence expansion."""

from .display import (  # noqa: F401
    TodayEntry,
    format_occurrence,
    format_time,
    session_status,
    todays_occurrences,
    upcoming_occurrences,
)
from .exclusions import cancel_date, is_cancelled, restore_date  # noqa: F401
from .expand import expand_occurrences, iter_occurrence_dates  # noqa: F401
from .model import (  # noqa: F401
    Cadence,
    Occurrence,
    Session,
    SessionRecordError,
    parse_cancelled_dates,
    serialize_cancelled_dates,
    session_from_record,
    session_to_record,
    validate_session_record,
)
from .weekdays import (  # noqa: F401
    InvalidWeekdayError,
    day_labels,
    days_array_to_string,
    format_days_of_week,
    normalize_weekday,
    parse_days_of_week,
    validate_days_of_week,
    weekday_name,
)

__version__ = "0.3.0"
