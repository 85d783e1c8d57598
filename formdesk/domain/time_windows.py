"""Named time windows and interval filtering for the dashboard.

Pure domain functions: every computation takes `now` explicitly so one
filtering pass sees a single, consistent clock reading.

Window bounds are calendar-based in the timezone of `now` (naive `now` means
local wall-clock time). Filtering is inclusive on both bounds.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import TypeVar

import structlog

from formdesk.schemas.records import Employee, Form, FormEntry

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ONE_DAY = timedelta(days=1)


class TimeWindow(StrEnum):
    """Time filter tokens offered on the director dashboard."""

    ALL = "all"
    TODAY = "today"
    YESTERDAY = "yesterday"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    THIS_WEEK = "thisweek"
    LAST_WEEK = "lastweek"
    THIS_MONTH = "thismonth"
    LAST_MONTH = "lastmonth"
    THIS_QUARTER = "thisquarter"
    LAST_QUARTER = "lastquarter"
    THIS_YEAR = "thisyear"
    LAST_YEAR = "lastyear"
    CUSTOM = "custom"


class WeekStart(StrEnum):
    """First day of the week for thisweek/lastweek. MONDAY matches date.weekday()."""

    MONDAY = "monday"
    SUNDAY = "sunday"


@dataclass(frozen=True)
class CustomDateRange:
    """User-picked bounds as entered in the date inputs ("" = not set)."""

    start: str = ""
    end: str = ""


@dataclass(frozen=True)
class DateRange:
    """Resolved window. None on a side means unbounded on that side."""

    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, timestamp: datetime) -> bool:
        reference = self.start if self.start is not None else self.end
        if reference is not None:
            timestamp = align_tz(timestamp, reference)
        return in_range(timestamp, self.start, self.end)


def align_tz(timestamp: datetime, reference: datetime) -> datetime:
    """Make timestamp comparable with reference when only one of them is tz-aware."""
    if timestamp.tzinfo is not None and reference.tzinfo is None:
        return timestamp.astimezone().replace(tzinfo=None)
    if timestamp.tzinfo is None and reference.tzinfo is not None:
        return timestamp.replace(tzinfo=reference.tzinfo)
    return timestamp


def midnight(now: datetime) -> datetime:
    """Calendar midnight of `now`, keeping its timezone."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _first_of_month(now: datetime, year: int, month_index: int) -> datetime:
    # month_index is zero-based and may run outside 0..11; it rolls over the year
    years, month_index = divmod(month_index, 12)
    return midnight(now).replace(year=year + years, month=month_index + 1, day=1)


def _days_since_week_start(day: date, week_start: WeekStart) -> int:
    if week_start == WeekStart.SUNDAY:
        return (day.weekday() + 1) % 7
    return day.weekday()


def _parse_bound(value: str, now: datetime, side: str) -> datetime | None:
    """Parse a custom-range bound. Empty or unparseable values mean unbounded."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        logger.warning("custom_range_unparseable", side=side, value=value)
        return None

    # Dates picked in the UI carry no offset: read them in the same zone as now
    return align_tz(parsed, now)


def resolve_window(
    token: str,
    now: datetime,
    custom_range: CustomDateRange | None = None,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
) -> DateRange:
    """Resolve a time window token to concrete bounds relative to `now`.

    Args:
        token: TimeWindow value ("today", "lastmonth", ...)
        now: Current time, captured once by the caller
        custom_range: Bounds used only when token is "custom"
        week_start: First day of the week for thisweek/lastweek

    Returns:
        DateRange; "all" and unrecognized tokens resolve to an unbounded range

    Rules:
        - Windows ending "now" end at tomorrow's midnight (today is fully included)
        - Closed past periods end at the start of the following period
        - Quarters are calendar quarters (Jan, Apr, Jul, Oct)
    """
    today = midnight(now)
    tomorrow = today + ONE_DAY

    if token == TimeWindow.TODAY:
        return DateRange(today, tomorrow)

    if token == TimeWindow.YESTERDAY:
        return DateRange(today - ONE_DAY, today)

    if token == TimeWindow.LAST_7_DAYS:
        return DateRange(today - timedelta(days=7), tomorrow)

    if token == TimeWindow.LAST_30_DAYS:
        return DateRange(today - timedelta(days=30), tomorrow)

    if token in (TimeWindow.THIS_WEEK, TimeWindow.LAST_WEEK):
        week_begin = today - timedelta(days=_days_since_week_start(today.date(), week_start))
        if token == TimeWindow.THIS_WEEK:
            return DateRange(week_begin, tomorrow)
        return DateRange(week_begin - timedelta(days=7), week_begin)

    if token == TimeWindow.THIS_MONTH:
        return DateRange(_first_of_month(now, now.year, now.month - 1), tomorrow)

    if token == TimeWindow.LAST_MONTH:
        return DateRange(
            _first_of_month(now, now.year, now.month - 2),
            _first_of_month(now, now.year, now.month - 1),
        )

    if token == TimeWindow.THIS_QUARTER:
        quarter = (now.month - 1) // 3
        return DateRange(_first_of_month(now, now.year, quarter * 3), tomorrow)

    if token == TimeWindow.LAST_QUARTER:
        # In Q1 this is -1 and rolls back to October of the previous year
        last_quarter = (now.month - 1) // 3 - 1
        return DateRange(
            _first_of_month(now, now.year, last_quarter * 3),
            _first_of_month(now, now.year, (last_quarter + 1) * 3),
        )

    if token == TimeWindow.THIS_YEAR:
        return DateRange(_first_of_month(now, now.year, 0), tomorrow)

    if token == TimeWindow.LAST_YEAR:
        return DateRange(
            _first_of_month(now, now.year - 1, 0),
            _first_of_month(now, now.year, 0),
        )

    if token == TimeWindow.CUSTOM:
        custom_range = custom_range or CustomDateRange()
        return DateRange(
            _parse_bound(custom_range.start, now, "start"),
            _parse_bound(custom_range.end, now, "end"),
        )

    # "all" and anything unrecognized: no filtering
    return DateRange()


def in_range(timestamp: datetime, start: datetime | None, end: datetime | None) -> bool:
    """Inclusive membership test; a None bound is open on that side."""
    if start is None and end is None:
        return True
    if start is None:
        return timestamp <= end
    if end is None:
        return timestamp >= start
    return start <= timestamp <= end


def filter_by_range(
    entities: Iterable[T],
    window: DateRange,
    timestamp_of: Callable[[T], datetime | None],
) -> list[T]:
    """Keep entities whose timestamp falls in an already-resolved window.

    An unbounded window keeps everything, including entities without a
    timestamp. A bounded window drops entities whose timestamp is None.
    """
    if window.is_unbounded:
        return list(entities)

    kept = []
    for entity in entities:
        timestamp = timestamp_of(entity)
        if timestamp is not None and window.contains(timestamp):
            kept.append(entity)
    return kept


def filter_entities(
    entities: Iterable[T],
    token: str,
    now: datetime,
    custom_range: CustomDateRange | None = None,
    *,
    timestamp_of: Callable[[T], datetime | None],
    week_start: WeekStart = WeekStart.MONDAY,
) -> list[T]:
    """Resolve the window once and keep matching entities in input order."""
    window = resolve_window(token, now, custom_range, week_start=week_start)
    return filter_by_range(entities, window, timestamp_of)


def filter_forms(
    forms: Iterable[Form],
    token: str,
    now: datetime,
    custom_range: CustomDateRange | None = None,
) -> list[Form]:
    return filter_entities(forms, token, now, custom_range, timestamp_of=lambda form: form.created_at)


def filter_form_entries(
    entries: Iterable[FormEntry],
    token: str,
    now: datetime,
    custom_range: CustomDateRange | None = None,
) -> list[FormEntry]:
    return filter_entities(entries, token, now, custom_range, timestamp_of=lambda entry: entry.submitted_at)


def filter_employees(
    employees: Iterable[Employee],
    token: str,
    now: datetime,
    custom_range: CustomDateRange | None = None,
) -> list[Employee]:
    return filter_entities(employees, token, now, custom_range, timestamp_of=lambda employee: employee.created_at)


@dataclass
class DashboardData:
    """Collections shown on the director dashboard for one time window."""

    window: DateRange
    forms: list[Form] = field(default_factory=list)
    form_entries: list[FormEntry] = field(default_factory=list)
    employees: list[Employee] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        """Counts for the dashboard stat cards.

        Employees count as approved unless explicitly marked is_approved=False.
        """
        return {
            "forms": len(self.forms),
            "approved_employees": sum(1 for employee in self.employees if employee.is_approved is not False),
            "form_entries": len(self.form_entries),
        }


def filter_dashboard(
    forms: Sequence[Form],
    form_entries: Sequence[FormEntry],
    employees: Sequence[Employee],
    token: str,
    now: datetime,
    custom_range: CustomDateRange | None = None,
    *,
    week_start: WeekStart = WeekStart.MONDAY,
) -> DashboardData:
    """Filter all dashboard collections against a single resolved window."""
    window = resolve_window(token, now, custom_range, week_start=week_start)
    return DashboardData(
        window=window,
        forms=filter_by_range(forms, window, lambda form: form.created_at),
        form_entries=filter_by_range(form_entries, window, lambda entry: entry.submitted_at),
        employees=filter_by_range(employees, window, lambda employee: employee.created_at),
    )
