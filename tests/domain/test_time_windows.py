"""Tests for time window resolution and interval filtering."""

from datetime import datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from formdesk.domain.time_windows import (
    CustomDateRange,
    DateRange,
    TimeWindow,
    WeekStart,
    filter_by_range,
    filter_dashboard,
    filter_employees,
    filter_entities,
    filter_form_entries,
    filter_forms,
    in_range,
    midnight,
    resolve_window,
)
from formdesk.schemas.records import Employee, Form, FormEntry

pytestmark = pytest.mark.unit


def _entry(entry_id: str, submitted_at: datetime) -> FormEntry:
    return FormEntry(id=entry_id, form_id="form-1", user_id="emp-1", submitted_at=submitted_at)


# ============================================================================
# resolve_window
# ============================================================================


def test_midnight_keeps_date_and_timezone():
    now = datetime(2024, 6, 15, 10, 30, 45, 123, tzinfo=timezone.utc)
    assert midnight(now) == datetime(2024, 6, 15, tzinfo=timezone.utc)


def test_today_window(now):
    window = resolve_window(TimeWindow.TODAY, now)
    assert window == DateRange(datetime(2024, 6, 15), datetime(2024, 6, 16))


def test_yesterday_window(now):
    window = resolve_window(TimeWindow.YESTERDAY, now)
    assert window == DateRange(datetime(2024, 6, 14), datetime(2024, 6, 15))


def test_last_7_and_30_days_end_tomorrow(now):
    assert resolve_window("last7days", now) == DateRange(datetime(2024, 6, 8), datetime(2024, 6, 16))
    assert resolve_window("last30days", now) == DateRange(datetime(2024, 5, 16), datetime(2024, 6, 16))


def test_this_week_starts_monday_by_default(now):
    # 2024-06-15 is a Saturday
    window = resolve_window(TimeWindow.THIS_WEEK, now)
    assert window == DateRange(datetime(2024, 6, 10), datetime(2024, 6, 16))


def test_this_week_on_week_start_day_starts_today():
    monday = datetime(2024, 6, 10, 8, 0)
    window = resolve_window(TimeWindow.THIS_WEEK, monday)
    assert window.start == datetime(2024, 6, 10)


def test_last_week_is_previous_seven_days_before_week_start(now):
    window = resolve_window(TimeWindow.LAST_WEEK, now)
    assert window == DateRange(datetime(2024, 6, 3), datetime(2024, 6, 10))


def test_sunday_week_start(now):
    this_week = resolve_window(TimeWindow.THIS_WEEK, now, week_start=WeekStart.SUNDAY)
    last_week = resolve_window(TimeWindow.LAST_WEEK, now, week_start=WeekStart.SUNDAY)

    assert this_week.start == datetime(2024, 6, 9)
    assert last_week == DateRange(datetime(2024, 6, 2), datetime(2024, 6, 9))


def test_this_month_window(now):
    window = resolve_window(TimeWindow.THIS_MONTH, now)
    assert window == DateRange(datetime(2024, 6, 1), datetime(2024, 6, 16))


def test_last_month_window_in_march():
    now = datetime(2024, 3, 20, 9, 0)
    window = resolve_window(TimeWindow.LAST_MONTH, now)
    assert window == DateRange(datetime(2024, 2, 1), datetime(2024, 3, 1))


def test_last_month_window_in_january_rolls_back_a_year():
    now = datetime(2024, 1, 5, 9, 0)
    window = resolve_window(TimeWindow.LAST_MONTH, now)
    assert window == DateRange(datetime(2023, 12, 1), datetime(2024, 1, 1))


def test_month_windows_on_31st():
    now = datetime(2024, 3, 31, 23, 59)
    assert resolve_window(TimeWindow.THIS_MONTH, now).start == datetime(2024, 3, 1)
    assert resolve_window(TimeWindow.LAST_MONTH, now).start == datetime(2024, 2, 1)


@pytest.mark.parametrize(
    ("now", "start"),
    [
        (datetime(2024, 1, 10), datetime(2024, 1, 1)),
        (datetime(2024, 3, 31), datetime(2024, 1, 1)),
        (datetime(2024, 4, 1), datetime(2024, 4, 1)),
        (datetime(2024, 6, 15), datetime(2024, 4, 1)),
        (datetime(2024, 9, 30), datetime(2024, 7, 1)),
        (datetime(2024, 12, 31), datetime(2024, 10, 1)),
    ],
)
def test_this_quarter_start(now, start):
    window = resolve_window(TimeWindow.THIS_QUARTER, now)
    assert window.start == start
    assert window.end == midnight(now) + timedelta(days=1)


def test_last_quarter_window(now):
    window = resolve_window(TimeWindow.LAST_QUARTER, now)
    assert window == DateRange(datetime(2024, 1, 1), datetime(2024, 4, 1))


def test_last_quarter_in_q1_is_q4_of_previous_year():
    window = resolve_window(TimeWindow.LAST_QUARTER, datetime(2024, 2, 10))
    assert window == DateRange(datetime(2023, 10, 1), datetime(2024, 1, 1))


def test_year_windows(now):
    assert resolve_window(TimeWindow.THIS_YEAR, now) == DateRange(datetime(2024, 1, 1), datetime(2024, 6, 16))
    assert resolve_window(TimeWindow.LAST_YEAR, now) == DateRange(datetime(2023, 1, 1), datetime(2024, 1, 1))


def test_windows_keep_timezone_of_now():
    now = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)
    window = resolve_window(TimeWindow.LAST_MONTH, now)
    assert window.start == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert window.end.tzinfo is timezone.utc


@pytest.mark.parametrize("token", ["all", "", "nextweek", "TODAY"])
def test_all_and_unrecognized_tokens_are_unbounded(now, token):
    window = resolve_window(token, now)
    assert window == DateRange(None, None)
    assert window.is_unbounded


def test_custom_window_parses_dates(now):
    window = resolve_window(TimeWindow.CUSTOM, now, CustomDateRange(start="2024-05-01", end="2024-05-31"))
    assert window == DateRange(datetime(2024, 5, 1), datetime(2024, 5, 31))


def test_custom_window_empty_side_is_unbounded(now):
    assert resolve_window("custom", now, CustomDateRange(start="2024-05-01")) == DateRange(datetime(2024, 5, 1), None)
    assert resolve_window("custom", now, CustomDateRange(end="2024-05-31")) == DateRange(None, datetime(2024, 5, 31))


def test_custom_window_unparseable_side_is_unbounded(now):
    window = resolve_window("custom", now, CustomDateRange(start="not-a-date", end="2024-05-31"))
    assert window == DateRange(None, datetime(2024, 5, 31))


def test_custom_window_without_range_is_unbounded(now):
    assert resolve_window("custom", now).is_unbounded


def test_custom_dates_read_in_timezone_of_now():
    paris = timezone(timedelta(hours=2))
    now = datetime(2024, 6, 15, 10, 0, tzinfo=paris)
    window = resolve_window("custom", now, CustomDateRange(start="2024-05-01"))
    assert window.start == datetime(2024, 5, 1, tzinfo=paris)


def test_custom_range_ignored_for_other_tokens(now):
    window = resolve_window(TimeWindow.TODAY, now, CustomDateRange(start="2020-01-01", end="2020-01-02"))
    assert window.start == datetime(2024, 6, 15)


# ============================================================================
# in_range
# ============================================================================


@pytest.mark.parametrize("timestamp", [datetime(1, 1, 1), datetime(2024, 6, 15), datetime(9999, 12, 31)])
def test_in_range_unbounded_accepts_everything(timestamp):
    assert in_range(timestamp, None, None) is True


def test_in_range_bounds_are_inclusive():
    start, end = datetime(2024, 6, 1), datetime(2024, 6, 30)

    assert in_range(start, start, end) is True
    assert in_range(end, start, end) is True
    assert in_range(start - timedelta(microseconds=1), start, end) is False
    assert in_range(end + timedelta(microseconds=1), start, end) is False


def test_in_range_open_sides():
    pivot = datetime(2024, 6, 15)

    assert in_range(pivot, None, pivot) is True
    assert in_range(pivot + timedelta(seconds=1), None, pivot) is False
    assert in_range(pivot, pivot, None) is True
    assert in_range(pivot - timedelta(seconds=1), pivot, None) is False


def test_today_window_includes_next_midnight(now):
    """The upper bound is inclusive, so tomorrow's exact midnight is counted."""
    window = resolve_window(TimeWindow.TODAY, now)
    assert window.contains(datetime(2024, 6, 15, 23, 59, 59))
    assert window.contains(datetime(2024, 6, 16, 0, 0, 0))
    assert not window.contains(datetime(2024, 6, 16, 0, 0, 1))
    assert not window.contains(datetime(2024, 6, 14, 23, 59, 59))


def test_contains_compares_aware_timestamp_with_aware_window():
    now = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)
    window = resolve_window(TimeWindow.TODAY, now)
    assert window.contains(datetime(2024, 6, 15, 14, 0, tzinfo=timezone(timedelta(hours=2))))
    assert not window.contains(datetime(2024, 6, 15, 1, 0, tzinfo=timezone(timedelta(hours=2))))


def test_contains_naive_timestamp_in_aware_window():
    now = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)
    window = resolve_window(TimeWindow.TODAY, now)
    assert window.contains(datetime(2024, 6, 15, 12, 0))


# ============================================================================
# Filtering
# ============================================================================


def test_filter_entities_keeps_input_order(now):
    entries = [
        _entry("c", datetime(2024, 6, 15, 9)),
        _entry("old", datetime(2024, 5, 1)),
        _entry("a", datetime(2024, 6, 15, 1)),
        _entry("b", datetime(2024, 6, 15, 5)),
    ]

    kept = filter_entities(entries, TimeWindow.TODAY, now, timestamp_of=lambda e: e.submitted_at)

    assert [entry.id for entry in kept] == ["c", "a", "b"]


def test_filter_entities_does_not_mutate_input(now):
    entries = [_entry("old", datetime(2020, 1, 1)), _entry("new", datetime(2024, 6, 15, 8))]
    snapshot = list(entries)

    filter_form_entries(entries, TimeWindow.TODAY, now)

    assert entries == snapshot


def test_custom_with_empty_strings_behaves_like_all(now):
    employees = [
        Employee(id="e1", created_at=datetime(2019, 1, 1)),
        Employee(id="e2", created_at=None),
        Employee(id="e3", created_at=datetime(2024, 6, 15)),
    ]

    as_all = filter_employees(employees, TimeWindow.ALL, now)
    as_custom = filter_employees(employees, TimeWindow.CUSTOM, now, CustomDateRange(start="", end=""))

    assert as_custom == as_all == employees


def test_employees_without_created_at_excluded_from_bounded_windows(now):
    employees = [
        Employee(id="e1", created_at=datetime(2024, 6, 12)),
        Employee(id="e2", created_at=None),
    ]

    assert [e.id for e in filter_employees(employees, TimeWindow.THIS_WEEK, now)] == ["e1"]
    assert [e.id for e in filter_employees(employees, TimeWindow.ALL, now)] == ["e1", "e2"]


def test_filter_forms_by_created_at(now):
    forms = [
        Form(id="f1", created_at=datetime(2024, 5, 20)),
        Form(id="f2", created_at=datetime(2024, 6, 2)),
    ]

    assert [f.id for f in filter_forms(forms, TimeWindow.LAST_MONTH, now)] == ["f1"]
    assert [f.id for f in filter_forms(forms, TimeWindow.THIS_MONTH, now)] == ["f2"]


def test_filter_by_range_with_resolved_window():
    window = DateRange(start=datetime(2024, 6, 1))
    entries = [_entry("before", datetime(2024, 5, 31)), _entry("after", datetime(2024, 6, 1))]

    assert [e.id for e in filter_by_range(entries, window, lambda e: e.submitted_at)] == ["after"]


def test_filter_dashboard_uses_one_window_for_all_collections(now):
    forms = [Form(id="f1", created_at=datetime(2024, 6, 14)), Form(id="f2", created_at=datetime(2024, 6, 1))]
    entries = [_entry("x", datetime(2024, 6, 14, 18)), _entry("y", datetime(2024, 6, 13))]
    employees = [
        Employee(id="e1", created_at=datetime(2024, 6, 14, 9), is_approved=True),
        Employee(id="e2", created_at=datetime(2024, 6, 14, 10), is_approved=None),
        Employee(id="e3", created_at=datetime(2024, 6, 14, 11), is_approved=False),
        Employee(id="e4", created_at=None),
    ]

    data = filter_dashboard(forms, entries, employees, TimeWindow.YESTERDAY, now)

    assert data.window == DateRange(datetime(2024, 6, 14), datetime(2024, 6, 15))
    assert [f.id for f in data.forms] == ["f1"]
    assert [e.id for e in data.form_entries] == ["x"]
    assert [e.id for e in data.employees] == ["e1", "e2", "e3"]
    assert data.summary() == {"forms": 1, "approved_employees": 2, "form_entries": 1}


def test_filter_dashboard_all_keeps_everything(now):
    employees = [Employee(id="e1"), Employee(id="e2", is_approved=False)]

    data = filter_dashboard([], [], employees, TimeWindow.ALL, now)

    assert data.employees == employees
    assert data.summary() == {"forms": 0, "approved_employees": 1, "form_entries": 0}


def test_unparseable_custom_bound_logs_warning(now):
    with capture_logs() as logs:
        resolve_window(TimeWindow.CUSTOM, now, CustomDateRange(start="31/05/2024"))

    assert logs == [{
        "event": "custom_range_unparseable",
        "log_level": "warning",
        "side": "start",
        "value": "31/05/2024",
    }]
