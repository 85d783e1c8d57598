"""Response-detail logic: edit eligibility, ordering and role-based selection.

Pure functions with no external dependencies. `now` is always passed in.
"""

import calendar
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from enum import StrEnum

from formdesk.domain.time_windows import DateRange, align_tz, filter_by_range, midnight
from formdesk.schemas.records import Employee, FormEntry, TimeRestrictions
from formdesk.schemas.users import User

# Submitters may change a response for this long after sending it
EDIT_WINDOW = timedelta(hours=3)

UNKNOWN_EMPLOYEE_NAME = "Employé inconnu"

ALL_EMPLOYEES = "all"

# allowed_days index: 0=Sunday .. 6=Saturday
DAY_NAMES = ["Dim", "Lun", "Mar", "Mer", "Jeu", "Ven", "Sam"]

FILE_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class ResponseWindow(StrEnum):
    """Quick filters on the response-detail page (lower bound only)."""

    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


def is_editable(submitted_at: datetime, now: datetime) -> bool:
    """True while less than EDIT_WINDOW has elapsed since submission.

    Exactly EDIT_WINDOW after submission the response is no longer editable.
    """
    return align_tz(submitted_at, now) > now - EDIT_WINDOW


def can_edit_response(viewer: User | None, entry: FormEntry, now: datetime) -> bool:
    """Only the employee who submitted a response may edit it, inside the edit window."""
    if viewer is None or not viewer.is_employee:
        return False
    if entry.user_id != viewer.id:
        return False
    return is_editable(entry.submitted_at, now)


def sort_by_submitted_at(entries: Iterable[FormEntry], order: str = SortOrder.DESC) -> list[FormEntry]:
    """Sort by submission time. Stable: equal timestamps keep their input order either way."""
    return sorted(entries, key=lambda entry: entry.submitted_at, reverse=order == SortOrder.DESC)


def _one_month_before(moment: datetime) -> datetime:
    year, month = (moment.year - 1, 12) if moment.month == 1 else (moment.year, moment.month - 1)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_response_window(window: str, now: datetime) -> DateRange:
    """Lower bound for the response-detail quick filters.

    Rules:
        - today: from midnight
        - week: from midnight 7 days ago
        - month: from midnight one calendar month ago (day clamped to month end)
        - all / unrecognized: unbounded
    """
    today = midnight(now)

    if window == ResponseWindow.TODAY:
        return DateRange(start=today)
    if window == ResponseWindow.WEEK:
        return DateRange(start=today - timedelta(days=7))
    if window == ResponseWindow.MONTH:
        return DateRange(start=_one_month_before(today))
    return DateRange()


def select_responses(
    entries: Iterable[FormEntry],
    viewer: User | None,
    form_id: str | None,
    *,
    now: datetime,
    employee_filter: str = ALL_EMPLOYEES,
    window: str = ResponseWindow.ALL,
    order: str = SortOrder.DESC,
) -> list[FormEntry]:
    """Responses to one form as shown on the response-detail page.

    Args:
        entries: All known entries (any form, any submitter)
        viewer: Current user; employees only ever see their own responses
        form_id: Form being viewed (None/empty = nothing to show)
        now: Current time, captured once by the caller
        employee_filter: Submitter id to narrow to, directors only ("all" = everyone)
        window: ResponseWindow quick filter
        order: "asc" (oldest first) or "desc" (newest first)

    Returns:
        Filtered, stably sorted list of entries
    """
    if not form_id or viewer is None:
        return []

    selected = [entry for entry in entries if entry.form_id == form_id]

    if viewer.is_employee:
        selected = [entry for entry in selected if entry.user_id == viewer.id]
    elif viewer.is_director and employee_filter != ALL_EMPLOYEES:
        selected = [entry for entry in selected if entry.user_id == employee_filter]

    selected = filter_by_range(selected, resolve_response_window(window, now), lambda entry: entry.submitted_at)

    return sort_by_submitted_at(selected, order)


def employee_display_name(employees: Sequence[Employee], employee_id: str) -> str:
    for employee in employees:
        if employee.id == employee_id:
            return employee.name or UNKNOWN_EMPLOYEE_NAME
    return UNKNOWN_EMPLOYEE_NAME


def format_file_size(num_bytes: int) -> str:
    """Human-readable size with up to two decimals, e.g. "1.5 KB"."""
    if num_bytes <= 0:
        return "0 Bytes"

    exponent = 0
    while exponent < len(FILE_SIZE_UNITS) - 1 and num_bytes >= 1024 ** (exponent + 1):
        exponent += 1

    value = f"{num_bytes / 1024**exponent:.2f}".rstrip("0").rstrip(".")
    return f"{value} {FILE_SIZE_UNITS[exponent]}"


def format_time_restrictions(restrictions: TimeRestrictions | None) -> str:
    """Short label for a form's time restrictions, e.g. "08:00 - 17:00 (Lun, Mar)".

    Returns "" when neither a start nor an end time is set.
    """
    if restrictions is None or (not restrictions.start_time and not restrictions.end_time):
        return ""

    if restrictions.start_time and restrictions.end_time:
        time_label = f"{restrictions.start_time} - {restrictions.end_time}"
    elif restrictions.start_time:
        time_label = f"À partir de {restrictions.start_time}"
    else:
        time_label = f"Jusqu'à {restrictions.end_time}"

    days = [DAY_NAMES[day] for day in sorted(restrictions.allowed_days) if 0 <= day < len(DAY_NAMES)]
    if days:
        return f"{time_label} ({', '.join(days)})"
    return time_label
