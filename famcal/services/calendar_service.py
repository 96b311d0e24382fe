"""Month calendar grid built from activity snapshots."""

import calendar
from collections.abc import Sequence

from famcal.core.time_utils import parse_local_datetime
from famcal.domain.activity import Activity, FixedActivity
from famcal.models.service_models import CalendarDay, CalendarMonth


DAY_HEADERS = ["Mån", "Tis", "Ons", "Tors", "Fre", "Lör", "Sön"]
MONTH_NAMES = [
    "januari",
    "februari",
    "mars",
    "april",
    "maj",
    "juni",
    "juli",
    "augusti",
    "september",
    "oktober",
    "november",
    "december",
]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months from (year, month)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def build_month(
    year: int,
    month: int,
    activities: Sequence[Activity],
    fixed_activities: Sequence[FixedActivity],
) -> CalendarMonth:
    """Lay out one month, Monday first.

    One-off activities land on their local calendar date. Fixed activities
    recur daily, so every day lists all of them.

    Raises:
        ValueError: If month is outside 1..12
    """
    if not 1 <= month <= 12:  # noqa: PLR2004
        raise ValueError(f"Invalid month: {month}")

    first_weekday, days_in_month = calendar.monthrange(year, month)

    by_date: dict[str, list[Activity]] = {}
    for activity in activities:
        occurrence = parse_local_datetime(activity.date)
        if occurrence is None:
            continue
        by_date.setdefault(occurrence.date().isoformat(), []).append(activity)

    days = []
    for day in range(1, days_in_month + 1):
        day_str = f"{year:04d}-{month:02d}-{day:02d}"
        days.append(
            CalendarDay(
                day=day,
                date=day_str,
                activities=by_date.get(day_str, []),
                fixed_activities=list(fixed_activities),
            )
        )

    return CalendarMonth(
        year=year,
        month=month,
        title=f"{MONTH_NAMES[month - 1]} {year}",
        day_headers=DAY_HEADERS,
        leading_blanks=first_weekday,
        days=days,
        previous=shift_month(year, month, -1),
        next=shift_month(year, month, 1),
    )
