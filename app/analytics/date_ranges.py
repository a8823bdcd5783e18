"""
Date range presets for dashboard filters.
"""

import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

from app.models.enums import DatePreset

DateRange = Tuple[Optional[date], Optional[date]]


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def resolve_date_preset(preset: DatePreset, today: Optional[date] = None) -> DateRange:
    """
    (start_date, end_date) for a preset, both inclusive.

    ALL_TIME and CUSTOM resolve to (None, None); custom bounds come from
    the caller.
    """
    today = today or date.today()

    if preset == DatePreset.THIS_MONTH:
        return today.replace(day=1), _month_end(today.year, today.month)

    if preset == DatePreset.LAST_MONTH:
        last_day = today.replace(day=1) - timedelta(days=1)
        return last_day.replace(day=1), last_day

    if preset == DatePreset.LAST_WEEK:
        # Monday through Sunday of the week containing today - 7 days
        week_ago = today - timedelta(days=7)
        start = week_ago - timedelta(days=week_ago.weekday())
        return start, start + timedelta(days=6)

    if preset == DatePreset.THIS_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    if preset == DatePreset.LAST_YEAR:
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    if preset == DatePreset.LAST_30_DAYS:
        return today - timedelta(days=30), today

    if preset == DatePreset.LAST_90_DAYS:
        return today - timedelta(days=90), today

    return None, None
