from __future__ import annotations

from ..common.datetime_utils import count_weekdays, month_bounds
from ..core.constants import DEFAULT_HOURS_PER_DAY


def working_days_in_month(month: int, year: int) -> int:
    """Non-weekend calendar days in the month."""
    start, end = month_bounds(month, year)
    return count_weekdays(start, end)


def daily_rate(monthly_salary: float, working_days: int) -> float:
    return monthly_salary / working_days


def hourly_rate(monthly_salary: float, working_days: int, hours_per_day: float = DEFAULT_HOURS_PER_DAY) -> float:
    return daily_rate(monthly_salary, working_days) / hours_per_day
