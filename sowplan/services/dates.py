"""Day-granular calendar arithmetic.

Everything in the kernel works on :class:`datetime.date` values, which carry
no time-of-day or zone and so behave like UTC-midnight timestamps.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterator
from datetime import date, timedelta


def round_half_up(value: float) -> int:
	return math.floor(value + 0.5)


def add_days(day: date, days: int) -> date:
	return day + timedelta(days=days)


def days_between(start: date, end: date) -> int:
	"""Signed whole days from ``start`` to ``end``."""
	return (end - start).days


def days_in_month(year: int, month: int) -> int:
	return calendar.monthrange(year, month)[1]


def day_of_year(day: date) -> int:
	return day.timetuple().tm_yday


def date_from_doy(year: int, doy: float) -> date:
	"""Date for a 1-based day-of-year; fractional and sub-1 values clamp down to 1."""
	return date(year, 1, 1) + timedelta(days=max(1, math.floor(doy)) - 1)


def year_start(year: int) -> date:
	return date(year, 1, 1)


def year_end(year: int) -> date:
	return date(year, 12, 31)


def month_start(day: date) -> date:
	return day.replace(day=1)


def next_month_start(day: date) -> date:
	if day.month == 12:
		return date(day.year + 1, 1, 1)
	return date(day.year, day.month + 1, 1)


def iter_days(start: date, end: date) -> Iterator[date]:
	"""Every day in ``[start, end]`` (empty when ``end < start``)."""
	current = start
	while current <= end:
		yield current
		current += timedelta(days=1)

