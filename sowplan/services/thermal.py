"""Growing-degree-day accumulation and temperature averaging over a calendar.

``daily_rates`` maps month number (1-12) to the GDD accrued on each day of
that month. Every walk here is bounded by an explicit boundary date.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from sowplan.models.enums import BudgetModeEnum
from sowplan.models.plant import MaturityBudget
from sowplan.services.dates import add_days, round_half_up

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True, slots=True)
class Accumulation:
	date: date
	accumulated: float
	reached: bool = True


def _rate_on(day: date, daily_rates: Mapping[int, float]) -> float:
	return max(0.0, daily_rates.get(day.month, 0.0) or 0.0)


def accumulate_forward(
	start: date,
	target_amount: float,
	daily_rates: Mapping[int, float],
	hard_end: date,
) -> Accumulation:
	"""Walk forward from ``start`` (counted) until ``target_amount`` GDD are reached.

	The returned date is the day the target is met, or ``hard_end + 1`` with
	``reached=False`` when the boundary comes first.
	"""
	accumulated = 0.0
	current = start
	while accumulated < target_amount:
		if current > hard_end:
			break
		accumulated += _rate_on(current, daily_rates)
		if accumulated >= target_amount:
			break
		current += _ONE_DAY
	return Accumulation(date=current, accumulated=accumulated, reached=accumulated >= target_amount)


def accumulate_backward(
	target: date,
	target_amount: float,
	daily_rates: Mapping[int, float],
	hard_start: date,
) -> Accumulation:
	"""Walk backward from the day before ``target`` and return the earliest day summed."""
	accumulated = 0.0
	current = target - _ONE_DAY
	stop_at = hard_start - _ONE_DAY
	while accumulated < target_amount:
		if current <= stop_at:
			break
		accumulated += _rate_on(current, daily_rates)
		current -= _ONE_DAY
	return Accumulation(date=current + _ONE_DAY, accumulated=accumulated, reached=accumulated >= target_amount)


def maturity_date_from_budget(
	sow: date,
	budget: MaturityBudget,
	daily_rates: Mapping[int, float],
	hard_end: date,
) -> date:
	if budget.mode == BudgetModeEnum.days:
		return add_days(sow, max(0, round_half_up(budget.amount)))
	return accumulate_forward(sow, budget.amount, daily_rates, hard_end).date


def sow_date_from_target_maturity(
	target: date,
	budget: MaturityBudget,
	daily_rates: Mapping[int, float],
	hard_start: date,
) -> date:
	"""Inverse of :func:`maturity_date_from_budget`."""
	if budget.mode == BudgetModeEnum.days:
		return add_days(target, -max(0, round_half_up(budget.amount)))
	return accumulate_backward(target, budget.amount, daily_rates, hard_start).date


def weighted_mean_temp(
	start: date,
	end: date,
	monthly_means: Mapping[int, float],
	daily_rates: Mapping[int, float],
	base: float,
) -> float:
	"""Mean daily temperature over ``[start, end)``.

	Months without a climate mean are approximated from the GDD rate:
	``base + rate`` when warm, ``base - 2`` when no heat accrues.
	"""
	total = 0.0
	count = 0
	current = start
	while current < end:
		temp = monthly_means.get(current.month)
		if temp is None:
			rate = _rate_on(current, daily_rates)
			temp = base + rate if rate > 0 else base - 2
		total += temp
		count += 1
		current += _ONE_DAY
	return total / count if count else base
