"""Feasibility evaluator — tests candidate sow dates against every gate.

A :class:`Planner` is built once per :class:`ScheduleRequest` from a frozen
:class:`PlannerContext` and is then queried day by day by the succession
scheduler, the feasibility explanation and the auto-window solver.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from sowplan.models.climate import DEFAULT_LAST_SPRING_FROST_DOY
from sowplan.models.enums import BudgetModeEnum, RejectionReasonEnum, SowingMethodEnum
from sowplan.models.plant import MaturityBudget, TemperatureEnvelope
from sowplan.models.request import DEFAULT_HARVEST_WINDOW_DAYS, ScheduleRequest
from sowplan.services.dates import (
	add_days,
	day_of_year,
	days_between,
	days_in_month,
	month_start,
	next_month_start,
	round_half_up,
)
from sowplan.services.soil import SoilTemperatureModel, default_soil_model
from sowplan.services.thermal import (
	accumulate_forward,
	maturity_date_from_budget,
	sow_date_from_target_maturity,
	weighted_mean_temp,
)

DEFAULT_SCAN_MAX_DAYS = 366
MIN_HARVEST_DAYS = 3

_logger = logging.getLogger("sowplan.planner")

_TRANSPLANT_METHODS = {SowingMethodEnum.transplant_indoor, SowingMethodEnum.transplant_outdoor}


@dataclass(frozen=True, slots=True)
class PlannerContext:
	"""Read-only inputs for one planning pass."""

	method: SowingMethodEnum
	start_date: date
	season_end: date
	scan_start: date
	scan_end_hard: date
	budget: MaturityBudget
	envelope: TemperatureEnvelope
	daily_rates: Mapping[int, float]
	monthly_means: Mapping[int, float]
	harvest_window_days: int
	transplant_lag_days: int = 0
	overwinter_allowed: bool = False
	use_spring_frost_gate: bool = False
	last_spring_frost_doy: float = DEFAULT_LAST_SPRING_FROST_DOY
	cooling_threshold_c: float | None = None
	cooling_cross_date: date | None = None
	use_soil_gate: bool = False
	soil_threshold_c: float | None = None
	soil_consecutive_days: int = 3
	soil_model: SoilTemperatureModel = default_soil_model
	scan_max_days: int = DEFAULT_SCAN_MAX_DAYS

	@property
	def effective_hard_end(self) -> date:
		return min(self.season_end, self.scan_end_hard)

	@property
	def use_cooling_gate(self) -> bool:
		return self.cooling_threshold_c is not None


@dataclass(frozen=True, slots=True)
class FeasibilityResult:
	ok: bool
	reason: RejectionReasonEnum | None = None
	detail: str | None = None
	maturity: date | None = None
	harvest_start: date | None = None
	harvest_end: date | None = None
	truncated: bool = False
	mean_harvest_temp: float | None = None

	@classmethod
	def reject(cls, reason: RejectionReasonEnum, detail: str | None = None) -> FeasibilityResult:
		return cls(ok=False, reason=reason, detail=detail)

	@property
	def reason_code(self) -> str:
		return "ok" if self.ok or self.reason is None else self.reason.value


@dataclass(frozen=True, slots=True)
class FeasibleSow:
	date: date | None
	result: FeasibilityResult | None

	@property
	def found(self) -> bool:
		return self.date is not None


def first_cooling_crossing_date(
	threshold_c: float,
	monthly_means: Mapping[int, float],
	scan_start: date,
	scan_end_hard: date,
) -> date | None:
	"""First day the monthly mean falls from above ``threshold_c`` to at/below it.

	The day inside the crossing month is interpolated linearly between the two
	monthly means. A season that already starts at/below the threshold opens at
	``scan_start``.
	"""
	cursor = month_start(scan_start)
	last_month = month_start(scan_end_hard)
	prev_mean = monthly_means.get(add_days(cursor, -1).month)

	while cursor <= last_month:
		current_mean = monthly_means.get(cursor.month)
		if current_mean is not None and prev_mean is not None and prev_mean > threshold_c >= current_mean:
			dim = days_in_month(cursor.year, cursor.month)
			frac = min(1.0, max(0.0, (prev_mean - threshold_c) / max(1e-6, prev_mean - current_mean)))
			return cursor.replace(day=max(1, min(dim, round_half_up(frac * dim))))
		prev_mean = current_mean
		cursor = next_month_start(cursor)

	start_mean = monthly_means.get(scan_start.month)
	if start_mean is not None and start_mean <= threshold_c:
		return scan_start
	return None


def build_planner_context(
	request: ScheduleRequest,
	*,
	default_harvest_window_days: float = DEFAULT_HARVEST_WINDOW_DAYS,
	default_last_spring_frost_doy: float = DEFAULT_LAST_SPRING_FROST_DOY,
	soil_model: SoilTemperatureModel = default_soil_model,
	scan_max_days: int = DEFAULT_SCAN_MAX_DAYS,
) -> PlannerContext:
	"""Freeze a request into planner inputs. Configuration errors surface here."""
	season = request.derive(default_harvest_window_days)
	plant = request.plant
	policy = request.policy

	cooling_threshold = plant.start_cooling_threshold_c
	cooling_cross = None
	if cooling_threshold is not None:
		cooling_cross = first_cooling_crossing_date(
			cooling_threshold,
			season.monthly_means,
			season.scan_start,
			season.scan_end_hard,
		)

	context = PlannerContext(
		method=request.method,
		start_date=season.start_date,
		season_end=season.season_end,
		scan_start=season.scan_start,
		scan_end_hard=season.scan_end_hard,
		budget=season.budget,
		envelope=season.envelope,
		daily_rates=season.daily_rates,
		monthly_means=season.monthly_means,
		harvest_window_days=season.harvest_window_days,
		transplant_lag_days=plant.transplant_lag_days(),
		overwinter_allowed=policy.overwinter_allowed,
		use_spring_frost_gate=policy.spring_frost_gate_active,
		last_spring_frost_doy=request.city.last_spring_frost(policy.spring_frost_risk, default_last_spring_frost_doy),
		cooling_threshold_c=cooling_threshold,
		cooling_cross_date=cooling_cross,
		use_soil_gate=policy.soil_gate_active,
		soil_threshold_c=policy.soil_gate_threshold_c,
		soil_consecutive_days=policy.soil_gate_consecutive_days,
		soil_model=soil_model,
		scan_max_days=scan_max_days,
	)
	_logger.debug(
		"planner_context_built",
		extra={
			"plant": plant.label,
			"method": request.method.value,
			"budget_mode": season.budget.mode.value,
			"budget_amount": season.budget.amount,
			"scan_start": season.scan_start.isoformat(),
			"scan_end_hard": season.scan_end_hard.isoformat(),
		},
	)
	return context


class Planner:
	"""Evaluates candidate sow dates against one frozen planning context."""

	def __init__(self, context: PlannerContext):
		self.ctx = context

	@classmethod
	def from_request(cls, request: ScheduleRequest, **options: Any) -> Planner:
		return cls(build_planner_context(request, **options))

	# ── Date helpers ────────────────────────────────────────────────────────

	def within_window(self, day: date) -> bool:
		return self.ctx.scan_start <= day <= self.ctx.scan_end_hard

	def transplant_date(self, sow: date) -> date | None:
		if self.ctx.method not in _TRANSPLANT_METHODS:
			return None
		return add_days(sow, self.ctx.transplant_lag_days)

	def gate_date(self, sow: date) -> date:
		transplant = self.transplant_date(sow)
		return sow if transplant is None else transplant

	def maturity_for(self, sow: date) -> date:
		return maturity_date_from_budget(sow, self.ctx.budget, self.ctx.daily_rates, self.ctx.scan_end_hard)

	def implied_harvest_end(self, sow: date) -> date:
		"""Untruncated harvest end had sowing happened on ``sow``."""
		return add_days(self.maturity_for(sow), max(0, self.ctx.harvest_window_days))

	# ── Gates ───────────────────────────────────────────────────────────────

	def soil_gate_ok(self, sow: date) -> bool:
		ctx = self.ctx
		if ctx.soil_threshold_c is None:
			return True
		for offset in range(ctx.soil_consecutive_days):
			if ctx.soil_model(add_days(sow, offset), ctx.monthly_means) < ctx.soil_threshold_c:
				return False
		return True

	def _check_spring_frost(self, gate: date) -> FeasibilityResult | None:
		if not self.ctx.use_spring_frost_gate:
			return None
		doy = day_of_year(gate)
		if doy < self.ctx.last_spring_frost_doy:
			return FeasibilityResult.reject(
				RejectionReasonEnum.spring_frost_gate,
				f"doy {doy} < {self.ctx.last_spring_frost_doy:g}",
			)
		return None

	def _check_cooling(self, gate: date) -> FeasibilityResult | None:
		if not self.ctx.use_cooling_gate:
			return None
		cross = self.ctx.cooling_cross_date
		if cross is None or gate < cross:
			return FeasibilityResult.reject(RejectionReasonEnum.cooling_gate)
		return None

	def _check_soil(self, sow: date) -> FeasibilityResult | None:
		if not self.ctx.use_soil_gate or self.ctx.method != SowingMethodEnum.direct_sow:
			return None
		if not self.soil_gate_ok(sow):
			return FeasibilityResult.reject(RejectionReasonEnum.soil_gate)
		return None

	# ── Evaluation ──────────────────────────────────────────────────────────

	def is_sow_feasible(self, candidate: date) -> FeasibilityResult:
		ctx = self.ctx
		if not self.within_window(candidate):
			return FeasibilityResult.reject(RejectionReasonEnum.outside_scan_window)

		gate = self.gate_date(candidate)
		for rejection in (self._check_spring_frost(gate), self._check_cooling(gate), self._check_soil(candidate)):
			if rejection is not None:
				return rejection

		if ctx.budget.mode == BudgetModeEnum.gdd:
			accumulation = accumulate_forward(candidate, ctx.budget.amount, ctx.daily_rates, ctx.scan_end_hard)
			if not accumulation.reached:
				return FeasibilityResult.reject(RejectionReasonEnum.insufficient_gdd)
			maturity = accumulation.date
		else:
			maturity = self.maturity_for(candidate)

		full_harvest_end = add_days(maturity, ctx.harvest_window_days)
		if not ctx.overwinter_allowed and candidate.year != full_harvest_end.year:
			return FeasibilityResult.reject(RejectionReasonEnum.cross_year_disallowed)

		harvest_end = min(full_harvest_end, ctx.effective_hard_end)
		span = max(0, days_between(maturity, harvest_end))
		if span < min(ctx.harvest_window_days, MIN_HARVEST_DAYS):
			return FeasibilityResult.reject(RejectionReasonEnum.beyond_hard_end)

		mean_temp = weighted_mean_temp(maturity, harvest_end, ctx.monthly_means, ctx.daily_rates, ctx.envelope.tbase)
		if mean_temp < ctx.envelope.tmin:
			return FeasibilityResult.reject(
				RejectionReasonEnum.harvest_too_cold,
				f"{mean_temp:.1f}<{ctx.envelope.tmin:g}",
			)
		if mean_temp > ctx.envelope.tmax:
			return FeasibilityResult.reject(
				RejectionReasonEnum.harvest_too_hot,
				f"{mean_temp:.1f}>{ctx.envelope.tmax:g}",
			)

		return FeasibilityResult(
			ok=True,
			maturity=maturity,
			harvest_start=maturity,
			harvest_end=harvest_end,
			truncated=harvest_end < full_harvest_end,
			mean_harvest_temp=mean_temp,
		)

	def find_next_feasible(self, start: date, max_days: int | None = None) -> FeasibleSow:
		"""First feasible day on or after ``start``, looking at most ``max_days`` ahead."""
		if max_days is None:
			max_days = self.ctx.scan_max_days
		current = max(start, self.ctx.scan_start)
		for _ in range(max_days + 1):
			if current > self.ctx.scan_end_hard:
				break
			result = self.is_sow_feasible(current)
			if result.ok:
				return FeasibleSow(current, result)
			current = add_days(current, 1)
		return FeasibleSow(None, None)

	def find_prev_feasible(self, end: date, max_days: int | None = None) -> FeasibleSow:
		"""Backward counterpart of :meth:`find_next_feasible`."""
		if max_days is None:
			max_days = self.ctx.scan_max_days
		current = min(end, self.ctx.scan_end_hard)
		for _ in range(max_days + 1):
			if current < self.ctx.scan_start:
				break
			result = self.is_sow_feasible(current)
			if result.ok:
				return FeasibleSow(current, result)
			current = add_days(current, -1)
		return FeasibleSow(None, None)

	def next_planting_date(
		self,
		prev_sow: date,
		overlap_days: int,
		min_harvest_days: int = MIN_HARVEST_DAYS,
	) -> date | None:
		"""Sow date whose maturity lands ``overlap_days`` after the previous one.

		``None`` once the previous harvest or the next target maturity no
		longer fits inside the season.
		"""
		ctx = self.ctx
		hard_end = ctx.effective_hard_end

		prev_maturity = self.maturity_for(prev_sow)
		prev_harvest_end = add_days(prev_maturity, ctx.harvest_window_days)
		if prev_harvest_end > hard_end:
			return None
		if not ctx.overwinter_allowed and prev_sow.year != prev_harvest_end.year:
			return None

		target_maturity = add_days(prev_maturity, max(0, overlap_days))
		if target_maturity > hard_end:
			return None

		sow = sow_date_from_target_maturity(target_maturity, ctx.budget, ctx.daily_rates, ctx.scan_start)
		if add_days(target_maturity, min_harvest_days) > hard_end:
			return None
		return sow
