"""Schedule orchestration — turns a request into rows, explanations and windows."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any

from sowplan.config import Settings, get_settings
from sowplan.fallback import resolve_harvest_window_days
from sowplan.models.climate import CityClimate
from sowplan.models.config import PolicyFlags, SuccessionConfig
from sowplan.models.enums import BudgetModeEnum, SowingMethodEnum, YieldWindowEnum
from sowplan.models.plant import PlantProfile
from sowplan.models.request import ScheduleRequest
from sowplan.schemas.schedules import (
	AutoWindowRequestBody,
	AutoWindowResponse,
	FeasibilityEntryOut,
	FeasibilityRequestBody,
	FeasibilityResponse,
	HarvestWindowRequestBody,
	HarvestWindowResponse,
	ScheduleRequestBody,
	ScheduleResponse,
	ScheduleRowOut,
)
from sowplan.services.auto_window import auto_window_for_plant
from sowplan.services.dates import add_days, days_between, round_half_up, year_end, year_start
from sowplan.services.planner import Planner, PlannerContext
from sowplan.services.soil import lagged_air_soil_model
from sowplan.services.succession import build_succession_schedule
from sowplan.services.thermal import accumulate_forward, maturity_date_from_budget
from sowplan.services.yield_model import derive_yield_multipliers, distribute_plants_to_meet_target

_logger = logging.getLogger("sowplan.schedule_service")

_TRANSPLANT_METHODS = {SowingMethodEnum.transplant_indoor, SowingMethodEnum.transplant_outdoor}


@dataclass(frozen=True, slots=True)
class StageDates:
	sow: date
	germination: date | None
	transplant: date | None
	maturity: date
	harvest_start: date
	harvest_end: date


@dataclass(frozen=True, slots=True)
class ScheduleRow:
	succession_index: int
	sow_date: date
	germination_date: date | None
	transplant_date: date | None
	harvest_start: date
	harvest_end: date
	yield_multiplier: float
	plants_required: int | None = None


@dataclass(frozen=True, slots=True)
class ScheduleResult:
	rows: list[ScheduleRow]
	last_harvest_end: date | None
	realized_yield_kg: float | None = None

	@classmethod
	def empty(cls) -> ScheduleResult:
		return cls(rows=[], last_harvest_end=None)


@dataclass(frozen=True, slots=True)
class FeasibilityEntry:
	date: date
	ok: bool
	reason: str
	detail: str | None = None
	maturity: date | None = None
	harvest_end: date | None = None
	mean_harvest_temp: float | None = None


@dataclass(frozen=True, slots=True)
class HarvestWindowSuggestion:
	harvest_start: date | None
	harvest_end: date | None
	shelf_life_days: float | None = None
	reason: str | None = None


def _timing(op: str, start: float, **fields: Any) -> None:
	duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
	_logger.info("schedule_operation", extra={"operation": op, "duration_ms": duration_ms, **fields})


def planner_options(settings: Settings) -> dict[str, Any]:
	"""Keyword arguments for :func:`build_planner_context` taken from settings."""
	return {
		"default_harvest_window_days": settings.default_harvest_window_days,
		"default_last_spring_frost_doy": settings.default_last_spring_frost_doy,
		"soil_model": lagged_air_soil_model(settings.soil_lag_days, settings.soil_offset_c),
		"scan_max_days": settings.feasibility_scan_max_days,
	}


def perennial_end_date(start: date, lifespan_years: float | None) -> date:
	"""Dec 31 of ``start.year + lifespan_years``; lifespans under one year count as one."""
	years = 1
	if lifespan_years is not None and lifespan_years >= 1:
		years = int(lifespan_years)
	return year_end(start.year + years)


# ── Stage timeline ──────────────────────────────────────────────────────────


def _stage_at_fraction(sow: date, stage_days: float | None, maturity_days: float | None, ctx: PlannerContext) -> date | None:
	"""Date a sub-stage is reached, placed at its share of the maturity budget."""
	if not stage_days or not maturity_days:
		return None
	fraction = stage_days / maturity_days
	if not 0 < fraction < 1:
		return None
	amount = round_half_up(ctx.budget.amount * fraction)
	if ctx.budget.mode == BudgetModeEnum.days:
		return add_days(sow, amount)
	return accumulate_forward(sow, amount, ctx.daily_rates, ctx.scan_end_hard).date


def stage_dates(sow: date, plant: PlantProfile, ctx: PlannerContext) -> StageDates:
	maturity = maturity_date_from_budget(sow, ctx.budget, ctx.daily_rates, ctx.scan_end_hard)
	harvest_end = min(add_days(maturity, ctx.harvest_window_days), ctx.effective_hard_end)
	maturity_days = ctx.budget.amount if ctx.budget.mode == BudgetModeEnum.days else plant.days_maturity

	transplant = None
	if ctx.method in _TRANSPLANT_METHODS:
		transplant = _stage_at_fraction(sow, plant.days_transplant, maturity_days, ctx)

	return StageDates(
		sow=sow,
		germination=_stage_at_fraction(sow, plant.days_germ, maturity_days, ctx),
		transplant=transplant,
		maturity=maturity,
		harvest_start=maturity,
		harvest_end=max(harvest_end, maturity),
	)


# ── Operations ──────────────────────────────────────────────────────────────


def compute_schedule(request: ScheduleRequest, planner: Planner | None = None, settings: Settings | None = None) -> ScheduleResult:
	"""Succession dates, stage timeline, yield multipliers and plant counts."""
	settings = settings or get_settings()
	target = request.season_yield_target_kg
	planner = planner or Planner.from_request(request, **planner_options(settings))
	if target is not None and target <= 0:
		return ScheduleResult.empty()

	ctx = planner.ctx
	sows = build_succession_schedule(request, planner)
	if not sows:
		return ScheduleResult.empty()

	multipliers = derive_yield_multipliers(
		sows,
		ctx.budget,
		ctx.daily_rates,
		ctx.envelope,
		ctx.monthly_means,
		ctx.scan_end_hard,
		window=YieldWindowEnum.harvest,
		harvest_window_days=ctx.harvest_window_days,
	)

	floor = request.succession.min_yield_multiplier
	kept = [(sow, multiplier) for sow, multiplier in zip(sows, multipliers) if multiplier >= floor]
	if not kept:
		return ScheduleResult.empty()

	plants: list[int | None] = [None] * len(kept)
	realized = None
	if target is not None:
		allocation = distribute_plants_to_meet_target(
			len(kept),
			target,
			request.plant.yield_per_plant(),
			[multiplier for _, multiplier in kept],
		)
		plants = list(allocation.plants)
		realized = allocation.realized_total

	rows: list[ScheduleRow] = []
	for index, ((sow, multiplier), count) in enumerate(zip(kept, plants), start=1):
		stages = stage_dates(sow, request.plant, ctx)
		rows.append(
			ScheduleRow(
				succession_index=index,
				sow_date=sow,
				germination_date=stages.germination,
				transplant_date=stages.transplant,
				harvest_start=stages.harvest_start,
				harvest_end=stages.harvest_end,
				yield_multiplier=multiplier,
				plants_required=count,
			)
		)

	return ScheduleResult(
		rows=rows,
		last_harvest_end=max(row.harvest_end for row in rows),
		realized_yield_kg=realized,
	)


def explain_feasibility(
	request: ScheduleRequest,
	max_days: int = 400,
	stop_at_first_ok: bool = False,
	planner: Planner | None = None,
) -> list[FeasibilityEntry]:
	"""Per-day verdicts from the requested start, in date order."""
	planner = planner or Planner.from_request(request)
	ctx = planner.ctx
	entries: list[FeasibilityEntry] = []
	day = max(ctx.start_date, ctx.scan_start)
	for _ in range(max_days):
		if day > ctx.scan_end_hard:
			break
		result = planner.is_sow_feasible(day)
		if result.ok:
			entries.append(
				FeasibilityEntry(
					date=day,
					ok=True,
					reason="ok",
					maturity=result.maturity,
					harvest_end=result.harvest_end,
					mean_harvest_temp=result.mean_harvest_temp,
				)
			)
			if stop_at_first_ok:
				break
		else:
			entries.append(FeasibilityEntry(date=day, ok=False, reason=result.reason_code, detail=result.detail))
		day = add_days(day, 1)
	return entries


def suggest_harvest_window(
	plant: PlantProfile,
	city: CityClimate,
	year: int,
	method: SowingMethodEnum = SowingMethodEnum.direct_sow,
	settings: Settings | None = None,
) -> HarvestWindowSuggestion:
	"""Earliest harvest start and latest harvest end a crop can reach in ``year``."""
	settings = settings or get_settings()
	# a zero-length plant window falls through to the suggested default
	window = resolve_harvest_window_days(
		[plant.harvest_window_days],
		default=settings.suggested_harvest_window_days,
		label=plant.label,
		accept=lambda days: days != 0,
	)

	request = ScheduleRequest(
		plant=plant,
		city=city,
		method=method,
		start_date=year_start(year),
		season_end=year_end(year),
		anchor_year=year,
		succession=SuccessionConfig(harvest_window_days=window),
		policy=PolicyFlags.for_plant(
			plant,
			method,
			spring_frost_risk=settings.default_spring_frost_risk,
			soil_gate_consecutive_days=settings.soil_gate_consecutive_days,
		),
	)
	planner = Planner.from_request(request, **planner_options(settings))
	ctx = planner.ctx
	span = days_between(ctx.scan_start, ctx.scan_end_hard) + 2

	first = planner.find_next_feasible(ctx.scan_start, span)
	if not first.found:
		return HarvestWindowSuggestion(None, None, reason="No feasible sow date found in scan window")

	last = planner.find_prev_feasible(ctx.scan_end_hard, span)
	if not last.found:
		return HarvestWindowSuggestion(
			first.result.harvest_start,
			first.result.harvest_end,
			reason="No late-season feasible sow date found",
		)

	if last.result.harvest_end < first.result.harvest_start:
		return HarvestWindowSuggestion(
			first.result.harvest_start,
			first.result.harvest_end,
			shelf_life_days=plant.shelf_life_days,
			reason="Late harvest end < early harvest start (constraints)",
		)
	return HarvestWindowSuggestion(
		first.result.harvest_start,
		last.result.harvest_end,
		shelf_life_days=plant.shelf_life_days,
	)


# ── API facade ──────────────────────────────────────────────────────────────


class ScheduleService:
	def __init__(self, settings: Settings | None = None):
		self.settings = settings or get_settings()

	def _policy_for(self, body: ScheduleRequestBody, plant: PlantProfile) -> PolicyFlags:
		if body.policy is not None:
			return body.policy
		return PolicyFlags.for_plant(
			plant,
			body.method,
			spring_frost_risk=self.settings.default_spring_frost_risk,
			soil_gate_consecutive_days=self.settings.soil_gate_consecutive_days,
		)

	def build_request(self, body: ScheduleRequestBody) -> ScheduleRequest:
		plant = body.plant_profile()
		return ScheduleRequest(
			plant=plant,
			city=body.city_climate(),
			method=body.method,
			start_date=body.start_date,
			season_end=body.season_end,
			anchor_year=body.anchor_year if body.anchor_year is not None else body.start_date.year,
			succession=body.succession or SuccessionConfig(),
			policy=self._policy_for(body, plant),
			season_yield_target_kg=body.season_yield_target_kg,
		)

	def schedule(self, body: ScheduleRequestBody) -> ScheduleResponse:
		start = time.perf_counter()
		request = self.build_request(body)
		result = compute_schedule(request, settings=self.settings)
		_timing("schedule", start, plant=request.plant.label, rows=len(result.rows))
		return ScheduleResponse(
			plant=request.plant.label,
			method=request.method,
			rows=[ScheduleRowOut.model_validate(row, from_attributes=True) for row in result.rows],
			last_harvest_end=result.last_harvest_end,
			realized_yield_kg=result.realized_yield_kg,
		)

	def feasibility(self, body: FeasibilityRequestBody) -> FeasibilityResponse:
		start = time.perf_counter()
		request = self.build_request(body)
		planner = Planner.from_request(request, **planner_options(self.settings))
		max_days = body.max_days or self.settings.explain_max_days
		entries = explain_feasibility(request, max_days, body.stop_at_first_ok, planner=planner)
		first_ok = next((entry.date for entry in entries if entry.ok), None)
		_timing("feasibility", start, plant=request.plant.label, days=len(entries))
		return FeasibilityResponse(
			plant=request.plant.label,
			first_feasible_sow_date=first_ok,
			entries=[FeasibilityEntryOut.model_validate(entry, from_attributes=True) for entry in entries],
		)

	def auto_window(self, body: AutoWindowRequestBody) -> AutoWindowResponse:
		start = time.perf_counter()
		plant = body.plant_profile()
		window = resolve_harvest_window_days(
			[body.harvest_window_days, plant.harvest_window_days],
			default=self.settings.default_harvest_window_days,
			label=plant.label,
		)
		result = auto_window_for_plant(
			plant,
			body.city_climate(),
			body.anchor_year,
			body.method,
			window,
			succession_enabled=body.succession_enabled,
			spring_frost_risk=self.settings.default_spring_frost_risk,
			default_last_spring_frost_doy=self.settings.default_last_spring_frost_doy,
			soil_gate_consecutive_days=self.settings.soil_gate_consecutive_days,
			soil_model=lagged_air_soil_model(self.settings.soil_lag_days, self.settings.soil_offset_c),
		)
		_timing("auto_window", start, plant=plant.label, found=result.found)
		return AutoWindowResponse(
			earliest_feasible_sow_date=result.earliest_feasible_sow,
			last_feasible_sow_date=result.last_feasible_sow,
			last_harvest_date=result.last_harvest_date,
			climate_end_date=result.climate_end_date,
		)

	def harvest_window(self, body: HarvestWindowRequestBody) -> HarvestWindowResponse:
		start = time.perf_counter()
		plant = body.plant_profile()
		suggestion = suggest_harvest_window(plant, body.city_climate(), body.year, body.method, self.settings)
		_timing("harvest_window", start, plant=plant.label, found=suggestion.reason is None)
		return HarvestWindowResponse(
			plant=plant.label,
			harvest_start=suggestion.harvest_start,
			harvest_end=suggestion.harvest_end,
			shelf_life_days=suggestion.shelf_life_days,
			reason=suggestion.reason,
		)
