"""Season pre-bounding from raw climate and plant parameters.

The solver builds its own :class:`PlannerContext` so callers can ask "when
could this crop go in at all?" before a full :class:`ScheduleRequest` exists.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date

from sowplan.models.climate import DEFAULT_LAST_SPRING_FROST_DOY, CityClimate
from sowplan.models.enums import THERMAL_REJECTIONS, FrostRiskEnum, SowingMethodEnum
from sowplan.models.plant import MaturityBudget, PlantProfile, TemperatureEnvelope
from sowplan.services.dates import add_days, date_from_doy, iter_days, round_half_up, year_end, year_start
from sowplan.services.planner import Planner, PlannerContext, first_cooling_crossing_date
from sowplan.services.soil import SoilTemperatureModel, default_soil_model

_logger = logging.getLogger("sowplan.auto_window")


@dataclass(frozen=True, slots=True)
class AutoWindow:
	earliest_feasible_sow: date | None
	last_feasible_sow: date | None
	last_harvest_date: date | None
	climate_end_date: date | None

	@property
	def found(self) -> bool:
		return self.last_feasible_sow is not None


def _field_gate_start(
	ctx: PlannerContext,
	start_cooling_threshold_c: float | None,
	last_spring_frost_doy: float | None,
) -> date:
	"""Earliest day the air-side gates (frost, cooling) let a crop into the field."""
	gate_start = ctx.scan_start
	if ctx.use_spring_frost_gate and last_spring_frost_doy is not None:
		gate_start = max(gate_start, date_from_doy(ctx.scan_start.year, last_spring_frost_doy))
	if start_cooling_threshold_c is not None:
		cross = first_cooling_crossing_date(
			start_cooling_threshold_c,
			ctx.monthly_means,
			ctx.scan_start,
			ctx.scan_end_hard,
		)
		if cross is not None:
			gate_start = max(gate_start, cross)
	return gate_start


def _first_soil_ready(planner: Planner, start: date) -> date | None:
	ctx = planner.ctx
	for day in iter_days(max(start, ctx.scan_start), ctx.scan_end_hard):
		if not ctx.use_soil_gate or planner.soil_gate_ok(day):
			return day
	return None


def compute_auto_window(
	*,
	method: SowingMethodEnum,
	budget: MaturityBudget,
	harvest_window_days: int,
	daily_rates: Mapping[int, float],
	monthly_means: Mapping[int, float],
	envelope: TemperatureEnvelope,
	scan_start: date,
	scan_end_hard: date,
	soil_gate_threshold_c: float | None = None,
	soil_gate_consecutive_days: int = 3,
	start_cooling_threshold_c: float | None = None,
	use_spring_frost_gate: bool = False,
	last_spring_frost_doy: float | None = None,
	days_transplant: float = 0,
	overwinter_allowed: bool = False,
	succession_enabled: bool = False,
	soil_model: SoilTemperatureModel = default_soil_model,
) -> AutoWindow:
	"""Scan every candidate sow day of the season and summarize the feasible span.

	Days rejected only for thermal reasons still contribute the harvest end
	they would have had, so a climate end is reported even when nothing is
	feasible.
	"""
	lag = max(0, round_half_up(days_transplant or 0))
	cooling_cross = None
	if start_cooling_threshold_c is not None:
		cooling_cross = first_cooling_crossing_date(start_cooling_threshold_c, monthly_means, scan_start, scan_end_hard)

	ctx = PlannerContext(
		method=method,
		start_date=scan_start,
		season_end=scan_end_hard,
		scan_start=scan_start,
		scan_end_hard=scan_end_hard,
		budget=budget,
		envelope=envelope,
		daily_rates=daily_rates,
		monthly_means=monthly_means,
		harvest_window_days=max(0, harvest_window_days),
		transplant_lag_days=lag,
		overwinter_allowed=overwinter_allowed,
		use_spring_frost_gate=use_spring_frost_gate and not overwinter_allowed,
		last_spring_frost_doy=last_spring_frost_doy if last_spring_frost_doy is not None else DEFAULT_LAST_SPRING_FROST_DOY,
		cooling_threshold_c=start_cooling_threshold_c,
		cooling_cross_date=cooling_cross,
		use_soil_gate=method == SowingMethodEnum.direct_sow and soil_gate_threshold_c is not None,
		soil_threshold_c=soil_gate_threshold_c,
		soil_consecutive_days=soil_gate_consecutive_days,
		soil_model=soil_model,
	)
	planner = Planner(ctx)

	# overwintering crops may only be sown in the first season year
	sow_scan_end = year_end(scan_start.year) if overwinter_allowed else scan_end_hard

	candidate = _field_gate_start(ctx, start_cooling_threshold_c, last_spring_frost_doy)
	if method == SowingMethodEnum.transplant_indoor:
		candidate = max(add_days(candidate, -lag), scan_start)
	if method == SowingMethodEnum.direct_sow:
		candidate = _first_soil_ready(planner, candidate) or candidate

	first_ok_sow: date | None = None
	first_ok_harvest_end: date | None = None
	last_ok_sow: date | None = None
	last_ok_harvest_end: date | None = None
	last_thermal_harvest_end: date | None = None

	for day in iter_days(candidate, sow_scan_end):
		result = planner.is_sow_feasible(day)
		if result.ok:
			if first_ok_sow is None:
				first_ok_sow = day
				first_ok_harvest_end = result.harvest_end
			last_ok_sow = day
			if last_ok_harvest_end is None or result.harvest_end > last_ok_harvest_end:
				last_ok_harvest_end = result.harvest_end
		elif result.reason in THERMAL_REJECTIONS:
			implied = min(planner.implied_harvest_end(day), scan_end_hard)
			if last_thermal_harvest_end is None or implied > last_thermal_harvest_end:
				last_thermal_harvest_end = implied

	if first_ok_sow is None:
		fallback_end = last_thermal_harvest_end or scan_end_hard
		_logger.info(
			"auto_window_no_feasible_sow",
			extra={
				"method": method.value,
				"scan_start": scan_start.isoformat(),
				"scan_end_hard": scan_end_hard.isoformat(),
				"first_candidate": candidate.isoformat(),
			},
		)
		return AutoWindow(
			earliest_feasible_sow=candidate,
			last_feasible_sow=None,
			last_harvest_date=fallback_end,
			climate_end_date=fallback_end,
		)

	if succession_enabled:
		last_harvest = last_ok_harvest_end or first_ok_harvest_end
	else:
		last_harvest = first_ok_harvest_end

	if overwinter_allowed:
		climate_end = last_harvest or last_ok_harvest_end or last_thermal_harvest_end or scan_end_hard
	else:
		climate_end = last_ok_harvest_end or last_thermal_harvest_end or first_ok_harvest_end or scan_end_hard

	_logger.debug(
		"auto_window_resolved",
		extra={
			"method": method.value,
			"earliest": first_ok_sow.isoformat(),
			"latest": last_ok_sow.isoformat() if last_ok_sow else None,
			"climate_end": climate_end.isoformat(),
		},
	)
	return AutoWindow(
		earliest_feasible_sow=first_ok_sow,
		last_feasible_sow=last_ok_sow,
		last_harvest_date=last_harvest,
		climate_end_date=climate_end,
	)


def auto_window_for_plant(
	plant: PlantProfile,
	city: CityClimate,
	anchor_year: int,
	method: SowingMethodEnum,
	harvest_window_days: int,
	*,
	succession_enabled: bool = False,
	spring_frost_risk: FrostRiskEnum = FrostRiskEnum.p50,
	default_last_spring_frost_doy: float = DEFAULT_LAST_SPRING_FROST_DOY,
	soil_gate_consecutive_days: int = 3,
	soil_model: SoilTemperatureModel = default_soil_model,
) -> AutoWindow:
	"""Auto-window from stored records, with gates implied by the plant itself."""
	envelope = plant.temperature_envelope()
	overwinter = plant.overwinter_allowed
	end_year = anchor_year + 1 if overwinter else anchor_year

	return compute_auto_window(
		method=method,
		budget=plant.maturity_budget(),
		harvest_window_days=harvest_window_days,
		daily_rates=city.daily_rates(envelope.tbase, anchor_year),
		monthly_means=city.monthly_means(),
		envelope=envelope,
		scan_start=year_start(anchor_year),
		scan_end_hard=year_end(end_year),
		soil_gate_threshold_c=plant.soil_temp_min_plant_c,
		soil_gate_consecutive_days=soil_gate_consecutive_days,
		start_cooling_threshold_c=plant.start_cooling_threshold_c,
		use_spring_frost_gate=not overwinter,
		last_spring_frost_doy=city.last_spring_frost(spring_frost_risk, default_last_spring_frost_doy),
		days_transplant=plant.days_transplant or 0,
		overwinter_allowed=overwinter,
		succession_enabled=succession_enabled,
		soil_model=soil_model,
	)
