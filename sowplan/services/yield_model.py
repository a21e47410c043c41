"""Yield multipliers from temperature response, and plant-count allocation.

Multipliers are batch-relative: each succession is scored against the best
one in the same schedule (which scores 1.0), never against an absolute
agronomic optimum.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from sowplan.models.enums import YieldWindowEnum
from sowplan.models.plant import MaturityBudget, TemperatureEnvelope
from sowplan.services.dates import add_days
from sowplan.services.thermal import maturity_date_from_budget, weighted_mean_temp

MULTIPLIER_FLOOR = 0.05
MULTIPLIER_EPSILON = 1e-9
MAX_ALLOCATION_INCREMENTS = 100_000


@dataclass(frozen=True, slots=True)
class PlantAllocation:
	plants: list[int]
	realized_total: float


def thermal_yield_factor(temp: float, envelope: TemperatureEnvelope) -> float:
	"""Four-point piecewise-linear response: 0 → 1 → 1 → 0 across min/optLow/optHigh/max."""
	if temp <= envelope.tmin or temp >= envelope.tmax:
		return 0.0
	if temp < envelope.topt_low:
		return (temp - envelope.tmin) / max(1e-9, envelope.topt_low - envelope.tmin)
	if temp <= envelope.topt_high:
		return 1.0
	return (envelope.tmax - temp) / max(1e-9, envelope.tmax - envelope.topt_high)


def derive_yield_multipliers(
	schedule: Sequence[date],
	budget: MaturityBudget,
	daily_rates: Mapping[int, float],
	envelope: TemperatureEnvelope,
	monthly_means: Mapping[int, float],
	hard_end: date,
	window: YieldWindowEnum = YieldWindowEnum.harvest,
	harvest_window_days: int = 0,
) -> list[float]:
	raw: list[float] = []
	for sow in schedule:
		maturity = maturity_date_from_budget(sow, budget, daily_rates, hard_end)
		if window == YieldWindowEnum.harvest:
			start, end = maturity, add_days(maturity, max(0, harvest_window_days))
		else:
			start, end = sow, maturity
		mean_temp = weighted_mean_temp(start, end, monthly_means, daily_rates, envelope.tbase)
		raw.append(thermal_yield_factor(mean_temp, envelope))

	best = max([*raw, 0.0])
	return [max(MULTIPLIER_FLOOR, min(1.0, factor / best if best > 0 else 0.0)) for factor in raw]


def _realized(plants: Sequence[int], yield_per_plant: float, multipliers: Sequence[float]) -> float:
	return sum(count * yield_per_plant * multiplier for count, multiplier in zip(plants, multipliers))


def distribute_plants_to_meet_target(
	count: int,
	season_target: float,
	yield_per_plant: float,
	multipliers: Sequence[float],
) -> PlantAllocation:
	"""Split ``season_target`` evenly across successions, then top up round-robin.

	Each succession first gets the plants it needs for its even share at its
	own multiplier; if rounding still leaves the season short, plants are
	added one at a time by index until the target is met or the increment cap
	is hit.
	"""
	if len(multipliers) != count:
		raise ValueError(f"expected {count} multipliers, got {len(multipliers)}")
	if count <= 0 or season_target <= 0 or yield_per_plant <= 0:
		return PlantAllocation(plants=[0] * max(0, count), realized_total=0.0)

	per_succession = season_target / count
	plants = [
		math.ceil(per_succession / (yield_per_plant * max(MULTIPLIER_EPSILON, multiplier)))
		for multiplier in multipliers
	]

	realized = _realized(plants, yield_per_plant, multipliers)
	increments = 0
	while realized < season_target and increments < MAX_ALLOCATION_INCREMENTS:
		index = increments % count
		plants[index] += 1
		realized = _realized(plants, yield_per_plant, multipliers)
		increments += 1

	return PlantAllocation(plants=plants, realized_total=realized)
