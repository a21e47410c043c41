"""ScheduleRequest: everything one planning action needs, bound together."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from sowplan.fallback import resolve_harvest_window_days
from sowplan.models.climate import CityClimate
from sowplan.models.config import PolicyFlags, SuccessionConfig
from sowplan.models.enums import SowingMethodEnum
from sowplan.models.plant import MaturityBudget, PlantProfile, TemperatureEnvelope

DEFAULT_HARVEST_WINDOW_DAYS = 7


@dataclass(frozen=True, slots=True)
class DerivedSeason:
	"""Season bounds and thermal tables resolved from a request."""

	start_date: date
	season_end: date
	scan_start: date
	scan_end_hard: date
	budget: MaturityBudget
	envelope: TemperatureEnvelope
	daily_rates: Mapping[int, float]
	monthly_means: Mapping[int, float]
	harvest_window_days: int


class ScheduleRequest(BaseModel):
	model_config = ConfigDict(frozen=True)

	plant: PlantProfile
	city: CityClimate
	method: SowingMethodEnum
	start_date: date
	season_end: date
	anchor_year: int
	succession: SuccessionConfig = Field(default_factory=SuccessionConfig)
	policy: PolicyFlags = Field(default_factory=PolicyFlags)
	season_yield_target_kg: float | None = None

	def harvest_window_days(self, default: float = DEFAULT_HARVEST_WINDOW_DAYS) -> int:
		"""Override from succession config, else the plant's own window, else ``default``."""
		return resolve_harvest_window_days(
			[self.succession.harvest_window_days, self.plant.harvest_window_days],
			default=default,
			label=self.plant.label,
		)

	def derive(self, default_harvest_window_days: float = DEFAULT_HARVEST_WINDOW_DAYS) -> DerivedSeason:
		"""Resolve the immutable evaluation inputs; raises before any scanning."""
		budget = self.plant.maturity_budget()
		envelope = self.plant.temperature_envelope()
		scan_years = self.plant.scan_years(overwinter_allowed=self.policy.overwinter_allowed)
		scan_start = date(self.anchor_year, 1, 1)
		scan_end_hard = date(self.anchor_year + scan_years - 1, 12, 31)

		# thermal tables are keyed to the first scan year; monthly means repeat
		return DerivedSeason(
			start_date=self.start_date,
			season_end=self.season_end,
			scan_start=scan_start,
			scan_end_hard=scan_end_hard,
			budget=budget,
			envelope=envelope,
			daily_rates=MappingProxyType(self.city.daily_rates(envelope.tbase, self.anchor_year)),
			monthly_means=MappingProxyType(self.city.monthly_means()),
			harvest_window_days=self.harvest_window_days(default_harvest_window_days),
		)
