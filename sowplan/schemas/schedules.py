"""Pydantic schemas for schedule endpoints."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field, model_validator

from sowplan.models.climate import CityClimate
from sowplan.models.config import PolicyFlags, SuccessionConfig
from sowplan.models.enums import SowingMethodEnum
from sowplan.models.plant import PlantProfile


class RecordBody(BaseModel):
	"""Plant and city rows as stored, validated into kernel values on demand."""

	plant: dict[str, Any]
	plant_overrides: dict[str, Any] | None = None
	city: dict[str, Any]

	@property
	def plant_label(self) -> str:
		"""Display name straight from the records, before any validation."""
		for record in (self.plant_overrides or {}, self.plant):
			name = record.get("plant_name") or record.get("name")
			if name:
				return str(name).strip()
		return "?"

	def plant_profile(self) -> PlantProfile:
		profile = PlantProfile.from_record(self.plant)
		if self.plant_overrides:
			profile = profile.with_overrides(self.plant_overrides)
		return profile

	def city_climate(self) -> CityClimate:
		return CityClimate.from_record(self.city)


class ScheduleRequestBody(RecordBody):
	method: SowingMethodEnum
	start_date: dt.date
	season_end: dt.date
	anchor_year: int | None = None
	succession: SuccessionConfig | None = None
	policy: PolicyFlags | None = None
	season_yield_target_kg: float | None = None

	@model_validator(mode="after")
	def _validate_season(self) -> "ScheduleRequestBody":
		if self.season_end < self.start_date:
			raise ValueError("season_end must not be before start_date")
		return self


class FeasibilityRequestBody(ScheduleRequestBody):
	max_days: int | None = Field(default=None, ge=1, le=2000)
	stop_at_first_ok: bool = False


class AutoWindowRequestBody(RecordBody):
	method: SowingMethodEnum
	anchor_year: int
	harvest_window_days: float | None = Field(default=None, ge=0)
	succession_enabled: bool = False


class HarvestWindowRequestBody(RecordBody):
	year: int
	method: SowingMethodEnum = SowingMethodEnum.direct_sow


class ScheduleRowOut(BaseModel):
	succession_index: int
	sow_date: dt.date
	germination_date: dt.date | None = None
	transplant_date: dt.date | None = None
	harvest_start: dt.date
	harvest_end: dt.date
	yield_multiplier: float
	plants_required: int | None = None


class ScheduleResponse(BaseModel):
	plant: str
	method: SowingMethodEnum
	rows: list[ScheduleRowOut] = Field(default_factory=list)
	last_harvest_end: dt.date | None = None
	realized_yield_kg: float | None = None


class FeasibilityEntryOut(BaseModel):
	date: dt.date
	ok: bool
	reason: str
	detail: str | None = None
	maturity: dt.date | None = None
	harvest_end: dt.date | None = None
	mean_harvest_temp: float | None = None


class FeasibilityResponse(BaseModel):
	plant: str
	first_feasible_sow_date: dt.date | None = None
	entries: list[FeasibilityEntryOut] = Field(default_factory=list)


class AutoWindowResponse(BaseModel):
	earliest_feasible_sow_date: dt.date | None = None
	last_feasible_sow_date: dt.date | None = None
	last_harvest_date: dt.date | None = None
	climate_end_date: dt.date | None = None


class HarvestWindowResponse(BaseModel):
	plant: str
	harvest_start: dt.date | None = None
	harvest_end: dt.date | None = None
	shelf_life_days: float | None = None
	reason: str | None = None
