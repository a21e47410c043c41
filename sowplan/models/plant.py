"""PlantProfile — validated, read-only view of a plant record.

Plant records arrive loosely typed (numbers as strings, blanks, 0/1 flags,
unknown extra columns). :meth:`PlantProfile.from_record` normalizes them once
at the boundary; the kernel only ever sees the typed profile.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from sowplan.errors import ConfigurationError
from sowplan.fallback import as_number
from sowplan.models.enums import BudgetModeEnum, LifecycleEnum, SowingMethodEnum

DEFAULT_TBASE_C = 10.0
DEFAULT_YIELD_PER_PLANT_KG = 0.25

_TRUTHY = {"1", "true", "yes", "y"}

_FLAG_FIELDS = ("annual", "biennial", "perennial", "overwinter_ok", "direct_sow", "transplant")

_NUMERIC_FIELDS = (
	"lifespan_years",
	"gdd_to_maturity",
	"days_maturity",
	"days_transplant",
	"days_germ",
	"tmin_c",
	"topt_low_c",
	"topt_high_c",
	"tmax_c",
	"tbase_c",
	"harvest_window_days",
	"start_cooling_threshold_c",
	"soil_temp_min_plant_c",
	"yield_per_plant_kg",
	"shelf_life_days",
)


@dataclass(frozen=True, slots=True)
class MaturityBudget:
	"""Requirement from sowing to first harvest, in GDD or calendar days."""

	mode: BudgetModeEnum
	amount: float

	def __post_init__(self) -> None:
		if not math.isfinite(self.amount) or self.amount <= 0:
			raise ConfigurationError(f"maturity budget must be a positive finite number, got {self.amount!r}")


@dataclass(frozen=True, slots=True)
class TemperatureEnvelope:
	tmin: float
	topt_low: float
	topt_high: float
	tmax: float
	tbase: float


class PlantProfile(BaseModel):
	model_config = ConfigDict(frozen=True, extra="ignore")

	name: str = Field(default="", validation_alias=AliasChoices("name", "plant_name"))
	abbr: str | None = None

	annual: bool = False
	biennial: bool = False
	perennial: bool = False
	overwinter_ok: bool = False
	lifespan_years: float | None = None

	gdd_to_maturity: float | None = None
	days_maturity: float | None = None
	days_transplant: float | None = None
	days_germ: float | None = None

	tmin_c: float | None = None
	topt_low_c: float | None = None
	topt_high_c: float | None = None
	tmax_c: float | None = None
	tbase_c: float | None = None

	harvest_window_days: float | None = None
	start_cooling_threshold_c: float | None = None
	soil_temp_min_plant_c: float | None = None

	direct_sow: bool = False
	transplant: bool = False

	yield_per_plant_kg: float | None = None
	shelf_life_days: float | None = None

	@field_validator(*_FLAG_FIELDS, mode="before")
	@classmethod
	def _coerce_flag(cls, value: Any) -> bool:
		if isinstance(value, bool):
			return value
		if isinstance(value, str) and value.strip().lower() in _TRUTHY:
			return True
		number = as_number(value)
		return number is not None and number != 0

	@field_validator(*_NUMERIC_FIELDS, mode="before")
	@classmethod
	def _coerce_number(cls, value: Any) -> float | None:
		return as_number(value)

	@field_validator("name", mode="before")
	@classmethod
	def _coerce_name(cls, value: Any) -> str:
		return "" if value is None else str(value).strip()

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> PlantProfile:
		"""Validate a raw plant row into a profile."""
		try:
			return cls.model_validate(dict(record))
		except ValidationError as exc:
			raise ConfigurationError(f"invalid plant record: {exc}") from exc

	def with_overrides(self, overrides: Mapping[str, Any] | None) -> PlantProfile:
		"""Variety view: ``overrides`` replace base fields, then re-validate."""
		changes = dict(overrides or {})
		if "plant_name" in changes:
			changes["name"] = changes.pop("plant_name")
		merged = self.model_dump()
		merged.update(changes)
		return type(self).from_record(merged)

	# ── Lifecycle ───────────────────────────────────────────────────────────

	@property
	def label(self) -> str:
		return self.name or self.abbr or "?"

	@property
	def lifecycle(self) -> LifecycleEnum:
		if self.perennial:
			return LifecycleEnum.perennial
		if self.biennial:
			return LifecycleEnum.biennial
		return LifecycleEnum.annual

	@property
	def is_true_perennial(self) -> bool:
		return self.perennial and not (self.overwinter_ok and self.annual)

	@property
	def overwinter_allowed(self) -> bool:
		return self.perennial or self.overwinter_ok

	def scan_years(self, overwinter_allowed: bool = False) -> int:
		"""Number of calendar years a schedule scan must cover."""
		lifespan = self.lifespan_years
		if self.perennial:
			if lifespan is None or lifespan < 1:
				raise ConfigurationError(f"plant {self.label!r}: perennial requires lifespan_years >= 1")
			return math.floor(lifespan)
		if self.biennial:
			if lifespan is None or lifespan < 2:
				raise ConfigurationError(f"plant {self.label!r}: biennial requires lifespan_years >= 2")
			return math.floor(lifespan)
		return 2 if (self.overwinter_ok or overwinter_allowed) else 1

	# ── Budget & temperature ────────────────────────────────────────────────

	def maturity_budget(self) -> MaturityBudget:
		"""Amount until first harvest, with its unit.

		True perennials are timed in days; overwintering and ordinary crops
		prefer GDD and fall back to days.
		"""
		gdd = self.gdd_to_maturity if self.gdd_to_maturity is not None and self.gdd_to_maturity > 0 else None
		days = self.days_maturity if self.days_maturity is not None and self.days_maturity > 0 else None

		if self.is_true_perennial and days is not None:
			return MaturityBudget(BudgetModeEnum.days, days)
		if gdd is not None:
			return MaturityBudget(BudgetModeEnum.gdd, gdd)
		if days is not None:
			return MaturityBudget(BudgetModeEnum.days, days)
		raise ConfigurationError(f"plant {self.label!r}: needs gdd_to_maturity or days_maturity")

	def temperature_envelope(self) -> TemperatureEnvelope:
		tbase = self.tbase_c if self.tbase_c is not None else DEFAULT_TBASE_C
		return TemperatureEnvelope(
			tmin=self.tmin_c if self.tmin_c is not None else 0.0,
			topt_low=self.topt_low_c if self.topt_low_c is not None else tbase + 6,
			topt_high=self.topt_high_c if self.topt_high_c is not None else tbase + 14,
			tmax=self.tmax_c if self.tmax_c is not None else tbase + 24,
			tbase=tbase,
		)

	# ── Sowing ──────────────────────────────────────────────────────────────

	def allowed_sowing_methods(self) -> list[SowingMethodEnum]:
		methods: list[SowingMethodEnum] = []
		if self.direct_sow:
			methods.append(SowingMethodEnum.direct_sow)
		if self.transplant:
			methods.append(SowingMethodEnum.transplant_indoor)
			methods.append(SowingMethodEnum.transplant_outdoor)
		if not methods:
			methods.append(SowingMethodEnum.transplant_indoor)
		return methods

	def transplant_lag_days(self) -> int:
		lag = self.days_transplant
		if lag is None or lag <= 0:
			return 0
		return math.floor(lag + 0.5)

	def yield_per_plant(self) -> float:
		if self.yield_per_plant_kg is None:
			return DEFAULT_YIELD_PER_PLANT_KG
		return self.yield_per_plant_kg
