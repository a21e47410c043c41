"""CityClimate — monthly climate normals for one location.

Records carry ``avg_monthly_high_c1..12`` / ``avg_monthly_low_c1..12`` columns
plus optional last-spring-frost day-of-year fields. Months missing either value
are simply absent from :meth:`CityClimate.monthly_means`.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from sowplan.errors import ConfigurationError
from sowplan.fallback import as_number, first_usable
from sowplan.models.enums import FrostRiskEnum

DEFAULT_LAST_SPRING_FROST_DOY = 105

MONTHS = range(1, 13)


class CityClimate(BaseModel):
	model_config = ConfigDict(frozen=True)

	name: str = Field(default="", validation_alias=AliasChoices("name", "city_name"))
	monthly_high_c: tuple[float | None, ...] = Field(default=(None,) * 12, min_length=12, max_length=12)
	monthly_low_c: tuple[float | None, ...] = Field(default=(None,) * 12, min_length=12, max_length=12)

	last_spring_frost_doy: float | None = None
	last_spring_frost_p90_doy: float | None = None
	last_spring_frost_p50_doy: float | None = None
	last_spring_frost_p10_doy: float | None = None

	@field_validator("name", mode="before")
	@classmethod
	def _coerce_name(cls, value: Any) -> str:
		return "" if value is None else str(value).strip()

	@field_validator("monthly_high_c", "monthly_low_c", mode="before")
	@classmethod
	def _coerce_months(cls, value: Any) -> tuple[float | None, ...]:
		if isinstance(value, Mapping):
			value = [value.get(month, value.get(str(month))) for month in MONTHS]
		return tuple(as_number(item) for item in value)

	@field_validator(
		"last_spring_frost_doy",
		"last_spring_frost_p90_doy",
		"last_spring_frost_p50_doy",
		"last_spring_frost_p10_doy",
		mode="before",
	)
	@classmethod
	def _coerce_doy(cls, value: Any) -> float | None:
		return as_number(value)

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> CityClimate:
		"""Validate a flat city row (``avg_monthly_high_c1`` … ``avg_monthly_low_c12``)."""
		payload = {key: value for key, value in record.items() if not key.startswith("avg_monthly_")}
		if "monthly_high_c" not in payload:
			payload["monthly_high_c"] = [record.get(f"avg_monthly_high_c{month}") for month in MONTHS]
		if "monthly_low_c" not in payload:
			payload["monthly_low_c"] = [record.get(f"avg_monthly_low_c{month}") for month in MONTHS]
		try:
			return cls.model_validate(payload)
		except ValidationError as exc:
			raise ConfigurationError(f"invalid city record: {exc}") from exc

	@classmethod
	def from_monthly_means(cls, means: Mapping[int, float] | list[float], name: str = "") -> CityClimate:
		"""Build a climate whose highs and lows both equal the given means."""
		if isinstance(means, Mapping):
			values = [means.get(month) for month in MONTHS]
		else:
			values = list(means)
		return cls(name=name, monthly_high_c=tuple(values), monthly_low_c=tuple(values))

	def monthly_means(self) -> dict[int, float]:
		means: dict[int, float] = {}
		for month in MONTHS:
			high = self.monthly_high_c[month - 1]
			low = self.monthly_low_c[month - 1]
			if high is None or low is None:
				continue
			means[month] = (high + low) / 2
		return means

	def days_per_month(self, year: int) -> dict[int, int]:
		return {month: calendar.monthrange(year, month)[1] for month in MONTHS}

	def monthly_gdd(self, tbase: float, year: int) -> dict[int, float]:
		means = self.monthly_means()
		dim = self.days_per_month(year)
		return {month: max(0.0, means[month] - tbase) * dim[month] if month in means else 0.0 for month in MONTHS}

	def daily_rates(self, tbase: float, year: int) -> dict[int, float]:
		"""GDD accrued per day in each month, clamped at zero."""
		monthly = self.monthly_gdd(tbase, year)
		dim = self.days_per_month(year)
		return {month: monthly[month] / dim[month] for month in MONTHS}

	def last_spring_frost(self, risk: FrostRiskEnum = FrostRiskEnum.p50, default: float = DEFAULT_LAST_SPRING_FROST_DOY) -> float:
		"""Last spring frost DOY: requested percentile, then plain value, then ``default``."""
		percentile = {
			FrostRiskEnum.p90: self.last_spring_frost_p90_doy,
			FrostRiskEnum.p50: self.last_spring_frost_p50_doy,
			FrostRiskEnum.p10: self.last_spring_frost_p10_doy,
		}[FrostRiskEnum(risk)]
		return first_usable([percentile, self.last_spring_frost_doy], default=default)
