"""Shared pytest fixtures: climates, plant profiles, requests and the async test client."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from sowplan.config import Settings
from sowplan.main import app
from sowplan.models import CityClimate, PlantProfile, PolicyFlags, ScheduleRequest, SowingMethodEnum, SuccessionConfig

SEASONAL_MEANS = [10.0, 10.0, 15.0, 20.0, 25.0, 28.0, 30.0, 28.0, 22.0, 16.0, 12.0, 10.0]


def flat_city_record(mean_c: float = 20.0, **extra: Any) -> dict[str, Any]:
	record: dict[str, Any] = {"city_name": "Flatland"}
	for month in range(1, 13):
		record[f"avg_monthly_high_c{month}"] = mean_c
		record[f"avg_monthly_low_c{month}"] = mean_c
	record.update(extra)
	return record


def lettuce_record(**extra: Any) -> dict[str, Any]:
	record: dict[str, Any] = {
		"plant_name": "Lettuce",
		"annual": 1,
		"gdd_to_maturity": 500,
		"tbase_c": 10,
		"harvest_window_days": 14,
		"direct_sow": 1,
		"yield_per_plant_kg": 0.5,
	}
	record.update(extra)
	return record


def make_request(
	plant: PlantProfile,
	city: CityClimate,
	*,
	method: SowingMethodEnum = SowingMethodEnum.direct_sow,
	start: date = date(2024, 3, 1),
	season_end: date = date(2024, 12, 31),
	succession: SuccessionConfig | None = None,
	policy: PolicyFlags | None = None,
	target: float | None = None,
) -> ScheduleRequest:
	return ScheduleRequest(
		plant=plant,
		city=city,
		method=method,
		start_date=start,
		season_end=season_end,
		anchor_year=start.year,
		succession=succession or SuccessionConfig(),
		policy=policy or PolicyFlags(use_spring_frost_gate=False),
		season_yield_target_kg=target,
	)


@pytest.fixture
def settings() -> Settings:
	return Settings()


@pytest.fixture
def flat_city() -> CityClimate:
	"""Monthly mean 20 °C all year: 10 GDD/day above a 10 °C base."""
	return CityClimate.from_record(flat_city_record())


@pytest.fixture
def seasonal_city() -> CityClimate:
	return CityClimate.from_monthly_means(SEASONAL_MEANS, name="Seasonal")


@pytest.fixture
def lettuce() -> PlantProfile:
	"""GDD-500 annual with a 14 day harvest window."""
	return PlantProfile.from_record(lettuce_record())


@pytest.fixture
def days_plant() -> PlantProfile:
	return PlantProfile.from_record(
		{
			"plant_name": "Radish",
			"annual": 1,
			"days_maturity": 30,
			"tbase_c": 10,
			"harvest_window_days": 14,
			"direct_sow": 1,
		}
	)


@pytest.fixture
def scenario_request(lettuce: PlantProfile, flat_city: CityClimate) -> ScheduleRequest:
	return make_request(lettuce, flat_city)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled."""
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
