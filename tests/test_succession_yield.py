from __future__ import annotations

from datetime import date

import pytest

from conftest import SEASONAL_MEANS, flat_city_record, make_request
from sowplan.models import CityClimate, PlantProfile, PolicyFlags, ScheduleRequest, SuccessionConfig, YieldWindowEnum
from sowplan.services.planner import Planner
from sowplan.services.succession import build_succession_schedule
from sowplan.services.yield_model import (
	MULTIPLIER_FLOOR,
	derive_yield_multipliers,
	distribute_plants_to_meet_target,
	thermal_yield_factor,
)

THREE_SUCCESSIONS = SuccessionConfig(enabled=True, max_successions=3, overlap_days=0, harvest_window_days=14)


def test_three_successions_back_solve_to_the_same_maturity(lettuce: PlantProfile, flat_city: CityClimate) -> None:
	request = make_request(lettuce, flat_city, succession=THREE_SUCCESSIONS)
	schedule = build_succession_schedule(request)

	assert schedule == [date(2024, 3, 1), date(2024, 2, 29), date(2024, 2, 28)]


@pytest.mark.parametrize("overlap", [0, 7, 21])
def test_consecutive_sows_follow_next_planting_date(lettuce: PlantProfile, flat_city: CityClimate, overlap: int) -> None:
	succession = SuccessionConfig(enabled=True, max_successions=6, overlap_days=overlap)
	request = make_request(lettuce, flat_city, succession=succession)
	planner = Planner.from_request(request)
	schedule = build_succession_schedule(request, planner)

	assert 1 <= len(schedule) <= 6
	for prev, nxt in zip(schedule, schedule[1:]):
		assert planner.next_planting_date(prev, overlap) == nxt


def test_schedule_stops_at_the_season_end(lettuce: PlantProfile, flat_city: CityClimate) -> None:
	succession = SuccessionConfig(enabled=True, max_successions=50, overlap_days=30)
	schedule = build_succession_schedule(make_request(lettuce, flat_city, succession=succession))
	assert 1 < len(schedule) < 50
	assert all(day <= date(2024, 12, 31) for day in schedule)


def test_disabled_succession_yields_a_single_sow(scenario_request: ScheduleRequest) -> None:
	assert build_succession_schedule(scenario_request) == [date(2024, 3, 1)]
	disabled = scenario_request.model_copy(update={"succession": SuccessionConfig(enabled=False, max_successions=5)})
	assert len(build_succession_schedule(disabled)) == 1


def test_first_sow_moves_to_the_next_feasible_day(lettuce: PlantProfile) -> None:
	city = CityClimate.from_record(flat_city_record(last_spring_frost_doy=100))
	request = make_request(lettuce, city, policy=PolicyFlags())
	assert build_succession_schedule(request) == [date(2024, 4, 9)]


def test_no_feasible_start_gives_an_empty_schedule(lettuce: PlantProfile) -> None:
	cold = CityClimate.from_record(flat_city_record(5.0))
	assert build_succession_schedule(make_request(lettuce, cold)) == []


def test_thermal_yield_factor_is_piecewise_linear(lettuce: PlantProfile) -> None:
	envelope = lettuce.temperature_envelope()
	assert thermal_yield_factor(0.0, envelope) == 0.0
	assert thermal_yield_factor(8.0, envelope) == pytest.approx(0.5)
	assert thermal_yield_factor(20.0, envelope) == 1.0
	assert thermal_yield_factor(29.0, envelope) == pytest.approx(0.5)
	assert thermal_yield_factor(34.0, envelope) == 0.0


def test_multipliers_are_relative_to_the_best_succession(days_plant: PlantProfile) -> None:
	city = CityClimate.from_monthly_means(SEASONAL_MEANS)
	season = make_request(days_plant, city).derive()
	multipliers = derive_yield_multipliers(
		[date(2024, 3, 1), date(2024, 6, 1)],
		season.budget,
		season.daily_rates,
		season.envelope,
		season.monthly_means,
		season.scan_end_hard,
		window=YieldWindowEnum.harvest,
		harvest_window_days=10,
	)
	assert multipliers[0] == pytest.approx(1.0)
	assert multipliers[1] == pytest.approx(0.4)


def test_multipliers_stay_within_floor_and_one(days_plant: PlantProfile) -> None:
	frozen = CityClimate.from_record(flat_city_record(0.0))
	season = make_request(days_plant, frozen).derive()
	multipliers = derive_yield_multipliers(
		[date(2024, 3, 1), date(2024, 4, 1)],
		season.budget,
		season.daily_rates,
		season.envelope,
		season.monthly_means,
		season.scan_end_hard,
		window=YieldWindowEnum.growth,
	)
	assert multipliers == [MULTIPLIER_FLOOR, MULTIPLIER_FLOOR]


def test_allocation_meets_target_without_bumps() -> None:
	allocation = distribute_plants_to_meet_target(2, 100, 0.5, [1.0, 0.5])
	assert allocation.plants == [100, 200]
	assert allocation.realized_total == pytest.approx(100.0)


def test_allocation_bumps_round_robin_until_target_met() -> None:
	allocation = distribute_plants_to_meet_target(3, 10, 0.3, [1.0, 0.7, 0.05])
	assert all(isinstance(count, int) and count >= 0 for count in allocation.plants)
	assert allocation.realized_total >= 10


def test_allocation_edge_cases() -> None:
	assert distribute_plants_to_meet_target(2, 0, 0.5, [1.0, 1.0]).plants == [0, 0]
	assert distribute_plants_to_meet_target(2, 10, 0.0, [1.0, 1.0]).realized_total == 0.0
	with pytest.raises(ValueError):
		distribute_plants_to_meet_target(2, 10, 0.5, [1.0])
