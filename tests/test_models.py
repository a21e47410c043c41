from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from conftest import flat_city_record, lettuce_record, make_request
from sowplan.errors import ConfigurationError
from sowplan.fallback import as_number, first_usable, resolve_harvest_window_days
from sowplan.models import (
	BudgetModeEnum,
	CityClimate,
	FrostRiskEnum,
	LifecycleEnum,
	PlantProfile,
	PolicyFlags,
	SowingMethodEnum,
	SuccessionConfig,
)


def test_as_number_normalizes_loose_record_values() -> None:
	assert as_number(" 12.5 ") == 12.5
	assert as_number("") is None
	assert as_number("n/a") is None
	assert as_number(True) is None
	assert as_number(float("inf")) is None


def test_first_usable_walks_candidates_in_order() -> None:
	assert first_usable([None, "", "7"], default=3) == 7.0
	assert first_usable([None, "x"], default=3) == 3
	assert first_usable([-1, 5], accept=lambda value: value > 0) == 5.0


def test_harvest_window_resolution_rounds_and_rejects_negatives() -> None:
	assert resolve_harvest_window_days([None, "9.5"], default=7) == 10
	assert resolve_harvest_window_days([None, None], default=7) == 7
	assert resolve_harvest_window_days([0], default=14, accept=lambda days: days != 0) == 14
	with pytest.raises(ConfigurationError, match="Kale"):
		resolve_harvest_window_days([-2, 14], default=7, label="Kale")
	with pytest.raises(ConfigurationError):
		resolve_harvest_window_days([], default=None)


def test_plant_record_is_coerced_at_the_boundary() -> None:
	plant = PlantProfile.from_record(
		{
			"plant_name": "  Kale ",
			"biennial": "1",
			"overwinter_ok": "yes",
			"lifespan_years": "2",
			"gdd_to_maturity": "800",
			"days_maturity": "",
			"direct_sow": 0,
			"unknown_column": "ignored",
		}
	)
	assert plant.name == "Kale"
	assert plant.biennial is True
	assert plant.overwinter_ok is True
	assert plant.direct_sow is False
	assert plant.days_maturity is None
	assert plant.lifecycle == LifecycleEnum.biennial
	assert plant.scan_years() == 2


def test_maturity_budget_priority() -> None:
	annual = PlantProfile.from_record(lettuce_record(days_maturity=40))
	assert annual.maturity_budget().mode == BudgetModeEnum.gdd

	perennial = PlantProfile.from_record(
		{"plant_name": "Rhubarb", "perennial": 1, "lifespan_years": 5, "gdd_to_maturity": 900, "days_maturity": 365}
	)
	budget = perennial.maturity_budget()
	assert (budget.mode, budget.amount) == (BudgetModeEnum.days, 365.0)

	days_only = PlantProfile.from_record({"plant_name": "Bean", "days_maturity": "55"})
	assert days_only.maturity_budget().mode == BudgetModeEnum.days

	with pytest.raises(ConfigurationError):
		PlantProfile.from_record({"plant_name": "Mystery", "gdd_to_maturity": 0}).maturity_budget()


def test_perennial_and_biennial_require_lifespan() -> None:
	with pytest.raises(ConfigurationError):
		PlantProfile.from_record({"plant_name": "Asparagus", "perennial": 1}).scan_years()
	with pytest.raises(ConfigurationError):
		PlantProfile.from_record({"plant_name": "Parsley", "biennial": 1, "lifespan_years": 1}).scan_years()
	assert PlantProfile.from_record(lettuce_record(overwinter_ok=1)).scan_years() == 2


def test_temperature_envelope_defaults_follow_base() -> None:
	envelope = PlantProfile.from_record({"plant_name": "Pea", "tbase_c": 5}).temperature_envelope()
	assert (envelope.tmin, envelope.topt_low, envelope.topt_high, envelope.tmax, envelope.tbase) == (0.0, 11.0, 19.0, 29.0, 5.0)
	assert PlantProfile().temperature_envelope().tbase == 10.0


def test_allowed_sowing_methods_fall_back_to_indoor_transplant() -> None:
	assert PlantProfile.from_record({"plant_name": "Leek"}).allowed_sowing_methods() == [SowingMethodEnum.transplant_indoor]
	both = PlantProfile.from_record({"plant_name": "Chard", "direct_sow": 1, "transplant": 1})
	assert both.allowed_sowing_methods() == [
		SowingMethodEnum.direct_sow,
		SowingMethodEnum.transplant_indoor,
		SowingMethodEnum.transplant_outdoor,
	]


def test_with_overrides_revalidates_variety_fields() -> None:
	base = PlantProfile.from_record(lettuce_record())
	variety = base.with_overrides({"gdd_to_maturity": "650", "harvest_window_days": None})
	assert variety.gdd_to_maturity == 650.0
	assert variety.harvest_window_days is None
	assert base.gdd_to_maturity == 500.0


def test_with_overrides_accepts_the_record_name_column() -> None:
	base = PlantProfile.from_record(lettuce_record())
	variety = base.with_overrides({"plant_name": "Lettuce Lollo Rosso"})
	assert variety.name == "Lettuce Lollo Rosso"
	assert variety.label == "Lettuce Lollo Rosso"
	assert base.name == "Lettuce"


def test_flags_exported_as_decimal_strings() -> None:
	plant = PlantProfile.from_record(
		lettuce_record(direct_sow="1.0", transplant=" 0.0 ", annual="no", perennial=1.0)
	)
	assert plant.direct_sow is True
	assert plant.transplant is False
	assert plant.annual is False
	assert plant.perennial is True


def test_city_record_derives_means_and_daily_rates() -> None:
	record = flat_city_record(20.0)
	record["avg_monthly_high_c1"] = 8
	record["avg_monthly_low_c1"] = 2
	record["avg_monthly_low_c2"] = ""
	city = CityClimate.from_record(record)

	means = city.monthly_means()
	assert means[1] == 5.0
	assert 2 not in means
	rates = city.daily_rates(10.0, 2024)
	assert rates[1] == 0.0
	assert rates[2] == 0.0
	assert rates[3] == pytest.approx(10.0)
	assert city.days_per_month(2024)[2] == 29


def test_last_spring_frost_fallback_chain() -> None:
	city = CityClimate.from_record(flat_city_record(last_spring_frost_p90_doy=120, last_spring_frost_doy="110"))
	assert city.last_spring_frost(FrostRiskEnum.p90) == 120
	assert city.last_spring_frost(FrostRiskEnum.p10) == 110
	assert CityClimate.from_record(flat_city_record()).last_spring_frost(FrostRiskEnum.p50, default=99) == 99


def test_invalid_city_record_raises_configuration_error() -> None:
	with pytest.raises(ConfigurationError):
		CityClimate.from_record({"city_name": "Short", "monthly_high_c": [1, 2, 3], "monthly_low_c": [1, 2, 3]})


def test_succession_config_accepts_camel_case_keys() -> None:
	config = SuccessionConfig.model_validate({"enabled": True, "max": 4, "overlapDays": 3, "minYieldMultiplier": 0.2})
	assert config.max_successions == 4
	assert config.overlap_days == 3
	assert config.effective_max == 4
	assert SuccessionConfig(enabled=False, max_successions=4).effective_max == 1

	with pytest.raises(ValidationError):
		SuccessionConfig.model_validate({"max": 0})
	with pytest.raises(ValidationError):
		SuccessionConfig.model_validate({"overlapDays": -1})


def test_policy_flags_gate_activation() -> None:
	policy = PolicyFlags.model_validate({"useSpringFrostGate": True, "overwinterAllowed": True, "useSoilTempGate": True})
	assert policy.spring_frost_gate_active is False
	assert policy.soil_gate_active is False

	garlic = PlantProfile.from_record({"plant_name": "Garlic", "overwinter_ok": 1, "soil_temp_min_plant_c": 8, "days_maturity": 240})
	derived = PolicyFlags.for_plant(garlic, SowingMethodEnum.direct_sow)
	assert derived.overwinter_allowed is True
	assert derived.use_spring_frost_gate is False
	assert derived.soil_gate_active is True
	assert PolicyFlags.for_plant(garlic, SowingMethodEnum.transplant_outdoor).use_soil_temp_gate is False


def test_harvest_window_fallback_chain(lettuce: PlantProfile, flat_city: CityClimate) -> None:
	assert make_request(lettuce, flat_city).harvest_window_days() == 14
	assert make_request(lettuce, flat_city, succession=SuccessionConfig(harvest_window_days=9.5)).harvest_window_days() == 10

	no_window = lettuce.with_overrides({"harvest_window_days": None})
	assert make_request(no_window, flat_city).harvest_window_days(default=7) == 7

	negative = lettuce.with_overrides({"harvest_window_days": -3})
	with pytest.raises(ConfigurationError):
		make_request(negative, flat_city).harvest_window_days()


def test_derived_scan_window_spans_lifespan(flat_city: CityClimate) -> None:
	rhubarb = PlantProfile.from_record(
		{"plant_name": "Rhubarb", "perennial": 1, "lifespan_years": 3, "days_maturity": 60, "harvest_window_days": 20}
	)
	season = make_request(rhubarb, flat_city).derive()
	assert season.scan_start == date(2024, 1, 1)
	assert season.scan_end_hard == date(2026, 12, 31)
	assert season.budget.mode == BudgetModeEnum.days

	lettuce = PlantProfile.from_record(lettuce_record())
	overwinter = make_request(lettuce, flat_city, policy=PolicyFlags(overwinter_allowed=True)).derive()
	assert overwinter.scan_end_hard == date(2025, 12, 31)
	assert overwinter.daily_rates[6] == pytest.approx(10.0)
