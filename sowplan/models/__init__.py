"""Domain value objects — imported here so consumers can do::

    from sowplan.models import PlantProfile, CityClimate, ScheduleRequest
"""

from sowplan.models.climate import CityClimate
from sowplan.models.config import PolicyFlags, SuccessionConfig
from sowplan.models.enums import (
	BudgetModeEnum,
	FrostRiskEnum,
	LifecycleEnum,
	RejectionReasonEnum,
	SowingMethodEnum,
	YieldWindowEnum,
)
from sowplan.models.plant import MaturityBudget, PlantProfile, TemperatureEnvelope
from sowplan.models.request import ScheduleRequest

__all__ = [
	"BudgetModeEnum",
	"CityClimate",
	"FrostRiskEnum",
	"LifecycleEnum",
	"MaturityBudget",
	"PlantProfile",
	"PolicyFlags",
	"RejectionReasonEnum",
	"ScheduleRequest",
	"SowingMethodEnum",
	"SuccessionConfig",
	"TemperatureEnvelope",
	"YieldWindowEnum",
]
