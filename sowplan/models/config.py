"""Named planning options: succession settings and gate policy flags.

Both objects accept the camelCase keys used by stored plan configurations
(``overlapDays``, ``useSpringFrostGate`` …) as well as snake_case names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sowplan.models.enums import FrostRiskEnum, SowingMethodEnum
from sowplan.models.plant import PlantProfile


class SuccessionConfig(BaseModel):
	model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

	enabled: bool = False
	max_successions: int = Field(default=1, ge=1, alias="max")
	overlap_days: int = Field(default=0, ge=0)
	harvest_window_days: float | None = Field(default=None, ge=0)
	min_yield_multiplier: float = Field(default=0.0, ge=0)

	@property
	def effective_max(self) -> int:
		return self.max_successions if self.enabled else 1


class PolicyFlags(BaseModel):
	"""Gate switches for a planning pass.

	The spring-frost gate only applies when overwintering is not allowed, and
	the soil gate only applies once a numeric threshold is configured.
	"""

	model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

	use_spring_frost_gate: bool = True
	spring_frost_risk: FrostRiskEnum = FrostRiskEnum.p50
	use_soil_temp_gate: bool = False
	soil_gate_threshold_c: float | None = None
	soil_gate_consecutive_days: int = Field(default=3, ge=1)
	overwinter_allowed: bool = False

	@property
	def spring_frost_gate_active(self) -> bool:
		return self.use_spring_frost_gate and not self.overwinter_allowed

	@property
	def soil_gate_active(self) -> bool:
		return self.use_soil_temp_gate and self.soil_gate_threshold_c is not None

	@classmethod
	def for_plant(
		cls,
		plant: PlantProfile,
		method: SowingMethodEnum,
		*,
		spring_frost_risk: FrostRiskEnum = FrostRiskEnum.p50,
		soil_gate_consecutive_days: int = 3,
	) -> PolicyFlags:
		"""Default policy implied by the plant record and sowing method."""
		threshold = plant.soil_temp_min_plant_c
		overwinter = plant.overwinter_allowed
		return cls(
			use_spring_frost_gate=not overwinter,
			spring_frost_risk=spring_frost_risk,
			use_soil_temp_gate=method == SowingMethodEnum.direct_sow and threshold is not None,
			soil_gate_threshold_c=threshold,
			soil_gate_consecutive_days=soil_gate_consecutive_days,
			overwinter_allowed=overwinter,
		)
