"""Soil temperature estimates used by the direct-sowing soil gate.

The planner only depends on the :data:`SoilTemperatureModel` call signature, so
a measured or better-calibrated estimator can be swapped in through
:func:`sowplan.services.planner.build_planner_context`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date, timedelta

SoilTemperatureModel = Callable[[date, Mapping[int, float]], float]


def lagged_air_soil_model(lag_days: int = 10, offset_c: float = 1.0) -> SoilTemperatureModel:
	"""Soil ≈ monthly mean air temperature ``lag_days`` earlier, minus ``offset_c``.

	Months without a mean read as 0 °C.
	"""

	def estimate(day: date, monthly_means: Mapping[int, float]) -> float:
		lagged = day - timedelta(days=lag_days)
		return monthly_means.get(lagged.month, 0.0) - offset_c

	return estimate


default_soil_model: SoilTemperatureModel = lagged_air_soil_model()
