"""Enumerations used across the scheduling kernel and API schemas.

Each StrEnum value is the exact token accepted in plant/config records and
emitted in API responses.
"""

from enum import StrEnum

# ── Plant & method enums ────────────────────────────────────────────────────


class SowingMethodEnum(StrEnum):
	"""How a crop goes into the ground."""

	direct_sow = "direct_sow"
	transplant_indoor = "transplant_indoor"
	transplant_outdoor = "transplant_outdoor"


class LifecycleEnum(StrEnum):
	"""Plant life-cycle class."""

	annual = "annual"
	biennial = "biennial"
	perennial = "perennial"


class BudgetModeEnum(StrEnum):
	"""Unit of the maturity budget (sowing → first harvest)."""

	gdd = "gdd"
	days = "days"


# ── Policy enums ────────────────────────────────────────────────────────────


class FrostRiskEnum(StrEnum):
	"""Last-spring-frost percentile used by the frost gate."""

	p90 = "p90"
	p50 = "p50"
	p10 = "p10"


class YieldWindowEnum(StrEnum):
	"""Temperature window used to score a succession's yield."""

	harvest = "harvest"
	growth = "growth"


# ── Feasibility enums ───────────────────────────────────────────────────────


class RejectionReasonEnum(StrEnum):
	"""Symbolic reason a candidate sow date is infeasible."""

	outside_scan_window = "outside_scan_window"
	spring_frost_gate = "spring_frost_gate"
	cooling_gate = "cooling_gate"
	soil_gate = "soil_gate"
	insufficient_gdd = "insufficient_gdd"
	cross_year_disallowed = "cross_year_disallowed"
	beyond_hard_end = "beyond_hard_end"
	harvest_too_cold = "harvest_too_cold"
	harvest_too_hot = "harvest_too_hot"


THERMAL_REJECTIONS: frozenset[RejectionReasonEnum] = frozenset(
	{
		RejectionReasonEnum.insufficient_gdd,
		RejectionReasonEnum.harvest_too_cold,
		RejectionReasonEnum.harvest_too_hot,
		RejectionReasonEnum.cross_year_disallowed,
		RejectionReasonEnum.beyond_hard_end,
	}
)
