"""Ordered fallback-chain lookups for loosely specified numeric inputs.

Frost day-of-year selection and harvest-window defaulting both follow the same
rule: walk an explicit, ordered list of candidates and take the first one that
is a usable number, else the stated default.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from typing import Any

from sowplan.errors import ConfigurationError


def as_number(raw: Any) -> float | None:
	"""Coerce a record value to a finite float, or ``None`` when unusable."""
	if raw is None or isinstance(raw, bool):
		return None
	if isinstance(raw, str):
		raw = raw.strip()
		if not raw:
			return None
	try:
		number = float(raw)
	except (TypeError, ValueError):
		return None
	return number if math.isfinite(number) else None


def first_usable(
	candidates: Iterable[Any],
	*,
	default: float | None = None,
	accept: Callable[[float], bool] | None = None,
) -> float | None:
	"""Return the first candidate that coerces to a finite number passing ``accept``."""
	for raw in candidates:
		number = as_number(raw)
		if number is None:
			continue
		if accept is not None and not accept(number):
			continue
		return number
	return default


def resolve_harvest_window_days(
	candidates: Iterable[Any],
	*,
	default: float | None,
	label: str = "?",
	accept: Callable[[float], bool] | None = None,
) -> int:
	"""Harvest window length in whole days from an ordered candidate chain.

	A negative or missing result is a configuration error, whichever entry
	point asked for it.
	"""
	window = first_usable(candidates, default=default, accept=accept)
	if window is None or window < 0:
		raise ConfigurationError(f"plant {label!r}: harvest window length is unresolved ({window!r})")
	return math.floor(window + 0.5)
