"""Ordered sow dates for staggered plantings of one crop."""

from __future__ import annotations

import logging
from datetime import date

from sowplan.models.request import ScheduleRequest
from sowplan.services.planner import Planner

_logger = logging.getLogger("sowplan.succession")


def first_sow_candidate(planner: Planner) -> date:
	"""Requested start clipped to the scan window, then to the cooling trigger."""
	ctx = planner.ctx
	candidate = max(ctx.start_date, ctx.scan_start)
	if ctx.cooling_cross_date is not None:
		candidate = max(candidate, ctx.cooling_cross_date)
	return candidate


def build_succession_schedule(request: ScheduleRequest, planner: Planner | None = None) -> list[date]:
	"""Sow dates for up to ``succession.max`` plantings (one when disabled).

	The first date is the first feasible day from the requested start. Each
	later date comes from :meth:`Planner.next_planting_date`; the schedule
	simply ends when that returns ``None``.
	"""
	planner = planner or Planner.from_request(request)
	ctx = planner.ctx
	succession = request.succession
	limit = succession.effective_max

	first = first_sow_candidate(planner)
	if not planner.is_sow_feasible(first).ok:
		hit = planner.find_next_feasible(first)
		if hit.date is None:
			_logger.info("succession_no_feasible_start", extra={"plant": request.plant.label, "from": first.isoformat()})
			return []
		first = hit.date

	schedule = [first]
	while len(schedule) < limit:
		nxt = planner.next_planting_date(schedule[-1], succession.overlap_days)
		if nxt is None or nxt > ctx.scan_end_hard:
			break
		schedule.append(nxt)

	_logger.debug(
		"succession_schedule_built",
		extra={"plant": request.plant.label, "count": len(schedule), "limit": limit},
	)
	return schedule
