"""Schedule, feasibility and season-window routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from sowplan.config import Settings, get_settings
from sowplan.errors import ConfigurationError
from sowplan.schemas.schedules import (
	AutoWindowRequestBody,
	AutoWindowResponse,
	FeasibilityRequestBody,
	FeasibilityResponse,
	HarvestWindowRequestBody,
	HarvestWindowResponse,
	ScheduleRequestBody,
	ScheduleResponse,
)
from sowplan.services.schedule_service import ScheduleService

router = APIRouter(prefix="/schedules", tags=["schedules"])

_logger = logging.getLogger("sowplan.routes.schedules")


def get_schedule_service(settings: Settings = Depends(get_settings)) -> ScheduleService:
	return ScheduleService(settings)


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, ConfigurationError):
		return HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail={"error": "configuration_error", "message": str(exc)},
		)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	_logger.exception("schedule_failure", extra={"error": str(exc)})
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="scheduling failure")


@router.post("", response_model=ScheduleResponse)
async def create_schedule(
	body: ScheduleRequestBody,
	request: Request,
	service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleResponse:
	request.state.plant = body.plant_label
	try:
		return service.schedule(body)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/feasibility", response_model=FeasibilityResponse)
async def explain_feasibility(
	body: FeasibilityRequestBody,
	request: Request,
	service: ScheduleService = Depends(get_schedule_service),
) -> FeasibilityResponse:
	request.state.plant = body.plant_label
	try:
		return service.feasibility(body)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/auto-window", response_model=AutoWindowResponse)
async def compute_auto_window(
	body: AutoWindowRequestBody,
	request: Request,
	service: ScheduleService = Depends(get_schedule_service),
) -> AutoWindowResponse:
	request.state.plant = body.plant_label
	try:
		return service.auto_window(body)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/harvest-window", response_model=HarvestWindowResponse)
async def suggest_harvest_window(
	body: HarvestWindowRequestBody,
	request: Request,
	service: ScheduleService = Depends(get_schedule_service),
) -> HarvestWindowResponse:
	request.state.plant = body.plant_label
	try:
		return service.harvest_window(body)
	except Exception as exc:
		raise _map_error(exc) from exc
