"""Treatment plan routes: season view, generation and status transitions."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from cropguard.dependencies import get_repositories
from cropguard.models import TreatmentPlan
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.plans import (
	PlanGenerationResponse,
	PlanSnoozeRequest,
	PlanStatusUpdate,
	SeasonPlanResponse,
)
from cropguard.services.planning_service import TreatmentPlanningService

router = APIRouter(prefix="/plans", tags=["plans"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="treatment planning failure")


@router.get("", response_model=SeasonPlanResponse)
async def get_season_plan(
	days_ahead: int | None = Query(default=None, ge=1, le=366),
	repositories: Repositories = Depends(get_repositories),
) -> SeasonPlanResponse:
	now = datetime.now(UTC)
	try:
		items = await TreatmentPlanningService(repositories).get_season_plan(now=now, days_ahead=days_ahead)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SeasonPlanResponse(generated_at=now, items=items)


@router.post("/generate", response_model=PlanGenerationResponse)
async def generate_plans(repositories: Repositories = Depends(get_repositories)) -> PlanGenerationResponse:
	now = datetime.now(UTC)
	try:
		created = await TreatmentPlanningService(repositories).ensure_plans_generated(now)
	except Exception as exc:
		raise _map_error(exc) from exc
	return PlanGenerationResponse(generated_at=now, created=created)


@router.post("/{plan_id}/complete", response_model=TreatmentPlan)
async def complete_plan(plan_id: int, repositories: Repositories = Depends(get_repositories)) -> TreatmentPlan:
	try:
		return await TreatmentPlanningService(repositories).mark_completed(plan_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/{plan_id}/snooze", response_model=TreatmentPlan)
async def snooze_plan(
	plan_id: int,
	payload: PlanSnoozeRequest | None = None,
	repositories: Repositories = Depends(get_repositories),
) -> TreatmentPlan:
	days = payload.days if payload is not None else PlanSnoozeRequest().days
	try:
		return await TreatmentPlanningService(repositories).snooze_plan(plan_id, days)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.put("/{plan_id}/status", response_model=TreatmentPlan)
async def set_plan_status(
	plan_id: int,
	payload: PlanStatusUpdate,
	repositories: Repositories = Depends(get_repositories),
) -> TreatmentPlan:
	try:
		return await TreatmentPlanningService(repositories).set_status(plan_id, payload.status)
	except Exception as exc:
		raise _map_error(exc) from exc
