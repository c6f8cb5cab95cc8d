"""Resistance analysis and warning feed routes."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status

from cropguard.data.regulations import ReferenceData
from cropguard.dependencies import get_reference, get_repositories
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.risk import ResistanceResponse, WarningSummary
from cropguard.services.resistance_service import ResistanceService
from cropguard.services.warning_service import WarningService

router = APIRouter(tags=["risk"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="risk analysis failure")


@router.get("/resistance", response_model=ResistanceResponse)
async def get_resistance(
	repositories: Repositories = Depends(get_repositories),
	reference: ReferenceData = Depends(get_reference),
) -> ResistanceResponse:
	now = datetime.now(UTC)
	try:
		fields = await repositories.fields.get_all()
		risks = await ResistanceService(repositories, reference).analyze(
			{field.id: field.name for field in fields},
			now=now,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return ResistanceResponse(generated_at=now, risks=risks)


@router.get("/warnings", response_model=WarningSummary)
async def get_warnings(
	repositories: Repositories = Depends(get_repositories),
	reference: ReferenceData = Depends(get_reference),
) -> WarningSummary:
	try:
		return await WarningService(repositories, reference).get_warnings()
	except Exception as exc:
		raise _map_error(exc) from exc
