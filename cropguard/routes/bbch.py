"""BBCH growth-stage lookup route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropguard.data.regulations import ReferenceData
from cropguard.dependencies import get_reference, get_repositories
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.bbch import BBCHPhaseRead, BBCHResponse
from cropguard.services.bbch_service import BBCHService

router = APIRouter(prefix="/bbch", tags=["bbch"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="bbch lookup failure")


@router.get("/{crop_id}", response_model=BBCHResponse)
async def get_bbch_phases(
	crop_id: int,
	repositories: Repositories = Depends(get_repositories),
	reference: ReferenceData = Depends(get_reference),
) -> BBCHResponse:
	try:
		crop = await repositories.crops.get_by_id(crop_id)
		if crop is None:
			raise LookupError(f"Crop {crop_id} not found")
	except Exception as exc:
		raise _map_error(exc) from exc

	service = BBCHService(reference)
	phases = service.get_phases(crop_id, crop.subcategory)
	return BBCHResponse(
		crop_id=crop_id,
		subcategory=crop.subcategory,
		phases=[
			BBCHPhaseRead(**phase.model_dump(), display_label=service.format_phase_label(phase))
			for phase in phases
		],
	)
