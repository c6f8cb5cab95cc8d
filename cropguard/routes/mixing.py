"""Pairwise compatibility and tank-mix routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropguard.dependencies import get_repositories
from cropguard.models import canonical_pair
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.recommendations import (
	CompatibilityLookupResponse,
	MethodologyResponse,
	TankMixRequest,
	TankMixResult,
)
from cropguard.services.compatibility_service import CompatibilityService
from cropguard.services.tank_mix_service import TankMixService

router = APIRouter(tags=["mixing"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="tank mix failure")


@router.get("/compatibility/{product_id_a}/{product_id_b}", response_model=CompatibilityLookupResponse)
async def get_compatibility(
	product_id_a: int,
	product_id_b: int,
	repositories: Repositories = Depends(get_repositories),
) -> CompatibilityLookupResponse:
	try:
		record = await CompatibilityService(repositories).lookup(product_id_a, product_id_b)
	except Exception as exc:
		raise _map_error(exc) from exc
	first, second = canonical_pair(product_id_a, product_id_b)
	return CompatibilityLookupResponse(
		product_id_1=first,
		product_id_2=second,
		known=record is not None,
		record=record,
	)


@router.post("/tank-mix", response_model=TankMixResult)
async def calculate_tank_mix(
	payload: TankMixRequest,
	repositories: Repositories = Depends(get_repositories),
) -> TankMixResult:
	try:
		return await TankMixService(repositories).calculate_tank_mix(payload.product_ids)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/tank-mix/methodology", response_model=MethodologyResponse)
async def get_methodology() -> MethodologyResponse:
	return MethodologyResponse(steps=TankMixService.compatibility_test_methodology())
