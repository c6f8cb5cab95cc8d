"""Dosage adjustment and working-solution routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropguard.dependencies import get_repositories
from cropguard.models import Product
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.calculations import (
	DosageAdjustment,
	DosageRequest,
	WorkingSolutionRequest,
	WorkingSolutionResponse,
)
from cropguard.services import validation
from cropguard.services.dosage_service import DosageService

router = APIRouter(prefix="/calculations", tags=["calculations"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="calculation failure")


async def _require_product(repositories: Repositories, product_id: int) -> Product:
	product = await repositories.products.get_by_id(product_id)
	if product is None:
		raise LookupError(f"Product {product_id} not found")
	return product


@router.post("/dosage", response_model=DosageAdjustment)
async def adjust_dosage(
	payload: DosageRequest,
	repositories: Repositories = Depends(get_repositories),
) -> DosageAdjustment:
	conditions = payload.conditions
	errors = validation.collect_errors(
		validation.validate_temperature(conditions.temperature) if conditions.temperature is not None else None,
		validation.validate_humidity(conditions.humidity) if conditions.humidity is not None else None,
	)
	if errors:
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

	try:
		product = await _require_product(repositories, payload.product_id)
		return DosageService().adjust(product, conditions)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/working-solution", response_model=WorkingSolutionResponse)
async def working_solution(
	payload: WorkingSolutionRequest,
	repositories: Repositories = Depends(get_repositories),
) -> WorkingSolutionResponse:
	try:
		product = await _require_product(repositories, payload.product_id)
	except Exception as exc:
		raise _map_error(exc) from exc

	spray = payload.spray
	errors = validation.collect_errors(
		validation.validate_area(payload.area),
		validation.validate_dosage(payload.dosage, product.min_dosage, product.max_dosage),
		validation.validate_temperature(spray.temperature) if spray.temperature is not None else None,
		(
			validation.validate_sprayer_capacity(payload.sprayer_capacity)
			if payload.sprayer_capacity is not None
			else None
		),
	)
	if errors:
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

	service = DosageService()
	calculation = service.solution(payload.area, product, payload.dosage, spray)
	tank_loads = None
	if payload.sprayer_capacity is not None:
		tank_loads = service.tank_loads(calculation.total_volume, payload.sprayer_capacity)
	return WorkingSolutionResponse(calculation=calculation, tank_loads=tank_loads)
