"""Product recommendation routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropguard.dependencies import get_repositories
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.recommendations import RecommendationResponse, SelectionCriteria
from cropguard.services.recommendation_service import RecommendationService

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="recommendation failure")


@router.post("", response_model=RecommendationResponse)
async def recommend_products(
	criteria: SelectionCriteria,
	repositories: Repositories = Depends(get_repositories),
) -> RecommendationResponse:
	try:
		items = await RecommendationService(repositories).select(criteria)
	except Exception as exc:
		raise _map_error(exc) from exc
	return RecommendationResponse(items=items)


@router.post("/alternatives/{product_id}", response_model=RecommendationResponse)
async def recommend_alternatives(
	product_id: int,
	criteria: SelectionCriteria,
	repositories: Repositories = Depends(get_repositories),
) -> RecommendationResponse:
	try:
		items = await RecommendationService(repositories).get_alternatives(product_id, criteria)
	except Exception as exc:
		raise _map_error(exc) from exc
	return RecommendationResponse(items=items)
