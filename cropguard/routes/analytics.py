"""Economic and agronomic analytics routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.asyncio import Redis

from cropguard.dependencies import get_redis, get_repositories
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError
from cropguard.schemas.analytics import AgronomicAnalytics, EconomicAnalytics
from cropguard.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, RepositoryUnavailableError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="analytics failure")


@router.get("/economic", response_model=EconomicAnalytics)
async def get_economic_analytics(
	force_refresh: bool = Query(default=False),
	repositories: Repositories = Depends(get_repositories),
	redis_client: Redis | None = Depends(get_redis),
) -> EconomicAnalytics:
	try:
		return await AnalyticsService(repositories, redis_client).get_economic_analytics(force_refresh=force_refresh)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/agronomic", response_model=AgronomicAnalytics)
async def get_agronomic_analytics(
	force_refresh: bool = Query(default=False),
	repositories: Repositories = Depends(get_repositories),
	redis_client: Redis | None = Depends(get_redis),
) -> AgronomicAnalytics:
	try:
		return await AnalyticsService(repositories, redis_client).get_agronomic_analytics(force_refresh=force_refresh)
	except Exception as exc:
		raise _map_error(exc) from exc
