from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from cropguard.config import Settings
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.analytics import AgronomicAnalytics
from cropguard.services.analytics_service import AGRONOMIC_CACHE_KEY, ECONOMIC_CACHE_KEY, AnalyticsService
from tests.conftest import FakeRedis, build_store


@pytest.mark.asyncio
async def test_economic_analytics(repositories: Repositories, settings: Settings) -> None:
	analytics = await AnalyticsService(repositories, settings=settings).get_economic_analytics()

	assert analytics.cached is False
	assert analytics.totals.total_treatments == 7
	assert analytics.totals.total_area == pytest.approx(500)
	assert analytics.totals.total_cost == pytest.approx(177)

	[wheat] = analytics.crops
	assert wheat.crop_name == "Winter wheat"
	assert wheat.treatments == 7
	assert wheat.cost_per_hectare == pytest.approx(177 / 500)

	assert [stat.product_id for stat in analytics.products] == [1, 2, 3]
	roundup, alto, karate = analytics.products
	assert roundup.applications == 3
	assert roundup.total_dosage == pytest.approx(9.0)
	assert roundup.total_cost == pytest.approx(90.0)
	assert roundup.estimated_efficacy == pytest.approx(95.0)
	assert alto.total_cost == pytest.approx(72.5)
	assert karate.estimated_efficacy == pytest.approx(68.0)

	assert [season.season for season in analytics.seasons] == ["2025", "2024"]
	current = analytics.seasons[0]
	assert current.total_treatments == 6
	assert current.total_cost == pytest.approx(152)
	assert current.avg_cost_per_treatment == pytest.approx(152 / 6)


@pytest.mark.asyncio
async def test_agronomic_analytics(repositories: Repositories, settings: Settings) -> None:
	analytics = await AnalyticsService(repositories, settings=settings).get_agronomic_analytics()

	assert [stat.pest_id for stat in analytics.pests] == [2, 1, 3]
	septoria = analytics.pests[0]
	assert septoria.treatments == 4
	assert septoria.avg_efficacy == pytest.approx(79.75)
	assert [usage.product_id for usage in septoria.products] == [2, 3]
	assert septoria.products[0].avg_efficacy == pytest.approx(93.0)

	[recommendation] = analytics.recommendations
	assert recommendation.pest_id == 2
	assert recommendation.message.startswith("Low efficacy")

	trends = {trend.pest_id: trend for trend in analytics.trends}
	assert [(item.season, item.treatments) for item in trends[2].seasons] == [("2024", 1), ("2025", 3)]

	assert [(season.season, season.unique_pests, season.unique_products) for season in analytics.seasons] == [
		("2024", 1, 1),
		("2025", 3, 3),
	]
	assert analytics.totals.total_pests == 3
	assert analytics.totals.total_treatments == 8
	assert analytics.totals.overall_avg_efficacy == pytest.approx(87.5)


@pytest.mark.asyncio
async def test_results_are_cached_until_cleared(
	repositories: Repositories,
	settings: Settings,
	fake_redis: FakeRedis,
) -> None:
	service = AnalyticsService(repositories, fake_redis, settings)

	first = await service.get_economic_analytics()
	second = await service.get_economic_analytics()
	refreshed = await service.get_economic_analytics(force_refresh=True)
	await service.clear_cache()
	after_clear = await service.get_economic_analytics()

	assert first.cached is False
	assert second.cached is True
	assert second.generated_at == first.generated_at
	assert second.totals == first.totals
	assert refreshed.cached is False
	assert after_clear.cached is False
	assert fake_redis.setex.await_count == 3
	assert fake_redis.ttls[ECONOMIC_CACHE_KEY] == settings.analytics_cache_ttl_seconds
	fake_redis.delete.assert_awaited_once_with(ECONOMIC_CACHE_KEY, AGRONOMIC_CACHE_KEY)


@pytest.mark.asyncio
async def test_cache_miss_after_expiry(
	repositories: Repositories,
	settings: Settings,
	fake_redis: FakeRedis,
) -> None:
	service = AnalyticsService(repositories, fake_redis, settings)

	await service.get_agronomic_analytics()
	assert (await service.get_agronomic_analytics()).cached is True

	fake_redis.expire_all()
	assert (await service.get_agronomic_analytics()).cached is False


@pytest.mark.asyncio
async def test_returned_result_does_not_alias_cached_value(
	repositories: Repositories,
	settings: Settings,
	fake_redis: FakeRedis,
) -> None:
	service = AnalyticsService(repositories, fake_redis, settings)

	first = await service.get_economic_analytics()
	first.totals.total_cost = -1.0
	first.products.clear()

	second = await service.get_economic_analytics()
	assert second.cached is True
	assert second.totals.total_cost == pytest.approx(177)
	assert [stat.product_id for stat in second.products] == [1, 2, 3]


@pytest.mark.asyncio
async def test_without_redis_every_call_recomputes(repositories: Repositories, settings: Settings) -> None:
	service = AnalyticsService(repositories, settings=settings)

	await service.get_economic_analytics()
	assert (await service.get_economic_analytics()).cached is False
	await service.clear_cache()


@pytest.mark.asyncio
async def test_cached_payload_is_json(repositories: Repositories, settings: Settings) -> None:
	fake_redis = SimpleNamespace(get=AsyncMock(return_value=None), setex=AsyncMock())
	service = AnalyticsService(repositories, fake_redis, settings)

	computed = await service.get_agronomic_analytics()

	key, ttl, payload = fake_redis.setex.await_args.args
	assert key == AGRONOMIC_CACHE_KEY
	assert ttl == settings.analytics_cache_ttl_seconds
	assert AgronomicAnalytics.model_validate_json(payload).totals == computed.totals


@pytest.mark.asyncio
async def test_empty_history(settings: Settings) -> None:
	repositories = build_store(treatments=[]).repositories()
	service = AnalyticsService(repositories, settings=settings)

	economic = await service.get_economic_analytics()
	agronomic = await service.get_agronomic_analytics()

	assert economic.products == []
	assert economic.totals.total_cost == 0
	assert agronomic.pests == []
	assert agronomic.totals.overall_avg_efficacy == 0.0
