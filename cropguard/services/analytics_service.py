"""Economic and agronomic aggregates over the treatment history, cached in Redis."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar

from pydantic import BaseModel
from redis.asyncio import Redis

from cropguard.config import Settings, get_settings
from cropguard.middleware.logging import get_logger
from cropguard.models import PestEfficacy, Product, Treatment, TreatmentProduct
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.analytics import (
	AgronomicAnalytics,
	AgronomicRecommendation,
	AgronomicTotals,
	CropEconomicStat,
	EconomicAnalytics,
	EconomicTotals,
	PestControlStat,
	PestProductUsage,
	PestSeasonTrend,
	ProductPerformanceStat,
	SeasonalCostStat,
	SeasonComparisonStat,
	SeasonCount,
)

ECONOMIC_CACHE_KEY = "cropguard:analytics:economic"
AGRONOMIC_CACHE_KEY = "cropguard:analytics:agronomic"
UNKNOWN_CROP = "Unknown crop"
UNKNOWN_PRODUCT = "Unknown product"
UNKNOWN_PEST = "Unknown pest"

LOW_EFFICACY = 80.0
DECLINING_EFFICACY = 85.0
DECLINING_MIN_APPLICATIONS = 3

AnalyticsT = TypeVar("AnalyticsT", bound=BaseModel)

_logger = get_logger("analytics")


def season_of(treatment: Treatment) -> str:
	return str(treatment.treatment_date.year)


def treatment_cost(treatment: Treatment) -> float:
	if treatment.total_cost is not None:
		return treatment.total_cost
	return sum(usage.cost or 0.0 for usage in treatment.products)


def usage_cost(usage: TreatmentProduct, product: Product | None) -> float:
	if usage.cost is not None:
		return usage.cost
	if product is not None and product.price_per_unit and product.max_dosage:
		return product.midpoint_dosage * product.price_per_unit
	return 0.0


@dataclass
class _PestAccumulator:
	pest_id: int
	pest_name: str
	pest_type: str | None
	treatment_ids: set[int] = field(default_factory=set)
	efficacy_total: float = 0.0
	samples: int = 0
	products: dict[int, PestProductUsage] = field(default_factory=dict)
	product_efficacy: dict[int, float] = field(default_factory=lambda: defaultdict(float))


class AnalyticsService:
	"""Aggregates for the dashboards.

	With a Redis client the serialized result is stored under a fixed key for
	``analytics_cache_ttl_seconds``; a hit is returned with ``cached=True``.
	Without one every call recomputes.
	"""

	def __init__(
		self,
		repositories: Repositories,
		redis_client: Redis | None = None,
		settings: Settings | None = None,
	):
		self.repositories = repositories
		self.redis_client = redis_client
		self.settings = settings or get_settings()

	async def clear_cache(self) -> None:
		if self.redis_client is not None:
			await self.redis_client.delete(ECONOMIC_CACHE_KEY, AGRONOMIC_CACHE_KEY)

	async def _read_cached(self, key: str, model: type[AnalyticsT]) -> AnalyticsT | None:
		if self.redis_client is None:
			return None
		payload = await self.redis_client.get(key)
		if payload is None:
			return None
		return model.model_validate_json(payload).model_copy(update={"cached": True})

	async def _write_cached(self, key: str, analytics: BaseModel) -> None:
		if self.redis_client is not None:
			await self.redis_client.setex(key, self.settings.analytics_cache_ttl_seconds, analytics.model_dump_json())

	# ── economic ────────────────────────────────────────────────────────────

	async def get_economic_analytics(self, force_refresh: bool = False) -> EconomicAnalytics:
		if not force_refresh:
			cached = await self._read_cached(ECONOMIC_CACHE_KEY, EconomicAnalytics)
			if cached is not None:
				return cached

		treatments, crops, products = await asyncio.gather(
			self.repositories.treatments.get_all(),
			self.repositories.crops.get_all(),
			self.repositories.products.get_all(),
		)
		crop_names = {crop.id: crop.name for crop in crops}
		product_map = {product.id: product for product in products}

		analytics = EconomicAnalytics(
			generated_at=datetime.now(UTC),
			crops=self._crop_stats(treatments, crop_names),
			products=await self._product_stats(treatments, product_map),
			seasons=self._seasonal_stats(treatments),
			totals=EconomicTotals(
				total_treatments=len(treatments),
				total_area=sum(treatment.area for treatment in treatments),
				total_cost=sum(treatment_cost(treatment) for treatment in treatments),
			),
		)
		await self._write_cached(ECONOMIC_CACHE_KEY, analytics)
		_logger.info("economic_analytics_computed", treatments=len(treatments))
		return analytics

	@staticmethod
	def _crop_stats(treatments: list[Treatment], crop_names: Mapping[int, str]) -> list[CropEconomicStat]:
		stats: dict[int, CropEconomicStat] = {}
		for treatment in treatments:
			if treatment.crop_id is None:
				continue
			stat = stats.setdefault(
				treatment.crop_id,
				CropEconomicStat(crop_id=treatment.crop_id, crop_name=crop_names.get(treatment.crop_id, UNKNOWN_CROP)),
			)
			stat.total_area += treatment.area
			stat.total_cost += treatment_cost(treatment)
			stat.treatments += 1
			stat.cost_per_hectare = stat.total_cost / stat.total_area if stat.total_area > 0 else 0.0
		return sorted(stats.values(), key=lambda stat: stat.total_cost, reverse=True)

	async def _product_stats(
		self,
		treatments: list[Treatment],
		products: Mapping[int, Product],
	) -> list[ProductPerformanceStat]:
		stats: dict[int, ProductPerformanceStat] = {}
		for treatment in treatments:
			for usage in treatment.products:
				product = products.get(usage.product_id)
				stat = stats.setdefault(
					usage.product_id,
					ProductPerformanceStat(
						product_id=usage.product_id,
						product_name=product.name if product else UNKNOWN_PRODUCT,
					),
				)
				stat.applications += 1
				stat.total_dosage += usage.dosage
				stat.total_cost += usage_cost(usage, product)

		if stats:
			efficacy = await self.repositories.products.get_average_efficacy_bulk(list(stats))
			for product_id, stat in stats.items():
				stat.estimated_efficacy = efficacy.get(product_id)
		return sorted(stats.values(), key=lambda stat: stat.total_cost, reverse=True)

	@staticmethod
	def _seasonal_stats(treatments: list[Treatment]) -> list[SeasonalCostStat]:
		stats: dict[str, SeasonalCostStat] = {}
		for treatment in treatments:
			season = season_of(treatment)
			stat = stats.setdefault(season, SeasonalCostStat(season=season))
			stat.total_treatments += 1
			stat.total_area += treatment.area
			stat.total_cost += treatment_cost(treatment)
			stat.avg_cost_per_treatment = stat.total_cost / stat.total_treatments
		return sorted(stats.values(), key=lambda stat: int(stat.season), reverse=True)

	# ── agronomic ───────────────────────────────────────────────────────────

	async def get_agronomic_analytics(self, force_refresh: bool = False) -> AgronomicAnalytics:
		if not force_refresh:
			cached = await self._read_cached(AGRONOMIC_CACHE_KEY, AgronomicAnalytics)
			if cached is not None:
				return cached

		treatments, pests, products = await asyncio.gather(
			self.repositories.treatments.get_all(),
			self.repositories.pests.get_all(),
			self.repositories.products.get_all(),
		)
		pest_map = {pest.id: pest for pest in pests}
		product_names = {product.id: product.name for product in products}

		used_ids = sorted({usage.product_id for treatment in treatments for usage in treatment.products})
		efficacy_lists = await asyncio.gather(
			*(self.repositories.products.get_pest_efficacy_for_product(product_id) for product_id in used_ids)
		)
		efficacy_by_product: dict[int, list[PestEfficacy]] = dict(zip(used_ids, efficacy_lists, strict=True))

		accumulators: dict[int, _PestAccumulator] = {}
		trends: dict[int, dict[str, int]] = defaultdict(lambda: defaultdict(int))
		season_treatments: dict[str, int] = defaultdict(int)
		season_pests: dict[str, set[int]] = defaultdict(set)
		season_products: dict[str, set[int]] = defaultdict(set)

		for treatment in treatments:
			season = season_of(treatment)
			season_treatments[season] += 1
			treated_pests: set[int] = set()

			for usage in treatment.products:
				season_products[season].add(usage.product_id)
				for entry in efficacy_by_product.get(usage.product_id, []):
					pest = pest_map.get(entry.pest_id)
					accumulator = accumulators.setdefault(
						entry.pest_id,
						_PestAccumulator(
							pest_id=entry.pest_id,
							pest_name=pest.name if pest else (entry.pest_name or UNKNOWN_PEST),
							pest_type=pest.type if pest else entry.pest_type,
						),
					)
					accumulator.efficacy_total += entry.efficacy
					accumulator.samples += 1

					product_usage = accumulator.products.setdefault(
						usage.product_id,
						PestProductUsage(
							product_id=usage.product_id,
							product_name=product_names.get(usage.product_id, UNKNOWN_PRODUCT),
						),
					)
					product_usage.applications += 1
					accumulator.product_efficacy[usage.product_id] += entry.efficacy
					treated_pests.add(entry.pest_id)

			for pest_id in treated_pests:
				accumulators[pest_id].treatment_ids.add(treatment.id)
				trends[pest_id][season] += 1
				season_pests[season].add(pest_id)

		pest_stats = [self._pest_stat(accumulator) for accumulator in accumulators.values()]
		pest_stats.sort(key=lambda stat: stat.treatments, reverse=True)

		analytics = AgronomicAnalytics(
			generated_at=datetime.now(UTC),
			pests=pest_stats,
			trends=[
				PestSeasonTrend(
					pest_id=pest_id,
					pest_name=pest_map[pest_id].name if pest_id in pest_map else UNKNOWN_PEST,
					seasons=[
						SeasonCount(season=season, treatments=count)
						for season, count in sorted(by_season.items(), key=lambda item: int(item[0]))
					],
				)
				for pest_id, by_season in trends.items()
			],
			seasons=[
				SeasonComparisonStat(
					season=season,
					total_treatments=count,
					unique_pests=len(season_pests[season]),
					unique_products=len(season_products[season]),
				)
				for season, count in sorted(season_treatments.items(), key=lambda item: int(item[0]))
			],
			recommendations=self._recommendations(pest_stats),
			totals=self._agronomic_totals(pest_stats),
		)
		await self._write_cached(AGRONOMIC_CACHE_KEY, analytics)
		_logger.info("agronomic_analytics_computed", treatments=len(treatments), pests=len(pest_stats))
		return analytics

	@staticmethod
	def _pest_stat(accumulator: _PestAccumulator) -> PestControlStat:
		usages = []
		for product_id, usage in accumulator.products.items():
			usage.avg_efficacy = accumulator.product_efficacy[product_id] / usage.applications
			usages.append(usage)
		usages.sort(key=lambda usage: usage.applications, reverse=True)
		return PestControlStat(
			pest_id=accumulator.pest_id,
			pest_name=accumulator.pest_name,
			pest_type=accumulator.pest_type,
			treatments=len(accumulator.treatment_ids),
			avg_efficacy=accumulator.efficacy_total / accumulator.samples if accumulator.samples else 0.0,
			products=usages,
		)

	@staticmethod
	def _recommendations(pests: list[PestControlStat]) -> list[AgronomicRecommendation]:
		recommendations: list[AgronomicRecommendation] = []
		for pest in pests:
			if pest.treatments == 0:
				continue
			if pest.avg_efficacy < LOW_EFFICACY:
				message = "Low efficacy. Consider alternative products or strategies."
			elif (
				pest.products
				and pest.products[0].applications >= DECLINING_MIN_APPLICATIONS
				and pest.products[0].avg_efficacy < DECLINING_EFFICACY
			):
				message = (
					f"{pest.products[0].product_name} shows declining efficacy. "
					"Check the resistance risk and update the protection scheme."
				)
			else:
				continue
			recommendations.append(
				AgronomicRecommendation(
					pest_id=pest.pest_id,
					pest_name=pest.pest_name,
					avg_efficacy=pest.avg_efficacy,
					treatments=pest.treatments,
					message=message,
				)
			)
		return recommendations

	@staticmethod
	def _agronomic_totals(pests: list[PestControlStat]) -> AgronomicTotals:
		total_treatments = sum(pest.treatments for pest in pests)
		weighted = sum(pest.avg_efficacy * pest.treatments for pest in pests)
		return AgronomicTotals(
			total_pests=len(pests),
			total_treatments=total_treatments,
			overall_avg_efficacy=weighted / total_treatments if total_treatments else 0.0,
		)
