"""Product selection: filter candidate products and rank them by a weighted score."""

from __future__ import annotations

import asyncio

from cropguard.config import Settings, get_settings
from cropguard.middleware.logging import get_logger
from cropguard.models.catalog import Crop, Product
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.calculations import DosageAdjustment, EnvironmentalConditions
from cropguard.schemas.recommendations import RecommendedProduct, SelectionCriteria
from cropguard.services.dosage_service import DosageService

EFFICACY_WEIGHT = 0.4
COST_WEIGHT = 0.3
SAFETY_WEIGHT = 0.3

_logger = get_logger("recommendations")


def cost_score(cost_per_hectare: float, priced: bool = True) -> float:
	if not priced:
		return 0.5
	return 1.0 / (1.0 + cost_per_hectare / 1000.0)


def safety_score(waiting_period: int | None) -> float:
	if waiting_period is None:
		return 0.6
	if waiting_period <= 30:
		return 1.0
	if waiting_period <= 60:
		return 0.8
	return 0.6


class RecommendationService:
	def __init__(
		self,
		repositories: Repositories,
		dosage: DosageService | None = None,
		settings: Settings | None = None,
	):
		self.repositories = repositories
		self.dosage = dosage or DosageService()
		self.settings = settings or get_settings()

	async def select(self, criteria: SelectionCriteria) -> list[RecommendedProduct]:
		return await self._rank(criteria)

	async def get_alternatives(self, exclude_product_id: int, criteria: SelectionCriteria) -> list[RecommendedProduct]:
		ranked = await self._rank(criteria, exclude_product_id=exclude_product_id)
		return ranked[: self.settings.alternatives_limit]

	async def _rank(
		self,
		criteria: SelectionCriteria,
		exclude_product_id: int | None = None,
	) -> list[RecommendedProduct]:
		candidates, crop = await self._candidates(criteria)
		if exclude_product_id is not None:
			candidates = [product for product in candidates if product.id != exclude_product_id]

		efficacies = await asyncio.gather(
			*(self._average_efficacy(product, criteria.pest_ids) for product in candidates)
		)

		conditions = EnvironmentalConditions(
			soil_type=criteria.soil_type,
			temperature=criteria.temperature,
			humidity=criteria.humidity,
			is_low_humidity=criteria.is_low_humidity,
			is_weakened_plants=criteria.is_weakened_plants,
			crop_phase=criteria.crop_phase,
		)

		recommendations = [
			self._recommend(product, efficacy, conditions, criteria, crop)
			for product, efficacy in zip(candidates, efficacies, strict=True)
		]
		recommendations.sort(key=lambda item: item.score, reverse=True)

		_logger.info(
			"recommendations_ranked",
			crop_id=criteria.crop_id,
			pest_ids=criteria.pest_ids,
			candidates=len(recommendations),
			excluded_product_id=exclude_product_id,
		)
		return recommendations

	async def _candidates(self, criteria: SelectionCriteria) -> tuple[list[Product], Crop | None]:
		min_efficacy = (
			criteria.min_efficacy if criteria.min_efficacy is not None else self.settings.default_min_efficacy
		)
		products = self.repositories.products
		crop, approved, *effective_lists = await asyncio.gather(
			self.repositories.crops.get_by_id(criteria.crop_id),
			products.get_compatible_with_crop(criteria.crop_id, criteria.crop_phase),
			*(products.get_effective_against_pest(pest_id, min_efficacy) for pest_id in criteria.pest_ids),
		)

		# Union in first-seen order across pests.
		effective: dict[int, Product] = {}
		for product_list in effective_lists:
			for product in product_list:
				effective.setdefault(product.id, product)

		approved_ids = {product.id for product in approved}
		candidates = [product for product in effective.values() if product.id in approved_ids]

		if criteria.days_until_harvest is not None:
			candidates = [
				product
				for product in candidates
				if product.waiting_period is None or product.waiting_period <= criteria.days_until_harvest
			]
		return candidates, crop

	async def _average_efficacy(self, product: Product, pest_ids: list[int]) -> float:
		wanted = set(pest_ids)
		entries = await self.repositories.products.get_pest_efficacy_for_product(product.id)
		values = [entry.efficacy for entry in entries if entry.pest_id in wanted]
		if not values:
			return 0.0
		return sum(values) / len(values)

	def _recommend(
		self,
		product: Product,
		efficacy: float,
		conditions: EnvironmentalConditions,
		criteria: SelectionCriteria,
		crop: Crop | None,
	) -> RecommendedProduct:
		adjustment = self.dosage.adjust(product, conditions)
		cost_per_hectare = self.dosage.cost_per_hectare(product, adjustment.adjusted_dosage)
		priced = bool(product.price_per_unit)
		score = (
			EFFICACY_WEIGHT * (efficacy / 100.0)
			+ COST_WEIGHT * cost_score(cost_per_hectare, priced)
			+ SAFETY_WEIGHT * safety_score(product.waiting_period)
		)

		return RecommendedProduct(
			product=product,
			efficacy=round(efficacy, 1),
			adjusted_dosage=round(adjustment.adjusted_dosage, 2),
			cost_per_hectare=round(cost_per_hectare, 2),
			total_cost=round(cost_per_hectare * criteria.area, 2),
			waiting_period=product.waiting_period,
			score=round(min(1.0, score), 3),
			warnings=self._warnings(product, adjustment, criteria, crop),
		)

	@staticmethod
	def _warnings(
		product: Product,
		adjustment: DosageAdjustment,
		criteria: SelectionCriteria,
		crop: Crop | None,
	) -> list[str]:
		warnings: list[str] = []
		phase = criteria.crop_phase
		if crop is not None and phase is not None:
			if crop.bbh_min is not None and phase < crop.bbh_min:
				warnings.append(f"BBCH phase {phase} is below the recommended minimum ({crop.bbh_min}).")
			if crop.bbh_max is not None and phase > crop.bbh_max:
				warnings.append(f"BBCH phase {phase} is above the recommended maximum ({crop.bbh_max}).")

		if product.waiting_period is not None and product.waiting_period > 30:
			warnings.append(f"Long waiting period: {product.waiting_period} days")

		if adjustment.coefficient > 1.2:
			warnings.append("Dosage increased due to conditions")
		elif adjustment.coefficient < 0.9:
			warnings.append("Dosage decreased due to conditions")
		return warnings
