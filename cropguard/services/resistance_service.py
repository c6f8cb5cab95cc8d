"""Resistance risk: windowed usage of each active ingredient per field."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from cropguard.config import Settings, get_settings
from cropguard.data.regulations import ReferenceData, get_reference_data
from cropguard.middleware.logging import get_logger
from cropguard.models import Product, ResistanceRecord, RiskLevelEnum, Treatment
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.risk import ResistanceRisk

_logger = get_logger("resistance")


@dataclass
class _Usage:
	count: int
	last_date: datetime


def risk_level(usage_count: int, max_applications: int) -> RiskLevelEnum:
	if usage_count > max_applications:
		return RiskLevelEnum.high
	if usage_count == max_applications:
		return RiskLevelEnum.medium
	return RiskLevelEnum.low


class ResistanceService:
	def __init__(
		self,
		repositories: Repositories,
		reference: ReferenceData | None = None,
		settings: Settings | None = None,
	):
		self.repositories = repositories
		self.reference = reference or get_reference_data()
		self.settings = settings or get_settings()

	async def analyze(
		self,
		field_names: Mapping[int, str] | None = None,
		now: datetime | None = None,
	) -> list[ResistanceRisk]:
		"""Compute current risks and replace the persisted audit rows with them."""
		now = now or datetime.now(UTC)
		treatments, products = await asyncio.gather(
			self.repositories.treatments.get_all(),
			self.repositories.products.get_all(),
		)
		risks = self.calculate_risks(treatments, {product.id: product for product in products}, field_names or {}, now)

		await self.repositories.resistance.replace(
			[
				ResistanceRecord(
					field_id=risk.field_id,
					active_ingredient=risk.active_ingredient,
					usage_count=risk.usage_count,
					last_treatment_date=risk.last_treatment_date,
					risk_level=risk.risk_level,
					notes=risk.notes,
				)
				for risk in risks
			]
		)
		_logger.info(
			"resistance_analysis_completed",
			risks=len(risks),
			high=sum(1 for risk in risks if risk.risk_level == RiskLevelEnum.high),
		)
		return risks

	def calculate_risks(
		self,
		treatments: list[Treatment],
		products: Mapping[int, Product],
		field_names: Mapping[int, str],
		now: datetime,
	) -> list[ResistanceRisk]:
		lookback_days = self.settings.resistance_lookback_days
		since = now - timedelta(days=lookback_days)

		usage: dict[tuple[int, str], _Usage] = {}
		for treatment in treatments:
			if treatment.treatment_date < since:
				continue
			for usage_row in treatment.products:
				product = products.get(usage_row.product_id)
				if product is None or not product.active_ingredient:
					continue
				key = (treatment.field_id, product.active_ingredient.lower())
				entry = usage.get(key)
				if entry is None:
					usage[key] = _Usage(count=1, last_date=treatment.treatment_date)
				else:
					entry.count += 1
					entry.last_date = max(entry.last_date, treatment.treatment_date)

		risks: list[ResistanceRisk] = []
		for (field_id, active_ingredient), entry in usage.items():
			threshold = self.reference.threshold_for(active_ingredient)
			if threshold is None:
				continue
			risks.append(
				ResistanceRisk(
					field_id=field_id,
					field_name=field_names.get(field_id),
					active_ingredient=threshold.active_ingredient,
					usage_count=entry.count,
					last_treatment_date=entry.last_date,
					threshold=threshold.max_applications_per_season,
					interval_days=threshold.interval_days,
					risk_level=risk_level(entry.count, threshold.max_applications_per_season),
					notes=f"{entry.count} treatments in the last {lookback_days} days.",
				)
			)
		return risks
