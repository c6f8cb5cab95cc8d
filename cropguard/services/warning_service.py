"""Warning feed: resistance, phytotoxicity, quarantine, inventory and weather signals."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import UTC, datetime

from cropguard.config import Settings, get_settings
from cropguard.data.regulations import ReferenceData, get_reference_data
from cropguard.middleware.logging import get_logger
from cropguard.models import (
	InventoryItem,
	Product,
	RiskLevelEnum,
	Treatment,
	WarningCategoryEnum,
	WarningSeverityEnum,
)
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.risk import ResistanceRisk, WarningItem, WarningSummary
from cropguard.services.resistance_service import ResistanceService

UNKNOWN_FIELD = "Unknown field"

_logger = get_logger("warnings")


def calendar_days_between(start: datetime, end: datetime) -> int:
	return (end.astimezone(UTC).date() - start.astimezone(UTC).date()).days


class WarningService:
	def __init__(
		self,
		repositories: Repositories,
		reference: ReferenceData | None = None,
		settings: Settings | None = None,
	):
		self.repositories = repositories
		self.reference = reference or get_reference_data()
		self.settings = settings or get_settings()
		self.resistance = ResistanceService(repositories, self.reference, self.settings)

	async def get_warnings(self, now: datetime | None = None) -> WarningSummary:
		now = now or datetime.now(UTC)
		treatments, products, fields, inventory = await asyncio.gather(
			self.repositories.treatments.get_all(),
			self.repositories.products.get_all(),
			self.repositories.fields.get_all(),
			self.repositories.warehouse.get_all(),
		)
		product_map = {product.id: product for product in products}
		field_names = {field.id: field.name for field in fields}

		risks = await self.resistance.analyze(field_names, now=now)

		warnings = [
			*self.transform_resistance_risks(risks),
			*self.check_phytotoxicity(treatments, product_map, field_names),
			*self.check_quarantine(treatments, field_names),
			*self.check_inventory(inventory, product_map, now),
			*self.check_weather(treatments, field_names),
		]
		warnings.sort(key=lambda item: item.severity.rank, reverse=True)

		_logger.info(
			"warnings_generated",
			total=len(warnings),
			critical=sum(1 for item in warnings if item.severity == WarningSeverityEnum.critical),
		)
		return WarningSummary(generated_at=now, warnings=warnings)

	# ── resistance ──────────────────────────────────────────────────────────

	@staticmethod
	def transform_resistance_risks(risks: list[ResistanceRisk]) -> list[WarningItem]:
		warnings: list[WarningItem] = []
		for risk in risks:
			if risk.risk_level == RiskLevelEnum.low:
				continue
			message = (
				f'Field "{risk.field_name or UNKNOWN_FIELD}": {risk.usage_count} treatments with '
				f"{risk.active_ingredient} (threshold {risk.threshold}). {risk.notes or ''}"
				f" Recommended interval: every {risk.interval_days} days."
			)
			warnings.append(
				WarningItem(
					id=f"res-{risk.field_id}-{risk.active_ingredient}",
					category=WarningCategoryEnum.resistance,
					severity=(
						WarningSeverityEnum.critical
						if risk.risk_level == RiskLevelEnum.high
						else WarningSeverityEnum.caution
					),
					title="Resistance risk",
					message=" ".join(message.split()),
					related_field_id=risk.field_id,
				)
			)
		return warnings

	# ── phytotoxicity ───────────────────────────────────────────────────────

	def phytotoxicity_caution(self, product: Product, treatment: Treatment) -> str | None:
		"""Caution text when treatment weather breaches the product guideline or generic limits."""
		temperature = treatment.weather_temperature
		humidity = treatment.weather_humidity

		guideline = self.reference.guideline_for(product.name)
		if guideline is not None:
			if guideline.max_temperature is not None and temperature is not None and temperature > guideline.max_temperature:
				return guideline.caution
			if guideline.min_temperature is not None and temperature is not None and temperature < guideline.min_temperature:
				return guideline.caution
			if guideline.min_humidity is not None and humidity is not None and humidity < guideline.min_humidity:
				return guideline.caution

		high_temperature = self.settings.high_temperature_threshold
		low_humidity = self.settings.low_humidity_threshold
		if temperature is not None and temperature > high_temperature:
			return (
				f"Temperature during treatment exceeded {high_temperature:g}°C. "
				"Check the evaporation and phytotoxicity risk."
			)
		if humidity is not None and humidity < low_humidity:
			return (
				f"Low air humidity (<{low_humidity:g}%) may raise the phytotoxicity risk. "
				"Reduce the dosage or postpone the treatment."
			)
		return None

	def check_phytotoxicity(
		self,
		treatments: list[Treatment],
		products: Mapping[int, Product],
		field_names: Mapping[int, str],
	) -> list[WarningItem]:
		warnings: list[WarningItem] = []
		for treatment in treatments:
			for usage in treatment.products:
				product = products.get(usage.product_id)
				if product is None:
					continue
				caution = self.phytotoxicity_caution(product, treatment)
				if caution is None:
					continue
				warnings.append(
					WarningItem(
						id=f"phyto-{treatment.id}-{product.id}",
						category=WarningCategoryEnum.phytotoxicity,
						severity=WarningSeverityEnum.caution,
						title="Phytotoxicity risk",
						message=f'Field "{field_names.get(treatment.field_id, UNKNOWN_FIELD)}": {product.name}. {caution}',
						related_field_id=treatment.field_id,
						related_product_id=product.id,
						related_treatment_id=treatment.id,
					)
				)
		return warnings

	# ── quarantine ──────────────────────────────────────────────────────────

	def check_quarantine(self, treatments: list[Treatment], field_names: Mapping[int, str]) -> list[WarningItem]:
		warnings: list[WarningItem] = []
		for treatment in treatments:
			if not treatment.notes:
				continue
			notes = treatment.notes.lower()
			for restriction in self.reference.quarantine_restrictions:
				if restriction.pest_name.lower() not in notes:
					continue
				warnings.append(
					WarningItem(
						id=f"quar-{treatment.id}-{restriction.pest_name}",
						category=WarningCategoryEnum.quarantine,
						severity=WarningSeverityEnum.critical,
						title="Quarantine restriction",
						message=(
							f'Field "{field_names.get(treatment.field_id, UNKNOWN_FIELD)}": '
							f"{restriction.pest_name} detected. {restriction.restriction}"
						),
						related_field_id=treatment.field_id,
						related_treatment_id=treatment.id,
					)
				)
		return warnings

	# ── inventory ───────────────────────────────────────────────────────────

	def check_inventory(
		self,
		inventory: list[InventoryItem],
		products: Mapping[int, Product],
		now: datetime,
	) -> list[WarningItem]:
		warnings: list[WarningItem] = []
		for item in inventory:
			product = products.get(item.product_id)
			if product is None:
				continue

			if item.expiration_date is not None:
				days = calendar_days_between(now, item.expiration_date)
				if days < 0:
					warnings.append(
						WarningItem(
							id=f"inv-expired-{item.id}",
							category=WarningCategoryEnum.inventory,
							severity=WarningSeverityEnum.critical,
							title="Expired product",
							message=f"{product.name}: expired {abs(days)} days ago.",
							related_product_id=product.id,
						)
					)
				elif days <= self.settings.expiry_warning_days:
					warnings.append(
						WarningItem(
							id=f"inv-expiring-{item.id}",
							category=WarningCategoryEnum.inventory,
							severity=WarningSeverityEnum.caution,
							title="Product expiring soon",
							message=f"{product.name}: expires in {days} days.",
							related_product_id=product.id,
						)
					)

			if item.quantity <= self.settings.low_stock_threshold:
				warnings.append(
					WarningItem(
						id=f"inv-low-{item.id}",
						category=WarningCategoryEnum.inventory,
						severity=WarningSeverityEnum.info,
						title="Low stock",
						message=f"{product.name}: {item.quantity:g} {item.unit} left. Restock recommended.",
						related_product_id=product.id,
					)
				)
		return warnings

	# ── weather ─────────────────────────────────────────────────────────────

	def check_weather(self, treatments: list[Treatment], field_names: Mapping[int, str]) -> list[WarningItem]:
		warnings: list[WarningItem] = []
		for treatment in treatments:
			wind_speed = treatment.weather_wind_speed
			if wind_speed is None or wind_speed <= self.settings.high_wind_threshold:
				continue
			warnings.append(
				WarningItem(
					id=f"weather-wind-{treatment.id}",
					category=WarningCategoryEnum.weather,
					severity=WarningSeverityEnum.caution,
					title="Unfavourable weather",
					message=(
						f'Field "{field_names.get(treatment.field_id, UNKNOWN_FIELD)}": wind speed '
						f"{wind_speed:g} m/s exceeded the allowed limit. Spray drift is possible."
					),
					related_field_id=treatment.field_id,
					related_treatment_id=treatment.id,
				)
			)
		return warnings
