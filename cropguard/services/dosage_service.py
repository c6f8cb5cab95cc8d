"""Dosage adjustment and working-solution calculations.

Pure arithmetic, no collaborators. Every environmental input is optional;
an absent input contributes a neutral coefficient of 1.0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from cropguard.models.catalog import Product
from cropguard.models.enums import CoverageEnum, SoilTypeEnum, SprayerTypeEnum
from cropguard.schemas.calculations import (
	DosageAdjustment,
	DosageFactors,
	EnvironmentalConditions,
	SprayParameters,
	WorkingSolutionCalculation,
)

_SOIL_COEFFICIENTS: dict[SoilTypeEnum, float] = {
	SoilTypeEnum.sand: 0.8,
	SoilTypeEnum.loam: 1.0,
	SoilTypeEnum.chernozem: 1.2,
	SoilTypeEnum.clay: 1.1,
}

_BASE_VOLUME_L_HA: dict[SprayerTypeEnum, float] = {
	SprayerTypeEnum.boom: 200.0,
	SprayerTypeEnum.aerial: 50.0,
}
_DEFAULT_VOLUME_L_HA = 200.0
MIN_VOLUME_L_HA = 100.0
MAX_VOLUME_L_HA = 400.0


class DosageService:
	"""Coefficient-based dosage correction and spray volume planning."""

	@staticmethod
	def soil_coefficient(soil_type: SoilTypeEnum | None) -> float:
		if soil_type is None:
			return 1.0
		return _SOIL_COEFFICIENTS.get(soil_type, 1.0)

	@staticmethod
	def temperature_coefficient(temperature: float | None) -> float:
		if temperature is None:
			return 1.0
		if temperature < 15:
			return 1.3
		if temperature <= 25:
			return 1.0
		return 0.8

	@staticmethod
	def humidity_coefficient(humidity: float | None, is_low: bool = False) -> float:
		if is_low or (humidity is not None and humidity < 40):
			return 1.2
		if humidity is not None and humidity > 80:
			return 0.9
		return 1.0

	@staticmethod
	def plant_condition_coefficient(is_weakened: bool = False) -> float:
		return 0.8 if is_weakened else 1.0

	def adjust(self, product: Product, conditions: EnvironmentalConditions | None = None) -> DosageAdjustment:
		"""Scale the midpoint dosage by environmental coefficients.

		The result is clamped to the product's registered range; the reported
		``coefficient`` is the unclamped product of the four factors.
		"""
		conditions = conditions or EnvironmentalConditions()
		factors = DosageFactors(
			soil=self.soil_coefficient(conditions.soil_type),
			temperature=self.temperature_coefficient(conditions.temperature),
			humidity=self.humidity_coefficient(conditions.humidity, conditions.is_low_humidity),
			plant_condition=self.plant_condition_coefficient(conditions.is_weakened_plants),
		)
		coefficient = factors.soil * factors.temperature * factors.humidity * factors.plant_condition
		base_dosage = product.midpoint_dosage
		adjusted = min(product.max_dosage, max(product.min_dosage, base_dosage * coefficient))
		return DosageAdjustment(
			base_dosage=base_dosage,
			adjusted_dosage=adjusted,
			coefficient=coefficient,
			factors=factors,
		)

	@staticmethod
	def recommended_volume(spray: SprayParameters | None = None) -> float:
		"""Spray volume in l/ha, always within [100, 400]."""
		spray = spray or SprayParameters()
		volume = _BASE_VOLUME_L_HA.get(spray.sprayer_type, _DEFAULT_VOLUME_L_HA)

		if spray.wind_speed is not None:
			if spray.wind_speed > 5:
				volume *= 1.2
			elif spray.wind_speed < 2:
				volume *= 0.9

		if spray.temperature is not None:
			if spray.temperature > 25:
				volume *= 1.1
			elif spray.temperature < 15:
				volume *= 0.95

		if spray.coverage == CoverageEnum.high:
			volume *= 1.2
		elif spray.coverage == CoverageEnum.low:
			volume *= 0.8

		return max(MIN_VOLUME_L_HA, min(MAX_VOLUME_L_HA, volume))

	def solution(
		self,
		area: float,
		product: Product,
		dosage: float,
		spray: SprayParameters | None = None,
	) -> WorkingSolutionCalculation:
		recommended_volume = self.recommended_volume(spray)
		total_volume = recommended_volume * area
		product_amount = dosage * area
		water_amount = total_volume - product_amount
		cost_per_hectare = self.cost_per_hectare(product, dosage)

		return WorkingSolutionCalculation(
			area=area,
			recommended_volume=round(recommended_volume, 1),
			total_volume=round(total_volume, 1),
			product_amount=round(product_amount, 2),
			water_amount=round(water_amount, 1),
			cost_per_hectare=round(cost_per_hectare, 2),
			total_cost=round(cost_per_hectare * area, 2),
		)

	@staticmethod
	def cost_per_hectare(product: Product, dosage: float) -> float:
		if not product.price_per_unit:
			return 0.0
		return dosage * product.price_per_unit

	def total_cost(self, items: Iterable[tuple[Product, float]], area: float) -> float:
		total = sum(self.cost_per_hectare(product, dosage) * area for product, dosage in items)
		return round(total, 2)

	@staticmethod
	def tank_loads(total_volume: float, sprayer_capacity: float) -> int:
		"""Number of sprayer fills needed for ``total_volume`` litres."""
		if sprayer_capacity <= 0:
			raise ValueError("sprayer_capacity must be positive")
		return max(1, math.ceil(total_volume / sprayer_capacity))
