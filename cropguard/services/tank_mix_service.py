"""Tank-mix evaluation: pairwise compatibility, mixing order, combined dosage."""

from __future__ import annotations

from collections.abc import Sequence

from cropguard.config import Settings, get_settings
from cropguard.middleware.logging import get_logger
from cropguard.models.catalog import Product
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.recommendations import TankMixResult
from cropguard.services.compatibility_service import CompatibilityService

NO_PRODUCTS_ISSUE = "No products to mix"

COMPATIBILITY_TEST_STEPS = (
	"Prepare a trial mix in a small volume (50-100 ml).",
	"Add the products in the recommended mixing sequence.",
	"Stir thoroughly.",
	"Observe for 15-30 minutes.",
	"Check for sediment, foam or phase separation.",
	"Use the mix only if it stays stable.",
)

_logger = get_logger("tank_mix")


class TankMixService:
	def __init__(self, repositories: Repositories, settings: Settings | None = None):
		self.repositories = repositories
		self.settings = settings or get_settings()
		self.compatibility = CompatibilityService(repositories)

	async def calculate_tank_mix(self, product_ids: Sequence[int]) -> TankMixResult:
		products = await self._resolve_products(product_ids)
		if not products:
			return TankMixResult(compatible=False, issues=[NO_PRODUCTS_ISSUE])

		issues: list[str] = []
		warnings: list[str] = []

		for index, first in enumerate(products):
			for second in products[index + 1 :]:
				record = await self.compatibility.lookup(first.id, second.id)
				if record is None:
					continue
				pair = f"{first.name} and {second.name}"
				suffix = f" ({record.notes})" if record.notes else ""

				if not record.chemical_compatible:
					issues.append(f"Chemical incompatibility: {pair}{suffix}")
				if not record.physical_compatible:
					issues.append(f"Physical incompatibility: {pair}{suffix}")
				if record.notes and (record.chemical_compatible or record.physical_compatible):
					warnings.append(record.notes)
				if not record.biological_compatible:
					note = f" {record.notes}" if record.notes else ""
					warnings.append(f"Biological incompatibility: {pair}.{note}")

		total_dosage = sum(product.midpoint_dosage for product in products)
		if total_dosage > self.settings.high_total_dosage:
			warnings.append("High combined dosage in the mix. Check for phytotoxicity.")

		return TankMixResult(
			compatible=not issues,
			products=products,
			mixing_sequence=self.compatibility.mixing_sequence(products),
			total_dosage=round(total_dosage, 2),
			issues=issues,
			warnings=warnings,
		)

	@staticmethod
	def compatibility_test_methodology() -> list[str]:
		"""Jar-test procedure to run before mixing a full tank."""
		return list(COMPATIBILITY_TEST_STEPS)

	async def _resolve_products(self, product_ids: Sequence[int]) -> list[Product]:
		products: list[Product] = []
		for product_id in product_ids:
			product = await self.repositories.products.get_by_id(product_id)
			if product is None:
				_logger.warning("tank_mix_product_missing", product_id=product_id)
				continue
			products.append(product)
		return products
