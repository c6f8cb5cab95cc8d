"""Pairwise compatibility lookup and tank mixing order."""

from __future__ import annotations

from collections.abc import Sequence

from cropguard.models.catalog import CompatibilityRecord, Product, canonical_pair
from cropguard.models.enums import FormulationEnum, ProductTypeEnum
from cropguard.repositories.contracts import Repositories

_FORMULATION_RANK: dict[FormulationEnum, int] = {
	FormulationEnum.WP: 1,
	FormulationEnum.WG: 2,
	FormulationEnum.SC: 3,
	FormulationEnum.EC: 4,
	FormulationEnum.SL: 5,
	FormulationEnum.ADJUVANT: 6,
}

_ADJUVANT_NAME_TOKENS = ("адъювант", "adjuvant")


class CompatibilityService:
	def __init__(self, repositories: Repositories):
		self.repositories = repositories

	async def lookup(self, product_id_a: int, product_id_b: int) -> CompatibilityRecord | None:
		"""Return the record for an unordered pair; ``None`` means no known conflict."""
		first, second = canonical_pair(product_id_a, product_id_b)
		return await self.repositories.compatibility.get_compatibility(first, second)

	@staticmethod
	def formulation_class(product: Product) -> FormulationEnum:
		"""Explicit formulation when catalogued, else a best-effort guess.

		Legacy records without a formulation are treated as adjuvants when the
		type or name says so, otherwise as SC, the most common liquid form.
		"""
		if product.formulation is not None:
			return product.formulation
		if product.type == ProductTypeEnum.adjuvant:
			return FormulationEnum.ADJUVANT
		name = product.name.lower()
		if any(token in name for token in _ADJUVANT_NAME_TOKENS):
			return FormulationEnum.ADJUVANT
		return FormulationEnum.SC

	def mixing_sequence(self, products: Sequence[Product]) -> list[Product]:
		"""Order of addition: WP → WG → SC → EC → SL, adjuvants last.

		``sorted`` is stable, so products of the same class keep input order.
		"""

		def sort_key(product: Product) -> tuple[bool, int]:
			formulation = self.formulation_class(product)
			return (formulation == FormulationEnum.ADJUVANT, _FORMULATION_RANK[formulation])

		return sorted(products, key=sort_key)
