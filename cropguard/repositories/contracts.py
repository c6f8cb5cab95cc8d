"""Data-access contracts the engine consumes.

Storage is an external collaborator: any object satisfying these protocols
can back the services (the in-memory store in ``memory.py``, a SQL layer,
a remote API...). All calls are awaitable; services treat them as the only
I/O boundary.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from cropguard.models import (
	CompatibilityRecord,
	Crop,
	FarmField,
	InventoryItem,
	Pest,
	PestEfficacy,
	PlanStatusEnum,
	Product,
	ProductTypeEnum,
	ResistanceRecord,
	Treatment,
	TreatmentPlan,
)


class RepositoryUnavailableError(RuntimeError):
	"""Raised when a storage collaborator is used before it is initialized."""


class ProductRepository(Protocol):
	async def get_all(self) -> list[Product]: ...

	async def get_by_id(self, product_id: int) -> Product | None: ...

	async def get_by_type(self, product_type: ProductTypeEnum) -> list[Product]: ...

	async def get_effective_against_pest(self, pest_id: int, min_efficacy: float) -> list[Product]: ...

	async def get_compatible_with_crop(self, crop_id: int, phase: int | None = None) -> list[Product]: ...

	async def get_pest_efficacy_for_product(self, product_id: int) -> list[PestEfficacy]: ...

	async def get_average_efficacy_bulk(self, product_ids: Sequence[int]) -> dict[int, float]: ...


class TreatmentRepository(Protocol):
	async def get_all(self) -> list[Treatment]: ...

	async def get_by_field(self, field_id: int) -> list[Treatment]:
		"""Treatments of one field, newest first."""
		...


class CompatibilityRepository(Protocol):
	async def get_compatibility(self, product_id_a: int, product_id_b: int) -> CompatibilityRecord | None: ...


class FieldRepository(Protocol):
	async def get_all(self) -> list[FarmField]: ...

	async def get_by_id(self, field_id: int) -> FarmField | None: ...


class CropRepository(Protocol):
	async def get_all(self) -> list[Crop]: ...

	async def get_by_id(self, crop_id: int) -> Crop | None: ...


class PestRepository(Protocol):
	async def get_all(self) -> list[Pest]: ...

	async def get_by_id(self, pest_id: int) -> Pest | None: ...


class WarehouseRepository(Protocol):
	async def get_all(self) -> list[InventoryItem]: ...

	async def get_by_product(self, product_id: int) -> list[InventoryItem]: ...


class TreatmentPlanRepository(Protocol):
	async def get_all(self) -> list[TreatmentPlan]: ...

	async def get_upcoming(self, days_ahead: int, now: datetime) -> list[TreatmentPlan]: ...

	async def get_by_id(self, plan_id: int) -> TreatmentPlan | None: ...

	async def save(self, plan: TreatmentPlan) -> int:
		"""Insert or update; returns the plan id."""
		...

	async def update_status(self, plan_id: int, status: PlanStatusEnum) -> None: ...


class ResistanceRepository(Protocol):
	async def clear(self) -> None: ...

	async def save(self, records: Sequence[ResistanceRecord]) -> None: ...

	async def get_all(self) -> list[ResistanceRecord]: ...

	async def replace(self, records: Sequence[ResistanceRecord]) -> None:
		"""Clear and save as one step: either every prior row is replaced or none is."""
		...


@dataclass(frozen=True)
class Repositories:
	"""Bundle of collaborators injected into every engine service."""

	products: ProductRepository
	treatments: TreatmentRepository
	compatibility: CompatibilityRepository
	fields: FieldRepository
	crops: CropRepository
	pests: PestRepository
	warehouse: WarehouseRepository
	plans: TreatmentPlanRepository
	resistance: ResistanceRepository
