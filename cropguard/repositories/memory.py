"""In-memory implementation of the repository contracts.

Backs the HTTP layer by default and serves as the fake in tests. Catalog,
treatment and inventory rows are frozen models and are returned as stored;
plans are mutable, so plan reads and writes go through deep copies.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from cropguard.models import (
	CompatibilityRecord,
	Crop,
	CropApproval,
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
	canonical_pair,
)
from cropguard.repositories.contracts import Repositories, RepositoryUnavailableError


class InMemoryStore:
	"""Holds every table of the crop-protection dataset in process memory."""

	def __init__(
		self,
		*,
		products: Iterable[Product] = (),
		pests: Iterable[Pest] = (),
		crops: Iterable[Crop] = (),
		fields: Iterable[FarmField] = (),
		efficacies: Iterable[PestEfficacy] = (),
		approvals: Iterable[CropApproval] = (),
		compatibility: Iterable[CompatibilityRecord] = (),
		treatments: Iterable[Treatment] = (),
		inventory: Iterable[InventoryItem] = (),
		plans: Iterable[TreatmentPlan] = (),
		initialized: bool = True,
	):
		self.products: dict[int, Product] = {item.id: item for item in products}
		self.pests: dict[int, Pest] = {item.id: item for item in pests}
		self.crops: dict[int, Crop] = {item.id: item for item in crops}
		self.fields: dict[int, FarmField] = {item.id: item for item in fields}
		self.efficacies: list[PestEfficacy] = list(efficacies)
		self.approvals: list[CropApproval] = list(approvals)
		self.compatibility: dict[tuple[int, int], CompatibilityRecord] = {
			record.pair: record for record in compatibility
		}
		self.treatments: dict[int, Treatment] = {item.id: item for item in treatments}
		self.inventory: dict[int, InventoryItem] = {item.id: item for item in inventory}
		self.plans: dict[int, TreatmentPlan] = {}
		self.resistance_records: list[ResistanceRecord] = []
		self._next_plan_id = 1
		self._initialized = initialized
		for plan in plans:
			self.put_plan(plan)

	# ── lifecycle ───────────────────────────────────────────────────────────

	def initialize(self) -> None:
		self._initialized = True

	def close(self) -> None:
		self._initialized = False

	def require(self) -> None:
		if not self._initialized:
			raise RepositoryUnavailableError("storage is not initialized")

	def put_plan(self, plan: TreatmentPlan) -> int:
		now = datetime.now(UTC)
		plan_id = plan.id if plan.id is not None else self._next_plan_id
		self._next_plan_id = max(self._next_plan_id, plan_id + 1)
		existing = self.plans.get(plan_id)
		self.plans[plan_id] = plan.model_copy(
			update={
				"id": plan_id,
				"created_at": existing.created_at if existing else (plan.created_at or now),
				"updated_at": now,
			},
			deep=True,
		)
		return plan_id

	def repositories(self) -> Repositories:
		return Repositories(
			products=InMemoryProductRepository(self),
			treatments=InMemoryTreatmentRepository(self),
			compatibility=InMemoryCompatibilityRepository(self),
			fields=InMemoryFieldRepository(self),
			crops=InMemoryCropRepository(self),
			pests=InMemoryPestRepository(self),
			warehouse=InMemoryWarehouseRepository(self),
			plans=InMemoryTreatmentPlanRepository(self),
			resistance=InMemoryResistanceRepository(self),
		)


class _StoreBacked:
	def __init__(self, store: InMemoryStore):
		self.store = store


class InMemoryProductRepository(_StoreBacked):
	async def get_all(self) -> list[Product]:
		self.store.require()
		return sorted(self.store.products.values(), key=lambda product: product.name)

	async def get_by_id(self, product_id: int) -> Product | None:
		self.store.require()
		return self.store.products.get(product_id)

	async def get_by_type(self, product_type: ProductTypeEnum) -> list[Product]:
		self.store.require()
		return [product for product in await self.get_all() if product.type == product_type]

	async def get_effective_against_pest(self, pest_id: int, min_efficacy: float) -> list[Product]:
		self.store.require()
		matches = sorted(
			(
				entry
				for entry in self.store.efficacies
				if entry.pest_id == pest_id and entry.efficacy >= min_efficacy
			),
			key=lambda entry: -entry.efficacy,
		)
		seen: set[int] = set()
		result: list[Product] = []
		for entry in matches:
			product = self.store.products.get(entry.product_id)
			if product is None or product.id in seen:
				continue
			seen.add(product.id)
			result.append(product)
		return result

	async def get_compatible_with_crop(self, crop_id: int, phase: int | None = None) -> list[Product]:
		self.store.require()
		product_ids = {
			approval.product_id
			for approval in self.store.approvals
			if approval.crop_id == crop_id and approval.covers_phase(phase)
		}
		return [product for product in await self.get_all() if product.id in product_ids]

	async def get_pest_efficacy_for_product(self, product_id: int) -> list[PestEfficacy]:
		self.store.require()
		result: list[PestEfficacy] = []
		for entry in self.store.efficacies:
			if entry.product_id != product_id:
				continue
			pest = self.store.pests.get(entry.pest_id)
			if pest is not None and entry.pest_name is None:
				entry = entry.model_copy(update={"pest_name": pest.name, "pest_type": pest.type})
			result.append(entry)
		return result

	async def get_average_efficacy_bulk(self, product_ids: Sequence[int]) -> dict[int, float]:
		self.store.require()
		wanted = set(product_ids)
		samples: dict[int, list[float]] = defaultdict(list)
		for entry in self.store.efficacies:
			if entry.product_id in wanted:
				samples[entry.product_id].append(entry.efficacy)
		return {product_id: sum(values) / len(values) for product_id, values in samples.items()}


class InMemoryTreatmentRepository(_StoreBacked):
	async def get_all(self) -> list[Treatment]:
		self.store.require()
		return sorted(self.store.treatments.values(), key=lambda item: item.treatment_date, reverse=True)

	async def get_by_field(self, field_id: int) -> list[Treatment]:
		return [item for item in await self.get_all() if item.field_id == field_id]


class InMemoryCompatibilityRepository(_StoreBacked):
	async def get_compatibility(self, product_id_a: int, product_id_b: int) -> CompatibilityRecord | None:
		self.store.require()
		return self.store.compatibility.get(canonical_pair(product_id_a, product_id_b))


class InMemoryFieldRepository(_StoreBacked):
	async def get_all(self) -> list[FarmField]:
		self.store.require()
		return sorted(self.store.fields.values(), key=lambda field: field.name)

	async def get_by_id(self, field_id: int) -> FarmField | None:
		self.store.require()
		return self.store.fields.get(field_id)


class InMemoryCropRepository(_StoreBacked):
	async def get_all(self) -> list[Crop]:
		self.store.require()
		return sorted(self.store.crops.values(), key=lambda crop: crop.name)

	async def get_by_id(self, crop_id: int) -> Crop | None:
		self.store.require()
		return self.store.crops.get(crop_id)


class InMemoryPestRepository(_StoreBacked):
	async def get_all(self) -> list[Pest]:
		self.store.require()
		return sorted(self.store.pests.values(), key=lambda pest: pest.name)

	async def get_by_id(self, pest_id: int) -> Pest | None:
		self.store.require()
		return self.store.pests.get(pest_id)


class InMemoryWarehouseRepository(_StoreBacked):
	async def get_all(self) -> list[InventoryItem]:
		self.store.require()
		return list(self.store.inventory.values())

	async def get_by_product(self, product_id: int) -> list[InventoryItem]:
		return [item for item in await self.get_all() if item.product_id == product_id]


class InMemoryTreatmentPlanRepository(_StoreBacked):
	async def get_all(self) -> list[TreatmentPlan]:
		self.store.require()
		return [plan.model_copy(deep=True) for plan in self.store.plans.values()]

	async def get_upcoming(self, days_ahead: int, now: datetime) -> list[TreatmentPlan]:
		end = now + timedelta(days=days_ahead)
		upcoming = [plan for plan in await self.get_all() if now <= plan.planned_date <= end]
		return sorted(upcoming, key=lambda plan: (plan.planned_date, plan.priority))

	async def get_by_id(self, plan_id: int) -> TreatmentPlan | None:
		self.store.require()
		plan = self.store.plans.get(plan_id)
		return plan.model_copy(deep=True) if plan is not None else None

	async def save(self, plan: TreatmentPlan) -> int:
		self.store.require()
		return self.store.put_plan(plan)

	async def update_status(self, plan_id: int, status: PlanStatusEnum) -> None:
		self.store.require()
		plan = self.store.plans.get(plan_id)
		if plan is None:
			raise LookupError(f"Treatment plan {plan_id} not found")
		self.store.put_plan(plan.model_copy(update={"status": status}))


class InMemoryResistanceRepository(_StoreBacked):
	async def clear(self) -> None:
		self.store.require()
		self.store.resistance_records = []

	async def save(self, records: Sequence[ResistanceRecord]) -> None:
		self.store.require()
		self.store.resistance_records = [*self.store.resistance_records, *records]

	async def get_all(self) -> list[ResistanceRecord]:
		self.store.require()
		return sorted(
			self.store.resistance_records,
			key=lambda record: record.last_treatment_date or datetime.min.replace(tzinfo=UTC),
			reverse=True,
		)

	async def replace(self, records: Sequence[ResistanceRecord]) -> None:
		self.store.require()
		snapshot = list(self.store.resistance_records)
		try:
			await self.clear()
			if records:
				await self.save(records)
		except Exception:
			self.store.resistance_records = snapshot
			raise
