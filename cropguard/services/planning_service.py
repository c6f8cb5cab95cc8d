"""Treatment plan scheduling and the plan status state machine."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta

from cropguard.config import Settings, get_settings
from cropguard.middleware.logging import get_logger
from cropguard.models import (
	UPCOMING_PLAN_STATUSES,
	FarmField,
	PlanPriorityEnum,
	PlanStatusEnum,
	Treatment,
	TreatmentPlan,
	WarehouseStatusEnum,
)
from cropguard.repositories.contracts import Repositories
from cropguard.schemas.plans import TreatmentPlanDetails

_COMPLETABLE = frozenset({PlanStatusEnum.planned, PlanStatusEnum.in_progress, PlanStatusEnum.snoozed})
_SNOOZABLE = frozenset({PlanStatusEnum.planned, PlanStatusEnum.snoozed})

_logger = get_logger("planning")


def warehouse_status(
	product_ids: Sequence[int],
	stock: Mapping[int, float],
	low_stock_threshold: float,
) -> WarehouseStatusEnum | None:
	"""Stock verdict for a plan's recommended products (``None`` when nothing is recommended)."""
	if not product_ids:
		return None
	totals = [stock.get(product_id, 0.0) for product_id in product_ids]
	if all(total <= 0 for total in totals):
		return WarehouseStatusEnum.no_stock
	if any(total <= low_stock_threshold for total in totals):
		return WarehouseStatusEnum.low_stock
	return WarehouseStatusEnum.ok


class TreatmentPlanningService:
	def __init__(self, repositories: Repositories, settings: Settings | None = None):
		self.repositories = repositories
		self.settings = settings or get_settings()

	# ── scheduling ──────────────────────────────────────────────────────────

	async def ensure_plans_generated(self, now: datetime | None = None) -> list[TreatmentPlan]:
		"""Create a plan for every field without an upcoming one; returns the new plans."""
		now = now or datetime.now(UTC)
		fields, existing = await asyncio.gather(
			self.repositories.fields.get_all(),
			self.repositories.plans.get_all(),
		)

		covered = {
			plan.field_id
			for plan in existing
			if plan.status in UPCOMING_PLAN_STATUSES and plan.planned_date >= now
		}

		created: list[TreatmentPlan] = []
		for field in fields:
			if field.id in covered:
				continue
			created.append(await self.generate_plan_for_field(field, now))
		return created

	async def generate_plan_for_field(self, field: FarmField, now: datetime | None = None) -> TreatmentPlan:
		now = now or datetime.now(UTC)
		treatments = await self.repositories.treatments.get_by_field(field.id)
		last_treatment = treatments[0] if treatments else None

		planned_date = self.next_planned_date(last_treatment, now)
		window_start, window_end = self.plan_window(planned_date)
		recommended = self.recommended_products(last_treatment)

		plan = TreatmentPlan(
			field_id=field.id,
			crop_id=last_treatment.crop_id if last_treatment else None,
			planned_date=planned_date,
			window_start=window_start,
			window_end=window_end,
			status=PlanStatusEnum.planned,
			priority=self.priority_for(planned_date, now),
			reason=self.build_reason(last_treatment),
			recommended_products=recommended,
			warehouse_status=await self._warehouse_status(recommended),
		)
		plan_id = await self.repositories.plans.save(plan)
		plan = plan.model_copy(update={"id": plan_id})

		_logger.info(
			"treatment_plan_generated",
			plan_id=plan_id,
			field_id=field.id,
			planned_date=planned_date.isoformat(),
			priority=int(plan.priority),
		)
		return plan

	def next_planned_date(self, last_treatment: Treatment | None, now: datetime) -> datetime:
		"""Last treatment + interval; without history (or when overdue) a week from now."""
		fallback = now + timedelta(days=self.settings.plan_initial_offset_days)
		if last_treatment is None:
			return fallback
		planned = last_treatment.treatment_date + timedelta(days=self.settings.plan_interval_days)
		return planned if planned >= now else fallback

	def plan_window(self, planned_date: datetime) -> tuple[datetime, datetime]:
		delta = timedelta(days=self.settings.plan_window_days)
		return planned_date - delta, planned_date + delta

	@staticmethod
	def priority_for(planned_date: datetime, now: datetime) -> PlanPriorityEnum:
		days_until = (planned_date.astimezone(UTC).date() - now.astimezone(UTC).date()).days
		if days_until <= 7:
			return PlanPriorityEnum.high
		if days_until <= 21:
			return PlanPriorityEnum.medium
		return PlanPriorityEnum.low

	@staticmethod
	def recommended_products(last_treatment: Treatment | None) -> list[int]:
		if last_treatment is None:
			return []
		return [usage.product_id for usage in last_treatment.products]

	@staticmethod
	def build_reason(last_treatment: Treatment | None) -> str:
		if last_treatment is None:
			return "Initial season treatment"
		return f"Scheduled treatment after the one on {last_treatment.treatment_date:%d.%m.%Y}"

	async def _warehouse_status(self, product_ids: Sequence[int]) -> WarehouseStatusEnum | None:
		if not product_ids:
			return None
		lots = await asyncio.gather(
			*(self.repositories.warehouse.get_by_product(product_id) for product_id in product_ids)
		)
		stock = {
			product_id: sum(item.quantity for item in items)
			for product_id, items in zip(product_ids, lots, strict=True)
		}
		return warehouse_status(product_ids, stock, self.settings.low_stock_threshold)

	# ── status transitions ──────────────────────────────────────────────────

	async def mark_completed(self, plan_id: int) -> TreatmentPlan:
		plan = await self._require_plan(plan_id)
		if plan.status not in _COMPLETABLE:
			raise ValueError(f"Treatment plan {plan_id} cannot be completed from status '{plan.status}'")
		await self.repositories.plans.update_status(plan_id, PlanStatusEnum.completed)
		return await self._require_plan(plan_id)

	async def snooze_plan(self, plan_id: int, days: int = 7, now: datetime | None = None) -> TreatmentPlan:
		if days < 1:
			raise ValueError("days must be positive")
		now = now or datetime.now(UTC)
		plan = await self._require_plan(plan_id)
		if plan.status not in _SNOOZABLE:
			raise ValueError(f"Treatment plan {plan_id} cannot be snoozed from status '{plan.status}'")

		planned_date = plan.planned_date + timedelta(days=days)
		window_start, window_end = self.plan_window(planned_date)
		plan.planned_date = planned_date
		plan.window_start = window_start
		plan.window_end = window_end
		plan.status = PlanStatusEnum.snoozed
		plan.priority = self.priority_for(planned_date, now)

		await self.repositories.plans.save(plan)
		_logger.info("treatment_plan_snoozed", plan_id=plan_id, days=days, planned_date=planned_date.isoformat())
		return await self._require_plan(plan_id)

	async def set_status(self, plan_id: int, status: PlanStatusEnum) -> TreatmentPlan:
		await self._require_plan(plan_id)
		await self.repositories.plans.update_status(plan_id, status)
		return await self._require_plan(plan_id)

	async def _require_plan(self, plan_id: int) -> TreatmentPlan:
		plan = await self.repositories.plans.get_by_id(plan_id)
		if plan is None:
			raise LookupError(f"Treatment plan {plan_id} not found")
		return plan

	# ── season view ─────────────────────────────────────────────────────────

	async def get_season_plan(
		self,
		now: datetime | None = None,
		days_ahead: int | None = None,
	) -> list[TreatmentPlanDetails]:
		now = now or datetime.now(UTC)
		await self.ensure_plans_generated(now)

		horizon = days_ahead if days_ahead is not None else self.settings.plan_horizon_days
		plans = await self.repositories.plans.get_upcoming(horizon, now)
		if not plans:
			return []

		fields, crops, products, inventory = await asyncio.gather(
			self.repositories.fields.get_all(),
			self.repositories.crops.get_all(),
			self.repositories.products.get_all(),
			self.repositories.warehouse.get_all(),
		)
		field_names = {field.id: field.name for field in fields}
		crop_names = {crop.id: crop.name for crop in crops}
		product_names = {product.id: product.name for product in products}
		stock: dict[int, float] = defaultdict(float)
		for item in inventory:
			stock[item.product_id] += item.quantity

		reminder_days = self.settings.plan_reminder_window_days
		details: list[TreatmentPlanDetails] = []
		for plan in plans:
			days_until = (plan.planned_date - now) // timedelta(days=1)
			status = warehouse_status(plan.recommended_products, stock, self.settings.low_stock_threshold)
			details.append(
				TreatmentPlanDetails(
					**plan.model_dump(exclude={"warehouse_status"}),
					warehouse_status=status if status is not None else plan.warehouse_status,
					field_name=field_names.get(plan.field_id),
					crop_name=crop_names.get(plan.crop_id) if plan.crop_id is not None else None,
					recommended_product_names=[
						product_names[product_id]
						for product_id in plan.recommended_products
						if product_id in product_names
					],
					days_until=days_until,
					is_due_soon=0 <= days_until <= reminder_days,
					is_overdue=plan.planned_date < now and plan.status == PlanStatusEnum.planned,
				)
			)
		return details
