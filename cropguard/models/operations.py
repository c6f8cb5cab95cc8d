"""Operational entities: treatments performed, warehouse stock, plans and audit rows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cropguard.models.enums import (
    PlanPriorityEnum,
    PlanStatusEnum,
    RiskLevelEnum,
    WarehouseStatusEnum,
)
from cropguard.models.types import UtcDatetime


class TreatmentProduct(BaseModel):
    """One product applied as part of a treatment."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    dosage: float = Field(ge=0)
    working_solution_volume: float | None = None
    cost: float | None = None


class Treatment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    field_id: int
    crop_id: int | None = None
    treatment_date: UtcDatetime
    area: float = Field(default=0.0, ge=0)
    weather_temperature: float | None = None
    weather_humidity: float | None = None
    weather_wind_speed: float | None = None
    operator_name: str | None = None
    equipment_type: str | None = None
    total_cost: float | None = None
    notes: str | None = None
    products: list[TreatmentProduct] = Field(default_factory=list)


class InventoryItem(BaseModel):
    """A warehouse lot of a single product."""

    model_config = ConfigDict(frozen=True)

    id: int
    product_id: int
    quantity: float
    unit: str = "l"
    purchase_date: UtcDatetime | None = None
    expiration_date: UtcDatetime | None = None
    purchase_price: float | None = None


class TreatmentPlan(BaseModel):
    """A scheduled treatment for one field. Mutated only through status transitions."""

    id: int | None = None
    field_id: int
    crop_id: int | None = None
    planned_date: UtcDatetime
    window_start: UtcDatetime
    window_end: UtcDatetime
    status: PlanStatusEnum = PlanStatusEnum.planned
    priority: PlanPriorityEnum = PlanPriorityEnum.medium
    reason: str | None = None
    recommended_products: list[int] = Field(default_factory=list)
    warehouse_status: WarehouseStatusEnum | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class ResistanceRecord(BaseModel):
    """Audit row persisted after each resistance analysis."""

    model_config = ConfigDict(frozen=True)

    field_id: int
    active_ingredient: str
    usage_count: int
    last_treatment_date: UtcDatetime | None = None
    risk_level: RiskLevelEnum
    notes: str | None = None
