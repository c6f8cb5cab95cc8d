"""Pydantic schemas for treatment plan endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from cropguard.models.enums import PlanStatusEnum
from cropguard.models.operations import TreatmentPlan


class TreatmentPlanDetails(TreatmentPlan):
	field_name: str | None = None
	crop_name: str | None = None
	recommended_product_names: list[str] = Field(default_factory=list)
	days_until: int
	is_due_soon: bool = False
	is_overdue: bool = False


class SeasonPlanResponse(BaseModel):
	generated_at: datetime
	items: list[TreatmentPlanDetails] = Field(default_factory=list)


class PlanGenerationResponse(BaseModel):
	generated_at: datetime
	created: list[TreatmentPlan] = Field(default_factory=list)


class PlanStatusUpdate(BaseModel):
	status: PlanStatusEnum


class PlanSnoozeRequest(BaseModel):
	days: int = Field(default=7, ge=1, le=365)

