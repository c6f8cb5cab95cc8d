"""Pydantic schemas for resistance analysis and the aggregated warning feed."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cropguard.models.enums import RiskLevelEnum, WarningCategoryEnum, WarningSeverityEnum
from cropguard.models.types import UtcDatetime


class ResistanceRisk(BaseModel):
	field_id: int
	field_name: str | None = None
	active_ingredient: str
	usage_count: int
	last_treatment_date: UtcDatetime | None = None
	threshold: int
	interval_days: int
	risk_level: RiskLevelEnum
	notes: str | None = None


class ResistanceResponse(BaseModel):
	generated_at: UtcDatetime
	risks: list[ResistanceRisk] = Field(default_factory=list)


class WarningItem(BaseModel):
	id: str
	category: WarningCategoryEnum
	severity: WarningSeverityEnum
	title: str
	message: str
	related_field_id: int | None = None
	related_product_id: int | None = None
	related_treatment_id: int | None = None


class WarningSummary(BaseModel):
	generated_at: UtcDatetime
	warnings: list[WarningItem] = Field(default_factory=list)
