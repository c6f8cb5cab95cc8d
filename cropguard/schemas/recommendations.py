"""Pydantic schemas for product selection and tank-mix evaluation."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cropguard.models.catalog import CompatibilityRecord, Product
from cropguard.models.enums import SoilTypeEnum


class SelectionCriteria(BaseModel):
	crop_id: int
	crop_phase: int | None = None
	pest_ids: list[int] = Field(min_length=1)
	soil_type: SoilTypeEnum | None = None
	temperature: float | None = None
	humidity: float | None = None
	is_low_humidity: bool = False
	is_weakened_plants: bool = False
	days_until_harvest: int | None = Field(default=None, ge=0)
	area: float = Field(default=1.0, gt=0)
	min_efficacy: float | None = Field(default=None, ge=0, le=100)


class RecommendedProduct(BaseModel):
	product: Product
	efficacy: float
	adjusted_dosage: float
	cost_per_hectare: float
	total_cost: float
	waiting_period: int | None = None
	score: float = Field(ge=0.0, le=1.0)
	warnings: list[str] = Field(default_factory=list)


class RecommendationResponse(BaseModel):
	items: list[RecommendedProduct] = Field(default_factory=list)


class TankMixRequest(BaseModel):
	product_ids: list[int] = Field(default_factory=list)


class TankMixResult(BaseModel):
	compatible: bool
	products: list[Product] = Field(default_factory=list)
	mixing_sequence: list[Product] = Field(default_factory=list)
	total_dosage: float = 0.0
	issues: list[str] = Field(default_factory=list)
	warnings: list[str] = Field(default_factory=list)


class CompatibilityLookupResponse(BaseModel):
	product_id_1: int
	product_id_2: int
	known: bool
	record: CompatibilityRecord | None = None


class MethodologyResponse(BaseModel):
	steps: list[str]
