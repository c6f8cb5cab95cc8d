"""Pydantic schemas for economic and agronomic analytics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CropEconomicStat(BaseModel):
	crop_id: int
	crop_name: str
	total_area: float = 0.0
	total_cost: float = 0.0
	cost_per_hectare: float = 0.0
	treatments: int = 0


class ProductPerformanceStat(BaseModel):
	product_id: int
	product_name: str
	applications: int = 0
	total_dosage: float = 0.0
	total_cost: float = 0.0
	estimated_efficacy: float | None = None


class SeasonalCostStat(BaseModel):
	season: str
	total_treatments: int = 0
	total_area: float = 0.0
	total_cost: float = 0.0
	avg_cost_per_treatment: float = 0.0


class EconomicTotals(BaseModel):
	total_treatments: int = 0
	total_area: float = 0.0
	total_cost: float = 0.0


class EconomicAnalytics(BaseModel):
	generated_at: datetime
	cached: bool = False
	crops: list[CropEconomicStat] = Field(default_factory=list)
	products: list[ProductPerformanceStat] = Field(default_factory=list)
	seasons: list[SeasonalCostStat] = Field(default_factory=list)
	totals: EconomicTotals = Field(default_factory=EconomicTotals)


class PestProductUsage(BaseModel):
	product_id: int
	product_name: str
	applications: int = 0
	avg_efficacy: float = 0.0


class PestControlStat(BaseModel):
	pest_id: int
	pest_name: str
	pest_type: str | None = None
	treatments: int = 0
	avg_efficacy: float = 0.0
	products: list[PestProductUsage] = Field(default_factory=list)


class SeasonCount(BaseModel):
	season: str
	treatments: int = 0


class PestSeasonTrend(BaseModel):
	pest_id: int
	pest_name: str
	seasons: list[SeasonCount] = Field(default_factory=list)


class SeasonComparisonStat(BaseModel):
	season: str
	total_treatments: int = 0
	unique_pests: int = 0
	unique_products: int = 0


class AgronomicRecommendation(BaseModel):
	pest_id: int
	pest_name: str
	avg_efficacy: float
	treatments: int
	message: str


class AgronomicTotals(BaseModel):
	total_pests: int = 0
	total_treatments: int = 0
	overall_avg_efficacy: float = 0.0


class AgronomicAnalytics(BaseModel):
	generated_at: datetime
	cached: bool = False
	pests: list[PestControlStat] = Field(default_factory=list)
	trends: list[PestSeasonTrend] = Field(default_factory=list)
	seasons: list[SeasonComparisonStat] = Field(default_factory=list)
	recommendations: list[AgronomicRecommendation] = Field(default_factory=list)
	totals: AgronomicTotals = Field(default_factory=AgronomicTotals)
