"""Pydantic schemas for dosage adjustment and working-solution calculations."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cropguard.models.enums import CoverageEnum, SoilTypeEnum, SprayerTypeEnum


class EnvironmentalConditions(BaseModel):
	soil_type: SoilTypeEnum | None = None
	temperature: float | None = None
	humidity: float | None = None
	wind_speed: float | None = None
	is_low_humidity: bool = False
	is_weakened_plants: bool = False
	crop_phase: int | None = None


class DosageFactors(BaseModel):
	soil: float = 1.0
	temperature: float = 1.0
	humidity: float = 1.0
	plant_condition: float = 1.0


class DosageAdjustment(BaseModel):
	base_dosage: float
	adjusted_dosage: float
	coefficient: float
	factors: DosageFactors = Field(default_factory=DosageFactors)


class SprayParameters(BaseModel):
	sprayer_type: SprayerTypeEnum | None = None
	wind_speed: float | None = None
	temperature: float | None = None
	crop_phase: int | None = None
	coverage: CoverageEnum | None = None


class WorkingSolutionCalculation(BaseModel):
	area: float
	recommended_volume: float
	total_volume: float
	product_amount: float
	water_amount: float
	cost_per_hectare: float
	total_cost: float


class DosageRequest(BaseModel):
	product_id: int
	conditions: EnvironmentalConditions = Field(default_factory=EnvironmentalConditions)


class WorkingSolutionRequest(BaseModel):
	product_id: int
	area: float
	dosage: float
	spray: SprayParameters = Field(default_factory=SprayParameters)
	sprayer_capacity: float | None = None


class WorkingSolutionResponse(BaseModel):
	calculation: WorkingSolutionCalculation
	tank_loads: int | None = None
