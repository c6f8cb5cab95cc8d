from __future__ import annotations

import pytest

from cropguard.models import CoverageEnum, SoilTypeEnum, SprayerTypeEnum
from cropguard.schemas.calculations import EnvironmentalConditions, SprayParameters
from cropguard.services.dosage_service import MAX_VOLUME_L_HA, MIN_VOLUME_L_HA, DosageService
from tests.conftest import make_product


def test_adjust_composes_all_coefficients() -> None:
	product = make_product(min_dosage=0.5, max_dosage=2.5)
	conditions = EnvironmentalConditions(
		soil_type=SoilTypeEnum.chernozem,
		temperature=12,
		humidity=35,
		is_low_humidity=True,
		is_weakened_plants=True,
	)

	result = DosageService().adjust(product, conditions)

	assert result.base_dosage == pytest.approx(1.5)
	assert result.coefficient == pytest.approx(1.4976)
	assert result.adjusted_dosage == pytest.approx(2.2464)
	assert result.factors.soil == 1.2
	assert result.factors.temperature == 1.3
	assert result.factors.humidity == 1.2
	assert result.factors.plant_condition == 0.8


def test_adjust_clamps_to_min_but_reports_raw_coefficient() -> None:
	product = make_product(min_dosage=1.0, max_dosage=3.0)
	conditions = EnvironmentalConditions(
		soil_type=SoilTypeEnum.sand,
		temperature=30,
		humidity=90,
		is_weakened_plants=True,
	)

	result = DosageService().adjust(product, conditions)

	assert result.coefficient < 0.5
	assert result.adjusted_dosage == 1.0


def test_adjust_without_conditions_is_neutral() -> None:
	result = DosageService().adjust(make_product(min_dosage=1.0, max_dosage=2.0))
	assert result.coefficient == 1.0
	assert result.adjusted_dosage == pytest.approx(1.5)


@pytest.mark.parametrize(
	"conditions",
	[
		EnvironmentalConditions(soil_type=SoilTypeEnum.chernozem, temperature=-5, is_low_humidity=True),
		EnvironmentalConditions(soil_type=SoilTypeEnum.sand, temperature=35, humidity=95, is_weakened_plants=True),
		EnvironmentalConditions(soil_type=SoilTypeEnum.clay, temperature=20, humidity=60),
	],
)
def test_adjusted_dosage_stays_within_registered_range(conditions: EnvironmentalConditions) -> None:
	product = make_product(min_dosage=0.8, max_dosage=1.2)
	result = DosageService().adjust(product, conditions)
	assert product.min_dosage <= result.adjusted_dosage <= product.max_dosage


def test_humidity_coefficient_boundaries() -> None:
	assert DosageService.humidity_coefficient(None) == 1.0
	assert DosageService.humidity_coefficient(39.9) == 1.2
	assert DosageService.humidity_coefficient(40) == 1.0
	assert DosageService.humidity_coefficient(80) == 1.0
	assert DosageService.humidity_coefficient(85) == 0.9
	assert DosageService.humidity_coefficient(85, is_low=True) == 1.2


def test_temperature_coefficient_boundaries() -> None:
	assert DosageService.temperature_coefficient(14.9) == 1.3
	assert DosageService.temperature_coefficient(15) == 1.0
	assert DosageService.temperature_coefficient(25) == 1.0
	assert DosageService.temperature_coefficient(25.1) == 0.8


def test_aerial_volume_is_raised_to_floor() -> None:
	volume = DosageService.recommended_volume(SprayParameters(sprayer_type=SprayerTypeEnum.aerial))
	assert volume == MIN_VOLUME_L_HA


def test_volume_modifiers_are_clamped_to_ceiling() -> None:
	spray = SprayParameters(
		sprayer_type=SprayerTypeEnum.boom,
		wind_speed=6,
		temperature=30,
		coverage=CoverageEnum.high,
	)
	assert DosageService.recommended_volume(spray) == pytest.approx(316.8)

	spray_default = SprayParameters(wind_speed=10, temperature=28, coverage=CoverageEnum.high)
	assert DosageService.recommended_volume(spray_default) <= MAX_VOLUME_L_HA


def test_working_solution_for_aerial_sprayer() -> None:
	product = make_product(price_per_unit=20.0)
	result = DosageService().solution(5, product, 2.0, SprayParameters(sprayer_type=SprayerTypeEnum.aerial))

	assert result.recommended_volume == 100.0
	assert result.total_volume == 500.0
	assert result.product_amount == 10.0
	assert result.water_amount == 490.0
	assert result.cost_per_hectare == 40.0
	assert result.total_cost == 200.0


def test_unpriced_product_costs_nothing() -> None:
	product = make_product(price_per_unit=None)
	assert DosageService.cost_per_hectare(product, 2.0) == 0.0


def test_total_cost_sums_items_over_area() -> None:
	service = DosageService()
	first = make_product(id=1, price_per_unit=10.0)
	second = make_product(id=2, price_per_unit=3.5)
	assert service.total_cost([(first, 1.5), (second, 2.0)], area=10) == 220.0


def test_tank_loads() -> None:
	assert DosageService.tank_loads(500, 300) == 2
	assert DosageService.tank_loads(600, 300) == 2
	assert DosageService.tank_loads(0, 300) == 1
	with pytest.raises(ValueError):
		DosageService.tank_loads(500, 0)
