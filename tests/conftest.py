"""Shared pytest fixtures: populated in-memory store, fixed clock and async test client."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from cropguard.config import Settings
from cropguard.data.regulations import ReferenceData, default_reference_data
from cropguard.dependencies import get_redis, get_reference, get_repositories
from cropguard.main import app
from cropguard.models import (
	CompatibilityRecord,
	Crop,
	CropApproval,
	CropCategoryEnum,
	FarmField,
	FormulationEnum,
	InventoryItem,
	Pest,
	PestEfficacy,
	PestTypeEnum,
	Product,
	ProductTypeEnum,
	SoilTypeEnum,
	Treatment,
	TreatmentProduct,
)
from cropguard.repositories.contracts import Repositories
from cropguard.repositories.memory import InMemoryStore

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def make_product(**overrides: Any) -> Product:
	payload: dict[str, Any] = {
		"id": 100,
		"name": "Test product",
		"active_ingredient": "Testazole",
		"type": ProductTypeEnum.fungicide,
		"min_dosage": 0.5,
		"max_dosage": 2.5,
		"price_per_unit": 20.0,
		"waiting_period": 30,
	}
	payload.update(overrides)
	return Product(**payload)


PRODUCTS = [
	Product(
		id=1,
		name="Roundup",
		active_ingredient="Glyphosate",
		type=ProductTypeEnum.herbicide,
		formulation=FormulationEnum.SL,
		min_dosage=2.0,
		max_dosage=6.0,
		price_per_unit=10.0,
		waiting_period=30,
	),
	Product(
		id=2,
		name="Alto Super",
		active_ingredient="Propiconazole",
		type=ProductTypeEnum.fungicide,
		formulation=FormulationEnum.EC,
		min_dosage=0.4,
		max_dosage=0.5,
		price_per_unit=50.0,
		waiting_period=30,
	),
	Product(
		id=3,
		name="Karate",
		active_ingredient="Lambda-cyhalothrin",
		type=ProductTypeEnum.insecticide,
		formulation=FormulationEnum.EC,
		min_dosage=0.1,
		max_dosage=0.2,
		price_per_unit=80.0,
		waiting_period=20,
	),
	Product(
		id=4,
		name="Adjuvant Plus",
		active_ingredient="Alcohol ethoxylate",
		type=ProductTypeEnum.adjuvant,
		min_dosage=0.1,
		max_dosage=0.3,
		price_per_unit=5.0,
	),
	Product(
		id=5,
		name="Fastak",
		active_ingredient="Alpha-cypermethrin",
		type=ProductTypeEnum.insecticide,
		formulation=FormulationEnum.EC,
		min_dosage=0.1,
		max_dosage=0.15,
		price_per_unit=60.0,
		waiting_period=45,
	),
	Product(
		id=6,
		name="Granstar",
		active_ingredient="Tribenuron-methyl",
		type=ProductTypeEnum.herbicide,
		formulation=FormulationEnum.WG,
		min_dosage=0.015,
		max_dosage=0.025,
		price_per_unit=1500.0,
	),
	Product(
		id=7,
		name="Dual Gold",
		active_ingredient="S-metolachlor",
		type=ProductTypeEnum.herbicide,
		formulation=FormulationEnum.EC,
		min_dosage=1.3,
		max_dosage=1.6,
		price_per_unit=25.0,
		waiting_period=60,
	),
]

PESTS = [
	Pest(id=1, name="Ambrosia", type=PestTypeEnum.weed),
	Pest(id=2, name="Septoria", type=PestTypeEnum.disease),
	Pest(id=3, name="Aphids", type=PestTypeEnum.insect),
]

CROPS = [
	Crop(
		id=1,
		name="Winter wheat",
		category=CropCategoryEnum.cereals,
		subcategory="wheat_winter",
		bbh_min=10,
		bbh_max=39,
	),
	Crop(id=2, name="Winter rapeseed", category=CropCategoryEnum.technical, subcategory="rapeseed_winter"),
]

FIELDS = [
	FarmField(id=1, name="North", area=100, soil_type=SoilTypeEnum.chernozem),
	FarmField(id=2, name="South", area=50, soil_type=SoilTypeEnum.sand),
	FarmField(id=3, name="East", area=20),
]

EFFICACIES = [
	PestEfficacy(product_id=1, pest_id=1, efficacy=95),
	PestEfficacy(product_id=6, pest_id=1, efficacy=92),
	PestEfficacy(product_id=2, pest_id=2, efficacy=93),
	PestEfficacy(product_id=3, pest_id=3, efficacy=96),
	PestEfficacy(product_id=3, pest_id=2, efficacy=40),
	PestEfficacy(product_id=5, pest_id=3, efficacy=91),
]

APPROVALS = [
	CropApproval(product_id=1, crop_id=1),
	CropApproval(product_id=2, crop_id=1),
	CropApproval(product_id=3, crop_id=1),
	CropApproval(product_id=5, crop_id=1, phase_max=30),
	CropApproval(product_id=6, crop_id=1),
]

COMPATIBILITY = [
	CompatibilityRecord(
		product_id_1=2,
		product_id_2=1,
		chemical_compatible=False,
		physical_compatible=False,
		biological_compatible=False,
		notes="Precipitate forms",
	),
	CompatibilityRecord(product_id_1=1, product_id_2=7, notes="Stir continuously"),
]


def build_treatments(now: datetime) -> list[Treatment]:
	def usage(product_id: int, dosage: float, cost: float | None) -> TreatmentProduct:
		return TreatmentProduct(product_id=product_id, dosage=dosage, cost=cost)

	return [
		Treatment(
			id=1,
			field_id=1,
			crop_id=1,
			treatment_date=now - timedelta(days=10),
			area=100,
			weather_temperature=32,
			weather_humidity=50,
			weather_wind_speed=8,
			notes="Ambrosia patches near the road",
			total_cost=30,
			products=[usage(1, 3.0, 30.0)],
		),
		Treatment(
			id=2,
			field_id=1,
			crop_id=1,
			treatment_date=now - timedelta(days=40),
			area=100,
			weather_temperature=20,
			weather_humidity=60,
			weather_wind_speed=3,
			products=[usage(1, 3.0, 30.0)],
		),
		Treatment(
			id=3,
			field_id=1,
			crop_id=1,
			treatment_date=now - timedelta(days=70),
			area=100,
			weather_temperature=20,
			weather_humidity=60,
			total_cost=30,
			products=[usage(1, 3.0, 30.0)],
		),
		Treatment(
			id=4,
			field_id=2,
			crop_id=1,
			treatment_date=now - timedelta(days=5),
			area=50,
			weather_temperature=8,
			weather_humidity=70,
			total_cost=25,
			products=[usage(2, 0.5, None)],
		),
		Treatment(
			id=5,
			field_id=2,
			crop_id=1,
			treatment_date=now - timedelta(days=60),
			area=50,
			weather_temperature=18,
			weather_humidity=60,
			total_cost=25,
			products=[usage(2, 0.5, 25.0)],
		),
		Treatment(
			id=6,
			field_id=2,
			crop_id=1,
			treatment_date=now - timedelta(days=30),
			area=50,
			weather_temperature=22,
			weather_humidity=30,
			total_cost=12,
			products=[usage(3, 0.15, 12.0)],
		),
		Treatment(
			id=7,
			field_id=2,
			crop_id=1,
			treatment_date=now - timedelta(days=400),
			area=50,
			weather_temperature=18,
			weather_humidity=60,
			total_cost=25,
			products=[usage(2, 0.5, 25.0)],
		),
	]


def build_inventory(now: datetime) -> list[InventoryItem]:
	return [
		InventoryItem(id=1, product_id=1, quantity=100, expiration_date=now + timedelta(days=365)),
		InventoryItem(id=2, product_id=2, quantity=3, expiration_date=now - timedelta(days=2)),
		InventoryItem(id=3, product_id=3, quantity=20, expiration_date=now + timedelta(days=10)),
	]


def build_store(now: datetime = FIXED_NOW, **overrides: Any) -> InMemoryStore:
	payload: dict[str, Any] = {
		"products": PRODUCTS,
		"pests": PESTS,
		"crops": CROPS,
		"fields": FIELDS,
		"efficacies": EFFICACIES,
		"approvals": APPROVALS,
		"compatibility": COMPATIBILITY,
		"treatments": build_treatments(now),
		"inventory": build_inventory(now),
	}
	payload.update(overrides)
	return InMemoryStore(**payload)


class FakeRedis:
	"""Dict-backed stand-in for the redis.asyncio calls the analytics cache makes."""

	def __init__(self) -> None:
		self.values: dict[str, str] = {}
		self.ttls: dict[str, int] = {}
		self.get = AsyncMock(side_effect=self._get)
		self.setex = AsyncMock(side_effect=self._setex)
		self.delete = AsyncMock(side_effect=self._delete)
		self.ping = AsyncMock(return_value=True)
		self.aclose = AsyncMock()

	async def _get(self, key: str) -> str | None:
		return self.values.get(key)

	async def _setex(self, key: str, ttl: int, value: str) -> bool:
		self.values[key] = value
		self.ttls[key] = ttl
		return True

	async def _delete(self, *keys: str) -> int:
		removed = [key for key in keys if self.values.pop(key, None) is not None]
		return len(removed)

	def expire_all(self) -> None:
		self.values.clear()


@pytest.fixture
def now() -> datetime:
	return FIXED_NOW


@pytest.fixture
def settings() -> Settings:
	return Settings(_env_file=None)


@pytest.fixture
def reference() -> ReferenceData:
	return default_reference_data()


@pytest.fixture
def store(now: datetime) -> InMemoryStore:
	return build_store(now)


@pytest.fixture
def repositories(store: InMemoryStore) -> Repositories:
	return store.repositories()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
async def client(
	store: InMemoryStore,
	reference: ReferenceData,
	fake_redis: FakeRedis,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the store and Redis dependencies overridden."""

	def override_get_repositories() -> Repositories:
		return store.repositories()

	def override_get_reference() -> ReferenceData:
		return reference

	app.dependency_overrides[get_repositories] = override_get_repositories
	app.dependency_overrides[get_reference] = override_get_reference
	app.dependency_overrides[get_redis] = lambda: fake_redis
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
