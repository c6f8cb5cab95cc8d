from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from cropguard.config import Settings
from cropguard.data.regulations import ReferenceData
from cropguard.models import ResistanceRecord, RiskLevelEnum, Treatment
from cropguard.repositories.contracts import Repositories
from cropguard.repositories.memory import InMemoryResistanceRepository, InMemoryStore
from cropguard.services.resistance_service import ResistanceService, risk_level
from tests.conftest import build_store


def test_risk_level_thresholds() -> None:
	assert risk_level(3, 2) == RiskLevelEnum.high
	assert risk_level(2, 2) == RiskLevelEnum.medium
	assert risk_level(1, 2) == RiskLevelEnum.low


@pytest.mark.asyncio
async def test_analyze_groups_by_field_and_active_ingredient(
	repositories: Repositories,
	reference: ReferenceData,
	settings: Settings,
	now: datetime,
) -> None:
	service = ResistanceService(repositories, reference, settings)

	risks = await service.analyze({1: "North", 2: "South"}, now=now)

	by_key = {(risk.field_id, risk.active_ingredient): risk for risk in risks}
	assert set(by_key) == {(1, "Glyphosate"), (2, "Propiconazole"), (2, "Lambda-cyhalothrin")}

	glyphosate = by_key[(1, "Glyphosate")]
	assert glyphosate.usage_count == 3
	assert glyphosate.risk_level == RiskLevelEnum.high
	assert glyphosate.field_name == "North"
	assert glyphosate.threshold == 2
	assert glyphosate.interval_days == 30
	assert glyphosate.notes == "3 treatments in the last 90 days."

	propiconazole = by_key[(2, "Propiconazole")]
	assert propiconazole.usage_count == 2
	assert propiconazole.risk_level == RiskLevelEnum.medium

	assert by_key[(2, "Lambda-cyhalothrin")].risk_level == RiskLevelEnum.low


@pytest.mark.asyncio
async def test_analyze_excludes_ingredients_without_threshold(
	repositories: Repositories,
	settings: Settings,
	now: datetime,
) -> None:
	service = ResistanceService(repositories, ReferenceData(), settings)

	assert await service.analyze({}, now=now) == []


@pytest.mark.asyncio
async def test_analyze_replaces_persisted_records(
	store: InMemoryStore,
	repositories: Repositories,
	reference: ReferenceData,
	settings: Settings,
	now: datetime,
) -> None:
	store.resistance_records = [
		ResistanceRecord(field_id=9, active_ingredient="Stale", usage_count=1, risk_level=RiskLevelEnum.low)
	]
	service = ResistanceService(repositories, reference, settings)

	risks = await service.analyze({}, now=now)
	stored = await repositories.resistance.get_all()

	assert len(stored) == len(risks) == 3
	assert all(record.field_id != 9 for record in stored)


@pytest.mark.asyncio
async def test_replace_restores_snapshot_when_save_fails(
	store: InMemoryStore,
	monkeypatch: pytest.MonkeyPatch,
) -> None:
	previous = ResistanceRecord(field_id=1, active_ingredient="Glyphosate", usage_count=2, risk_level=RiskLevelEnum.medium)
	store.resistance_records = [previous]
	repository = InMemoryResistanceRepository(store)

	async def failing_save(_records: Any) -> None:
		raise RuntimeError("disk full")

	monkeypatch.setattr(repository, "save", failing_save)

	with pytest.raises(RuntimeError, match="disk full"):
		await repository.replace(
			[ResistanceRecord(field_id=1, active_ingredient="Glyphosate", usage_count=3, risk_level=RiskLevelEnum.high)]
		)

	assert await repository.get_all() == [previous]


@pytest.mark.asyncio
async def test_naive_treatment_dates_are_read_as_utc(reference: ReferenceData, settings: Settings) -> None:
	treatments = [
		Treatment.model_validate(
			{
				"id": 50 + offset,
				"field_id": 1,
				"treatment_date": f"2026-10-0{offset}T08:00:00",
				"area": 10,
				"products": [{"product_id": 1, "dosage": 3.0}],
			}
		)
		for offset in (1, 2, 3)
	]
	store = build_store(treatments=treatments)
	service = ResistanceService(store.repositories(), reference, settings)

	risks = await service.analyze({1: "North"}, now=datetime(2026, 10, 19, tzinfo=UTC))

	[glyphosate] = risks
	assert glyphosate.usage_count == 3
	assert glyphosate.risk_level == RiskLevelEnum.high
	assert glyphosate.last_treatment_date == datetime(2026, 10, 3, 8, tzinfo=UTC)
	assert store.resistance_records[0].last_treatment_date.tzinfo is not None


def test_offset_timestamps_are_converted_to_utc() -> None:
	treatment = Treatment.model_validate(
		{"id": 1, "field_id": 1, "treatment_date": "2026-10-01T10:00:00+02:00"}
	)
	assert treatment.treatment_date == datetime(2026, 10, 1, 8, tzinfo=UTC)
	assert treatment.treatment_date.utcoffset() == timedelta(0)
