"""Regulatory reference tables consumed read-only by the risk services.

The defaults below ship with the package. Setting ``REFERENCE_DATA_PATH`` to
a JSON document with any of the keys ``resistance_thresholds``,
``phytotoxicity_guidelines``, ``quarantine_restrictions`` or ``bbch_scales``
replaces the matching table without code changes.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from cropguard.config import get_settings
from cropguard.data.bbch import DEFAULT_BBCH_SCALES, BBCHScale


class ReferenceModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ResistanceThreshold(ReferenceModel):
    active_ingredient: str
    max_applications_per_season: int = Field(ge=0)
    interval_days: int = Field(ge=0)


class PhytotoxicityGuideline(ReferenceModel):
    product_name: str
    max_temperature: float | None = None
    min_temperature: float | None = None
    min_humidity: float | None = None
    caution: str


class QuarantineRestriction(ReferenceModel):
    pest_name: str
    region: str | None = None
    restriction: str


class ReferenceData(ReferenceModel):
    resistance_thresholds: list[ResistanceThreshold] = Field(default_factory=list)
    phytotoxicity_guidelines: list[PhytotoxicityGuideline] = Field(default_factory=list)
    quarantine_restrictions: list[QuarantineRestriction] = Field(default_factory=list)
    bbch_scales: list[BBCHScale] = Field(default_factory=list)

    def threshold_for(self, active_ingredient: str) -> ResistanceThreshold | None:
        key = active_ingredient.lower()
        for threshold in self.resistance_thresholds:
            if threshold.active_ingredient.lower() == key:
                return threshold
        return None

    def guideline_for(self, product_name: str) -> PhytotoxicityGuideline | None:
        key = product_name.lower()
        for guideline in self.phytotoxicity_guidelines:
            if guideline.product_name.lower() == key:
                return guideline
        return None


DEFAULT_RESISTANCE_THRESHOLDS = [
    ResistanceThreshold(active_ingredient="Glyphosate", max_applications_per_season=2, interval_days=30),
    ResistanceThreshold(active_ingredient="Propiconazole", max_applications_per_season=2, interval_days=21),
    ResistanceThreshold(active_ingredient="Lambda-cyhalothrin", max_applications_per_season=3, interval_days=14),
]

DEFAULT_PHYTOTOXICITY_GUIDELINES = [
    PhytotoxicityGuideline(
        product_name="Roundup",
        max_temperature=28,
        caution="Above 28°C evaporation increases and efficacy drops.",
    ),
    PhytotoxicityGuideline(
        product_name="Alto Super",
        min_temperature=10,
        caution="Not recommended below 10°C; efficacy may be reduced.",
    ),
    PhytotoxicityGuideline(
        product_name="Karate",
        min_humidity=40,
        caution="Humidity below 40% raises the phytotoxicity risk for weakened plants.",
    ),
]

DEFAULT_QUARANTINE_RESTRICTIONS = [
    QuarantineRestriction(
        pest_name="Ambrosia",
        restriction=(
            "Quarantine zone: notify the plant protection service; plant products "
            "may not leave the field untreated."
        ),
    ),
    QuarantineRestriction(
        pest_name="Cuscuta",
        restriction="Fields with outbreaks are barred from moving seed material.",
    ),
    QuarantineRestriction(
        pest_name="Acroptilon repens",
        restriction="Treatment must be registered; straw may not be transported.",
    ),
]


def default_reference_data() -> ReferenceData:
    return ReferenceData(
        resistance_thresholds=DEFAULT_RESISTANCE_THRESHOLDS,
        phytotoxicity_guidelines=DEFAULT_PHYTOTOXICITY_GUIDELINES,
        quarantine_restrictions=DEFAULT_QUARANTINE_RESTRICTIONS,
        bbch_scales=DEFAULT_BBCH_SCALES,
    )


def load_reference_data(path: str | Path) -> ReferenceData:
    """Load a JSON override; tables missing from the file keep their defaults."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    merged = default_reference_data().model_dump()
    merged.update({key: value for key, value in payload.items() if key in merged})
    return ReferenceData.model_validate(merged)


@lru_cache
def get_reference_data() -> ReferenceData:
    """Reference tables for this process (cached after first call)."""
    path = get_settings().reference_data_path
    if path:
        return load_reference_data(path)
    return default_reference_data()
