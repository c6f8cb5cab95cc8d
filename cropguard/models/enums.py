"""Enumerations shared by domain entities, engine artifacts and API schemas.

Each StrEnum serializes to its plain value, so the same types are used for
repository snapshots and for JSON responses.
"""

from enum import IntEnum, StrEnum

# ── Catalog enums ───────────────────────────────────────────────────────────


class ProductTypeEnum(StrEnum):
    """Crop-protection product class."""

    herbicide = "herbicide"
    fungicide = "fungicide"
    insecticide = "insecticide"
    adjuvant = "adjuvant"


class FormulationEnum(StrEnum):
    """Formulation class, which decides the order of addition to a tank."""

    WP = "WP"  # wettable powder
    WG = "WG"  # water-dispersible granules
    SC = "SC"  # suspension concentrate
    EC = "EC"  # emulsifiable concentrate
    SL = "SL"  # soluble liquid
    ADJUVANT = "ADJUVANT"


class PestTypeEnum(StrEnum):
    weed = "weed"
    disease = "disease"
    insect = "insect"
    nematode = "nematode"


class CropCategoryEnum(StrEnum):
    cereals = "cereals"
    technical = "technical"
    vegetables = "vegetables"
    fruit = "fruit"


class SoilTypeEnum(StrEnum):
    """Soil texture class used by the dosage soil coefficient."""

    sand = "sand"
    loam = "loam"
    chernozem = "chernozem"
    clay = "clay"


# ── Application enums ───────────────────────────────────────────────────────


class SprayerTypeEnum(StrEnum):
    boom = "boom"
    aerial = "aerial"


class CoverageEnum(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"


# ── Risk & warning enums ────────────────────────────────────────────────────


class RiskLevelEnum(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"


class WarningCategoryEnum(StrEnum):
    resistance = "resistance"
    phytotoxicity = "phytotoxicity"
    quarantine = "quarantine"
    inventory = "inventory"
    weather = "weather"


class WarningSeverityEnum(StrEnum):
    info = "info"
    caution = "caution"
    critical = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    WarningSeverityEnum.info: 1,
    WarningSeverityEnum.caution: 2,
    WarningSeverityEnum.critical: 3,
}


# ── Treatment planning enums ────────────────────────────────────────────────


class PlanStatusEnum(StrEnum):
    """Treatment plan lifecycle state."""

    planned = "planned"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    snoozed = "snoozed"


class PlanPriorityEnum(IntEnum):
    high = 1
    medium = 2
    low = 3


class WarehouseStatusEnum(StrEnum):
    ok = "ok"
    low_stock = "low_stock"
    no_stock = "no_stock"


UPCOMING_PLAN_STATUSES = frozenset(
    {PlanStatusEnum.planned, PlanStatusEnum.in_progress, PlanStatusEnum.snoozed}
)
