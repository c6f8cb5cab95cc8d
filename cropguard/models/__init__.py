"""Domain entity registry.

Repositories hand out these typed snapshots; services never see storage rows.
Application code can do::

    from cropguard.models import Product, Treatment, TreatmentPlan, ...
"""

# ── Catalog ─────────────────────────────────────────────────────────────────
from cropguard.models.catalog import (
    CompatibilityRecord,
    Crop,
    CropApproval,
    FarmField,
    Pest,
    PestEfficacy,
    Product,
    canonical_pair,
)

# ── Enums ───────────────────────────────────────────────────────────────────
from cropguard.models.enums import (
    UPCOMING_PLAN_STATUSES,
    CoverageEnum,
    CropCategoryEnum,
    FormulationEnum,
    PestTypeEnum,
    PlanPriorityEnum,
    PlanStatusEnum,
    ProductTypeEnum,
    RiskLevelEnum,
    SoilTypeEnum,
    SprayerTypeEnum,
    WarehouseStatusEnum,
    WarningCategoryEnum,
    WarningSeverityEnum,
)

# ── Operations ──────────────────────────────────────────────────────────────
from cropguard.models.operations import (
    InventoryItem,
    ResistanceRecord,
    Treatment,
    TreatmentPlan,
    TreatmentProduct,
)

# ── Field types ─────────────────────────────────────────────────────────────
from cropguard.models.types import UtcDatetime, ensure_utc

__all__ = [
    "UPCOMING_PLAN_STATUSES",
    "CompatibilityRecord",
    "CoverageEnum",
    "Crop",
    "CropApproval",
    "CropCategoryEnum",
    "FarmField",
    "FormulationEnum",
    "InventoryItem",
    "Pest",
    "PestEfficacy",
    "PestTypeEnum",
    "PlanPriorityEnum",
    "PlanStatusEnum",
    "Product",
    "ProductTypeEnum",
    "ResistanceRecord",
    "RiskLevelEnum",
    "SoilTypeEnum",
    "SprayerTypeEnum",
    "Treatment",
    "TreatmentPlan",
    "TreatmentProduct",
    "WarehouseStatusEnum",
    "WarningCategoryEnum",
    "WarningSeverityEnum",
    "UtcDatetime",
    "canonical_pair",
    "ensure_utc",
]
