"""Reference catalog entities: products, pests, crops, fields and their relations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cropguard.models.enums import (
    CropCategoryEnum,
    FormulationEnum,
    PestTypeEnum,
    ProductTypeEnum,
    SoilTypeEnum,
)


class CatalogModel(BaseModel):
    """Immutable snapshot handed out by repositories."""

    model_config = ConfigDict(frozen=True)


class Product(CatalogModel):
    id: int
    name: str = Field(min_length=1)
    name_en: str | None = None
    active_ingredient: str
    type: ProductTypeEnum
    formulation: FormulationEnum | None = None
    manufacturer: str | None = None
    min_dosage: float = Field(ge=0)
    max_dosage: float = Field(ge=0)
    unit_dosage: str = "l/ha"
    price_per_unit: float | None = Field(default=None, ge=0)
    unit: str | None = None
    waiting_period: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_dosage_range(self) -> "Product":
        if self.min_dosage > self.max_dosage:
            raise ValueError("min_dosage must not exceed max_dosage")
        return self

    @property
    def midpoint_dosage(self) -> float:
        return (self.min_dosage + self.max_dosage) / 2


class Pest(CatalogModel):
    id: int
    name: str
    name_en: str | None = None
    type: PestTypeEnum
    category: str | None = None


class Crop(CatalogModel):
    id: int
    name: str
    name_en: str | None = None
    category: CropCategoryEnum
    subcategory: str | None = None
    bbh_min: int | None = None
    bbh_max: int | None = None


class FarmField(CatalogModel):
    """A cultivated field with the soil class used for dosage adjustment."""

    id: int
    name: str
    area: float = Field(gt=0)
    soil_type: SoilTypeEnum | None = None


class PestEfficacy(CatalogModel):
    product_id: int
    pest_id: int
    efficacy: float = Field(ge=0, le=100)
    pest_name: str | None = None
    pest_type: PestTypeEnum | None = None


class CropApproval(CatalogModel):
    """Registration of a product for a crop, optionally limited to a BBCH window."""

    product_id: int
    crop_id: int
    phase_min: int | None = None
    phase_max: int | None = None

    def covers_phase(self, phase: int | None) -> bool:
        if phase is None:
            return True
        if self.phase_min is not None and phase < self.phase_min:
            return False
        if self.phase_max is not None and phase > self.phase_max:
            return False
        return True


class CompatibilityRecord(CatalogModel):
    """Pairwise mixing compatibility, stored under the canonical ``id1 < id2`` ordering."""

    product_id_1: int
    product_id_2: int
    chemical_compatible: bool = True
    physical_compatible: bool = True
    biological_compatible: bool = True
    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _canonicalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            first, second = data.get("product_id_1"), data.get("product_id_2")
            if first is not None and second is not None and first > second:
                data = {**data, "product_id_1": second, "product_id_2": first}
        return data

    @property
    def pair(self) -> tuple[int, int]:
        return (self.product_id_1, self.product_id_2)


def canonical_pair(id_a: int, id_b: int) -> tuple[int, int]:
    return (id_a, id_b) if id_a <= id_b else (id_b, id_a)
