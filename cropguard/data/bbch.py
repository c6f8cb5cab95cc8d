"""BBCH growth-stage scales per crop subcategory."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class BBCHPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: int = Field(ge=0, le=99)
    label: str
    description: str | None = None


class BBCHScale(BaseModel):
    model_config = ConfigDict(frozen=True)

    crop_ids: list[int] = Field(default_factory=list)
    crop_subcategory: str | None = None
    phases: list[BBCHPhase] = Field(default_factory=list)


DEFAULT_BBCH_SCALES = [
    BBCHScale(
        crop_subcategory="wheat_winter",
        phases=[
            BBCHPhase(code=10, label="Emergence", description="First leaf through the coleoptile"),
            BBCHPhase(code=21, label="Tillering", description="Beginning of tillering"),
            BBCHPhase(code=30, label="Stem elongation", description="Active shoot growth"),
            BBCHPhase(code=39, label="Flag leaf", description="Last leaf fully unrolled"),
            BBCHPhase(code=51, label="Heading", description="Beginning of heading"),
            BBCHPhase(code=71, label="Milk ripeness", description="Grain reaches milk stage"),
        ],
    ),
    BBCHScale(
        crop_subcategory="wheat_spring",
        phases=[
            BBCHPhase(code=9, label="Germination", description="Seedling visible at the surface"),
            BBCHPhase(code=21, label="Tillering", description="Side shoots appear"),
            BBCHPhase(code=33, label="Stem elongation", description="First internode elongates"),
            BBCHPhase(code=39, label="Flag leaf", description="Last leaf developed"),
            BBCHPhase(code=55, label="Mid heading"),
            BBCHPhase(code=75, label="Medium milk"),
        ],
    ),
    BBCHScale(
        crop_subcategory="rapeseed_winter",
        phases=[
            BBCHPhase(code=10, label="Emergence"),
            BBCHPhase(code=20, label="Leaf rosette"),
            BBCHPhase(code=30, label="Stem elongation"),
            BBCHPhase(code=60, label="Flowering"),
            BBCHPhase(code=80, label="Pod ripening"),
        ],
    ),
]
