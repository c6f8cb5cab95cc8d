"""Pydantic schemas for BBCH phase lookups."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cropguard.data.bbch import BBCHPhase


class BBCHPhaseRead(BBCHPhase):
	display_label: str


class BBCHResponse(BaseModel):
	crop_id: int
	subcategory: str | None = None
	phases: list[BBCHPhaseRead] = Field(default_factory=list)
