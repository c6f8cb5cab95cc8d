"""BBCH growth-stage lookup for crops."""

from __future__ import annotations

from cropguard.data.bbch import BBCHPhase
from cropguard.data.regulations import ReferenceData, get_reference_data


class BBCHService:
	def __init__(self, reference: ReferenceData | None = None):
		self.reference = reference or get_reference_data()

	def get_phases(self, crop_id: int, subcategory: str | None = None) -> list[BBCHPhase]:
		"""Phases matched by subcategory when given, otherwise by explicit crop id mapping."""
		for scale in self.reference.bbch_scales:
			if subcategory:
				matched = (scale.crop_subcategory or "").lower() == subcategory.lower()
			else:
				matched = crop_id in scale.crop_ids
			if matched:
				return list(scale.phases)
		return []

	@staticmethod
	def format_phase_label(phase: BBCHPhase) -> str:
		return f"{phase.code}: {phase.label}"
