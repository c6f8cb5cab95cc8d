"""Input checks that return human-readable messages instead of raising.

Batch flows call several validators and report every problem at once via
``collect_errors``.
"""

from __future__ import annotations

import math
from typing import Any

REQUIRED = "This field is required"
INVALID_NUMBER = "Enter a valid number"
POSITIVE_NUMBER = "The number must be positive"

MAX_AREA_HA = 10_000


def validate_required(value: Any) -> str | None:
	if value is None:
		return REQUIRED
	if isinstance(value, str) and not value.strip():
		return REQUIRED
	return None


def validate_number(value: Any) -> str | None:
	try:
		number = float(value)
	except (TypeError, ValueError):
		return INVALID_NUMBER
	if math.isnan(number):
		return INVALID_NUMBER
	return None


def validate_positive_number(value: Any) -> str | None:
	error = validate_number(value)
	if error:
		return error
	if float(value) <= 0:
		return POSITIVE_NUMBER
	return None


def validate_area(area: float) -> str | None:
	if area <= 0:
		return "Area must be greater than 0"
	if area > MAX_AREA_HA:
		return f"Area is too large (maximum {MAX_AREA_HA} ha)"
	return None


def validate_dosage(dosage: float, min_dosage: float, max_dosage: float) -> str | None:
	if dosage < min_dosage:
		return f"Dosage must be at least {min_dosage:g}"
	if dosage > max_dosage:
		return f"Dosage must not exceed {max_dosage:g}"
	return None


def validate_temperature(temperature: float) -> str | None:
	if temperature < -50 or temperature > 50:
		return "Temperature must be between -50°C and 50°C"
	return None


def validate_humidity(humidity: float) -> str | None:
	if humidity < 0 or humidity > 100:
		return "Humidity must be between 0% and 100%"
	return None


def validate_sprayer_capacity(capacity: float) -> str | None:
	if capacity <= 0:
		return "Sprayer capacity must be positive"
	return None


def collect_errors(*messages: str | None) -> list[str]:
	return [message for message in messages if message]
