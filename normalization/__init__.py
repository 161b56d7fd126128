"""
Location normalization module.

This module converts untrusted device location reports into validated,
typed records and resolves the reference timezone they are expressed in.
"""

from normalization.models import (
    LocationValidationError,
    NormalizationResult,
    NormalizedLocation,
    RawLocationItem,
    ValidationErrorKind,
)
from normalization.normalizer import normalize, parse_coordinate, parse_wall_clock
from normalization.timezones import ResolvedTimezone, resolve_reference_timezone

__all__ = [
    "LocationValidationError",
    "NormalizationResult",
    "NormalizedLocation",
    "RawLocationItem",
    "ValidationErrorKind",
    "normalize",
    "parse_coordinate",
    "parse_wall_clock",
    "ResolvedTimezone",
    "resolve_reference_timezone",
]
