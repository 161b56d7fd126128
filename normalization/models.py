"""
Data models for location normalization.

RawLocationItem is the untrusted wire shape posted by devices.
NormalizedLocation is the validated, typed record that the log writer
persists. NormalizationResult carries either one or a validation error.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RawLocationItem(BaseModel):
    """
    A single location report as sent by a device.

    Every field is optional and kept as a string; numeric JSON values are
    coerced to strings so the normalizer sees one representation.

    Attributes:
        lm_device_id: Device identifier
        lm_latitude: Latitude as a decimal string
        lm_longitude: Longitude as a decimal string
        lm_device_alias: Human-friendly device name
        lm_datetime: Device-local time of the reading, free-form
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    lm_device_id: Optional[str] = None
    lm_latitude: Optional[str] = None
    lm_longitude: Optional[str] = None
    lm_device_alias: Optional[str] = None
    lm_datetime: Optional[str] = None


class NormalizedLocation(BaseModel):
    """
    A validated location report.

    latitude and longitude are always within range, and dt_local and
    dt_utc are the same instant expressed in the reference timezone and
    in UTC.
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    alias: str
    latitude: float
    longitude: float
    dt_local: datetime
    dt_utc: datetime
    dt_original: str


class ValidationErrorKind(str, Enum):
    """Reasons a single location item can be rejected."""

    NULL_ITEM = "NullItem"
    INVALID_LATITUDE = "InvalidLatitude"
    INVALID_LONGITUDE = "InvalidLongitude"
    COORDINATE_OUT_OF_RANGE = "CoordinateOutOfRange"
    INVALID_DATETIME = "InvalidDateTime"


@dataclass(frozen=True)
class LocationValidationError:
    """A per-item validation failure."""

    kind: ValidationErrorKind
    message: str


@dataclass(frozen=True)
class NormalizationResult:
    """
    Outcome of normalizing one item: a location or an error, never both.

    Use the ``success`` and ``failure`` constructors rather than building
    instances directly.
    """

    location: Optional[NormalizedLocation] = None
    error: Optional[LocationValidationError] = None

    def __post_init__(self):
        if (self.location is None) == (self.error is None):
            raise ValueError("NormalizationResult needs exactly one of location or error")

    @property
    def ok(self) -> bool:
        return self.location is not None

    @classmethod
    def success(cls, location: NormalizedLocation) -> "NormalizationResult":
        return cls(location=location)

    @classmethod
    def failure(cls, kind: ValidationErrorKind, message: str) -> "NormalizationResult":
        return cls(error=LocationValidationError(kind=kind, message=message))
