"""
Normalization of raw device location reports.

normalize() turns an untrusted RawLocationItem into a NormalizedLocation,
or explains why it cannot. It has no side effects and never raises for
bad input; callers inspect the returned NormalizationResult.

Coordinates must be plain invariant decimal literals ("-2.16144861",
"1e-3"). Locale forms such as "2,5", digit separators and nan/inf are
rejected. Datetimes are tried against a fixed list of exact formats
before a general-purpose parse.
"""

import math
import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from dateutil.parser import parse as dateutil_parse

from normalization.models import (
    NormalizationResult,
    NormalizedLocation,
    RawLocationItem,
    ValidationErrorKind,
)

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)

# Exact formats, tried in order. %f accepts 1-6 digits; the result is then
# truncated to millisecond precision.
DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S.%f",
    "%Y/%m/%d %H:%M:%S",
)

_DECIMAL_PATTERN = re.compile(
    r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*",
    re.ASCII,
)

NULL_ITEM_MESSAGE = "Null element"
INVALID_LATITUDE_MESSAGE = "Invalid latitude"
INVALID_LONGITUDE_MESSAGE = "Invalid longitude"
OUT_OF_RANGE_MESSAGE = (
    "Coordinates out of range: latitude must be within [-90, 90] "
    "and longitude within [-180, 180]"
)
INVALID_DATETIME_MESSAGE = "Invalid date/time"


def parse_coordinate(value: Optional[str]) -> Optional[float]:
    """
    Parse an invariant decimal literal.

    Returns None when the value is missing or not a finite decimal number.
    """
    if value is None or not _DECIMAL_PATTERN.fullmatch(value):
        return None
    parsed = float(value)
    # Exponents can still overflow to inf, e.g. "1e999"
    if not math.isfinite(parsed):
        return None
    return parsed


def _truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def parse_wall_clock(value: Optional[str], reference_tz: tzinfo) -> Optional[datetime]:
    """
    Parse a device datetime string into a naive wall-clock datetime.

    Exact formats are tried first. Anything else goes through dateutil;
    if that yields an explicit offset, the instant is converted to the
    reference zone so the returned wall clock is always reference-local.

    Returns:
        A naive datetime with millisecond precision, or None if unparseable
    """
    text = (value or "").strip()
    if not text:
        return None

    for fmt in DATETIME_FORMATS:
        try:
            return _truncate_to_millis(datetime.strptime(text, fmt))
        except ValueError:
            continue

    try:
        parsed = dateutil_parse(text)
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(reference_tz).replace(tzinfo=None)
        except (ValueError, OverflowError):
            # Offsets of a day or more, e.g. "+99:00", are not valid UTC offsets
            return None
    return _truncate_to_millis(parsed)


def _in_range(value: float, bounds: tuple) -> bool:
    low, high = bounds
    return low <= value <= high


def normalize(raw: Optional[RawLocationItem], reference_tz: tzinfo) -> NormalizationResult:
    """
    Validate and normalize one raw location item.

    Checks run in a fixed order and the first failure is reported:
    null item, latitude format, longitude format, coordinate range,
    datetime.

    Args:
        raw: The item as received, or None for a null batch element
        reference_tz: Zone the device wall-clock times are expressed in

    Returns:
        NormalizationResult holding either the location or the error
    """
    if raw is None:
        return NormalizationResult.failure(ValidationErrorKind.NULL_ITEM, NULL_ITEM_MESSAGE)

    latitude = parse_coordinate(raw.lm_latitude)
    if latitude is None:
        return NormalizationResult.failure(
            ValidationErrorKind.INVALID_LATITUDE, INVALID_LATITUDE_MESSAGE
        )

    longitude = parse_coordinate(raw.lm_longitude)
    if longitude is None:
        return NormalizationResult.failure(
            ValidationErrorKind.INVALID_LONGITUDE, INVALID_LONGITUDE_MESSAGE
        )

    if not _in_range(latitude, LATITUDE_RANGE) or not _in_range(longitude, LONGITUDE_RANGE):
        return NormalizationResult.failure(
            ValidationErrorKind.COORDINATE_OUT_OF_RANGE, OUT_OF_RANGE_MESSAGE
        )

    wall_clock = parse_wall_clock(raw.lm_datetime, reference_tz)
    if wall_clock is None:
        return NormalizationResult.failure(
            ValidationErrorKind.INVALID_DATETIME, INVALID_DATETIME_MESSAGE
        )

    dt_local = wall_clock.replace(tzinfo=reference_tz)
    try:
        dt_utc = dt_local.astimezone(timezone.utc)
    except OverflowError:
        # Wall clock at the edge of the datetime range, e.g. 9999-12-31 23:00 at UTC-5
        return NormalizationResult.failure(
            ValidationErrorKind.INVALID_DATETIME, INVALID_DATETIME_MESSAGE
        )

    return NormalizationResult.success(
        NormalizedLocation(
            device_id=(raw.lm_device_id or "").strip(),
            alias=(raw.lm_device_alias or "").strip(),
            latitude=latitude,
            longitude=longitude,
            dt_local=dt_local,
            dt_utc=dt_utc,
            dt_original=(raw.lm_datetime or "").strip(),
        )
    )
