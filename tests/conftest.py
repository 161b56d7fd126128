"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

from normalization.models import RawLocationItem
from storage.day_log import DayPartitionedLogWriter, StorageConfig

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

# Load profile from environment variable HYPOTHESIS_PROFILE, default to "default"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


# Fixed UTC-5 offset, the same as America/Guayaquil, without needing tzdata
ECUADOR_TZ = timezone(timedelta(hours=-5), "ECT")

# Noon in Guayaquil
FIXED_NOW = datetime(2025, 10, 1, 17, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def reference_tz() -> timezone:
    """Reference timezone used by unit tests."""
    return ECUADOR_TZ


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def storage_config(tmp_path) -> StorageConfig:
    """Storage configuration rooted in a temporary directory."""
    return StorageConfig(base_dir=tmp_path / "App_Data")


@pytest.fixture
def log_writer(storage_config, fixed_clock) -> DayPartitionedLogWriter:
    """Log writer with a fixed clock writing under tmp_path."""
    return DayPartitionedLogWriter(storage_config, clock=fixed_clock)


@pytest.fixture
def sample_raw_item() -> RawLocationItem:
    """Sample raw location item as a device would send it."""
    return RawLocationItem(
        lm_device_id="d1",
        lm_latitude="-2.16144861",
        lm_longitude="-79.91768754",
        lm_device_alias="a",
        lm_datetime="2025-10-01 19:34:13.247",
    )


@pytest.fixture
def sample_batch_payload() -> dict:
    """Sample POST /api/locations payload."""
    return {
        "locations": [
            {
                "lm_device_id": "d1",
                "lm_latitude": "-2.16144861",
                "lm_longitude": "-79.91768754",
                "lm_device_alias": "a",
                "lm_datetime": "2025-10-01 19:34:13.247",
            }
        ]
    }
