"""
Unit tests for reference timezone resolution.
"""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from normalization.timezones import (
    ResolvedTimezone,
    host_local_timezone,
    resolve_reference_timezone,
)


class TestResolveReferenceTimezone:
    """Tests for the IANA key, alias, host-local fallback chain."""

    def test_primary_key_is_used_when_available(self):
        resolved = resolve_reference_timezone("America/Guayaquil", ["Etc/GMT+5"])

        assert resolved.key == "America/Guayaquil"
        assert resolved.degraded is False
        assert isinstance(resolved.tzinfo, ZoneInfo)
        assert resolved.tzinfo.utcoffset(datetime(2025, 10, 1)) == timedelta(hours=-5)

    def test_alias_is_used_when_primary_is_unknown(self):
        resolved = resolve_reference_timezone("Not/AZone", ["Also/Missing", "Etc/GMT+5"])

        assert resolved.key == "Etc/GMT+5"
        assert resolved.degraded is False
        assert resolved.tzinfo.utcoffset(datetime(2025, 10, 1)) == timedelta(hours=-5)

    def test_invalid_key_format_falls_through(self):
        resolved = resolve_reference_timezone("../etc/passwd", ["Etc/GMT+5"])

        assert resolved.key == "Etc/GMT+5"

    def test_host_local_is_a_degraded_fallback(self):
        resolved = resolve_reference_timezone("Not/AZone", ["Also/Missing"])
        now = datetime(2025, 10, 1, 12, 0)

        assert resolved.degraded is True
        assert resolved.tzinfo.utcoffset(now) == host_local_timezone().utcoffset(now)

    def test_aliases_accept_any_iterable(self):
        resolved = resolve_reference_timezone("Not/AZone", (key for key in ["Missing/One"]))

        assert resolved.degraded is True

    def test_resolved_timezone_defaults_to_not_degraded(self):
        resolved = ResolvedTimezone(tzinfo=ZoneInfo("UTC"), key="UTC")

        assert resolved.degraded is False
