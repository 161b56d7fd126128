"""
Reference timezone resolution.

Incoming datetimes carry no offset; they are wall-clock readings in one
fixed reference zone. The zone is loaded once at startup, trying the
configured IANA key, then each alias, then the host's local zone. The
last step is a degraded mode and is logged as such.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTimezone:
    """
    The reference zone used for every conversion.

    Attributes:
        tzinfo: The zone itself
        key: The key that was loaded, or the host zone name when degraded
        degraded: True when neither the configured key nor an alias loaded
    """

    tzinfo: tzinfo
    key: str
    degraded: bool = False


def _load_zone(key: str) -> Optional[ZoneInfo]:
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        logger.debug(
            f"Timezone '{key}' is not available: {e}",
            extra={"extra_data": {"timezone": key}}
        )
        return None


def host_local_timezone() -> tzinfo:
    """Return the host's current local timezone as a fixed-offset tzinfo."""
    return datetime.now().astimezone().tzinfo


def resolve_reference_timezone(
    primary: str,
    aliases: Iterable[str] = ()
) -> ResolvedTimezone:
    """
    Resolve the reference timezone through its fallback chain.

    Args:
        primary: IANA key to try first, e.g. "America/Guayaquil"
        aliases: Keys tried in order when the primary cannot be loaded

    Returns:
        ResolvedTimezone; ``degraded`` is set when the host zone was used
    """
    aliases = tuple(aliases)
    for key in (primary, *aliases):
        zone = _load_zone(key)
        if zone is not None:
            if key != primary:
                logger.warning(
                    f"Reference timezone '{primary}' unavailable, using alias '{key}'",
                    extra={"extra_data": {"timezone": primary, "alias": key}}
                )
            return ResolvedTimezone(tzinfo=zone, key=key)

    local = host_local_timezone()
    local_name = local.tzname(None) or str(local)
    logger.warning(
        f"Reference timezone '{primary}' and its aliases are unavailable; "
        f"falling back to host local time ({local_name})",
        extra={"extra_data": {
            "timezone": primary,
            "aliases": list(aliases),
            "fallback": local_name,
            "degraded": True,
        }}
    )
    return ResolvedTimezone(tzinfo=local, key=local_name, degraded=True)
