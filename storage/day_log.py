"""
Day-partitioned, append-only location log.

Each calendar day (host local time) has its own file under the storage
base directory, e.g. App_Data/locations-20251001.log. Every accepted
location becomes one JSON object on one line. Files are created lazily
and are never truncated, rewritten or deleted here.

Appends open the file, write one complete line in a single write() call
and close it again. Concurrent appends within this process are serialized
by a lock; across processes, O_APPEND keeps small single writes from
interleaving.
"""

import json
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from errors.exceptions import storage_unavailable
from normalization.models import NormalizedLocation

logger = logging.getLogger(__name__)

LOCAL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class StorageConfig:
    """
    Where and how day logs are written.

    Attributes:
        base_dir: Directory holding the day logs
        file_prefix: File name prefix, followed by YYYYMMDD
        file_suffix: File name suffix
        encoding: Text encoding of the log files
    """

    base_dir: Path
    file_prefix: str = "locations-"
    file_suffix: str = ".log"
    encoding: str = "utf-8"

    @classmethod
    def from_settings(cls, settings: Any) -> "StorageConfig":
        return cls(
            base_dir=Path(settings.storage_base_dir),
            file_prefix=settings.log_file_prefix,
            file_suffix=settings.log_file_suffix,
        )


def _format_utc(value: datetime) -> str:
    """ISO 8601 in UTC with millisecond precision and a Z suffix."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_log_record(location: NormalizedLocation, received_at: datetime) -> Dict[str, Any]:
    """
    Build the on-disk record for a normalized location.

    Args:
        location: The validated location
        received_at: When the server received it (aware datetime)

    Returns:
        Dictionary ready for json.dumps
    """
    dt_local = location.dt_local
    return {
        "device_id": location.device_id,
        "alias": location.alias,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "dt_local": f"{dt_local.strftime(LOCAL_TIMESTAMP_FORMAT)}.{dt_local.microsecond // 1000:03d}",
        "dt_utc": _format_utc(location.dt_utc),
        "dt_original": location.dt_original,
        "received_at_utc": _format_utc(received_at),
    }


class DayPartitionedLogWriter:
    """
    Appends location records to the current day's log file.

    Attributes:
        config: Storage configuration
        clock: Returns the current aware datetime; the host-local calendar
            day of its value selects the file
    """

    def __init__(
        self,
        config: StorageConfig,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the writer.

        Args:
            config: Storage configuration
            clock: Optional clock override, defaults to the system clock
        """
        self.config = config
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()

    def path_for(self, day: date) -> Path:
        """Return the log path for a calendar day without touching the disk."""
        name = f"{self.config.file_prefix}{day:%Y%m%d}{self.config.file_suffix}"
        return self.config.base_dir / name

    @staticmethod
    def _local_day(moment: datetime) -> date:
        # astimezone() with no argument converts to host local time
        return moment.astimezone().date()

    def today_path(self) -> Path:
        """Return today's log path without creating anything."""
        return self.path_for(self._local_day(self.clock()))

    def path_for_today(self) -> Path:
        """
        Return today's log path, creating the directory and file if absent.

        Existing files are left untouched, so repeated calls on the same
        day return the same path and never lose content.

        Raises:
            AppException: STORAGE_UNAVAILABLE if the directory or file
                cannot be created
        """
        return self._ensure_path(self._local_day(self.clock()))

    def _ensure_path(self, day: date) -> Path:
        path = self.path_for(day)
        try:
            self.config.base_dir.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                logger.info(
                    f"Creating day log {path}",
                    extra={"extra_data": {"path": str(path)}}
                )
                path.touch(exist_ok=True)
        except OSError as e:
            logger.error(
                f"Failed to prepare day log {path}: {e}",
                extra={"extra_data": {"path": str(path), "error": str(e)}}
            )
            raise storage_unavailable(
                message="Cannot create the location log",
                details={"path": str(path)}
            ) from e
        return path

    def append(self, location: NormalizedLocation) -> Dict[str, Any]:
        """
        Append one location to today's log.

        Args:
            location: The validated location to persist

        Returns:
            The record that was written

        Raises:
            AppException: STORAGE_UNAVAILABLE if the line cannot be written
        """
        # One clock reading decides both the timestamp and the file
        received_at = self.clock()
        record = build_log_record(location, received_at)
        line = json.dumps(record, ensure_ascii=False) + "\n"

        with self._lock:
            path = self._ensure_path(self._local_day(received_at))
            try:
                with open(path, "a", encoding=self.config.encoding) as handle:
                    handle.write(line)
            except OSError as e:
                logger.error(
                    f"Failed to append to day log {path}: {e}",
                    extra={"extra_data": {"path": str(path), "error": str(e)}}
                )
                raise storage_unavailable(
                    message="Cannot append to the location log",
                    details={"path": str(path)}
                ) from e

        return record

    def read_today(self) -> Optional[str]:
        """
        Read today's log.

        Returns:
            The file content, or None if nothing has been logged today

        Raises:
            AppException: STORAGE_UNAVAILABLE if the file exists but
                cannot be read
        """
        path = self.today_path()
        try:
            return path.read_text(encoding=self.config.encoding)
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(
                f"Failed to read day log {path}: {e}",
                extra={"extra_data": {"path": str(path), "error": str(e)}}
            )
            raise storage_unavailable(
                message="Cannot read the location log",
                details={"path": str(path)}
            ) from e
