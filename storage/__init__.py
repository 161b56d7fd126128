"""
Storage module for the append-only, day-partitioned location log.
"""

from storage.day_log import DayPartitionedLogWriter, StorageConfig, build_log_record

__all__ = [
    "DayPartitionedLogWriter",
    "StorageConfig",
    "build_log_record",
]
