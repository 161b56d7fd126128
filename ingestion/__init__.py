"""
Data ingestion module for device location batches.

This module provides the service that validates incoming location
batches and appends accepted items to the day-partitioned log.
"""

from ingestion.service import (
    LocationIngestionService,
    LocationBatch,
    ItemResult,
    BatchIngestResult,
)

__all__ = [
    "LocationIngestionService",
    "LocationBatch",
    "ItemResult",
    "BatchIngestResult",
]
