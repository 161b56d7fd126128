"""
Batch ingestion of device location reports.

This module provides the LocationIngestionService, which walks a batch of
raw location items in order, normalizes each one independently, appends
the valid ones to the day log and reports a per-item outcome.

Per-item validation failures never abort the batch. Storage failures do:
they propagate as STORAGE_UNAVAILABLE and the request fails, although
lines already appended for earlier items stay in the log.
"""

import logging
import time
from datetime import tzinfo
from typing import List, Literal, Optional, Sequence

from pydantic import BaseModel

from errors.exceptions import invalid_request
from normalization.models import RawLocationItem
from normalization.normalizer import normalize
from storage.day_log import DayPartitionedLogWriter
from telemetry.service import TelemetryService, get_telemetry_service


logger = logging.getLogger(__name__)

EMPTY_BATCH_MESSAGE = "At least one element must be sent in 'locations'."


class LocationBatch(BaseModel):
    """
    Request body of POST /api/locations.

    Both the list and its elements may be null on the wire; a missing or
    empty list is rejected, a null element is reported as a per-item error.
    """

    locations: Optional[List[Optional[RawLocationItem]]] = None


class ItemResult(BaseModel):
    """
    Outcome for one item of a batch.

    Attributes:
        alias: The alias as sent by the device (null for a null item)
        status: "ok" or "error"
        message: Why the item was rejected, only set on error
    """

    alias: Optional[str] = None
    status: Literal["ok", "error"]
    message: Optional[str] = None

    def to_response(self) -> dict:
        data = {"alias": self.alias, "status": self.status}
        if self.status == "error":
            data["message"] = self.message
        return data


class BatchIngestResult(BaseModel):
    """
    Summary of a processed batch.

    Attributes:
        received: Number of items in the batch
        ok: Number of items appended to the log
        fail: Number of rejected items
        results: Per-item outcomes in input order
    """

    received: int
    ok: int
    fail: int
    results: List[ItemResult]

    def to_response(self) -> dict:
        return {
            "received": self.received,
            "ok": self.ok,
            "fail": self.fail,
            "results": [r.to_response() for r in self.results],
        }


class LocationIngestionService:
    """
    Service that validates location batches and persists accepted items.

    Attributes:
        writer: Day-partitioned log writer
        reference_tz: Zone the device datetimes are expressed in
        telemetry: Telemetry service for metrics
    """

    def __init__(
        self,
        writer: DayPartitionedLogWriter,
        reference_tz: tzinfo,
        telemetry: Optional[TelemetryService] = None
    ):
        """
        Initialize the LocationIngestionService.

        Args:
            writer: Log writer that persists accepted locations
            reference_tz: Reference timezone for naive device datetimes
            telemetry: Optional telemetry service (uses global if not provided)
        """
        self.writer = writer
        self.reference_tz = reference_tz
        self.telemetry = telemetry or get_telemetry_service()
        self._logger = logging.getLogger(__name__)

    def process_item(self, item: Optional[RawLocationItem]) -> ItemResult:
        """
        Normalize one item and append it to the log when valid.

        Raises:
            AppException: STORAGE_UNAVAILABLE if the log cannot be written
        """
        alias = item.lm_device_alias if item is not None else None
        result = normalize(item, self.reference_tz)

        if not result.ok:
            self._logger.info(
                f"Location rejected: {result.error.message}",
                extra={"extra_data": {
                    "alias": alias,
                    "reason": result.error.kind.value,
                }}
            )
            return ItemResult(alias=alias, status="error", message=result.error.message)

        self.writer.append(result.location)
        return ItemResult(alias=alias, status="ok")

    def process_batch(
        self,
        items: Optional[Sequence[Optional[RawLocationItem]]]
    ) -> BatchIngestResult:
        """
        Process a batch of location items in input order.

        Args:
            items: Raw items as received; None entries are null elements

        Returns:
            BatchIngestResult with counts and per-item outcomes

        Raises:
            AppException: INVALID_REQUEST if the batch is missing or empty,
                STORAGE_UNAVAILABLE if the log cannot be written
        """
        if not items:
            raise invalid_request(message=EMPTY_BATCH_MESSAGE)

        start_time = time.perf_counter()
        results: List[ItemResult] = []
        ok = 0
        fail = 0

        self._logger.info(
            f"Processing batch of {len(items)} locations",
            extra={"extra_data": {"batch_size": len(items)}}
        )

        for item in items:
            item_result = self.process_item(item)
            results.append(item_result)
            if item_result.status == "ok":
                ok += 1
            else:
                fail += 1

        duration_ms = (time.perf_counter() - start_time) * 1000
        if self.telemetry:
            self.telemetry.record_metric(
                "location_batch_duration_ms",
                duration_ms,
                tags={"batch_size": str(len(items))}
            )

        self._logger.info(
            f"Batch processing complete: {ok} ok, {fail} failed",
            extra={"extra_data": {
                "received": len(items),
                "ok": ok,
                "fail": fail,
                "duration_ms": duration_ms,
            }}
        )

        return BatchIngestResult(received=len(items), ok=ok, fail=fail, results=results)
