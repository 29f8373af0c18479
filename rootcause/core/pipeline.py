"""Incident pipeline orchestration.

This module drives the full identity pipeline over a set of
investigations: build incidents (fetching each payload), deduplicate by
fingerprint, and enrich the survivors with endpoint routing metadata.
"""

import asyncio
import logging

from .deduplicator import Deduplicator
from .enricher import EndpointEnricher
from .incident_builder import IncidentBuilder
from .models import Incident, Investigation, PipelineResult
from .ports import ProgressCallback

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 50


def should_report_progress(processed: int, total: int) -> bool:
    """Report on the first item, every PROGRESS_INTERVAL items, and the last."""
    return processed == 1 or processed == total or processed % PROGRESS_INTERVAL == 0


def log_progress(processed: int, total: int, found: int) -> None:
    """Default progress callback."""
    percentage = round(processed / total * 100) if total else 100
    logger.info(
        f"Processed {processed}/{total} investigations ({percentage}%) - "
        f"{found} incidents found"
    )


class IncidentPipeline:
    """Orchestrates building, deduplication, and enrichment.

    Investigations are built by a bounded worker pool (one worker by
    default, i.e. strictly sequential). Built incidents keep their input
    position, so deduplication sees them in input order whatever the
    completion order. A failure while building one investigation is
    logged and counted; it never aborts the run.
    """

    def __init__(
        self,
        builder: IncidentBuilder,
        deduplicator: Deduplicator,
        enricher: EndpointEnricher,
        fetch_concurrency: int = 1,
        progress: ProgressCallback | None = None,
    ):
        if fetch_concurrency < 1:
            raise ValueError("fetch_concurrency must be at least 1")
        self.builder = builder
        self.deduplicator = deduplicator
        self.enricher = enricher
        self.fetch_concurrency = fetch_concurrency
        self.progress = progress or log_progress
        self._cancelled = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop processing: skip pending items and abort in-flight fetches.

        Incidents already built remain valid and are still deduplicated
        and enriched.
        """
        self._cancelled.set()
        for task in self._tasks:
            if not task.done():
                task.cancel()

    async def run(self, investigations: list[Investigation]) -> PipelineResult:
        """Process all investigations and return the enriched incidents."""
        total = len(investigations)
        logger.info(f"Processing {total} investigations...")

        built: list[Incident | None] = [None] * total
        semaphore = asyncio.Semaphore(self.fetch_concurrency)
        processed = 0
        found = 0
        errors = 0

        async def process(index: int, investigation: Investigation) -> None:
            nonlocal processed, found, errors
            async with semaphore:
                if self._cancelled.is_set():
                    return
                try:
                    incident = await self.builder.build(investigation)
                except Exception as e:
                    errors += 1
                    logger.error(
                        f"Failed to process investigation {investigation.session_id}: {e}",
                        exc_info=True,
                    )
                    incident = None

                if incident is not None:
                    built[index] = incident
                    found += 1
                processed += 1
                if should_report_progress(processed, total):
                    self.progress(processed, total, found)

        self._tasks = [
            asyncio.create_task(process(index, investigation))
            for index, investigation in enumerate(investigations)
        ]
        try:
            # Cancelled tasks surface as CancelledError results, not raises
            outcomes = await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._tasks = []

        for investigation, outcome in zip(investigations, outcomes):
            # CancelledError is a BaseException and is not an error here
            if isinstance(outcome, Exception):
                errors += 1
                logger.error(
                    f"Failed to process investigation {investigation.session_id}: {outcome}",
                    exc_info=outcome,
                )

        incidents = [incident for incident in built if incident is not None]
        if self.cancelled:
            logger.warning(
                f"Processing cancelled after {processed}/{total} investigations"
            )
        else:
            logger.info(
                f"Processing complete: {found} incidents found from "
                f"{processed} investigations"
            )

        unique = self.deduplicator.dedupe(incidents)
        if len(unique) < len(incidents):
            logger.info(
                f"Collapsed {len(incidents)} incidents into {len(unique)} root causes"
            )

        enriched = await self.enricher.enrich(unique)
        resolved = sum(1 for incident in enriched if incident.is_enriched)
        logger.info(f"Endpoint routes resolved for {resolved}/{len(enriched)} incidents")

        return PipelineResult(
            investigations_total=total,
            investigations_processed=processed,
            incidents_found=found,
            incidents=tuple(enriched),
            errors=errors,
            cancelled=self.cancelled,
        )
