"""Issue creation workflow around the incident pipeline.

Filters pipeline output against the solved-issue ledger, hands the rest
to the selection layer, then creates one issue per selected incident and
records its fingerprint so later runs skip it.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from .models import Incident
from .ports import IssueTrackerPort, SelectionPort, SolvedIssueLedgerPort

logger = logging.getLogger(__name__)


@dataclass
class IssueRunSummary:
    """Outcome of one issue creation run."""

    created: list[tuple[Incident, int]] = field(default_factory=list)
    failed: list[tuple[Incident, str]] = field(default_factory=list)
    skipped_solved: int = 0
    selected: int = 0
    confirmed: bool = False


class IssueCreationService:
    """Drives ledger filtering, selection, and issue creation."""

    def __init__(
        self,
        ledger: SolvedIssueLedgerPort,
        tracker: IssueTrackerPort,
        selector: SelectionPort,
        creation_delay_seconds: float = 1.0,
    ):
        self.ledger = ledger
        self.tracker = tracker
        self.selector = selector
        self.creation_delay_seconds = creation_delay_seconds

    async def filter_unsolved(self, incidents: list[Incident]) -> tuple[list[Incident], int]:
        """Drop incidents whose fingerprint is already in the ledger.

        Returns:
            (unsolved incidents in input order, number skipped)
        """
        unsolved = []
        skipped = 0
        for incident in incidents:
            if await self.ledger.is_solved(incident.root_cause_hash):
                skipped += 1
            else:
                unsolved.append(incident)
        if skipped:
            logger.info(f"Skipped {skipped} incidents (already solved)")
        return unsolved, skipped

    async def run(self, incidents: list[Incident]) -> IssueRunSummary:
        """Filter, select, confirm, and create issues."""
        summary = IssueRunSummary()
        unsolved, summary.skipped_solved = await self.filter_unsolved(incidents)

        selected = await self.selector.select_incidents(unsolved)
        summary.selected = len(selected)
        if not selected:
            return summary

        summary.confirmed = await self.selector.confirm_creation(selected)
        if not summary.confirmed:
            logger.info("Issue creation cancelled by user")
            return summary

        for position, incident in enumerate(selected, 1):
            logger.info(
                f"[{position}/{len(selected)}] Creating issue for: "
                f"{incident.service_name} - {incident.error_message[:60]}"
            )
            try:
                issue_number = await self.tracker.create_issue(incident)
                await self.ledger.mark_as_solved(
                    incident.root_cause_hash, issue_number, incident.error_message
                )
            except Exception as e:
                logger.error(
                    f"Failed to create issue for {incident.service_name} "
                    f"({incident.root_cause_hash[:12]}): {e}"
                )
                summary.failed.append((incident, str(e)))
            else:
                logger.info(
                    f"Created issue #{issue_number}: {self.tracker.issue_url(issue_number)}"
                )
                summary.created.append((incident, issue_number))

            # Rate limiting between requests
            if position < len(selected) and self.creation_delay_seconds > 0:
                await asyncio.sleep(self.creation_delay_seconds)

        return summary
