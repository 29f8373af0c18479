"""Endpoint routing enrichment.

Attaches endpoint path and HTTP methods to incidents with one directory
lookup per (tenant, environment) pair, so the number of external calls
is bounded by the number of distinct pairs rather than by incidents.
"""

import asyncio
import logging

from .models import Incident
from .ports import EndpointDirectoryPort

logger = logging.getLogger(__name__)

GroupKey = tuple[str, str]  # (account_id, environment_name)


def group_by_environment(incidents: list[Incident]) -> dict[GroupKey, list[Incident]]:
    """Group incidents by (account_id, environment_name), first-seen order."""
    groups: dict[GroupKey, list[Incident]] = {}
    for incident in incidents:
        key = (incident.account_id, incident.environment_name)
        groups.setdefault(key, []).append(incident)
    return groups


class EndpointEnricher:
    """Best-effort, per-group endpoint enrichment.

    A failed lookup leaves that group's incidents without path/methods and
    never affects other groups.
    """

    def __init__(self, directory: EndpointDirectoryPort, max_concurrency: int = 1):
        """Initialize the enricher.

        Args:
            directory: Endpoint directory to query.
            max_concurrency: Maximum number of groups looked up at once.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.directory = directory
        self.max_concurrency = max_concurrency

    async def enrich(self, incidents: list[Incident]) -> list[Incident]:
        """Enrich incidents in place and return them in input order."""
        groups = group_by_environment(incidents)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(key: GroupKey, group: list[Incident]) -> None:
            async with semaphore:
                await self._enrich_group(key, group)

        await asyncio.gather(*(run(key, group) for key, group in groups.items()))
        return incidents

    async def _enrich_group(self, key: GroupKey, group: list[Incident]) -> int:
        """Look up one group's endpoints and apply matches. Returns match count."""
        account_id, environment_name = key
        endpoint_ids = sorted({incident.endpoint_id for incident in group})

        try:
            infos = await self.directory.get_endpoint_info(
                account_id, environment_name, endpoint_ids
            )
        except Exception as e:
            logger.error(
                f"Failed to fetch endpoint info for {account_id}/{environment_name}: {e}",
                exc_info=True,
            )
            return 0

        by_id = {info.id: info for info in infos}
        matched = 0
        for incident in group:
            info = by_id.get(incident.endpoint_id)
            if info is not None:
                incident.apply_endpoint(info)
                matched += 1

        logger.debug(
            f"Resolved {matched}/{len(group)} endpoints for {account_id}/{environment_name}"
        )
        return matched
