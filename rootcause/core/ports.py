"""Port interfaces for the rootcause incident pipeline.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Data sources** (core reads from adapters)
   - AnalyticsPort: Recent investigations from the observability store
   - EndpointDirectoryPort: Batched endpoint routing lookups
   - ObjectStoreClient: Raw payload bytes from one storage location

2. **Collaborators** (glue around the core)
   - SolvedIssueLedgerPort: Fingerprints that already have a ticket
   - IssueTrackerPort: Ticket creation
   - SelectionPort: Human selection and confirmation of incidents
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from .models import EndpointInfo, Incident, Investigation, SolvedIssue

# (processed, total, incidents_found)
ProgressCallback = Callable[[int, int, int], None]


# ============================================================================
# DATA SOURCES
# ============================================================================


class EndpointDirectoryPort(ABC):
    """Port for resolving numeric endpoint ids into routing metadata."""

    @abstractmethod
    async def get_endpoint_info(
        self,
        account_id: str,
        environment_name: str,
        endpoint_ids: Sequence[int],
    ) -> list[EndpointInfo]:
        """Look up endpoints of one tenant/environment in a single call.

        Args:
            account_id: Tenant owning the endpoints.
            environment_name: Environment the endpoints run in.
            endpoint_ids: Distinct numeric endpoint ids to resolve.

        Returns:
            Zero or more EndpointInfo records. Ids with no record are
            simply absent from the result; that is not an error.

        Raises:
            Exception: If the directory is unreachable. The enricher
                contains the failure to the affected group.
        """


class AnalyticsPort(EndpointDirectoryPort):
    """Port for the observability store that emits investigations.

    Adapters should return investigations most-recent-first, already
    collapsed to one row per (service, endpoint, first exception message).
    """

    @abstractmethod
    async def get_recent_investigations(
        self, days_back: int, limit: int = 500
    ) -> list[Investigation]:
        """Retrieve investigations recorded within the last days_back days.

        Args:
            days_back: Size of the lookback window in days.
            limit: Maximum number of investigations to return.

        Returns:
            Investigations in descending timestamp order.

        Raises:
            Exception: If the store is unreachable. This is fatal for a
                run; the pipeline does not start.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the adapter."""


class ObjectStoreClient(ABC):
    """Port for a client bound to one object store location (region)."""

    @abstractmethod
    async def get_object(self, bucket: str, key: str) -> bytes:
        """Return the object's bytes.

        Raises:
            LocationRedirectError: The bucket lives in another location.
            ObjectNotFoundError: The object or bucket does not exist here.
            ObjectStoreError: Any other retrieval failure.
        """


# Creates a client for a location name, e.g. "eu-central-1"
ObjectStoreClientFactory = Callable[[str], ObjectStoreClient]


# ============================================================================
# COLLABORATORS
# ============================================================================


class SolvedIssueLedgerPort(ABC):
    """Port for the persisted ledger of already-ticketed fingerprints.

    The key is always Incident.root_cause_hash.
    """

    @abstractmethod
    async def is_solved(self, root_cause_hash: str) -> bool:
        """Return True if this fingerprint was handled in an earlier run."""

    @abstractmethod
    async def mark_as_solved(
        self, root_cause_hash: str, issue_number: int, error_pattern: str
    ) -> None:
        """Record that a fingerprint now has a ticket.

        Recording an existing fingerprint replaces the earlier entry.
        """

    @abstractmethod
    async def get_solved_issues(self) -> list[SolvedIssue]:
        """Return all ledger entries, newest first."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying storage."""


class IssueTrackerPort(ABC):
    """Port for the ticket-tracking system."""

    @abstractmethod
    async def test_connection(self) -> None:
        """Verify credentials and repository access.

        Raises:
            IssueTrackerError: With a human-readable reason.
        """

    @abstractmethod
    async def create_issue(self, incident: Incident) -> int:
        """Create a ticket for an incident and return its number.

        Raises:
            IssueTrackerError: If the tracker rejects the request.
        """

    @abstractmethod
    def issue_url(self, issue_number: int) -> str:
        """Return a browsable URL for a created ticket."""

    @abstractmethod
    async def close(self) -> None:
        """Release the HTTP client."""


class SelectionPort(ABC):
    """Port for the human-facing incident selection step."""

    @abstractmethod
    async def select_incidents(self, incidents: list[Incident]) -> list[Incident]:
        """Let the user choose incidents to ticket. Empty list means exit."""

    @abstractmethod
    async def confirm_creation(self, incidents: list[Incident]) -> bool:
        """Ask the user to confirm ticket creation for the selection."""
