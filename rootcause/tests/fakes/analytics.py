"""Fake AnalyticsPort implementation for testing."""

from collections.abc import Sequence

from rootcause.core.models import EndpointInfo, Investigation
from rootcause.core.ports import AnalyticsPort


class FakeAnalyticsPort(AnalyticsPort):
    """In-memory analytics store for testing.

    Allows tests to pre-populate investigations and endpoint records, and
    to make lookups fail for specific (account, environment) groups.
    """

    def __init__(self) -> None:
        """Initialize with empty collections."""
        self.investigations: list[Investigation] = []
        self.endpoints: dict[tuple[str, str], dict[int, EndpointInfo]] = {}
        self.failing_groups: set[tuple[str, str]] = set()
        self.endpoint_calls: list[tuple[str, str, tuple[int, ...]]] = []
        self.get_recent_investigations_calls: list[tuple[int, int]] = []
        self.closed = False
        self._error_to_raise: Exception | None = None

    def add_investigations(self, investigations: list[Investigation]) -> None:
        self.investigations.extend(investigations)

    def add_endpoint(
        self, account_id: str, environment_name: str, info: EndpointInfo
    ) -> None:
        self.endpoints.setdefault((account_id, environment_name), {})[info.id] = info

    def fail_group(self, account_id: str, environment_name: str) -> None:
        """Make endpoint lookups for one group raise."""
        self.failing_groups.add((account_id, environment_name))

    def set_error(self, error: Exception) -> None:
        """Configure the fake to raise on get_recent_investigations."""
        self._error_to_raise = error

    async def get_recent_investigations(
        self, days_back: int, limit: int = 500
    ) -> list[Investigation]:
        self.get_recent_investigations_calls.append((days_back, limit))
        if self._error_to_raise:
            raise self._error_to_raise
        return self.investigations[:limit]

    async def get_endpoint_info(
        self,
        account_id: str,
        environment_name: str,
        endpoint_ids: Sequence[int],
    ) -> list[EndpointInfo]:
        self.endpoint_calls.append((account_id, environment_name, tuple(endpoint_ids)))
        key = (account_id, environment_name)
        if key in self.failing_groups:
            raise ConnectionError(f"Directory unavailable for {account_id}/{environment_name}")
        known = self.endpoints.get(key, {})
        return [known[i] for i in endpoint_ids if i in known]

    async def close(self) -> None:
        self.closed = True
