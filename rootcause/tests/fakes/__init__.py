"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeAnalyticsPort: Canned investigations and endpoint lookups
- FakeObjectStore: Per-region objects and failures, with an attempt log
- FakeSolvedIssueLedger: In-memory ledger
- FakeIssueTracker: Captured issue creations
- FakeSelector: Scripted selection and confirmation
"""

from .analytics import FakeAnalyticsPort
from .ledger import FakeSolvedIssueLedger
from .object_store import FakeObjectStore, FakeObjectStoreClient
from .selection import FakeSelector
from .tracker import FakeIssueTracker

__all__ = [
    "FakeAnalyticsPort",
    "FakeIssueTracker",
    "FakeObjectStore",
    "FakeObjectStoreClient",
    "FakeSelector",
    "FakeSolvedIssueLedger",
]
