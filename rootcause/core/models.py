"""Domain models for the rootcause incident pipeline.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, TypeAlias

# A single exception record: (message, context strings)
ExceptionRecord: TypeAlias = tuple[str, tuple[str, ...]]

UNKNOWN_ENDPOINT_PATH = "Unknown path"
MAX_THROWING_FUNCTIONS = 10


@dataclass(frozen=True)
class Investigation:
    """A raw incident record emitted by the analytics store.

    Read-only input for one pipeline run. An investigation with no
    exceptions is not an incident candidate.
    """

    account_id: str
    session_id: str
    environment_name: str
    service_name: str
    endpoint_id: int
    endpoint_uuid: str
    s3_pointer: str
    timestamp: datetime
    exceptions: tuple[ExceptionRecord, ...]
    function_ids: dict[str, int] | MappingProxyType[str, int]  # converted to proxy in __post_init__

    def __post_init__(self) -> None:
        """Freeze nested collections."""
        exceptions = tuple(
            (str(message), tuple(context))
            for message, context in self.exceptions
        )
        object.__setattr__(self, "exceptions", exceptions)
        if isinstance(self.function_ids, dict):
            object.__setattr__(
                self, "function_ids", MappingProxyType(self.function_ids)
            )

    @property
    def first_exception_message(self) -> str:
        """Message of the first exception, or empty string."""
        if not self.exceptions:
            return ""
        return self.exceptions[0][0]


@dataclass(frozen=True)
class ErrorPayload:
    """Out-of-line error details fetched from the object store."""

    stack_trace: str = ""
    error_message: str = ""
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Convert context dict to read-only proxy."""
        if isinstance(self.context, dict):
            object.__setattr__(self, "context", MappingProxyType(self.context))


@dataclass(frozen=True)
class EndpointInfo:
    """Routing metadata for one endpoint, as returned by the directory."""

    id: int
    path: str = UNKNOWN_ENDPOINT_PATH
    methods: tuple[str, ...] = ()


@dataclass
class Incident:
    """A canonical incident resolved to a root-cause fingerprint.

    Created once by the IncidentBuilder. The only mutation allowed
    afterwards is apply_endpoint(), performed by the EndpointEnricher.
    Two incidents with the same root_cause_hash describe the same defect.
    """

    id: str  # session id of the originating investigation
    account_id: str
    service_name: str
    endpoint_uuid: str
    endpoint_id: int
    environment_name: str
    error_message: str
    stack_trace: str
    throwing_functions: tuple[str, ...]
    timestamp: datetime
    s3_pointer: str
    root_cause_hash: str
    endpoint_path: str | None = None
    endpoint_methods: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        """Validate incident invariants on creation."""
        if not self.root_cause_hash:
            raise ValueError("root_cause_hash must be a non-empty string")
        if len(self.throwing_functions) > MAX_THROWING_FUNCTIONS:
            raise ValueError(
                f"throwing_functions holds at most {MAX_THROWING_FUNCTIONS} "
                f"names, got {len(self.throwing_functions)}"
            )

    @property
    def is_enriched(self) -> bool:
        return self.endpoint_path is not None

    def apply_endpoint(self, info: EndpointInfo) -> None:
        """Attach routing metadata from the endpoint directory."""
        if info.id != self.endpoint_id:
            raise ValueError(
                f"EndpointInfo {info.id} does not match incident endpoint {self.endpoint_id}"
            )
        self.endpoint_path = info.path
        self.endpoint_methods = tuple(info.methods)

    @property
    def methods_display(self) -> str:
        """HTTP methods joined with commas, ANY when none are known."""
        if not self.endpoint_methods:
            return "ANY"
        return ",".join(self.endpoint_methods)

    @property
    def endpoint_display(self) -> str:
        """Human-readable endpoint; falls back to the endpoint UUID."""
        if self.endpoint_path is None:
            return self.endpoint_uuid
        return f"{self.methods_display} {self.endpoint_path}"


@dataclass(frozen=True)
class SolvedIssue:
    """A ledger entry recording that a fingerprint already has a ticket."""

    id: int
    root_cause_hash: str
    issue_number: int
    error_pattern: str
    created_at: datetime


@dataclass(frozen=True)
class PipelineResult:
    """Summary of one pipeline run."""

    investigations_total: int
    investigations_processed: int
    incidents_found: int  # built before deduplication
    incidents: tuple[Incident, ...]  # deduplicated and enriched
    errors: int = 0  # investigations that failed while building
    cancelled: bool = False
