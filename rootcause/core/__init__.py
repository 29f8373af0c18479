"""Core domain logic for the rootcause incident pipeline.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .models import (
    EndpointInfo,
    ErrorPayload,
    Incident,
    Investigation,
    PipelineResult,
    SolvedIssue,
)

__all__ = [
    "EndpointInfo",
    "ErrorPayload",
    "Incident",
    "Investigation",
    "PipelineResult",
    "SolvedIssue",
]
