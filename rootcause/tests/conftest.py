"""Shared fixtures for building domain objects in tests."""

import hashlib
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from rootcause.core.models import Incident, Investigation

BASE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_investigation() -> Callable[..., Investigation]:
    """Factory for investigations with sensible defaults."""
    counter = {"n": 0}

    def factory(**overrides: Any) -> Investigation:
        counter["n"] += 1
        n = counter["n"]
        values: dict[str, Any] = {
            "account_id": "acct-1",
            "session_id": f"session-{n}",
            "environment_name": "production",
            "service_name": "orders-service",
            "endpoint_id": 10,
            "endpoint_uuid": f"endpoint-uuid-{n}",
            "s3_pointer": f"s3://payloads/errors/{n}.json",
            "timestamp": BASE_TIME - timedelta(minutes=n),
            "exceptions": (("NullPointer at row 12", ()),),
            "function_ids": {},
        }
        values.update(overrides)
        return Investigation(**values)

    return factory


@pytest.fixture
def make_incident() -> Callable[..., Incident]:
    """Factory for incidents with a distinct fingerprint unless one is given."""
    counter = {"n": 0}

    def factory(**overrides: Any) -> Incident:
        counter["n"] += 1
        n = counter["n"]
        values: dict[str, Any] = {
            "id": f"session-{n}",
            "account_id": "acct-1",
            "service_name": "orders-service",
            "endpoint_uuid": f"endpoint-uuid-{n}",
            "endpoint_id": 10,
            "environment_name": "production",
            "error_message": f"Error number {n}",
            "stack_trace": "",
            "throwing_functions": (),
            "timestamp": BASE_TIME - timedelta(minutes=n),
            "s3_pointer": f"s3://payloads/errors/{n}.json",
        }
        values.update(overrides)
        values.setdefault(
            "root_cause_hash", hashlib.sha256(f"incident-{n}".encode()).hexdigest()
        )
        return Incident(**values)

    return factory
