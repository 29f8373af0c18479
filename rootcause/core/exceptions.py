"""Exception hierarchy for the rootcause incident pipeline.

Expected absence (no payload, no endpoint match) is never signalled with
an exception; these types cover configuration problems and failures
raised by adapters behind the core's ports.
"""


class RootCauseError(Exception):
    """Base class for all rootcause errors."""


class ConfigurationError(RootCauseError):
    """Required configuration is missing or invalid. Fatal at startup."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class InvalidPointerError(RootCauseError):
    """A storage pointer could not be parsed into a bucket and key."""


class MalformedPayloadError(RootCauseError):
    """A retrieved payload is not a JSON object."""


class ObjectStoreError(RootCauseError):
    """An object store location failed to return an object."""

    def __init__(self, message: str, location: str | None = None):
        super().__init__(message)
        self.location = location


class LocationRedirectError(ObjectStoreError):
    """The bucket lives in a different location than the one asked."""


class ObjectNotFoundError(ObjectStoreError):
    """The object (or its bucket) does not exist at this location."""


class IssueTrackerError(RootCauseError):
    """The issue tracker rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "ConfigurationError",
    "InvalidPointerError",
    "IssueTrackerError",
    "LocationRedirectError",
    "MalformedPayloadError",
    "ObjectNotFoundError",
    "ObjectStoreError",
    "RootCauseError",
]
