"""Fingerprint-based incident deduplication."""

from collections.abc import Iterable

from .models import Incident


class Deduplicator:
    """Keeps the first incident seen for each root-cause fingerprint.

    Order matters: callers feed incidents most-recent-first so the newest
    representative of each fingerprint survives.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def accept(self, incident: Incident) -> bool:
        """Return True and remember the fingerprint if not seen before."""
        if incident.root_cause_hash in self._seen:
            return False
        self._seen.add(incident.root_cause_hash)
        return True

    def reset(self) -> None:
        self._seen.clear()

    def dedupe(self, incidents: Iterable[Incident]) -> list[Incident]:
        """Collapse incidents to one per fingerprint in a single stable pass.

        Each call starts from an empty seen set, so dedupe is idempotent.
        """
        self.reset()
        return [incident for incident in incidents if self.accept(incident)]
