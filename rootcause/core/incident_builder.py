"""Incident construction from raw investigations.

Resolves an investigation and its fetched payload into a canonical
Incident carrying a root-cause fingerprint.
"""

import logging
import re
from collections.abc import Iterable, Mapping

from .fingerprint import RootCauseHasher
from .models import MAX_THROWING_FUNCTIONS, Incident, Investigation
from .payload_fetcher import PayloadFetcher

logger = logging.getLogger(__name__)

# Stack frame contract: the literal marker "at " followed by a dotted
# identifier (e.g. "Handler.process"). The first match anywhere in a line
# is taken. Fingerprints depend on this pattern byte-for-byte.
FRAME_PATTERN = re.compile(r"at (\w+(?:\.\w+)*)", re.ASCII)


def extract_frame_functions(stack_trace: str) -> list[str]:
    """Return the function named on each matching stack-trace line, in order."""
    functions = []
    for line in stack_trace.split("\n"):
        match = FRAME_PATTERN.search(line)
        if match:
            functions.append(match.group(1))
    return functions


def collect_throwing_functions(
    function_ids: Mapping[str, int], stack_trace: str
) -> tuple[str, ...]:
    """Union of non-blank function_ids keys and stack-trace frames.

    Discovery order is kept, duplicates are dropped, and the result is
    capped at the first ten distinct names.
    """
    candidates: Iterable[str] = (
        *(name for name in function_ids if name.strip()),
        *extract_frame_functions(stack_trace),
    )
    functions = list(dict.fromkeys(candidates))
    return tuple(functions[:MAX_THROWING_FUNCTIONS])


class IncidentBuilder:
    """Builds Incidents from investigations, discarding non-candidates."""

    def __init__(
        self,
        fetcher: PayloadFetcher,
        hasher: RootCauseHasher | None = None,
    ):
        self.fetcher = fetcher
        self.hasher = hasher or RootCauseHasher()

    async def build(self, investigation: Investigation) -> Incident | None:
        """Return the incident for an investigation, or None.

        None is returned when the investigation has no exceptions or when
        its payload cannot be retrieved. Both are expected outcomes.
        """
        if not investigation.exceptions:
            return None

        payload = await self.fetcher.fetch(investigation.s3_pointer)
        if payload is None:
            logger.debug(
                f"No payload for investigation {investigation.session_id}, skipping"
            )
            return None

        error_message = payload.error_message or investigation.first_exception_message or ""
        stack_trace = payload.stack_trace or ""
        throwing_functions = collect_throwing_functions(
            investigation.function_ids, stack_trace
        )

        return Incident(
            id=investigation.session_id,
            account_id=investigation.account_id,
            service_name=investigation.service_name,
            endpoint_uuid=investigation.endpoint_uuid,
            endpoint_id=investigation.endpoint_id,
            environment_name=investigation.environment_name,
            error_message=error_message,
            stack_trace=stack_trace,
            throwing_functions=throwing_functions,
            timestamp=investigation.timestamp,
            s3_pointer=investigation.s3_pointer,
            root_cause_hash=self.hasher.fingerprint(error_message, throwing_functions),
        )
