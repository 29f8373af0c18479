"""Terminal selection adapter.

Implements SelectionPort with plain stdin prompts. Lists incidents,
reads a selection such as ``1,3-5`` or ``all``, and asks for
confirmation before any issue is created.
"""

import asyncio
import logging

from rootcause.core.models import Incident
from rootcause.core.ports import SelectionPort

logger = logging.getLogger(__name__)

RULE = "━" * 80
CHOICE_MESSAGE_LIMIT = 60


def parse_selection(text: str, count: int) -> list[int]:
    """Parse a selection string into sorted zero-based indexes.

    Accepts comma-separated 1-based numbers and ranges (``2-4``) or the
    word ``all``. Blank input selects nothing.

    Raises:
        ValueError: If a number or range is malformed or out of bounds.
    """
    text = text.strip().lower()
    if not text:
        return []
    if text == "all":
        return list(range(count))

    indexes: set[int] = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        start_text, sep, end_text = part.partition("-")
        start = int(start_text)
        end = int(end_text) if sep else start
        if start < 1 or end > count or start > end:
            raise ValueError(f"Selection {part!r} is outside 1-{count}")
        indexes.update(range(start - 1, end))
    return sorted(indexes)


def format_choice(index: int, incident: Incident) -> str:
    """Render one incident as a numbered, multi-line menu entry."""
    message = incident.error_message
    if len(message) > CHOICE_MESSAGE_LIMIT:
        message = message[:CHOICE_MESSAGE_LIMIT] + "..."
    return (
        f"{index:>3}. [{incident.service_name}] [{incident.environment_name}] "
        f"{incident.endpoint_display}\n"
        f"     {message}\n"
        f"     {incident.timestamp.strftime('%Y-%m-%d %H:%M:%S')}"
    )


def render_progress_bar(processed: int, total: int, found: int, width: int = 20) -> str:
    """Render a text progress line for the pipeline."""
    ratio = processed / total if total else 1.0
    filled = round(ratio * width)
    bar = "█" * filled + "░" * (width - filled)
    return f"[{bar}] {round(ratio * 100)}% ({processed}/{total}) - {found} incidents found"


class TerminalSelector(SelectionPort):
    """Interactive incident selection over stdin/stdout."""

    def __init__(self, days_back: int | None = None):
        self.days_back = days_back

    async def _prompt(self, message: str) -> str:
        # Read from stdin in a thread to avoid blocking the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, input, message)

    async def select_incidents(self, incidents: list[Incident]) -> list[Incident]:
        """Show incidents and return the user's selection."""
        if not incidents:
            print("No new incidents found!")
            return []

        window = f" from the last {self.days_back} day(s)" if self.days_back else ""
        print(f"\nFound {len(incidents)} unique incidents{window}:")
        print(RULE)
        for index, incident in enumerate(incidents, 1):
            print(format_choice(index, incident))
        print(RULE)

        while True:
            try:
                answer = await self._prompt(
                    "Select incidents to create issues for (e.g. 1,3-5 or 'all'; blank to exit): "
                )
            except EOFError:
                return []
            try:
                indexes = parse_selection(answer, len(incidents))
            except ValueError as e:
                print(f"Invalid selection: {e}")
                continue
            return [incidents[i] for i in indexes]

    async def confirm_creation(self, incidents: list[Incident]) -> bool:
        """Ask for confirmation; Enter defaults to yes."""
        try:
            answer = await self._prompt(f"Create {len(incidents)} GitHub issue(s)? [Y/n] ")
        except EOFError:
            return False
        return answer.strip().lower() in {"", "y", "yes"}

    def show_progress(self, processed: int, total: int, found: int) -> None:
        """Progress callback rendering an in-place bar."""
        end = "\n" if processed == total else ""
        print(f"\r{render_progress_bar(processed, total, found)}", end=end, flush=True)
