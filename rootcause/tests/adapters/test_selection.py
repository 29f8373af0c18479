"""Tests for the terminal selection adapter.

Covers:
- parse_selection: numbers, ranges, 'all', and bounds checking
- TerminalSelector: prompting, retry on bad input, EOF handling
- Progress bar rendering
"""

from collections.abc import Callable
from unittest.mock import patch

import pytest

from rootcause.adapters.cli.selection import (
    TerminalSelector,
    format_choice,
    parse_selection,
    render_progress_bar,
)
from rootcause.core.models import EndpointInfo, Incident


class TestParseSelection:
    def test_all(self) -> None:
        assert parse_selection("all", 3) == [0, 1, 2]

    def test_all_is_case_insensitive(self) -> None:
        assert parse_selection(" ALL ", 2) == [0, 1]

    def test_blank_selects_nothing(self) -> None:
        assert parse_selection("   ", 5) == []

    def test_numbers_and_ranges(self) -> None:
        assert parse_selection("1,3-5", 6) == [0, 2, 3, 4]

    def test_duplicates_and_order_normalized(self) -> None:
        assert parse_selection("4, 2, 2-3", 4) == [1, 2, 3]

    @pytest.mark.parametrize("text", ["0", "7", "3-9", "4-2", "x", "1-", "-2"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_selection(text, 6)


class TestRendering:
    def test_format_choice(self, make_incident: Callable[..., Incident]) -> None:
        incident = make_incident(error_message="y" * 70)
        incident.apply_endpoint(EndpointInfo(id=incident.endpoint_id, path="/pay", methods=("POST",)))

        text = format_choice(2, incident)

        assert text.startswith("  2. [orders-service] [production] POST /pay")
        assert "y" * 60 + "..." in text

    def test_progress_bar_half(self) -> None:
        assert render_progress_bar(5, 10, 3, width=10) == (
            "[█████░░░░░] 50% (5/10) - 3 incidents found"
        )

    def test_progress_bar_complete(self) -> None:
        assert render_progress_bar(4, 4, 0, width=4).startswith("[████] 100%")


@pytest.mark.asyncio
class TestTerminalSelector:
    async def test_select_all(self, make_incident: Callable[..., Incident]) -> None:
        incidents = [make_incident(), make_incident()]

        with patch("builtins.input", side_effect=["all"]):
            selected = await TerminalSelector(days_back=3).select_incidents(incidents)

        assert selected == incidents

    async def test_retries_after_invalid_input(
        self, make_incident: Callable[..., Incident], capsys: pytest.CaptureFixture[str]
    ) -> None:
        incidents = [make_incident(), make_incident(), make_incident()]

        with patch("builtins.input", side_effect=["9", "2-3"]):
            selected = await TerminalSelector().select_incidents(incidents)

        assert selected == incidents[1:]
        assert "Invalid selection" in capsys.readouterr().out

    async def test_eof_selects_nothing(self, make_incident: Callable[..., Incident]) -> None:
        with patch("builtins.input", side_effect=EOFError):
            assert await TerminalSelector().select_incidents([make_incident()]) == []

    async def test_no_incidents_does_not_prompt(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("builtins.input") as mock_input:
            assert await TerminalSelector().select_incidents([]) == []

        mock_input.assert_not_called()
        assert "No new incidents found!" in capsys.readouterr().out

    @pytest.mark.parametrize("answer,expected", [("", True), ("y", True), ("YES", True), ("n", False), ("nope", False)])
    async def test_confirm(
        self, make_incident: Callable[..., Incident], answer: str, expected: bool
    ) -> None:
        with patch("builtins.input", side_effect=[answer]):
            assert await TerminalSelector().confirm_creation([make_incident()]) is expected

    async def test_confirm_eof_declines(self, make_incident: Callable[..., Incident]) -> None:
        with patch("builtins.input", side_effect=EOFError):
            assert await TerminalSelector().confirm_creation([make_incident()]) is False


class TestShowProgress:
    def test_newline_only_when_done(self, capsys: pytest.CaptureFixture[str]) -> None:
        selector = TerminalSelector()

        selector.show_progress(1, 2, 0)
        assert not capsys.readouterr().out.endswith("\n")

        selector.show_progress(2, 2, 1)
        assert capsys.readouterr().out.endswith("\n")
