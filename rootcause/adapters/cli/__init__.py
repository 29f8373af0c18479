"""Command-line interaction adapters."""

from .selection import TerminalSelector

__all__ = ["TerminalSelector"]
