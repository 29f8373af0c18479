"""Solved-issue ledger adapters."""

from .sqlite import SQLiteSolvedIssueLedger

__all__ = ["SQLiteSolvedIssueLedger"]
