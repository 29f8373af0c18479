"""SQLite solved-issue ledger adapter.

Implements SolvedIssueLedgerPort using SQLite with aiosqlite for async
access. The ledger survives between runs so that a root cause that
already has an issue is not offered again.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from rootcause.core.models import SolvedIssue
from rootcause.core.ports import SolvedIssueLedgerPort

logger = logging.getLogger(__name__)


class SQLiteSolvedIssueLedger(SolvedIssueLedgerPort):
    """SQLite-backed ledger keyed by root-cause fingerprint."""

    def __init__(self, db_path: str):
        """Initialize the ledger.

        Args:
            db_path: Path to SQLite database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Open the connection and create the schema on first use."""
        async with self._lock:
            if self._conn is None:
                conn = await aiosqlite.connect(str(self.db_path))
                conn.row_factory = aiosqlite.Row
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS solved_issues (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        root_cause_hash TEXT UNIQUE NOT NULL,
                        github_issue_number INTEGER NOT NULL,
                        created_at TIMESTAMP NOT NULL,
                        error_pattern TEXT NOT NULL
                    )
                    """
                )
                await conn.commit()
                self._conn = conn
            return self._conn

    async def close(self) -> None:
        """Close the connection."""
        async with self._lock:
            if self._conn is not None:
                await self._conn.close()
                self._conn = None

    async def is_solved(self, root_cause_hash: str) -> bool:
        """Check whether a fingerprint already has an issue."""
        conn = await self._get_connection()
        cursor = await conn.execute(
            "SELECT id FROM solved_issues WHERE root_cause_hash = ?",
            (root_cause_hash,),
        )
        row = await cursor.fetchone()
        return row is not None

    async def mark_as_solved(
        self, root_cause_hash: str, issue_number: int, error_pattern: str
    ) -> None:
        """Record a fingerprint, replacing any earlier entry."""
        conn = await self._get_connection()
        await conn.execute(
            """
            INSERT OR REPLACE INTO solved_issues
            (root_cause_hash, github_issue_number, created_at, error_pattern)
            VALUES (?, ?, ?, ?)
            """,
            (
                root_cause_hash,
                issue_number,
                datetime.now(timezone.utc).isoformat(),
                error_pattern,
            ),
        )
        await conn.commit()
        logger.debug(f"Recorded {root_cause_hash[:12]} as solved by issue #{issue_number}")

    async def get_solved_issues(self) -> list[SolvedIssue]:
        """Return all entries, newest first."""
        conn = await self._get_connection()
        cursor = await conn.execute(
            "SELECT * FROM solved_issues ORDER BY created_at DESC, id DESC"
        )
        rows = await cursor.fetchall()
        return [
            SolvedIssue(
                id=row["id"],
                root_cause_hash=row["root_cause_hash"],
                issue_number=row["github_issue_number"],
                error_pattern=row["error_pattern"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]
