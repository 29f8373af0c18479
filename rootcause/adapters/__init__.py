"""External adapters for the rootcause incident pipeline.

This package contains all external dependencies (ClickHouse, S3, SQLite,
GitHub, the terminal) and provides implementations of the core port
interfaces.

Adapter Organization:

- analytics/: Investigation and endpoint queries (ClickHouse)
- storage/: Error payload retrieval (S3)
- ledger/: Solved-issue persistence (SQLite)
- ticketing/: Issue creation (GitHub Issues)
- cli/: Interactive incident selection
"""
