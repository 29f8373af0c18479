"""Adapter tests against mocked ClickHouse, S3, and GitHub, and a temporary SQLite file."""
