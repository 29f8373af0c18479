"""Analytics adapters for investigations and endpoint routing."""

from .clickhouse import ClickHouseAnalyticsAdapter

__all__ = ["ClickHouseAnalyticsAdapter"]
