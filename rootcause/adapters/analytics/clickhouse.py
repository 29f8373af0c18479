"""ClickHouse analytics adapter.

Implements AnalyticsPort by querying the ClickHouse HTTP interface for
recent investigations and endpoint routing metadata. Normalizes
JSONEachRow rows into core domain models.
"""

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import httpx

from rootcause.core.models import (
    UNKNOWN_ENDPOINT_PATH,
    EndpointInfo,
    ExceptionRecord,
    Investigation,
)
from rootcause.core.ports import AnalyticsPort

logger = logging.getLogger(__name__)

# Collapses repeats of the same (service, endpoint, first exception) to the
# most recent row, and drops first messages that are timeout/cancel noise.
RECENT_INVESTIGATIONS_QUERY = """
    WITH deduplicated AS (
        SELECT
            account_id,
            session_id,
            environment_name,
            service_name,
            endpoint_id,
            endpoint_uuid,
            s3_pointer,
            timestamp,
            exceptions_data,
            function_ids,
            row_number() OVER (
                PARTITION BY concat(
                    service_name, '|', endpoint_uuid, '|',
                    arrayElement(exceptions_data, 1).1
                )
                ORDER BY timestamp DESC
            ) AS rn
        FROM FlowInvestigation
        WHERE timestamp >= now() - INTERVAL {days_back:UInt32} DAY
            AND length(exceptions_data) > 0
            AND s3_pointer != ''
            AND arrayElement(exceptions_data, 1).1 != ''
            AND NOT (
                positionCaseInsensitive(arrayElement(exceptions_data, 1).1, 'timeout') > 0
                OR positionCaseInsensitive(arrayElement(exceptions_data, 1).1, 'cancelled') > 0
                OR positionCaseInsensitive(arrayElement(exceptions_data, 1).1, 'aborted') > 0
            )
    )
    SELECT
        account_id,
        session_id,
        environment_name,
        service_name,
        endpoint_id,
        endpoint_uuid,
        s3_pointer,
        timestamp,
        exceptions_data,
        function_ids
    FROM deduplicated
    WHERE rn = 1
    ORDER BY timestamp DESC
    LIMIT {limit:UInt32}
"""

ENDPOINT_INFO_QUERY = """
    SELECT
        endpoint_id AS id,
        argMaxOrNullMerge(final_path) AS path,
        argMaxMerge(final_methods) AS methods
    FROM LatestEndpointFunctionVersionByService
    WHERE account_id = {account_id:String}
        AND environment_name = {environment_name:String}
        AND endpoint_id IN {endpoint_ids:Array(UInt64)}
    GROUP BY id
"""


class ClickHouseAnalyticsAdapter(AnalyticsPort):
    """ClickHouse-backed analytics adapter via the HTTP interface."""

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        database: str = "hud",
        port: int = 8443,
        secure: bool = True,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize ClickHouse adapter.

        Args:
            host: ClickHouse host name.
            username: ClickHouse user.
            password: ClickHouse password.
            database: Database holding the investigation tables.
            port: HTTP(S) port.
            secure: Use HTTPS when True.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        scheme = "https" if secure else "http"
        self.api_url = f"{scheme}://{host}:{port}"
        self.database = database
        self.client = httpx.AsyncClient(
            base_url=self.api_url,
            auth=(username, password),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the httpx client and clean up resources."""
        await self.client.aclose()

    async def _query(self, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Run a read-only query and return its JSONEachRow rows."""
        request_params = {
            "database": self.database,
            "readonly": "1",
            "default_format": "JSONEachRow",
        }
        for name, value in params.items():
            request_params[f"param_{name}"] = _format_param(value)

        response = await self.client.post(
            "/",
            params=request_params,
            content=query.encode("utf-8"),
        )
        response.raise_for_status()

        return [json.loads(line) for line in response.text.splitlines() if line.strip()]

    async def get_recent_investigations(
        self, days_back: int, limit: int = 500
    ) -> list[Investigation]:
        """Return deduplicated investigations from the last days_back days."""
        try:
            rows = await self._query(
                RECENT_INVESTIGATIONS_QUERY,
                {"days_back": days_back, "limit": limit},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch investigations from ClickHouse: {e}")
            raise

        investigations = []
        for row in rows:
            investigation = self._parse_investigation(row)
            if investigation is not None:
                investigations.append(investigation)
        return investigations

    async def get_endpoint_info(
        self,
        account_id: str,
        environment_name: str,
        endpoint_ids: Sequence[int],
    ) -> list[EndpointInfo]:
        """Resolve endpoint ids of one tenant/environment in a single query."""
        if not endpoint_ids:
            return []

        rows = await self._query(
            ENDPOINT_INFO_QUERY,
            {
                "account_id": account_id,
                "environment_name": environment_name,
                "endpoint_ids": list(endpoint_ids),
            },
        )
        return [
            EndpointInfo(
                id=int(row["id"]),
                path=row.get("path") or UNKNOWN_ENDPOINT_PATH,
                methods=tuple(row.get("methods") or ()),
            )
            for row in rows
        ]

    def _parse_investigation(self, row: dict[str, Any]) -> Investigation | None:
        """Convert a FlowInvestigation row into an Investigation."""
        try:
            return Investigation(
                account_id=str(row["account_id"]),
                session_id=str(row["session_id"]),
                environment_name=str(row.get("environment_name", "")),
                service_name=str(row.get("service_name", "")),
                endpoint_id=int(row["endpoint_id"]),
                endpoint_uuid=str(row.get("endpoint_uuid", "")),
                s3_pointer=str(row.get("s3_pointer", "")),
                timestamp=_parse_timestamp(row["timestamp"]),
                exceptions=_parse_exceptions(row.get("exceptions_data") or []),
                function_ids={
                    str(name): int(function_id)
                    for name, function_id in (row.get("function_ids") or {}).items()
                },
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(
                f"Skipping malformed investigation row {row.get('session_id')}: {e}"
            )
            return None


_ESCAPES = str.maketrans({"\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"})


def _format_param(value: Any) -> str:
    """Render a query parameter value in ClickHouse text format.

    Scalars are parsed with the escaped text format, so backslashes and
    control characters must be escaped. Array items are literals: strings
    inside them are single-quoted.
    """
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_format_array_item(item) for item in value) + "]"
    return str(value).translate(_ESCAPES)


def _format_array_item(item: Any) -> str:
    if isinstance(item, str):
        return "'" + item.translate(_ESCAPES).replace("'", "\\'") + "'"
    return str(item)


def _parse_timestamp(value: Any) -> datetime:
    """Parse a ClickHouse DateTime/DateTime64 value as UTC."""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_exceptions(value: list[Any]) -> tuple[ExceptionRecord, ...]:
    """Parse Array(Tuple(String, Array(String))) rendered as arrays or objects."""
    records = []
    for item in value:
        if isinstance(item, dict):
            message, context = list(item.values())[:2]
        else:
            message, context = item[0], item[1] if len(item) > 1 else []
        records.append((str(message), tuple(str(c) for c in context or ())))
    return tuple(records)
