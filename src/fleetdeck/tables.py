"""Hosted table client (PostgREST / Supabase REST).

Created: 2026-02-10

A thin async wrapper over the PostgREST HTTP conventions:

    GET    /rest/v1/{table}?select=*&status=eq.pending&order=name.asc&limit=10
    POST   /rest/v1/{table}                      (insert / upsert)
    PATCH  /rest/v1/{table}?id=eq.{id}           (update)

Authentication uses the service credential in both the ``apikey`` and
``Authorization: Bearer`` headers. Callers pass *logical* table names
(``reviews``, ``agents``...); the configured prefix is applied here.

Errors are raised as ``StorageError`` (HTTP status) or ``httpx.HTTPError``
(transport), both of which the fallback chain treats as a failed tier.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from fleetdeck.config import Settings, get_settings
from fleetdeck.errors import BackendNotConfigured, StorageError

logger = logging.getLogger(__name__)

Row = dict[str, Any]
T = TypeVar("T")

# Errors a model constructor raises on a row that does not fit its shape
MALFORMED_ROW_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


def parse_rows(rows: list[Row], parse: Callable[[Row], T], table: str) -> list[T]:
    """Parse rows with ``parse``, skipping any row that does not fit the model.

    One bad row is logged and dropped; it never hides the rest of the table.
    """
    parsed: list[T] = []
    for row in rows:
        try:
            parsed.append(parse(row))
        except MALFORMED_ROW_ERRORS as e:
            row_id = row.get("id") if isinstance(row, dict) else None
            logger.warning(f"Skipping malformed {table} row {row_id}: {e}")
    return parsed


class TableClient:
    """Async client for the hosted table backend."""

    def __init__(
        self,
        url: str,
        service_key: str,
        table_prefix: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self._service_key = service_key
        self.table_prefix = table_prefix
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TableClient":
        settings = settings or get_settings()
        return cls(
            url=settings.supabase_url,
            service_key=settings.supabase_service_key,
            table_prefix=settings.table_prefix,
            timeout=settings.table_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self._service_key)

    def table(self, logical: str) -> str:
        return f"{self.table_prefix}{logical}"

    # =========================================================================
    # Operations
    # =========================================================================

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[Row]:
        """Read rows. ``filters`` maps column to a PostgREST operator
        expression, e.g. ``{"status": "eq.pending"}``."""
        params: dict[str, str] = {"select": columns}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        data = await self._request("GET", table, params=params)
        return data if isinstance(data, list) else []

    async def select_one(self, table: str, filters: dict[str, str]) -> Row | None:
        rows = await self.select(table, filters=filters, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, rows: Row | list[Row]) -> list[Row]:
        """Insert one or more rows and return them as stored."""
        data = await self._request(
            "POST",
            table,
            json=rows,
            prefer="return=representation",
        )
        return data if isinstance(data, list) else []

    async def upsert(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows, merging on primary key conflicts."""
        if not rows:
            return []
        data = await self._request(
            "POST",
            table,
            json=rows,
            prefer="resolution=merge-duplicates,return=representation",
        )
        return data if isinstance(data, list) else []

    async def update(self, table: str, values: Row, filters: dict[str, str]) -> list[Row]:
        """Update the rows matching ``filters`` and return them."""
        if not filters:
            raise ValueError("update() requires at least one filter")
        data = await self._request(
            "PATCH",
            table,
            params=filters,
            json=values,
            prefer="return=representation",
        )
        return data if isinstance(data, list) else []

    # =========================================================================
    # HTTP
    # =========================================================================

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        if not self.is_configured:
            raise BackendNotConfigured("table backend URL or service key not set")

        physical = self.table(table)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.request(
                method,
                f"{self.url}/rest/v1/{physical}",
                params=params,
                json=json,
                headers=self._headers(prefer),
            )

        if resp.status_code >= 400:
            raise StorageError(f"{method} {physical} -> {resp.status_code}: {resp.text[:200]}")
        if not resp.content:
            return None
        return resp.json()


# =========================================================================
# Factory Function
# =========================================================================

_client_instance: TableClient | None = None


def get_table_client() -> TableClient:
    """Get or create the table client singleton."""
    global _client_instance
    if _client_instance is None:
        _client_instance = TableClient.from_settings()
    return _client_instance


def reset_table_client() -> None:
    """Reset the table client singleton (for testing)."""
    global _client_instance
    _client_instance = None
