"""
Supabase Storage Implementation

DESIGN DECISION: The remote store is a Supabase project, reached through its
PostgREST endpoint (`/rest/v1/<table>`) with plain HTTP calls:
1. No extra client library between us and a well-documented REST surface
2. Requests are easy to fake in tests
3. Every call is a plain round trip we can log and reason about

TRADEOFFS:
- No transactions across calls (reconciliation is best-effort by design)
- No automatic retries (callers re-run reconciliation, which is idempotent)

Blocking HTTP calls run in a worker thread so the event loop stays free.
"""

import asyncio
from collections.abc import Iterable
from typing import Any, Optional

import requests

from finance_ledger.audit.logger import get_logger
from finance_ledger.config import SupabaseSettings
from finance_ledger.services.storage.interface import (
    ConnectionError,
    RemoteTable,
    StorageError,
)


logger = get_logger(__name__)

# Keeps `id=in.(...)` filters well under common URL length limits
DELETE_BATCH_SIZE = 100

UPSERT_PREFER = "resolution=merge-duplicates,return=minimal"

# Matches the default PostgREST max-rows on Supabase projects
SELECT_PAGE_SIZE = 1000


def _quote_filter_value(value: str) -> str:
    """Quote a value for a PostgREST `in.(...)` list."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def in_filter(ids: Iterable[str]) -> str:
    return "in.(" + ",".join(_quote_filter_value(i) for i in ids) + ")"


class SupabaseClient:
    """
    Low-level PostgREST client.

    Handles authentication headers and turns transport and HTTP errors
    into StorageError.
    """

    def __init__(
        self,
        settings: SupabaseSettings,
        session: Optional[requests.Session] = None,
    ):
        if not settings.is_configured:
            raise ConnectionError("Supabase URL and access key are required")

        self._base_url = f"{settings.url}/rest/v1"
        self._timeout = settings.timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": settings.anon_key,
            "Authorization": f"Bearer {settings.anon_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> requests.Response:
        """Perform one call against a table endpoint."""
        url = f"{self._base_url}/{table}"
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise StorageError(f"{method} {table} failed: {e}") from e
        return response

    def table(self, name: str, page_size: int = SELECT_PAGE_SIZE) -> "SupabaseTable":
        return SupabaseTable(self, name, page_size)


class SupabaseTable(RemoteTable):
    """
    One Supabase table holding ledger rows keyed by `id`.
    """

    def __init__(
        self,
        client: SupabaseClient,
        table_name: str,
        page_size: int = SELECT_PAGE_SIZE,
    ):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._client = client
        self.table_name = table_name
        self._page_size = page_size

    async def _call(self, method: str, **kwargs: Any) -> requests.Response:
        return await asyncio.to_thread(
            self._client.request, method, self.table_name, **kwargs
        )

    async def _select(self, columns: str) -> list[dict[str, Any]]:
        """
        Read every row, one page at a time.

        Pages are ordered by id so offsets stay stable; a short page ends
        the scan.
        """
        rows = []
        offset = 0
        while True:
            page = await self._select_page(columns, offset)
            rows.extend(page)
            if len(page) < self._page_size:
                return rows
            offset += len(page)

    async def _select_page(self, columns: str, offset: int) -> list[dict[str, Any]]:
        response = await self._call("GET", params={
            "select": columns,
            "order": "id",
            "limit": str(self._page_size),
            "offset": str(offset),
        })
        try:
            rows = response.json()
        except ValueError as e:
            raise StorageError(f"Invalid JSON from {self.table_name}: {e}") from e
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise StorageError(f"Unexpected payload from {self.table_name}")
        return rows

    async def list_ids(self) -> set[str]:
        rows = await self._select("id")
        ids = set()
        for row in rows:
            row_id = row.get("id")
            if not isinstance(row_id, str):
                raise StorageError(f"Row without string id in {self.table_name}: {row!r}")
            ids.add(row_id)
        return ids

    async def fetch_rows(self) -> list[dict[str, Any]]:
        return await self._select("*")

    async def upsert_rows(self, rows: list[dict[str, Any]]) -> bool:
        if not rows:
            return True
        try:
            await self._call(
                "POST",
                params={"on_conflict": "id"},
                json=rows,
                headers={"Prefer": UPSERT_PREFER},
            )
        except StorageError as e:
            logger.error(
                "remote_upsert_failed",
                table=self.table_name,
                row_count=len(rows),
                error=str(e),
            )
            return False
        logger.debug("remote_upserted", table=self.table_name, row_count=len(rows))
        return True

    async def delete_by_ids(self, ids: Iterable[str]) -> bool:
        pending = sorted(set(ids))
        ok = True
        for start in range(0, len(pending), DELETE_BATCH_SIZE):
            batch = pending[start:start + DELETE_BATCH_SIZE]
            try:
                await self._call("DELETE", params={"id": in_filter(batch)})
            except StorageError as e:
                logger.error(
                    "remote_delete_failed",
                    table=self.table_name,
                    id_count=len(batch),
                    error=str(e),
                )
                ok = False
        return ok

    async def delete_all(self) -> bool:
        try:
            # PostgREST refuses unfiltered deletes
            await self._call("DELETE", params={"id": "not.is.null"})
        except StorageError as e:
            logger.error("remote_delete_all_failed", table=self.table_name, error=str(e))
            return False
        return True
