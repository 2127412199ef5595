"""
Tests for the Supabase REST adapter.

HTTP is faked at the session level; nothing leaves the process.
"""

import pytest
import requests

from finance_ledger.config import SupabaseSettings
from finance_ledger.services.storage import ConnectionError, StorageError, SupabaseClient
from finance_ledger.services.storage.supabase import DELETE_BATCH_SIZE, in_filter


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records requests and replays queued responses."""

    def __init__(self, responses=None):
        self.headers = {}
        self.requests = []
        self._responses = list(responses or [])

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.requests.append({
            "method": method,
            "url": url,
            "params": params,
            "json": json,
            "headers": headers,
            "timeout": timeout,
        })
        if not self._responses:
            return FakeResponse()
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def supabase_settings():
    return SupabaseSettings(url="https://demo.supabase.co/", anon_key="anon-key", timeout_seconds=5)


def make_table(settings, responses=None, name="finance_transactions"):
    session = FakeSession(responses)
    client = SupabaseClient(settings, session=session)
    return client.table(name), session


class TestSupabaseClient:
    """Tests for client construction and request plumbing."""

    def test_requires_configuration(self):
        with pytest.raises(ConnectionError):
            SupabaseClient(SupabaseSettings(url=None, anon_key=None), session=FakeSession())

    def test_blank_key_is_not_configured(self):
        assert SupabaseSettings(url="https://x.supabase.co", anon_key="  ").is_configured is False

    def test_auth_headers_set(self, supabase_settings):
        session = FakeSession()
        SupabaseClient(supabase_settings, session=session)
        assert session.headers["apikey"] == "anon-key"
        assert session.headers["Authorization"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_url_and_timeout(self, supabase_settings):
        table, session = make_table(supabase_settings, [FakeResponse(payload=[])])
        await table.fetch_rows()
        call = session.requests[0]
        assert call["url"] == "https://demo.supabase.co/rest/v1/finance_transactions"
        assert call["params"]["select"] == "*"
        assert call["timeout"] == 5


class TestSupabaseReads:
    """Reads raise StorageError on failure."""

    @pytest.mark.asyncio
    async def test_list_ids(self, supabase_settings):
        table, session = make_table(
            supabase_settings, [FakeResponse(payload=[{"id": "a"}, {"id": "b"}])]
        )
        assert await table.list_ids() == {"a", "b"}
        assert session.requests[0]["params"] == {
            "select": "id", "order": "id", "limit": "1000", "offset": "0",
        }

    @pytest.mark.asyncio
    async def test_reads_follow_pages(self, supabase_settings):
        """Full pages are followed until a short page ends the scan."""
        session = FakeSession([
            FakeResponse(payload=[{"id": "a"}, {"id": "b"}]),
            FakeResponse(payload=[{"id": "c"}]),
        ])
        table = SupabaseClient(supabase_settings, session=session).table(
            "finance_transactions", page_size=2
        )

        assert await table.list_ids() == {"a", "b", "c"}
        assert [r["params"]["offset"] for r in session.requests] == ["0", "2"]
        assert all(r["params"]["order"] == "id" for r in session.requests)

    @pytest.mark.asyncio
    async def test_exact_page_multiple_reads_empty_tail(self, supabase_settings):
        session = FakeSession([
            FakeResponse(payload=[{"id": "a"}, {"id": "b"}]),
            FakeResponse(payload=[]),
        ])
        table = SupabaseClient(supabase_settings, session=session).table(
            "finance_transactions", page_size=2
        )

        assert [r["id"] for r in await table.fetch_rows()] == ["a", "b"]
        assert len(session.requests) == 2

    def test_page_size_must_be_positive(self, supabase_settings):
        with pytest.raises(ValueError):
            SupabaseClient(supabase_settings, session=FakeSession()).table("t", page_size=0)

    @pytest.mark.asyncio
    async def test_http_error_raises(self, supabase_settings):
        table, _ = make_table(supabase_settings, [FakeResponse(status_code=500)])
        with pytest.raises(StorageError):
            await table.list_ids()

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, supabase_settings):
        table, _ = make_table(supabase_settings, [requests.ConnectionError("offline")])
        with pytest.raises(StorageError, match="offline"):
            await table.fetch_rows()

    @pytest.mark.asyncio
    async def test_non_list_payload_raises(self, supabase_settings):
        table, _ = make_table(supabase_settings, [FakeResponse(payload={"message": "nope"})])
        with pytest.raises(StorageError, match="Unexpected payload"):
            await table.fetch_rows()

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, supabase_settings):
        table, _ = make_table(supabase_settings, [FakeResponse(payload=ValueError("bad json"))])
        with pytest.raises(StorageError, match="Invalid JSON"):
            await table.fetch_rows()

    @pytest.mark.asyncio
    async def test_non_string_id_raises(self, supabase_settings):
        table, _ = make_table(supabase_settings, [FakeResponse(payload=[{"id": 7}])])
        with pytest.raises(StorageError):
            await table.list_ids()


class TestSupabaseWrites:
    """Writes report failure as False."""

    @pytest.mark.asyncio
    async def test_upsert_uses_conflict_key(self, supabase_settings):
        table, session = make_table(supabase_settings)
        rows = [{"id": "a", "amount": "1"}]
        assert await table.upsert_rows(rows) is True
        call = session.requests[0]
        assert call["method"] == "POST"
        assert call["params"] == {"on_conflict": "id"}
        assert call["json"] == rows
        assert "resolution=merge-duplicates" in call["headers"]["Prefer"]

    @pytest.mark.asyncio
    async def test_upsert_empty_is_noop(self, supabase_settings):
        table, session = make_table(supabase_settings)
        assert await table.upsert_rows([]) is True
        assert session.requests == []

    @pytest.mark.asyncio
    async def test_upsert_failure_returns_false(self, supabase_settings):
        table, _ = make_table(supabase_settings, [FakeResponse(status_code=409)])
        assert await table.upsert_rows([{"id": "a"}]) is False

    @pytest.mark.asyncio
    async def test_delete_by_ids_batches(self, supabase_settings):
        table, session = make_table(supabase_settings)
        ids = [f"id-{i:03d}" for i in range(DELETE_BATCH_SIZE + 1)]
        assert await table.delete_by_ids(ids) is True
        assert len(session.requests) == 2
        assert all(r["method"] == "DELETE" for r in session.requests)
        assert session.requests[1]["params"] == {"id": 'in.("id-100")'}

    @pytest.mark.asyncio
    async def test_delete_by_ids_partial_failure(self, supabase_settings):
        table, _ = make_table(
            supabase_settings, [FakeResponse(), FakeResponse(status_code=500)]
        )
        ids = [f"id-{i:03d}" for i in range(DELETE_BATCH_SIZE + 1)]
        assert await table.delete_by_ids(ids) is False

    @pytest.mark.asyncio
    async def test_delete_all_is_filtered(self, supabase_settings):
        table, session = make_table(supabase_settings)
        assert await table.delete_all() is True
        assert session.requests[0]["params"] == {"id": "not.is.null"}

    @pytest.mark.asyncio
    async def test_delete_all_failure_returns_false(self, supabase_settings):
        table, _ = make_table(supabase_settings, [requests.Timeout("slow")])
        assert await table.delete_all() is False


class TestInFilter:

    def test_values_are_quoted(self):
        assert in_filter(["a", "b,c"]) == 'in.("a","b,c")'

    def test_quotes_escaped(self):
        assert in_filter(['say "hi"']) == 'in.("say \\"hi\\"")'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
