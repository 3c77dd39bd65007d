from __future__ import annotations

import json

import httpx
import pytest

from tests.helpers.postgrest import make_store, resource
from visaops.adapters.http_client import RateLimitedClient
from visaops.adapters.supabase import SupabaseStoreClient
from visaops.config import get_supabase_config
from visaops.domain.errors import StoreError
from visaops.domain.ports.store import UNDEFINED_TABLE, StoreClient

PACKAGE_ROW = {
    "id": "p1",
    "country_id": "c1",
    "name": "Tourist Visa",
    "government_fee": 50,
    "service_fee": 25,
    "processing_days": 10,
    "processing_time": "10 days",
    "total_price": 75,
    "created_at": "2024-01-01T12:00:00+00:00",
}


class Recorder:
    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


async def test_store_client_satisfies_port() -> None:
    assert isinstance(make_store(Recorder()), StoreClient)


async def test_select_packages_filters_and_orders() -> None:
    recorder = Recorder(httpx.Response(200, json=[PACKAGE_ROW]))
    store = make_store(recorder)

    rows = await store.select_packages("c1")

    request = recorder.requests[0]
    assert request.method == "GET"
    assert resource(request) == "visa_packages"
    assert request.url.params["country_id"] == "eq.c1"
    assert request.url.params["order"] == "created_at.desc,id.desc"
    assert rows == [PACKAGE_ROW]


async def test_insert_package_asks_for_representation() -> None:
    recorder = Recorder(httpx.Response(201, json=[PACKAGE_ROW]))
    store = make_store(recorder)

    row = await store.insert_package({"country_id": "c1", "name": "Tourist Visa"})

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.headers["Prefer"] == "return=representation"
    assert json.loads(request.content) == {"country_id": "c1", "name": "Tourist Visa"}
    assert row["id"] == "p1"


async def test_update_by_country_reads_back_newest_package() -> None:
    recorder = Recorder(
        httpx.Response(200, json=[PACKAGE_ROW]),
        httpx.Response(200, json=[PACKAGE_ROW]),
    )
    store = make_store(recorder)

    row = await store.update_package_by_country("c1", {"name": "Tourist Visa"})

    assert [request.method for request in recorder.requests] == ["PATCH", "GET"]
    assert row == PACKAGE_ROW


async def test_update_by_id_without_match_raises() -> None:
    store = make_store(Recorder(httpx.Response(200, json=[])))

    with pytest.raises(StoreError, match="No visa package with id p9"):
        await store.update_package_by_id("p9", {"name": "x"})


async def test_document_writes() -> None:
    recorder = Recorder(
        httpx.Response(200, json=[{"id": "d1"}, {"id": "d2"}]),
        httpx.Response(201, json=[{"id": "d3", "document_name": "Passport"}]),
    )
    store = make_store(recorder)

    deleted = await store.delete_documents("c1")
    inserted = await store.insert_documents([{"country_id": "c1", "document_name": "Passport"}])
    untouched = await store.insert_documents([])

    assert deleted == 2
    assert inserted == [{"id": "d3", "document_name": "Passport"}]
    assert untouched == []
    assert [request.method for request in recorder.requests] == ["DELETE", "POST"]


async def test_fetch_country_normalizes_numeric_ids() -> None:
    store = make_store(
        Recorder(
            httpx.Response(200, json=[{"id": 7, "name": "Japan"}]),
            httpx.Response(200, json=[]),
        )
    )

    assert await store.fetch_country("7") == {"id": "7", "name": "Japan"}
    assert await store.fetch_country("8") is None


async def test_table_columns_reads_table_info() -> None:
    recorder = Recorder(
        httpx.Response(200, json=[{"column_name": "id"}, {"column_name": "name"}]),
        httpx.Response(200, json=[]),
    )
    store = make_store(recorder)

    assert await store.table_columns("visa_packages") == {"id", "name"}
    with pytest.raises(StoreError) as exc:
        await store.table_columns("missing")

    assert exc.value.code == UNDEFINED_TABLE
    assert resource(recorder.requests[0]) == "rpc/get_table_info"
    assert json.loads(recorder.requests[0].content) == {"p_table_name": "visa_packages"}


async def test_postgrest_errors_keep_their_code() -> None:
    store = make_store(
        Recorder(
            httpx.Response(
                400,
                json={"message": 'column "total_price" does not exist', "code": "42703"},
            )
        )
    )

    with pytest.raises(StoreError) as exc:
        await store.select_packages("c1")

    assert exc.value.code == "42703"
    assert exc.value.operation == "select_packages"
    assert "total_price" in exc.value.message


async def test_plain_error_responses_use_status_code() -> None:
    store = make_store(Recorder(httpx.Response(503, text="upstream unavailable")))

    with pytest.raises(StoreError, match="upstream unavailable") as exc:
        await store.select_documents("c1")

    assert exc.value.code == "503"


async def test_transport_errors_become_store_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StoreError, match="connection refused"):
        await make_store(handler).select_packages("c1")


async def test_malformed_rows_are_rejected() -> None:
    store = make_store(Recorder(httpx.Response(200, json={"unexpected": "object"})))

    with pytest.raises(StoreError, match="Unexpected payload"):
        await store.select_documents("c1")


async def test_environment_config_sends_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co/")
    monkeypatch.setenv("SUPABASE_KEY", "secret")
    recorder = Recorder(httpx.Response(200, json=[]))

    async with SupabaseStoreClient(
        config=get_supabase_config(),
        client_factory=lambda http: RateLimitedClient(
            http, transport=httpx.MockTransport(recorder)
        ),
    ) as store:
        await store.select_documents("c1")

    request = recorder.requests[0]
    assert str(request.url).startswith("https://project.supabase.co/rest/v1/document_checklist")
    assert request.headers["apikey"] == "secret"
    assert request.headers["Authorization"] == "Bearer secret"
