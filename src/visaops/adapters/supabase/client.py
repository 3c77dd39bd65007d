"""Store client for a hosted Supabase project, speaking PostgREST over HTTP."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PayloadValidationError

from visaops.adapters.http_client import RateLimitedClient
from visaops.config import SupabaseConfig, get_supabase_config
from visaops.domain.errors import StoreError
from visaops.domain.ports.store import (
    COUNTRIES_TABLE,
    DOCUMENTS_TABLE,
    PACKAGES_TABLE,
    UNDEFINED_TABLE,
)

from .schema import ColumnsPayload, CountryPayload, PostgrestError, RowsPayload

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from visaops.config import HttpClientConfig
    from visaops.domain.ports.store import Row

log = getLogger(__name__)

RETURN_REPRESENTATION = {"Prefer": "return=representation"}
PACKAGE_ORDER = "created_at.desc,id.desc"
DOCUMENT_ORDER = "created_at.asc,id.asc"


def _default_client_factory(config: HttpClientConfig) -> RateLimitedClient:
    return RateLimitedClient(config)


def _eq(value: str) -> str:
    return f"eq.{value}"


@dataclass(slots=True)
class SupabaseStoreClient:
    """``StoreClient`` over the PostgREST endpoint of a Supabase project.

    Non-2xx responses, transport errors and malformed payloads are all raised
    as ``StoreError``. The PostgREST error code, where present, is kept on
    ``StoreError.code``.
    """

    config: SupabaseConfig = field(default_factory=get_supabase_config)
    client_factory: Callable[[HttpClientConfig], RateLimitedClient] = field(
        default=_default_client_factory
    )
    _client: RateLimitedClient | None = field(default=None, init=False)

    @property
    def client(self) -> RateLimitedClient:
        if self._client is None:
            self._client = self.client_factory(self.config.http)
        return self._client

    async def __aenter__(self) -> SupabaseStoreClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def select_packages(self, country_id: str) -> list[Row]:
        params = {"select": "*", "country_id": _eq(country_id), "order": PACKAGE_ORDER}
        return await self._rows("select_packages", "GET", PACKAGES_TABLE, params=params)

    async def insert_package(self, values: Row) -> Row:
        rows = await self._rows(
            "insert_package",
            "POST",
            PACKAGES_TABLE,
            json=dict(values),
            headers=RETURN_REPRESENTATION,
        )
        return self._first(rows, "insert_package", "Insert returned no visa package")

    async def update_package_by_id(self, package_id: str, values: Row) -> Row:
        rows = await self._rows(
            "update_package",
            "PATCH",
            PACKAGES_TABLE,
            params={"id": _eq(package_id)},
            json=dict(values),
            headers=RETURN_REPRESENTATION,
        )
        return self._first(rows, "update_package", f"No visa package with id {package_id}")

    async def update_package_by_country(self, country_id: str, values: Row) -> Row:
        await self._rows(
            "update_package",
            "PATCH",
            PACKAGES_TABLE,
            params={"country_id": _eq(country_id)},
            json=dict(values),
            headers=RETURN_REPRESENTATION,
        )
        rows = await self.select_packages(country_id)
        return self._first(rows, "update_package", f"No visa package for country {country_id}")

    async def select_documents(self, country_id: str) -> list[Row]:
        params = {"select": "*", "country_id": _eq(country_id), "order": DOCUMENT_ORDER}
        return await self._rows("select_documents", "GET", DOCUMENTS_TABLE, params=params)

    async def delete_documents(self, country_id: str) -> int:
        rows = await self._rows(
            "delete_documents",
            "DELETE",
            DOCUMENTS_TABLE,
            params={"country_id": _eq(country_id)},
            headers=RETURN_REPRESENTATION,
        )
        return len(rows)

    async def insert_documents(self, rows: Sequence[Row]) -> list[Row]:
        if not rows:
            return []
        return await self._rows(
            "insert_documents",
            "POST",
            DOCUMENTS_TABLE,
            json=[dict(row) for row in rows],
            headers=RETURN_REPRESENTATION,
        )

    async def fetch_country(self, country_id: str) -> Row | None:
        rows = await self._rows(
            "fetch_country",
            "GET",
            COUNTRIES_TABLE,
            params={"select": "id,name", "id": _eq(country_id), "limit": "1"},
        )
        if not rows:
            return None
        try:
            return CountryPayload.model_validate(rows[0]).model_dump()
        except PayloadValidationError as exc:
            raise StoreError(f"Malformed country row: {exc}", operation="fetch_country") from exc

    async def table_columns(self, table: str) -> frozenset[str]:
        payload = await self.rpc("get_table_info", {"p_table_name": table})
        try:
            columns = ColumnsPayload.validate_python(payload or [])
        except PayloadValidationError as exc:
            raise StoreError(
                f"Malformed table info for {table}: {exc}", operation="table_columns"
            ) from exc
        if not columns:
            raise StoreError(
                f"Table {table} does not exist", operation="table_columns", code=UNDEFINED_TABLE
            )
        return frozenset(column.column_name for column in columns)

    async def rpc(self, function: str, arguments: Row | None = None) -> Any:
        """Call a database function exposed under ``/rpc`` and return its JSON result."""

        response = await self._request(
            f"rpc:{function}", "POST", f"rpc/{function}", json=dict(arguments or {})
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                f"Unexpected payload from {function}: {exc}", operation=f"rpc:{function}"
            ) from exc

    async def _rows(
        self,
        operation: str,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
        headers: dict[str, str] | None = None,
    ) -> list[Row]:
        response = await self._request(
            operation, method, table, params=params, json=json, headers=headers
        )
        if not response.content:
            return []
        try:
            return list(RowsPayload.validate_python(response.json()))
        except (ValueError, PayloadValidationError) as exc:
            raise StoreError(
                f"Unexpected payload from {table}: {exc}", operation=operation
            ) from exc

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            log.error("Supabase %s request failed: %s", operation, exc)
            raise StoreError(f"Request failed: {exc}", operation=operation) from exc

        if response.is_error:
            raise self._error(operation, response)
        return response

    @staticmethod
    def _error(operation: str, response: httpx.Response) -> StoreError:
        try:
            error = PostgrestError.model_validate(response.json())
        except (ValueError, PayloadValidationError):
            message = response.text or response.reason_phrase
            code = None
        else:
            message = error.message
            code = error.code
        log.error("Supabase %s failed with %s: %s", operation, response.status_code, message)
        return StoreError(message, operation=operation, code=code or str(response.status_code))

    @staticmethod
    def _first(rows: list[Row], operation: str, message: str) -> Row:
        if not rows:
            raise StoreError(message, operation=operation)
        return rows[0]
