"""Pydantic models describing PostgREST payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator


class PostgrestBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PostgrestError(PostgrestBaseModel):
    message: str
    code: str | None = None
    details: str | None = None
    hint: str | None = None


class CountryPayload(PostgrestBaseModel):
    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class TableColumnInfo(PostgrestBaseModel):
    column_name: str
    data_type: str | None = None
    is_nullable: bool | None = None


RowsPayload: TypeAdapter[list[dict[str, Any]]] = TypeAdapter(list[dict[str, Any]])
ColumnsPayload: TypeAdapter[list[TableColumnInfo]] = TypeAdapter(list[TableColumnInfo])
