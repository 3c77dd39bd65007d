"""Port for the store-wide schema reconciler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class SchemaFixResult:
    success: bool
    message: str
    details: tuple[str, ...] = ()


@runtime_checkable
class SchemaReconciler(Protocol):
    """Detects and repairs structural drift (missing tables or columns) store-wide."""

    async def fix_schema(self) -> SchemaFixResult: ...


def describe_missing(missing: Mapping[str, tuple[str, ...]]) -> str:
    """Render ``{table: missing columns}``; an empty tuple means the table is absent."""

    parts: list[str] = []
    for table, columns in missing.items():
        if columns:
            parts.append(f"{table} is missing {', '.join(columns)}")
        else:
            parts.append(f"table {table} does not exist")
    return "; ".join(parts)
