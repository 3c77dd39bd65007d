"""Selection of the backing store for the consistency engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum

from .env import env_flag
from .errors import ConfigurationError


class StoreBackend(StrEnum):
    SQLALCHEMY = "sqlalchemy"
    SUPABASE = "supabase"


@dataclass(frozen=True, slots=True)
class StoreConfig:
    backend: StoreBackend = StoreBackend.SQLALCHEMY
    transactional_documents: bool = False


def get_store_config() -> StoreConfig:
    raw_backend = os.getenv("VISAOPS_STORE_BACKEND", StoreBackend.SQLALCHEMY.value)
    try:
        backend = StoreBackend(raw_backend.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in StoreBackend)
        raise ConfigurationError(
            f"Unknown store backend {raw_backend!r}; expected one of: {choices}"
        ) from exc
    return StoreConfig(
        backend=backend,
        transactional_documents=env_flag("VISAOPS_TRANSACTIONAL_DOCUMENTS"),
    )
