"""Supabase (PostgREST) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_client import HttpClientConfig, RateLimit

SUPABASE_REST_PATH = "/rest/v1/"
SUPABASE_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class SupabaseConfig:
    """Holds the project URL and API key for a hosted Supabase store."""

    url: str
    api_key: str
    http: HttpClientConfig


def get_supabase_config(*, http: HttpClientConfig | None = None) -> SupabaseConfig:
    values = require_env_vars(("SUPABASE_URL", "SUPABASE_KEY"))
    url = values["SUPABASE_URL"].rstrip("/")
    api_key = values["SUPABASE_KEY"]
    return SupabaseConfig(
        url=url,
        api_key=api_key,
        http=http
        or HttpClientConfig(
            name="supabase",
            base_url=url + SUPABASE_REST_PATH,
            timeout_seconds=SUPABASE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
        ),
    )
