"""Supabase (target identity store) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

SUPABASE_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True, slots=True)
class SupabaseConfig:
    """Service-role access to the target project.

    ``initial_password`` is assigned to every account the sync creates.
    """

    url: str
    service_role_key: str
    initial_password: str
    resilience: ResilienceConfig


def get_supabase_config(*, resilience: ResilienceConfig | None = None) -> SupabaseConfig:
    values = require_env_vars(
        ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_INITIAL_PASSWORD")
    )
    url = values["SUPABASE_URL"].rstrip("/")
    key = values["SUPABASE_SERVICE_ROLE_KEY"]
    return SupabaseConfig(
        url=url,
        service_role_key=key,
        initial_password=values["SUPABASE_INITIAL_PASSWORD"],
        resilience=resilience
        or ResilienceConfig(
            name="supabase",
            base_url=url,
            timeout_seconds=SUPABASE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={"apikey": key, "Authorization": f"Bearer {key}"},
        ),
    )
