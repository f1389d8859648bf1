"""Worksection (source roster) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

WORKSECTION_API_PATH = "/api/admin/v2/"
WORKSECTION_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class WorksectionConfig:
    """Holds Worksection admin API credentials."""

    domain: str
    api_key: str
    resilience: ResilienceConfig

    @property
    def endpoint(self) -> str:
        return f"https://{self.domain}{WORKSECTION_API_PATH}"


def get_worksection_config(*, resilience: ResilienceConfig | None = None) -> WorksectionConfig:
    values = require_env_vars(("WORKSECTION_DOMAIN", "WORKSECTION_API_KEY"))
    domain = values["WORKSECTION_DOMAIN"].removeprefix("https://").rstrip("/")
    return WorksectionConfig(
        domain=domain,
        api_key=values["WORKSECTION_API_KEY"],
        resilience=resilience
        or ResilienceConfig(
            name="worksection",
            timeout_seconds=WORKSECTION_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
        ),
    )
