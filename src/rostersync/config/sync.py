"""Execution settings for a sync run."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from rostersync.common.retry import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    RetryPolicy,
)

from .env import env_bool, env_float, env_int

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Knobs controlling how the plan is applied.

    ``dry_run`` defaults to ``True``: writes must be switched on explicitly.
    """

    dry_run: bool = True
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    continue_on_error: bool = False
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.batch_delay_seconds < 0:
            raise ValueError("batch_delay_seconds must be non-negative")

    def with_overrides(
        self,
        *,
        dry_run: bool | None = None,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
        continue_on_error: bool | None = None,
    ) -> SyncConfig:
        """Return a copy with every non-``None`` override applied."""

        changes: dict[str, object] = {
            "dry_run": dry_run,
            "batch_size": batch_size,
            "batch_delay_seconds": batch_delay_seconds,
            "continue_on_error": continue_on_error,
        }
        return replace(self, **{key: value for key, value in changes.items() if value is not None})


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        dry_run=env_bool("ROSTERSYNC_DRY_RUN", default=True),
        batch_size=env_int("ROSTERSYNC_BATCH_SIZE", default=DEFAULT_BATCH_SIZE, minimum=1),
        batch_delay_seconds=env_float(
            "ROSTERSYNC_BATCH_DELAY", default=DEFAULT_BATCH_DELAY_SECONDS, minimum=0.0
        ),
        continue_on_error=env_bool("ROSTERSYNC_CONTINUE_ON_ERROR", default=False),
        retry=RetryPolicy(
            max_retries=env_int("ROSTERSYNC_MAX_RETRIES", default=DEFAULT_MAX_RETRIES, minimum=1),
            base_delay=env_float(
                "ROSTERSYNC_RETRY_BASE_DELAY", default=DEFAULT_BASE_DELAY_SECONDS, minimum=0.0
            ),
            max_delay=env_float(
                "ROSTERSYNC_RETRY_MAX_DELAY", default=DEFAULT_MAX_DELAY_SECONDS, minimum=0.0
            ),
        ),
    )
