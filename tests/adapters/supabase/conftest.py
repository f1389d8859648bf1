"""Shared fixtures for Supabase adapter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from rostersync.adapters.supabase import SupabaseDirectory
from rostersync.config import ResilienceConfig, SupabaseConfig
from tests.helpers.http import RecordedRequests, make_client_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.helpers.http import Handler

BASE_URL = "https://project.supabase.co"


@pytest.fixture
def supabase_config() -> SupabaseConfig:
    return SupabaseConfig(
        url=BASE_URL,
        service_role_key="service-key",
        initial_password="Welcome-1",
        resilience=ResilienceConfig(
            name="supabase-test",
            base_url=BASE_URL,
            default_headers={"apikey": "service-key", "Authorization": "Bearer service-key"},
        ),
    )


@pytest.fixture
def make_directory(
    supabase_config: SupabaseConfig,
) -> Callable[[Handler], tuple[SupabaseDirectory, RecordedRequests]]:
    def build(handler: Handler) -> tuple[SupabaseDirectory, RecordedRequests]:
        recorded = RecordedRequests()
        directory = SupabaseDirectory(
            config=supabase_config, client_factory=make_client_factory(handler, recorded)
        )
        return directory, recorded

    return build
