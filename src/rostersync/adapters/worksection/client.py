"""HTTP client for the Worksection admin API (the source roster)."""

from __future__ import annotations

import hashlib
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from rostersync.adapters.http_resilience import ResilientClient
from rostersync.domain.errors import RemoteError

from .schema import UsersResponse
from .translator import parse_user

if TYPE_CHECKING:
    from collections.abc import Callable

    from rostersync.config import ResilienceConfig, WorksectionConfig
    from rostersync.domain.model import SourceRecord
    from rostersync.domain.ports import SourceDirectory

log = getLogger(__name__)


def sign_query(query: str, api_key: str) -> str:
    """Worksection request signature: ``md5(query + api_key)`` as hex."""

    return hashlib.md5((query + api_key).encode("utf-8"), usedforsecurity=False).hexdigest()


class WorksectionDirectory:
    """Read-only roster backed by the ``get_users`` admin action.

    The HTTP client is opened on first use and kept until :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        config: WorksectionConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_all(self) -> list[SourceRecord]:
        payload = await self._call("get_users")
        try:
            response = UsersResponse.model_validate(payload)
        except PydanticValidationError as exc:
            raise RemoteError(
                "Unexpected Worksection get_users payload", operation="get_users"
            ) from exc
        records = [parse_user(user) for user in response.data]
        log.info("Fetched %s users from Worksection", len(records))
        return records

    async def _call(self, action: str, **params: str) -> dict[str, Any]:
        query = str(httpx.QueryParams({"action": action, **params}))
        signed = f"{query}&hash={sign_query(query, self._config.api_key)}"
        url = f"{self._config.endpoint}?{signed}"

        log.debug("Worksection API: %s", action)
        if self._client is None:
            self._client = self._client_factory(self._config.resilience)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise RemoteError(
                f"Worksection {action} request failed: {exc}", operation=action
            ) from exc

        if response.is_error:
            raise RemoteError(
                f"Worksection {action} returned HTTP {response.status_code}",
                operation=action,
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteError(
                f"Worksection {action} returned invalid JSON", operation=action
            ) from exc
        if not isinstance(payload, dict):
            raise RemoteError(f"Empty or malformed Worksection {action} response", operation=action)

        if payload.get("status") != "ok":
            message = str(payload.get("message") or "unknown API error")
            log.error("Worksection %s returned an error: %s", action, message)
            raise RemoteError(f"Worksection {action}: {message}", operation=action)
        return payload


if TYPE_CHECKING:
    _directory_check: type[SourceDirectory] = WorksectionDirectory
