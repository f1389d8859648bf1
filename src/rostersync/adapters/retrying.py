"""Directory decorators that retry reads with exponential backoff.

Writes are passed through untouched: a create or a move is sent exactly
once, and a failure is surfaced to the executor.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from rostersync.common.retry import RetryPolicy, retry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from rostersync.common.retry import Sleep
    from rostersync.domain.model import (
        AttributeCatalog,
        Division,
        OrganizationalUnit,
        SourceRecord,
        SubUnit,
        TargetRecord,
    )
    from rostersync.domain.ports import (
        ProfileAssignment,
        SourceDirectory,
        TargetDirectory,
    )


class RetryingSourceDirectory:
    def __init__(
        self,
        inner: SourceDirectory,
        *,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._inner = inner
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    async def fetch_all(self) -> list[SourceRecord]:
        return await retry(
            self._inner.fetch_all,
            policy=self._policy,
            operation="fetch roster",
            sleep=self._sleep,
        )

    async def aclose(self) -> None:
        await self._inner.aclose()


class RetryingTargetDirectory:
    def __init__(
        self,
        inner: TargetDirectory,
        *,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._inner = inner
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    async def fetch_all(self) -> list[TargetRecord]:
        return await self._read(self._inner.fetch_all, "fetch target identities")

    async def fetch_divisions(self) -> list[Division]:
        return await self._read(self._inner.fetch_divisions, "load divisions")

    async def fetch_units(self) -> list[OrganizationalUnit]:
        return await self._read(self._inner.fetch_units, "load units")

    async def fetch_sub_units(self) -> list[SubUnit]:
        return await self._read(self._inner.fetch_sub_units, "load sub-units")

    async def fetch_default_attributes(self) -> AttributeCatalog:
        return await self._read(self._inner.fetch_default_attributes, "load default attributes")

    async def create_account(self, record: SourceRecord, profile: ProfileAssignment) -> str:
        return await self._inner.create_account(record, profile)

    async def write_profile(
        self, target_id: str, record: SourceRecord, profile: ProfileAssignment
    ) -> None:
        await self._inner.write_profile(target_id, record, profile)

    async def assign_role(self, target_id: str, role_id: str) -> None:
        await self._inner.assign_role(target_id, role_id)

    async def delete_account(self, target_id: str) -> None:
        await self._inner.delete_account(target_id)

    async def reassign_unit(self, target_id: str, unit_id: str, sub_unit_id: str) -> None:
        await self._inner.reassign_unit(target_id, unit_id, sub_unit_id)

    async def aclose(self) -> None:
        await self._inner.aclose()

    async def _read[T](self, thunk: Callable[[], Awaitable[T]], operation: str) -> T:
        return await retry(thunk, policy=self._policy, operation=operation, sleep=self._sleep)


if TYPE_CHECKING:
    _source_check: type[SourceDirectory] = RetryingSourceDirectory
    _target_check: type[TargetDirectory] = RetryingTargetDirectory
