"""Ports for the roster (source) and the identity store (target)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rostersync.domain.model import (
        AttributeCatalog,
        Division,
        OrganizationalUnit,
        SourceRecord,
        SubUnit,
        TargetRecord,
    )


@dataclass(frozen=True, slots=True)
class ProfileAssignment:
    """Everything written onto a new identity besides its name and email."""

    division_id: str
    unit_id: str
    sub_unit_id: str
    position_id: str
    category_id: str
    work_format: str
    employment_rate: float
    salary: float
    is_hourly: bool


@runtime_checkable
class SourceDirectory(Protocol):
    """Read access to the authoritative roster."""

    async def fetch_all(self) -> list[SourceRecord]: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class TargetReader(Protocol):
    async def fetch_all(self) -> list[TargetRecord]: ...

    async def fetch_divisions(self) -> list[Division]: ...

    async def fetch_units(self) -> list[OrganizationalUnit]: ...

    async def fetch_sub_units(self) -> list[SubUnit]: ...

    async def fetch_default_attributes(self) -> AttributeCatalog: ...


@runtime_checkable
class TargetDirectory(TargetReader, Protocol):
    """Read/write access to the identity store.

    Writes are single-row admin operations. Composite creation with rollback
    is orchestrated by :class:`rostersync.domain.provisioning.IdentityProvisioner`.
    """

    async def create_account(self, record: SourceRecord, profile: ProfileAssignment) -> str: ...

    async def write_profile(
        self, target_id: str, record: SourceRecord, profile: ProfileAssignment
    ) -> None: ...

    async def assign_role(self, target_id: str, role_id: str) -> None: ...

    async def delete_account(self, target_id: str) -> None: ...

    async def reassign_unit(self, target_id: str, unit_id: str, sub_unit_id: str) -> None: ...

    async def aclose(self) -> None: ...


__all__ = [
    "ProfileAssignment",
    "SourceDirectory",
    "TargetDirectory",
    "TargetReader",
]
