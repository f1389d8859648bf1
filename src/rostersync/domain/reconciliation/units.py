"""Resolve which organizational unit a roster entry belongs to."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from rostersync.config import OrganizationConfig
    from rostersync.domain.model import SourceRecord


@dataclass(frozen=True, slots=True)
class UnitResolver:
    """Map a roster group label to a unit name.

    A title containing any of ``leave_markers`` (case-insensitive substring)
    sends the record to ``leave_unit`` whatever its group. ``None`` means the
    record is outside the reconciled organization and must be ignored.
    """

    groups: Mapping[str, str]
    leave_unit: str
    leave_markers: tuple[str, ...] = field(default=())

    @classmethod
    def from_config(cls, organization: OrganizationConfig) -> UnitResolver:
        return cls(
            groups=organization.groups,
            leave_unit=organization.leave_unit,
            leave_markers=organization.leave_markers,
        )

    def is_on_leave(self, title: str | None) -> bool:
        if not title:
            return False
        folded = title.casefold()
        return any(marker in folded for marker in self.leave_markers)

    def resolve(self, record: SourceRecord) -> str | None:
        if self.is_on_leave(record.title):
            return self.leave_unit
        if record.group is None:
            return None
        return self.groups.get(record.group.strip())

    def __call__(self, record: SourceRecord) -> str | None:
        return self.resolve(record)
