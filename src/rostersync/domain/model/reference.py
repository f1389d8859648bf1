"""Lookup tables of the target directory."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Division:
    """Top-level organizational grouping that tracked units belong to."""

    division_id: str
    name: str


@dataclass(frozen=True, slots=True)
class OrganizationalUnit:
    unit_id: str
    name: str
    division_id: str | None = None


@dataclass(frozen=True, slots=True)
class SubUnit:
    sub_unit_id: str
    name: str
    unit_id: str | None = None


@dataclass(frozen=True, slots=True)
class AttributeCatalog:
    """Name to id tables for positions, categories and roles."""

    positions: dict[str, str] = field(default_factory=dict[str, str])
    categories: dict[str, str] = field(default_factory=dict[str, str])
    roles: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(frozen=True, slots=True)
class DefaultAttributes:
    position_id: str
    category_id: str
    role_id: str


@dataclass(frozen=True, slots=True)
class TargetCounts:
    """Row counts of the target directory, captured before and after a run."""

    identities: int = 0
    units: int = 0
    sub_units: int = 0

    @property
    def total(self) -> int:
        return self.identities + self.units + self.sub_units

    def delta(self, later: TargetCounts) -> TargetCounts:
        return TargetCounts(
            identities=later.identities - self.identities,
            units=later.units - self.units,
            sub_units=later.sub_units - self.sub_units,
        )


@dataclass(frozen=True, slots=True)
class ReferenceData:
    """Validated lookups needed to create and soft-delete identities.

    ``unit_ids`` and ``sub_unit_ids`` are keyed by unit name; the sub-unit of
    a unit is its default ``"{unit} - General"`` sub-unit.
    """

    division_id: str
    unit_ids: dict[str, str]
    sub_unit_ids: dict[str, str]
    retired_unit_id: str
    retired_sub_unit_id: str
    defaults: DefaultAttributes

    def unit_id(self, unit: str) -> str | None:
        return self.unit_ids.get(unit)

    def sub_unit_id(self, unit: str) -> str | None:
        return self.sub_unit_ids.get(unit)
