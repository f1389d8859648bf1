"""Translate Supabase rows into domain records and back."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rostersync.domain.model import (
    AttributeCatalog,
    Division,
    OrganizationalUnit,
    SubUnit,
    TargetRecord,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from rostersync.domain.model import SourceRecord
    from rostersync.domain.ports import ProfileAssignment

    from .schema import (
        CategoryRow,
        DepartmentRow,
        PositionRow,
        ProfileRow,
        RoleRow,
        SubdivisionRow,
        TeamRow,
    )


def parse_profile(
    row: ProfileRow,
    *,
    position_names: Mapping[str, str],
    category_names: Mapping[str, str],
) -> TargetRecord:
    return TargetRecord(
        target_id=row.user_id,
        email=(row.email or "").strip(),
        given_name=row.first_name or "",
        family_name=row.last_name or "",
        unit_id=row.department_id,
        unit_name=row.departments.department_name if row.departments else None,
        sub_unit_id=row.team_id,
        sub_unit_name=row.teams.team_name if row.teams else None,
        position_id=row.position_id,
        position_name=position_names.get(row.position_id) if row.position_id else None,
        category_id=row.category_id,
        category_name=category_names.get(row.category_id) if row.category_id else None,
    )


def parse_division(row: SubdivisionRow) -> Division:
    return Division(division_id=row.subdivision_id, name=row.subdivision_name)


def parse_unit(row: DepartmentRow) -> OrganizationalUnit:
    return OrganizationalUnit(
        unit_id=row.department_id, name=row.department_name, division_id=row.subdivision_id
    )


def parse_sub_unit(row: TeamRow) -> SubUnit:
    return SubUnit(sub_unit_id=row.team_id, name=row.team_name, unit_id=row.department_id)


def build_catalog(
    positions: Iterable[PositionRow],
    categories: Iterable[CategoryRow],
    roles: Iterable[RoleRow],
) -> AttributeCatalog:
    return AttributeCatalog(
        positions={row.position_name: row.position_id for row in positions},
        categories={row.category_name: row.category_id for row in categories},
        roles={row.name: row.id for row in roles},
    )


def profile_fields(record: SourceRecord, profile: ProfileAssignment) -> dict[str, Any]:
    """Columns shared by the auth user metadata and the ``profiles`` row."""

    return {
        "first_name": record.given_name,
        "last_name": record.family_name,
        "subdivision_id": profile.division_id,
        "department_id": profile.unit_id,
        "team_id": profile.sub_unit_id,
        "position_id": profile.position_id,
        "category_id": profile.category_id,
        "work_format": profile.work_format,
        "employment_rate": profile.employment_rate,
        "salary": profile.salary,
        "is_hourly": profile.is_hourly,
    }
