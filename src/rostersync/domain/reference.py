"""Load and validate the target lookups needed before any write.

The engine never creates organizational structure. Everything a create or a
soft delete refers to (division, units, their default sub-units, the
Retired unit, default position, category and role) must already exist, and
the unit/sub-unit hierarchy must be consistent. All problems are collected
and raised together so that one run reveals the full list.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.config.errors import ReferenceDataError
from rostersync.domain.model import DefaultAttributes, ReferenceData

if TYPE_CHECKING:
    from rostersync.config import OrganizationConfig
    from rostersync.domain.model import OrganizationalUnit, SubUnit
    from rostersync.domain.ports import TargetReader

log = getLogger(__name__)


async def load_reference_data(
    target: TargetReader,
    organization: OrganizationConfig,
) -> ReferenceData:
    """Resolve every id the executor needs, or raise :class:`ReferenceDataError`.

    ``target`` is expected to retry its own reads; see
    :class:`rostersync.adapters.retrying.RetryingTargetDirectory`.
    """

    divisions = await target.fetch_divisions()
    units = await target.fetch_units()
    sub_units = await target.fetch_sub_units()
    catalog = await target.fetch_default_attributes()

    missing: list[str] = []
    violations: list[str] = []

    division = next((d for d in divisions if d.name == organization.division), None)
    if division is None:
        missing.append(f"division {organization.division!r}")

    units_by_name = _first_by_name(units)
    sub_units_by_name = _first_by_name(sub_units)

    unit_ids: dict[str, str] = {}
    sub_unit_ids: dict[str, str] = {}
    required_units = (*organization.tracked_units, organization.retired_unit)
    for unit_name in required_units:
        unit = units_by_name.get(unit_name)
        is_retired = unit_name == organization.retired_unit
        label = "retired unit" if is_retired else "unit"
        if unit is None:
            missing.append(f"{label} {unit_name!r}")
        else:
            unit_ids[unit_name] = unit.unit_id
            # the Retired unit may live outside the tracked division
            if (
                not is_retired
                and division is not None
                and unit.division_id != division.division_id
            ):
                violations.append(
                    f"{label} {unit_name!r} does not belong to division {division.name!r}"
                )

        sub_unit_name = organization.sub_unit_name(unit_name)
        sub_unit = sub_units_by_name.get(sub_unit_name)
        if sub_unit is None:
            missing.append(f"sub-unit {sub_unit_name!r}")
            continue
        sub_unit_ids[unit_name] = sub_unit.sub_unit_id
        if unit is not None and sub_unit.unit_id != unit.unit_id:
            violations.append(f"sub-unit {sub_unit_name!r} does not belong to unit {unit_name!r}")

    defaults = organization.defaults
    position_id = catalog.positions.get(defaults.position_name)
    category_id = catalog.categories.get(defaults.category_name)
    role_id = catalog.roles.get(defaults.role_name)
    if position_id is None:
        missing.append(f"position {defaults.position_name!r}")
    if category_id is None:
        missing.append(f"category {defaults.category_name!r}")
    if role_id is None:
        missing.append(f"role {defaults.role_name!r}")

    if (
        missing
        or violations
        or division is None
        or position_id is None
        or category_id is None
        or role_id is None
    ):
        error = ReferenceDataError(missing=missing, violations=violations)
        log.error("Reference data check failed: %s", error)
        raise error

    retired = organization.retired_unit
    reference = ReferenceData(
        division_id=division.division_id,
        unit_ids={name: uid for name, uid in unit_ids.items() if name != retired},
        sub_unit_ids={name: sid for name, sid in sub_unit_ids.items() if name != retired},
        retired_unit_id=unit_ids[retired],
        retired_sub_unit_id=sub_unit_ids[retired],
        defaults=DefaultAttributes(
            position_id=position_id,
            category_id=category_id,
            role_id=role_id,
        ),
    )
    log.info(
        "Reference data loaded: division=%s, %s units, retired unit id=%s",
        organization.division,
        len(reference.unit_ids),
        reference.retired_unit_id,
    )
    return reference


def _first_by_name[TItem: (OrganizationalUnit, SubUnit)](items: list[TItem]) -> dict[str, TItem]:
    by_name: dict[str, TItem] = {}
    for item in items:
        if item.name in by_name:
            log.warning("Duplicate name %r in target lookups; using the first", item.name)
            continue
        by_name[item.name] = item
    return by_name
