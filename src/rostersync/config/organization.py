"""Organization layout: which units are reconciled and how roster groups map onto them.

The layout is kept in a TOML file (``ROSTERSYNC_ORGANIZATION_FILE``)::

    division = "Production"
    retired_unit = "Retired"
    leave_unit = "Parental leave"
    leave_markers = ["leave"]
    sub_unit_suffix = " - General"

    [groups]
    "Design studio" = "Design"

    [defaults]
    position = "No position"
    category = "Not applicable"
    role = "user"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .env import require_env_var
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_SUB_UNIT_SUFFIX = " - General"
DEFAULT_RETIRED_UNIT = "Retired"
DEFAULT_LEAVE_UNIT = "Parental leave"
DEFAULT_LEAVE_MARKERS = ("leave",)


@dataclass(frozen=True, slots=True)
class ProfileDefaults:
    """Attribute names and values assigned to every newly created identity."""

    position_name: str = "No position"
    category_name: str = "Not applicable"
    role_name: str = "user"
    work_format: str = "Office"
    employment_rate: float = 1.0
    salary: float = 0.0
    is_hourly: bool = True


@dataclass(frozen=True, slots=True)
class OrganizationConfig:
    division: str
    groups: Mapping[str, str]
    retired_unit: str = DEFAULT_RETIRED_UNIT
    leave_unit: str = DEFAULT_LEAVE_UNIT
    leave_markers: tuple[str, ...] = DEFAULT_LEAVE_MARKERS
    sub_unit_suffix: str = DEFAULT_SUB_UNIT_SUFFIX
    defaults: ProfileDefaults = field(default_factory=ProfileDefaults)

    def __post_init__(self) -> None:
        if not self.division.strip():
            raise ConfigurationError("Organization division must not be blank")
        if not self.groups:
            raise ConfigurationError("Organization layout maps no roster groups to units")
        if self.retired_unit in self.groups.values():
            raise ConfigurationError(
                f"Roster groups must not map to the retired unit {self.retired_unit!r}"
            )
        object.__setattr__(self, "groups", MappingProxyType(dict(self.groups)))
        object.__setattr__(
            self,
            "leave_markers",
            tuple(marker.casefold() for marker in self.leave_markers if marker.strip()),
        )

    @property
    def tracked_units(self) -> tuple[str, ...]:
        """Units reconciled against the roster, excluding the leave bucket."""

        return tuple(sorted(set(self.groups.values()) - {self.leave_unit}))

    @property
    def reported_units(self) -> tuple[str, ...]:
        """Units that receive a per-unit report: the tracked ones plus the leave bucket."""

        return tuple(sorted({*self.tracked_units, self.leave_unit}))

    def sub_unit_name(self, unit: str) -> str:
        return f"{unit}{self.sub_unit_suffix}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> OrganizationConfig:
        try:
            groups = data["groups"]
            division = data["division"]
        except KeyError as exc:
            raise ConfigurationError(f"Organization layout is missing {exc.args[0]!r}") from exc
        if not isinstance(groups, dict):
            raise ConfigurationError("Organization 'groups' must be a table")

        raw_defaults: Mapping[str, Any] = data.get("defaults", {})
        fallback = ProfileDefaults()
        defaults = ProfileDefaults(
            position_name=str(raw_defaults.get("position", fallback.position_name)),
            category_name=str(raw_defaults.get("category", fallback.category_name)),
            role_name=str(raw_defaults.get("role", fallback.role_name)),
            work_format=str(raw_defaults.get("work_format", fallback.work_format)),
            employment_rate=float(raw_defaults.get("employment_rate", fallback.employment_rate)),
            salary=float(raw_defaults.get("salary", fallback.salary)),
            is_hourly=bool(raw_defaults.get("is_hourly", fallback.is_hourly)),
        )
        return cls(
            division=str(division),
            groups={str(group).strip(): str(unit) for group, unit in groups.items()},
            retired_unit=str(data.get("retired_unit", DEFAULT_RETIRED_UNIT)),
            leave_unit=str(data.get("leave_unit", DEFAULT_LEAVE_UNIT)),
            leave_markers=tuple(str(m) for m in data.get("leave_markers", DEFAULT_LEAVE_MARKERS)),
            sub_unit_suffix=str(data.get("sub_unit_suffix", DEFAULT_SUB_UNIT_SUFFIX)),
            defaults=defaults,
        )


def load_organization_config(path: Path) -> OrganizationConfig:
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Organization layout file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Organization layout file {path} is not valid TOML") from exc
    return OrganizationConfig.from_mapping(document)


def get_organization_config() -> OrganizationConfig:
    return load_organization_config(Path(require_env_var("ROSTERSYNC_ORGANIZATION_FILE")))
