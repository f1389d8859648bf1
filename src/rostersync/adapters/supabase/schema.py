"""Pydantic models describing Supabase (PostgREST and GoTrue admin) payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


def _id_to_str(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class SupabaseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DepartmentRef(SupabaseBaseModel):
    department_id: str | None = None
    department_name: str | None = None

    _ids = field_validator("department_id", mode="before")(_id_to_str)


class TeamRef(SupabaseBaseModel):
    team_id: str | None = None
    team_name: str | None = None

    _ids = field_validator("team_id", mode="before")(_id_to_str)


class ProfileRow(SupabaseBaseModel):
    user_id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    department_id: str | None = None
    team_id: str | None = None
    position_id: str | None = None
    category_id: str | None = None
    departments: DepartmentRef | None = None
    teams: TeamRef | None = None

    _ids = field_validator(
        "user_id", "department_id", "team_id", "position_id", "category_id", mode="before"
    )(_id_to_str)


class SubdivisionRow(SupabaseBaseModel):
    subdivision_id: str
    subdivision_name: str

    _ids = field_validator("subdivision_id", mode="before")(_id_to_str)


class DepartmentRow(SupabaseBaseModel):
    department_id: str
    department_name: str
    subdivision_id: str | None = None

    _ids = field_validator("department_id", "subdivision_id", mode="before")(_id_to_str)


class TeamRow(SupabaseBaseModel):
    team_id: str
    team_name: str
    department_id: str | None = None

    _ids = field_validator("team_id", "department_id", mode="before")(_id_to_str)


class PositionRow(SupabaseBaseModel):
    position_id: str
    position_name: str

    _ids = field_validator("position_id", mode="before")(_id_to_str)


class CategoryRow(SupabaseBaseModel):
    category_id: str
    category_name: str

    _ids = field_validator("category_id", mode="before")(_id_to_str)


class RoleRow(SupabaseBaseModel):
    id: str
    name: str

    _ids = field_validator("id", mode="before")(_id_to_str)


class AuthUser(SupabaseBaseModel):
    id: str
    email: str | None = None


class ErrorBody(SupabaseBaseModel):
    """Union of the PostgREST and GoTrue error shapes."""

    code: str | None = None
    error_code: str | None = None
    message: str | None = None
    msg: str | None = None
    error_description: str | None = None

    _codes = field_validator("code", mode="before")(_id_to_str)

    @property
    def text(self) -> str:
        return self.message or self.msg or self.error_description or "unknown error"
