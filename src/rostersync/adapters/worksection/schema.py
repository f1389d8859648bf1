"""Pydantic models describing Worksection admin API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class WorksectionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserPayload(WorksectionBaseModel):
    id: str | None = None
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    group: str | None = None
    title: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("email", "first_name", "last_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    _normalize_optional = field_validator("group", "title", mode="before")(_blank_to_none)


class Envelope(WorksectionBaseModel):
    """Every response is wrapped as ``{"status": "ok"|"error", ...}``."""

    status: str
    message: str | None = None
    status_code: int | None = None


class UsersResponse(Envelope):
    data: list[UserPayload] = Field(default_factory=list[UserPayload])
