"""Public interface for the Worksection adapter."""

from __future__ import annotations

from .client import WorksectionDirectory, sign_query
from .schema import UserPayload, UsersResponse
from .translator import parse_user

__all__ = [
    "UserPayload",
    "UsersResponse",
    "WorksectionDirectory",
    "parse_user",
    "sign_query",
]
