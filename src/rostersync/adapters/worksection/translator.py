"""Translate Worksection payloads into roster records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rostersync.domain.model import SourceRecord

from .schema import UserPayload

if TYPE_CHECKING:
    from collections.abc import Mapping


def parse_user(payload: UserPayload | Mapping[str, object]) -> SourceRecord:
    user = payload if isinstance(payload, UserPayload) else UserPayload.model_validate(payload)
    return SourceRecord(
        email=user.email.strip(),
        given_name=user.first_name.strip(),
        family_name=user.last_name.strip(),
        group=user.group,
        title=user.title,
    )
