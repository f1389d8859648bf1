"""Identity snapshots read from the roster and the target directory."""

from __future__ import annotations

from dataclasses import dataclass


def identity_key(email: str) -> str:
    """Case-insensitive identity key shared by both sides of the comparison."""

    return email.strip().lower()


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """One roster entry. The roster is authoritative."""

    email: str
    given_name: str = ""
    family_name: str = ""
    group: str | None = None
    title: str | None = None

    @property
    def key(self) -> str:
        return identity_key(self.email)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.given_name, self.family_name) if part).strip()


@dataclass(frozen=True, slots=True)
class TargetRecord:
    """One identity as currently stored in the target directory."""

    target_id: str
    email: str
    given_name: str = ""
    family_name: str = ""
    unit_id: str | None = None
    unit_name: str | None = None
    sub_unit_id: str | None = None
    sub_unit_name: str | None = None
    position_id: str | None = None
    position_name: str | None = None
    category_id: str | None = None
    category_name: str | None = None

    @property
    def key(self) -> str:
        return identity_key(self.email)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.given_name, self.family_name) if part).strip()
