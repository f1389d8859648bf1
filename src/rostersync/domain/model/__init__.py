"""Domain model for roster reconciliation."""

from __future__ import annotations

from .enums import Classification, ItemStatus, Phase, PhaseState
from .records import SourceRecord, TargetRecord, identity_key
from .reference import (
    AttributeCatalog,
    DefaultAttributes,
    Division,
    OrganizationalUnit,
    ReferenceData,
    SubUnit,
    TargetCounts,
)

__all__ = [
    "AttributeCatalog",
    "Classification",
    "DefaultAttributes",
    "Division",
    "ItemStatus",
    "OrganizationalUnit",
    "Phase",
    "PhaseState",
    "ReferenceData",
    "SourceRecord",
    "SubUnit",
    "TargetCounts",
    "TargetRecord",
    "identity_key",
]
