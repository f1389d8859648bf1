"""Public interface for the Supabase adapter."""

from __future__ import annotations

from .client import SupabaseDirectory
from .translator import parse_profile, profile_fields

__all__ = [
    "SupabaseDirectory",
    "parse_profile",
    "profile_fields",
]
