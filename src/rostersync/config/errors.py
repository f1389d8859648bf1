"""Configuration error definitions.

Every error in this module is fatal for a sync run and is raised before the
target directory receives any write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class ReferenceDataError(ConfigurationError):
    """Raised when the target directory lacks lookups the sync depends on.

    ``missing`` names lookups that could not be found at all, ``violations``
    names lookups that exist but hang off the wrong parent.
    """

    def __init__(self, *, missing: Iterable[str] = (), violations: Iterable[str] = ()) -> None:
        self.missing = tuple(missing)
        self.violations = tuple(violations)
        parts: list[str] = []
        if self.missing:
            parts.append("missing reference data: " + ", ".join(self.missing))
        if self.violations:
            parts.append("inconsistent reference data: " + "; ".join(self.violations))
        super().__init__(". ".join(parts) or "reference data is incomplete")
