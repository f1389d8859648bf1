"""Errors raised while reconciling and applying a plan.

Configuration problems live in :mod:`rostersync.config.errors`; everything
here happens at run time against live directories.
"""

from __future__ import annotations


class RemoteError(RuntimeError):
    """A call to the roster or the target directory failed.

    ``attempts`` is filled in by :func:`rostersync.common.retry.retry` when
    the call was retried.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.attempts = 1


class AlreadyExistsError(RemoteError):
    """The target rejected a write because the row already exists."""


class ValidationError(ValueError):
    """A plan item cannot be applied because its data is incomplete."""

    def __init__(self, key: str, problems: list[str] | tuple[str, ...]) -> None:
        self.key = key
        self.problems = tuple(problems)
        super().__init__(f"{key or 'unknown'}: {'; '.join(self.problems)}")


class RollbackError(RuntimeError):
    """Undoing a half-created identity failed; the target needs manual cleanup."""

    def __init__(self, target_id: str, *, cause: Exception, rollback_error: Exception) -> None:
        self.target_id = target_id
        self.cause = cause
        self.rollback_error = rollback_error
        super().__init__(
            f"account {target_id} could not be removed after '{cause}': {rollback_error}"
        )
