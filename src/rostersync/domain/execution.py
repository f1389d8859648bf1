"""Apply one phase of a plan item by item, pacing and recording progress.

State machine of a phase::

    NOT_STARTED -> RUNNING -> COMPLETED
                           -> STOPPED_ON_ERROR   (failure, continue_on_error off)
                           -> CANCELLED          (shutdown requested between items)

The ledger is cleared only on ``COMPLETED``; every other exit persists it so
that the next invocation resumes with the unprocessed remainder.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from rostersync.domain.errors import RemoteError, RollbackError, ValidationError
from rostersync.domain.model import ItemStatus, Phase, PhaseState

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from rostersync.common.retry import Sleep
    from rostersync.config import SyncConfig
    from rostersync.domain.progress import ProgressTracker
    from rostersync.domain.reconciliation import PlanItem

log = getLogger(__name__)

_SUCCESS_STATUS = {Phase.CREATE: ItemStatus.CREATED, Phase.SOFT_DELETE: ItemStatus.SOFT_DELETED}


class PhaseAction(Protocol):
    def validate(self, item: PlanItem) -> list[str]: ...

    async def apply(self, item: PlanItem) -> str: ...


class ShutdownSignal:
    """Cooperative stop request, checked between items."""

    def __init__(self) -> None:
        self._reason: str | None = None

    def request(self, reason: str = "shutdown requested") -> None:
        if self._reason is None:
            log.warning("Stop requested (%s); finishing the current item", reason)
            self._reason = reason

    @property
    def reason(self) -> str | None:
        return self._reason

    def is_set(self) -> bool:
        return self._reason is not None

    def __call__(self) -> bool:
        return self.is_set()


@dataclass(frozen=True, slots=True)
class ItemOutcome:
    item: PlanItem
    status: ItemStatus
    target_id: str | None = None
    error: str | None = None

    @property
    def key(self) -> str:
        return self.item.key


@dataclass(slots=True)
class PhaseResult:
    phase: Phase
    state: PhaseState = PhaseState.NOT_STARTED
    planned: int = 0
    resumed: int = 0
    succeeded: int = 0
    failed: int = 0
    validation_errors: int = 0
    outcomes: list[ItemOutcome] = field(default_factory=list["ItemOutcome"])

    @property
    def errors(self) -> int:
        return self.failed + self.validation_errors

    @property
    def halted(self) -> bool:
        return self.state in {PhaseState.STOPPED_ON_ERROR, PhaseState.CANCELLED}


def _never_stop() -> bool:
    return False


class BatchExecutor:
    """Sequentially apply plan items of one phase."""

    def __init__(
        self,
        settings: SyncConfig,
        tracker: ProgressTracker,
        *,
        sleep: Sleep = asyncio.sleep,
        should_stop: Callable[[], bool] = _never_stop,
    ) -> None:
        self._settings = settings
        self._tracker = tracker
        self._sleep = sleep
        self._should_stop = should_stop

    async def run(
        self, phase: Phase, items: Sequence[PlanItem], action: PhaseAction
    ) -> PhaseResult:
        result = PhaseResult(phase=phase, planned=len(items))
        if self._settings.dry_run:
            return self._dry_run(result, items, action)

        if not self._tracker.load(phase):
            self._tracker.init(phase)
        pending = self._tracker.filter_unprocessed(items)
        result.resumed = len(items) - len(pending)
        if result.resumed:
            log.info("Resuming %s: %s already processed", phase, result.resumed)

        if not pending:
            log.info("Nothing left to %s", phase)
            self._tracker.clear()
            result.state = PhaseState.COMPLETED
            return result

        log.info("Starting %s of %s items", phase, len(pending))
        result.state = PhaseState.RUNNING
        try:
            await self._walk(result, pending, action)
        except BaseException:
            self._tracker.save()
            raise

        if result.state is PhaseState.COMPLETED:
            self._tracker.clear()
        log.info(
            "%s finished in state %s: %s succeeded, %s failed, %s invalid",
            phase,
            result.state,
            result.succeeded,
            result.failed,
            result.validation_errors,
        )
        return result

    async def _walk(
        self, result: PhaseResult, pending: list[PlanItem], action: PhaseAction
    ) -> None:
        total = len(pending)
        batch_size = self._settings.batch_size
        for index, item in enumerate(pending, start=1):
            if self._should_stop():
                self._tracker.save()
                result.state = PhaseState.CANCELLED
                log.warning("%s cancelled after %s of %s items", result.phase, index - 1, total)
                return

            log.debug("[%s/%s] %s", index, total, item.describe())
            outcome = await self._apply_one(result.phase, item, action)
            result.outcomes.append(outcome)
            success = outcome.status is _SUCCESS_STATUS[result.phase]
            self._tracker.add_processed(item.key, success=success)

            if success:
                result.succeeded += 1
            elif outcome.status is ItemStatus.VALIDATION_ERROR:
                result.validation_errors += 1
            else:
                result.failed += 1
                if not self._settings.continue_on_error:
                    self._tracker.save()
                    result.state = PhaseState.STOPPED_ON_ERROR
                    log.error(
                        "Stopping %s after a failure (continue_on_error is off)", result.phase
                    )
                    return

            if index % batch_size == 0 and index < total:
                log.debug("Pausing %.1fs between batches", self._settings.batch_delay_seconds)
                await self._sleep(self._settings.batch_delay_seconds)

        result.state = PhaseState.COMPLETED

    async def _apply_one(self, phase: Phase, item: PlanItem, action: PhaseAction) -> ItemOutcome:
        try:
            target_id = await action.apply(item)
        except ValidationError as exc:
            log.error(  # noqa: TRY400
                "Invalid data for %s: %s", item.email or "unknown", "; ".join(exc.problems)
            )
            return ItemOutcome(item=item, status=ItemStatus.VALIDATION_ERROR, error=str(exc))
        except RollbackError as exc:
            log.critical("Manual cleanup required for %s: %s", item.email, exc)
            return ItemOutcome(
                item=item,
                status=ItemStatus.ROLLBACK_FAILED,
                target_id=exc.target_id,
                error=str(exc),
            )
        except RemoteError as exc:
            log.error("Failed to %s: %s", item.describe(), exc)  # noqa: TRY400
            return ItemOutcome(item=item, status=ItemStatus.FAILED, error=str(exc))
        except Exception as exc:
            log.exception("Unexpected error while trying to %s", item.describe())
            return ItemOutcome(
                item=item, status=ItemStatus.FAILED, error=f"{type(exc).__name__}: {exc}"
            )

        log.info("Done: %s", item.describe())
        return ItemOutcome(item=item, status=_SUCCESS_STATUS[phase], target_id=target_id)

    def _dry_run(
        self, result: PhaseResult, items: Sequence[PlanItem], action: PhaseAction
    ) -> PhaseResult:
        if items:
            log.warning("DRY RUN: %s %s actions will not be applied", len(items), result.phase)
        for item in items:
            problems = action.validate(item)
            if problems:
                log.info(
                    "[DRY RUN] would skip %s: %s", item.email or "unknown", "; ".join(problems)
                )
            else:
                log.info("[DRY RUN] would %s", item.describe())
            result.outcomes.append(
                ItemOutcome(item=item, status=ItemStatus.DRY_RUN, error="; ".join(problems) or None)
            )
        result.state = PhaseState.COMPLETED
        return result
