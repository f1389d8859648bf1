"""The two writes the engine performs against the target directory.

Both actions expose ``validate`` (pure, used for dry runs as well) and
``apply``; :class:`rostersync.domain.execution.BatchExecutor` drives them.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.errors import AlreadyExistsError, RollbackError, ValidationError
from rostersync.domain.ports import ProfileAssignment

if TYPE_CHECKING:
    from rostersync.config import ProfileDefaults
    from rostersync.domain.model import ReferenceData, SourceRecord, TargetRecord
    from rostersync.domain.ports import TargetDirectory
    from rostersync.domain.reconciliation import PlanItem

log = getLogger(__name__)


@dataclass(slots=True)
class IdentityProvisioner:
    """Create an identity atomically: account, profile and default role.

    If anything after the account creation fails, the account is deleted
    again before the error is surfaced. A failed deletion becomes a
    :class:`RollbackError` and leaves a half-created account behind.
    """

    target: TargetDirectory
    reference: ReferenceData
    defaults: ProfileDefaults

    def validate(self, item: PlanItem) -> list[str]:
        record = item.source
        problems: list[str] = []
        if record is None:
            return ["plan item has no roster record"]

        email = record.email.strip()
        if not email:
            problems.append("email is missing")
        elif "@" not in email:
            problems.append(f"email {email!r} is malformed")

        if not record.full_name:
            problems.append("name is missing or blank")

        if not item.unit:
            problems.append("unit is missing")
        else:
            if self.reference.unit_id(item.unit) is None:
                problems.append(f"unit {item.unit!r} is unknown to the target")
            if self.reference.sub_unit_id(item.unit) is None:
                problems.append(f"unit {item.unit!r} has no default sub-unit")
        return problems

    async def apply(self, item: PlanItem) -> str:
        problems = self.validate(item)
        if problems or item.source is None or not item.unit:
            raise ValidationError(item.key, problems)
        return await self.create(item.source, item.unit)

    def profile_for(self, unit: str) -> ProfileAssignment:
        unit_id = self.reference.unit_id(unit)
        sub_unit_id = self.reference.sub_unit_id(unit)
        if unit_id is None or sub_unit_id is None:
            raise ValidationError(unit, [f"unit {unit!r} is unknown to the target"])
        return ProfileAssignment(
            division_id=self.reference.division_id,
            unit_id=unit_id,
            sub_unit_id=sub_unit_id,
            position_id=self.reference.defaults.position_id,
            category_id=self.reference.defaults.category_id,
            work_format=self.defaults.work_format,
            employment_rate=self.defaults.employment_rate,
            salary=self.defaults.salary,
            is_hourly=self.defaults.is_hourly,
        )

    async def create(self, record: SourceRecord, unit: str) -> str:
        profile = self.profile_for(unit)

        log.debug("Creating account for %s", record.email)
        target_id = await self.target.create_account(record, profile)

        try:
            await self.target.write_profile(target_id, record, profile)
            try:
                await self.target.assign_role(target_id, self.reference.defaults.role_id)
            except AlreadyExistsError:
                log.debug("Role already assigned to %s", record.email)
        except Exception as exc:
            log.error(  # noqa: TRY400
                "Profile or role write failed for %s, rolling back", record.email
            )
            try:
                await self.target.delete_account(target_id)
            except Exception as rollback_exc:
                raise RollbackError(
                    target_id, cause=exc, rollback_error=rollback_exc
                ) from rollback_exc
            log.warning("Account %s removed (rollback)", target_id)
            raise

        return target_id


@dataclass(slots=True)
class SoftDeleter:
    """Move an orphaned identity to the Retired unit. Nothing is ever deleted."""

    target: TargetDirectory
    reference: ReferenceData

    def validate(self, item: PlanItem) -> list[str]:
        if item.target is None:
            return ["plan item has no target identity"]
        if not item.target.target_id:
            return ["target identity has no id"]
        return []

    async def apply(self, item: PlanItem) -> str:
        problems = self.validate(item)
        if problems or item.target is None:
            raise ValidationError(item.key, problems)
        await self.soft_delete(item.target)
        return item.target.target_id

    async def soft_delete(self, record: TargetRecord) -> None:
        await self.target.reassign_unit(
            record.target_id,
            self.reference.retired_unit_id,
            self.reference.retired_sub_unit_id,
        )
