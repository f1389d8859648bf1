"""Target identity store on Supabase: GoTrue admin API plus PostgREST tables.

Table layout: ``subdivisions`` are divisions, ``departments`` are units and
``teams`` are sub-units; identities live in ``auth.users`` mirrored by
``profiles``, with roles in ``user_roles``.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rostersync.adapters.http_resilience import ResilientClient
from rostersync.domain.errors import AlreadyExistsError, RemoteError

from .schema import (
    AuthUser,
    CategoryRow,
    DepartmentRow,
    ErrorBody,
    PositionRow,
    ProfileRow,
    RoleRow,
    SubdivisionRow,
    TeamRow,
)
from .translator import (
    build_catalog,
    parse_division,
    parse_profile,
    parse_sub_unit,
    parse_unit,
    profile_fields,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from rostersync.adapters.http_resilience import RequestOptions
    from rostersync.config import ResilienceConfig, SupabaseConfig
    from rostersync.domain.model import (
        AttributeCatalog,
        Division,
        OrganizationalUnit,
        SourceRecord,
        SubUnit,
        TargetRecord,
    )
    from rostersync.domain.ports import ProfileAssignment, TargetDirectory

log = getLogger(__name__)

REST_PATH = "/rest/v1"
AUTH_ADMIN_PATH = "/auth/v1/admin/users"
PAGE_SIZE = 1000
UNIQUE_VIOLATION = "23505"
_ALREADY_EXISTS_CODES = frozenset({"email_exists", "user_already_exists"})

PROFILE_SELECT = ",".join(
    (
        "user_id",
        "email",
        "first_name",
        "last_name",
        "department_id",
        "team_id",
        "position_id",
        "category_id",
        "departments!profiles_department_membership_fkey(department_id,department_name)",
        "teams!profiles_team_membership_fkey(team_id,team_name)",
    )
)


def _raise_for_error(response: httpx.Response, operation: str) -> None:
    if not response.is_error:
        return
    try:
        body = ErrorBody.model_validate(response.json())
    except (ValueError, PydanticValidationError):
        body = ErrorBody(message=response.text or response.reason_phrase)

    message = f"{operation} failed with HTTP {response.status_code}: {body.text}"
    if (
        response.status_code == httpx.codes.CONFLICT
        or body.code == UNIQUE_VIOLATION
        or body.error_code in _ALREADY_EXISTS_CODES
    ):
        raise AlreadyExistsError(message, operation=operation, status_code=response.status_code)
    raise RemoteError(message, operation=operation, status_code=response.status_code)


def _json_body(response: httpx.Response, operation: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise RemoteError(
            f"{operation} returned invalid JSON (HTTP {response.status_code})",
            operation=operation,
            status_code=response.status_code,
        ) from exc


class SupabaseDirectory:
    """Service-role access to the target project.

    One rate-limited HTTP client is opened on first use and shared by every
    call until :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        config: SupabaseConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # reads

    async def fetch_all(self) -> list[TargetRecord]:
        rows = await self._select("profiles", ProfileRow, select=PROFILE_SELECT)
        positions = await self._select("positions", PositionRow)
        categories = await self._select("categories", CategoryRow)
        position_names = {row.position_id: row.position_name for row in positions}
        category_names = {row.category_id: row.category_name for row in categories}
        records = [
            parse_profile(row, position_names=position_names, category_names=category_names)
            for row in rows
        ]
        log.info("Fetched %s profiles from Supabase", len(records))
        return records

    async def fetch_divisions(self) -> list[Division]:
        rows = await self._select("subdivisions", SubdivisionRow)
        return [parse_division(row) for row in rows]

    async def fetch_units(self) -> list[OrganizationalUnit]:
        rows = await self._select("departments", DepartmentRow)
        return [parse_unit(row) for row in rows]

    async def fetch_sub_units(self) -> list[SubUnit]:
        rows = await self._select("teams", TeamRow)
        return [parse_sub_unit(row) for row in rows]

    async def fetch_default_attributes(self) -> AttributeCatalog:
        positions = await self._select("positions", PositionRow)
        categories = await self._select("categories", CategoryRow)
        roles = await self._select("roles", RoleRow)
        return build_catalog(positions, categories, roles)

    # writes (single-shot)

    async def create_account(self, record: SourceRecord, profile: ProfileAssignment) -> str:
        payload = {
            "email": record.email,
            "password": self._config.initial_password,
            "email_confirm": True,
            "user_metadata": profile_fields(record, profile),
        }
        response = await self._send(
            "POST", AUTH_ADMIN_PATH, operation="create auth user", json=payload
        )
        body = _json_body(response, "create auth user")
        # GoTrue answers with the user object, older versions wrap it in "user"
        if isinstance(body, dict) and isinstance(body.get("user"), dict):
            body = body["user"]
        try:
            user = AuthUser.model_validate(body)
        except PydanticValidationError as exc:
            raise RemoteError(
                "Create auth user returned no user id", operation="create auth user"
            ) from exc
        log.debug("Auth user %s created for %s", user.id, record.email)
        return user.id

    async def write_profile(
        self, target_id: str, record: SourceRecord, profile: ProfileAssignment
    ) -> None:
        row = {"user_id": target_id, "email": record.email, **profile_fields(record, profile)}
        await self._send(
            "POST",
            f"{REST_PATH}/profiles",
            operation="upsert profile",
            params={"on_conflict": "user_id"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            json=row,
        )

    async def assign_role(self, target_id: str, role_id: str) -> None:
        await self._send(
            "POST",
            f"{REST_PATH}/user_roles",
            operation="assign role",
            headers={"Prefer": "return=minimal"},
            json={"user_id": target_id, "role_id": role_id},
        )

    async def delete_account(self, target_id: str) -> None:
        await self._send("DELETE", f"{AUTH_ADMIN_PATH}/{target_id}", operation="delete auth user")

    async def reassign_unit(self, target_id: str, unit_id: str, sub_unit_id: str) -> None:
        await self._send(
            "PATCH",
            f"{REST_PATH}/profiles",
            operation="move profile",
            params={"user_id": f"eq.{target_id}"},
            headers={"Prefer": "return=minimal"},
            json={"department_id": unit_id, "team_id": sub_unit_id},
        )

    # plumbing

    async def _select[TRow: BaseModel](
        self, table: str, model: type[TRow], *, select: str | None = None
    ) -> list[TRow]:
        columns = select or ",".join(model.model_fields)
        rows: list[TRow] = []
        offset = 0
        while True:
            response = await self._send(
                "GET",
                f"{REST_PATH}/{table}",
                operation=f"select {table}",
                params={"select": columns, "limit": PAGE_SIZE, "offset": offset},
            )
            page = _json_body(response, f"select {table}")
            if not isinstance(page, list):
                raise RemoteError(f"select {table} returned a non-list payload", operation=table)
            try:
                rows.extend(model.model_validate(item) for item in page)
            except PydanticValidationError as exc:
                raise RemoteError(f"Unexpected {table} row shape", operation=table) from exc
            if len(page) < PAGE_SIZE:
                return rows
            offset += PAGE_SIZE

    async def _send(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        options: RequestOptions = kwargs  # type: ignore[assignment]
        if self._client is None:
            self._client = self._client_factory(self._config.resilience)
        try:
            response = await self._client.request(method, path, **options)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{operation} request failed: {exc}", operation=operation) from exc
        _raise_for_error(response, operation)
        return response


if TYPE_CHECKING:
    _directory_check: type[TargetDirectory] = SupabaseDirectory
