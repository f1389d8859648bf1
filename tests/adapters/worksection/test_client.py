from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from rostersync.adapters.worksection import WorksectionDirectory, sign_query
from rostersync.config import ResilienceConfig, WorksectionConfig
from rostersync.domain.errors import RemoteError
from tests.helpers.http import make_client_factory


def _config() -> WorksectionConfig:
    return WorksectionConfig(
        domain="acme.worksection.com",
        api_key="secret",
        resilience=ResilienceConfig(name="worksection-test"),
    )


def _directory(handler: Callable[[httpx.Request], httpx.Response]) -> WorksectionDirectory:
    return WorksectionDirectory(config=_config(), client_factory=make_client_factory(handler))


def test_sign_query_is_md5_of_query_and_key() -> None:
    expected = hashlib.md5(b"action=get_userssecret", usedforsecurity=False).hexdigest()

    assert sign_query("action=get_users", "secret") == expected


def test_fetch_all_signs_request_and_parses_users() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "data": [
                    {
                        "id": 17,
                        "email": " ann@example.com ",
                        "first_name": "Ann",
                        "last_name": "Example",
                        "group": "Design studio",
                        "title": "",
                    },
                    {"id": "18", "email": "bob@example.com", "first_name": None},
                ],
            },
        )

    records = asyncio.run(_directory(handler).fetch_all())

    [request] = seen
    assert request.url.host == "acme.worksection.com"
    assert request.url.path == "/api/admin/v2/"
    assert request.url.params["action"] == "get_users"
    assert request.url.params["hash"] == sign_query("action=get_users", "secret")
    assert [record.email for record in records] == ["ann@example.com", "bob@example.com"]
    assert records[0].group == "Design studio"
    assert records[0].title is None
    assert records[1].given_name == ""
    assert records[1].group is None


def test_api_error_status_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "error", "message": "Invalid hash"})

    with pytest.raises(RemoteError, match="Invalid hash"):
        asyncio.run(_directory(handler).fetch_all())


def test_http_error_raises_remote_error_with_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="maintenance")

    with pytest.raises(RemoteError) as exc:
        asyncio.run(_directory(handler).fetch_all())

    assert exc.value.status_code == 503
    assert exc.value.operation == "get_users"


def test_invalid_json_raises_remote_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(RemoteError, match="invalid JSON"):
        asyncio.run(_directory(handler).fetch_all())


def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteError, match="request failed"):
        asyncio.run(_directory(handler).fetch_all())
