from __future__ import annotations

from rostersync.adapters.worksection import UserPayload, UsersResponse, parse_user


def test_parse_user_strips_names_and_blanks() -> None:
    record = parse_user(
        {
            "email": "ann@example.com",
            "first_name": "  Ann ",
            "last_name": "Example",
            "group": "   ",
            "title": " Designer ",
            "unknown": "ignored",
        }
    )

    assert record.full_name == "Ann Example"
    assert record.group is None
    assert record.title == "Designer"


def test_users_response_defaults_to_empty_list() -> None:
    response = UsersResponse.model_validate({"status": "ok"})

    assert response.data == []


def test_user_payload_accepts_numeric_ids() -> None:
    assert UserPayload.model_validate({"id": 5}).id == "5"
