from __future__ import annotations

from rostersync.domain.reconciliation import UnitResolver
from tests.helpers.directories import make_organization, source


def _resolver() -> UnitResolver:
    return UnitResolver.from_config(make_organization())


def test_resolves_group_label_with_surrounding_whitespace() -> None:
    assert _resolver().resolve(source("a@example.com", " Backend team ")) == "Engineering"


def test_unknown_or_missing_group_is_outside_the_organization() -> None:
    resolver = _resolver()

    assert resolver.resolve(source("a@example.com", "Marketing")) is None
    assert resolver.resolve(source("b@example.com", None)) is None


def test_leave_marker_in_title_overrides_group() -> None:
    record = source("a@example.com", "Engineering", title="Developer (Parental LEAVE)")

    assert _resolver()(record) == "Parental leave"


def test_title_without_marker_keeps_group_unit() -> None:
    record = source("a@example.com", "Engineering", title="Lead developer")

    assert _resolver()(record) == "Engineering"
