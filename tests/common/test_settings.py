from __future__ import annotations

import logging

import pytest

from common import settings
from common.env import env_bool, env_int
from common.logging import resolve_level
from common.types import ObjectRef


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("0", False), ("yes", True), ("off", False), ("maybe", True)],
)
def test_env_bool(monkeypatch, raw, expected) -> None:
    monkeypatch.setenv("PXS_TEST_FLAG", raw)
    assert env_bool("PXS_TEST_FLAG", True) is expected


def test_env_int_default_and_min(monkeypatch) -> None:
    assert env_int("PXS_TEST_INT", 7) == 7
    monkeypatch.setenv("PXS_TEST_INT", "abc")
    assert env_int("PXS_TEST_INT", 7) == 7
    monkeypatch.setenv("PXS_TEST_INT", "-3")
    assert env_int("PXS_TEST_INT", 7, min_value=1) == 1


def test_reload_from_env(monkeypatch) -> None:
    assert settings.get().EVENTS_ENABLED
    monkeypatch.setenv("PXS_EVENTS_ENABLED", "false")
    monkeypatch.setenv("PXS_RESOURCE_WORKERS", "0")
    monkeypatch.setenv("PXS_COLOR_MANAGEMENT", "off")
    settings.reload_from_env()
    s = settings.get()
    assert not s.EVENTS_ENABLED
    assert not s.COLOR_MANAGEMENT
    assert s.RESOURCE_WORKERS == 1


def test_resolve_level() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.WARNING) == logging.WARNING
    assert resolve_level("nonsense") == logging.INFO
    assert resolve_level("basicConfig") == logging.INFO


def test_object_ref_identity() -> None:
    a, b = [1], [1]
    assert ObjectRef(a) == ObjectRef(a)
    assert ObjectRef(a) != ObjectRef(b)
    assert len({ObjectRef(a), ObjectRef(a), ObjectRef(b)}) == 2
    assert ObjectRef(a).unwrap() is a
