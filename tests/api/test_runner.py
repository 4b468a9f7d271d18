from __future__ import annotations

import pytest

import api
from api.runner import resolve_window, run


def _app(props):
    return api.h("group", name=props.get("name", "app"))


def test_run_init_only_returns_none_without_window() -> None:
    out = run(_app, props={"name": "x"}, width=320, height=240, init_only=True)
    assert out is None


def test_run_accepts_prebuilt_element() -> None:
    assert run(api.h(_app), init_only=True) is None


def test_resolve_window_falls_back_to_config() -> None:
    assert resolve_window(None, None, None) == (800, 600, "pyxiscene")
    assert resolve_window(640, None, "demo") == (640, 600, "demo")


def test_resolve_window_rejects_non_positive() -> None:
    with pytest.raises(ValueError):
        resolve_window(0, 100, None)
