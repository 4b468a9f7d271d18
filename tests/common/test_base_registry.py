from __future__ import annotations

import pytest

from common.base_registry import BaseRegistry


def test_register_and_get_with_normalization() -> None:
    reg = BaseRegistry()

    @reg.register(None)
    class TorusKnot:  # noqa: N801 (テスト用)
        pass

    assert reg.is_registered("torus_knot")
    assert reg.get("TorusKnot") is TorusKnot
    assert reg.get("torus-knot") is TorusKnot
    assert "torus_knot" in reg.list_all()


def test_add_same_object_twice_is_allowed() -> None:
    reg = BaseRegistry()

    def ring():  # noqa: ANN202 - テスト用
        return 1

    reg.add("ring", ring)
    assert reg.add("Ring", ring) is ring
    with pytest.raises(ValueError):
        reg.add("ring", lambda: 2)


def test_non_callable_and_bad_keys_rejected() -> None:
    reg = BaseRegistry()
    with pytest.raises(TypeError):
        reg.add("value", 42)
    with pytest.raises(ValueError):
        reg.normalize_key("")
    with pytest.raises(TypeError):
        reg.normalize_key(3)  # type: ignore[arg-type]


def test_unregister_clear_and_snapshot() -> None:
    reg = BaseRegistry()

    @reg.register("My-Shape")
    def fn():  # noqa: ANN202 - テスト用
        return 0

    # ハイフン→アンダースコア + キャメル→スネークの合成で二重 '_' になる
    assert reg.get("my__shape") is fn
    snapshot = reg.registry
    reg.unregister("nonexistent")  # 例外にならない
    reg.unregister("My-Shape")
    assert not reg.is_registered("My-Shape")
    assert "my__shape" in snapshot

    reg.add("other", fn)
    reg.clear()
    assert reg.list_all() == []
    with pytest.raises(KeyError):
        reg.get("other")
