"""
どこで: `engine.scene.props`（Property Applier）。
何を: props マッピングを生きたシーンオブジェクトへ差分適用する `apply_props`。
なぜ: ベクトル/色/スカラー省略形などの特殊な属性型を 1 箇所の規則で扱い、
イベントハンドラ形の props をオブジェクト外のストアへ振り分けるため。

分類（new_props の各キー）:
(c) 予約キー（children/key/ref/args/attach/object/dispose） → 無視
(b) `on_` で始まり値が callable → ハンドラとして収集（毎回まるごと置換）
(a) 旧値と同一（`is` または `==` が真） → 何もしない
(d) それ以外 → 適用

適用規則（現在の属性値 target に対して）:
1. target が copy 契約を持ち、同じ型の値 → `target.copy(value)`
2. 値が list/tuple で target が `set` を持つ → `target.set(*value)`
3. target が `set_scalar` を持ち、Color ではなく、値が数値 → `target.set_scalar(value)`
4. target が `set` を持つ → `target.set(value)`
5. それ以外 → `setattr`
色管理が有効なら、Color へ新しい値を書き込んだ後に sRGB→線形変換を行う。
"position-x" のようなハイフン区切りキーはネストした属性へ書き込む。
"""

from __future__ import annotations

import logging
from numbers import Number
from typing import Any, Mapping

import numpy as np

from common.settings import get as get_settings
from engine.core.math3d import Color

from .handlers import HandlerStore

logger = logging.getLogger(__name__)

RESERVED_PROPS = frozenset({"children", "key", "ref", "args", "attach", "object", "dispose"})
HANDLER_PREFIX = "on_"

_MISSING = object()
# copy() が「別インスタンスから値を写す」契約ではない組込み型
_NO_COPY_CONTRACT = (list, tuple, dict, set, frozenset, str, bytes, bytearray, np.ndarray)


def is_handler_prop(key: str, value: Any) -> bool:
    return key.startswith(HANDLER_PREFIX) and callable(value)


def same_value(a: Any, b: Any) -> bool:
    """同一判定。`==` が真偽値以外（numpy 配列など）を返す場合は別値とみなす。"""
    if a is b:
        return True
    try:
        result = a == b
    except (TypeError, ValueError):
        return False
    if isinstance(result, (bool, np.bool_)):
        return bool(result)
    return False


def _has_copy_contract(target: Any, value: Any) -> bool:
    if isinstance(target, _NO_COPY_CONTRACT):
        return False
    return callable(getattr(target, "copy", None)) and type(value) is type(target)


def _resolve_owner(instance: Any, key: str) -> tuple[Any, str] | None:
    """ハイフン区切りキーをたどり (書き込み先オブジェクト, 属性名) を返す。"""
    if "-" not in key:
        return instance, key
    *path, attr = key.split("-")
    owner = instance
    for part in path:
        owner = getattr(owner, part, None)
        if owner is None:
            return None
    return owner, attr


def _apply_one(owner: Any, attr: str, value: Any, color_management: bool) -> None:
    target = getattr(owner, attr, _MISSING)
    if target is _MISSING or target is None:
        setattr(owner, attr, value)
        return

    setter = getattr(target, "set", None)
    set_scalar = getattr(target, "set_scalar", None)
    if _has_copy_contract(target, value):
        target.copy(value)
    elif isinstance(value, (list, tuple)) and callable(setter):
        setter(*value)
    elif (
        callable(set_scalar)
        and not isinstance(target, Color)
        and isinstance(value, Number)
        and not isinstance(value, bool)
    ):
        set_scalar(value)
    elif callable(setter):
        setter(value)
    else:
        setattr(owner, attr, value)
        return

    if color_management and isinstance(target, Color) and not isinstance(value, Color):
        target.convert_srgb_to_linear()


def apply_props(
    instance: Any,
    new_props: Mapping[str, Any],
    old_props: Mapping[str, Any] | None = None,
    *,
    handlers: HandlerStore | None = None,
    color_management: bool | None = None,
) -> None:
    """`new_props` を `instance` へ適用する（`old_props` と同一の値は書き込まない）。"""
    old = old_props or {}
    if color_management is None:
        color_management = get_settings().COLOR_MANAGEMENT

    collected: dict[str, Any] = {}
    for key, value in new_props.items():
        if key in RESERVED_PROPS:
            continue
        if is_handler_prop(key, value):
            collected[key] = value
            continue
        if key in old and same_value(old[key], value):
            continue
        resolved = _resolve_owner(instance, key)
        if resolved is None:
            logger.debug("skip prop %r: path does not exist on %r", key, instance)
            continue
        owner, attr = resolved
        _apply_one(owner, attr, value, color_management)

    if handlers is not None:
        handlers.replace(instance, collected)


__all__ = ["apply_props", "same_value", "is_handler_prop", "RESERVED_PROPS", "HANDLER_PREFIX"]
