"""
どこで: `engine.scene.instance`（Instance Factory）。
何を: kind と props から生きたシーンオブジェクトを構築し、`InstanceNode` で包んで返す。
なぜ: リコンサイラが必要とするメタ情報（kind/attach/適用済み props）を
シーンオブジェクト自身へ書き込まずに保持するため。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from .catalogue import DEFAULT_CATALOGUE, PRIMITIVE_KIND, KindCatalogue
from .errors import MissingObjectError
from .handlers import HandlerStore
from .props import apply_props

logger = logging.getLogger(__name__)

_ATTACH_SUFFIXES = (("geometry", "geometry"), ("material", "material"))
SLOT_UNSET = object()


@dataclass(eq=False)
class InstanceNode:
    """リコンサイラが所有する 1 インスタンス分の記録。

    - `object`: 生きたシーンオブジェクト。
    - `attach`: 親のどのスロットへ付けるか（None なら空間的な子）。
    - `props`: 直近に適用した props（次回の差分比較に使う）。
    - `previous_slot_value`: attach 前にスロットが持っていた値（detach で戻す）。
    """

    kind: str
    object: Any
    attach: str | None = None
    props: Mapping[str, Any] = field(default_factory=dict)
    previous_slot_value: Any = SLOT_UNSET

    @property
    def is_scene(self) -> bool:
        return self.kind == "scene" or bool(getattr(self.object, "is_scene", False))

    @property
    def disposable(self) -> bool:
        """`dispose=None` が props に明示されていれば破棄しない。"""
        return not ("dispose" in self.props and self.props["dispose"] is None)

    def __repr__(self) -> str:
        return f"InstanceNode({self.kind!r}, attach={self.attach!r}, object={self.object!r})"


def default_attach(kind_key: str) -> str | None:
    """正規化済み kind 名の末尾から既定の attach スロットを決める。"""
    for suffix, slot in _ATTACH_SUFFIXES:
        if kind_key.endswith(suffix):
            return slot
    return None


def construct(factory: Any, args: Any) -> Any:
    """args が list/tuple なら展開、None なら引数なし、それ以外は単一引数で構築する。"""
    if args is None:
        return factory()
    if isinstance(args, (list, tuple)):
        return factory(*args)
    return factory(args)


def create_instance(
    kind: str,
    props: Mapping[str, Any] | None = None,
    *,
    args: Any = None,
    attach: str | None = None,
    object: Any = None,
    catalogue: KindCatalogue | None = None,
    handlers: HandlerStore | None = None,
) -> InstanceNode:
    """kind を解決して構築し、props を適用した `InstanceNode` を返す。

    例外:
        UnknownKindError: kind が未登録（かつ "primitive" でない）。
        MissingObjectError: "primitive" に `object` が無い。
    """
    props = props or {}
    cat = catalogue if catalogue is not None else DEFAULT_CATALOGUE

    if isinstance(kind, str) and cat.normalize_key(kind) == PRIMITIVE_KIND:
        if object is None:
            raise MissingObjectError()
        key = PRIMITIVE_KIND
        obj = object
        type_name = cat.normalize_key(type(obj).__name__)
    else:
        key, factory = cat.resolve(kind)
        obj = construct(factory, args)
        type_name = key

    resolved_attach = attach if attach is not None else default_attach(type_name)
    apply_props(obj, props, None, handlers=handlers)
    logger.debug("created instance %s (attach=%s)", key, resolved_attach)
    return InstanceNode(kind=key, object=obj, attach=resolved_attach, props=dict(props))


__all__ = ["InstanceNode", "create_instance", "construct", "default_attach", "SLOT_UNSET"]
