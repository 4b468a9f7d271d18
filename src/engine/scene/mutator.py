"""
どこで: `engine.scene.mutator`（Scene Mutator）。
何を: `InstanceNode` 同士の付け外し・並べ替え（append/remove/insert_before）と破棄。
なぜ: 「attach スロットへの代入」と「空間的な子の追加」を同じ呼び出しで扱い、
取り外し時の GPU リソース解放をリコンサイラから切り離すため。
"""

from __future__ import annotations

import logging
from typing import Any, Collection

from engine.core.object3d import Object3D

from .instance import SLOT_UNSET, InstanceNode

logger = logging.getLogger(__name__)


def _uses_slot(parent: InstanceNode, child: InstanceNode) -> bool:
    return bool(child.attach) and hasattr(parent.object, child.attach)  # type: ignore[arg-type]


def append_child(parent: InstanceNode, child: InstanceNode) -> None:
    """`child` を `parent` へ付ける（attach スロットがあれば代入、なければ空間的な子）。"""
    if _uses_slot(parent, child):
        slot = child.attach
        if child.previous_slot_value is SLOT_UNSET:
            child.previous_slot_value = getattr(parent.object, slot)  # type: ignore[arg-type]
        setattr(parent.object, slot, child.object)  # type: ignore[arg-type]
        return
    if isinstance(parent.object, Object3D) and isinstance(child.object, Object3D):
        parent.object.add(child.object)
        return
    logger.debug("append_child: %r can't hold %r; skipped", parent, child)


def remove_child(
    parent: InstanceNode,
    child: InstanceNode,
    *,
    dispose: bool = True,
    keep: Collection[int] = (),
) -> None:
    """`child` を `parent` から外し、必要なら破棄する。

    - attach スロットは付ける前の値へ戻す（他の値に差し替わっていれば触らない）。
    - "scene" kind と `dispose=None` 指定のノードは破棄しない。
    - `keep`: 破棄から除外するオブジェクト id（子孫側の `dispose=None` 指定）。
    """
    if _uses_slot(parent, child):
        slot = child.attach
        if getattr(parent.object, slot, None) is child.object:  # type: ignore[arg-type]
            previous = child.previous_slot_value
            setattr(parent.object, slot, None if previous is SLOT_UNSET else previous)  # type: ignore[arg-type]
        child.previous_slot_value = SLOT_UNSET
    elif isinstance(parent.object, Object3D) and isinstance(child.object, Object3D):
        parent.object.remove(child.object)

    if dispose and not child.is_scene and child.disposable:
        dispose_object(child.object, keep)


def insert_before(parent: InstanceNode, child: InstanceNode, before_child: InstanceNode) -> None:
    """`child` を `before_child` の直前へ置く（既に子なら並べ替え）。

    - attach 付きの子は順序を持たないため `append_child` と同じ。
    - `before_child` が親の子でなければ末尾へ追加する。
    """
    if _uses_slot(parent, child):
        append_child(parent, child)
        return
    host = parent.object
    obj = child.object
    if not isinstance(host, Object3D) or not isinstance(obj, Object3D):
        return
    if obj.parent is not None and obj.parent is not host:
        obj.parent.remove(obj)
    current = host.index_of(obj)
    if current >= 0:
        del host.children[current]
    index = host.index_of(before_child.object)
    if index < 0:
        index = len(host.children)
    host.children.insert(index, obj)
    obj.parent = host
    obj.dispatch_event("added")


def dispose_object(obj: Any, keep: Collection[int] = (), _seen: set[int] | None = None) -> None:
    """`obj` が持つ破棄可能なサブリソースを解放し、最後に `obj.dispose()` を呼ぶ。

    - サブリソース: 属性として保持する dispose 可能な値（geometry/material/map など）と、
      空間的な子孫。
    - `keep` に id が含まれるオブジェクト（`dispose=None` 指定）は、その配下ごと残す。
    - `dispose` を持たない型は単に飛ばす。
    """
    seen = _seen if _seen is not None else set()
    if id(obj) in seen or id(obj) in keep:
        return
    seen.add(id(obj))

    if isinstance(obj, Object3D):
        if obj.is_scene:
            return
        for child in list(obj.children):
            dispose_object(child, keep, seen)

    attrs = vars(obj) if hasattr(obj, "__dict__") else {}
    for name, value in list(attrs.items()):
        if name.startswith("_") or name == "parent" or value is None or value is obj:
            continue
        if isinstance(value, Object3D):
            continue
        if callable(getattr(value, "dispose", None)):
            dispose_object(value, keep, seen)

    release = getattr(obj, "dispose", None)
    if callable(release):
        release()


__all__ = ["append_child", "remove_child", "insert_before", "dispose_object"]
