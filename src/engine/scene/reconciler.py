"""
どこで: `engine.scene.reconciler`。
何を: 要素ツリーを前回確定したツリーと比較し、インスタンスの生成/更新/削除/並べ替えを行う。
なぜ: 呼び出し側は毎回「望む状態」だけを渡し、シーングラフへの最小の変更は
ここで Instance Factory / Property Applier / Scene Mutator を駆動して導くため。

概要:
- ルートごとに `Fiber` 木を持つ。ホストファイバーは `InstanceNode` を持ち、
  コンポーネントファイバーは持たない（子のホストノードは最寄りのホスト祖先へ付く）。
- 子の対応付けは `key` があれば key、なければキー無し兄弟の中の位置で行う。
  kind/args/attach/object が同じなら更新、違えば古いファイバーを外して作り直す。
- ホストの子を処理し終えたら、要素順どおりに空間的な子の並びを `insert_before` で揃える。
- 取り外しは下から上へ: ref を空に → フレーム購読を解除 → ハンドラ登録を削除 → 切り離して破棄。
- コンポーネントが `Suspended` を送出したら、そのコンポーネントは前回の子を保ったまま据え置く。
  読込完了後は `resume_suspended()` で中断したコンポーネントの枝だけを描き直す（兄弟は再実行しない）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from engine.core.object3d import Object3D

from . import hooks
from .catalogue import DEFAULT_CATALOGUE, KindCatalogue
from .element import Element, Ref
from .errors import Suspended
from .instance import InstanceNode, create_instance
from .mutator import append_child, insert_before, remove_child
from .props import apply_props, same_value

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Fiber:
    """確定済みの要素 1 つと、それに対応するインスタンス（ホストのみ）。"""

    element: Element | None
    parent: "Fiber | None" = None
    node: InstanceNode | None = None
    children: list["Fiber"] = field(default_factory=list)
    frame_refs: list[Ref] = field(default_factory=list)
    hook_cursor: int = 0
    suspended: bool = False
    mounted: bool = True

    @property
    def key(self) -> Any:
        return self.element.key if self.element is not None else None

    @property
    def is_host(self) -> bool:
        return self.node is not None

    def host_nodes(self) -> list[InstanceNode]:
        """このファイバーが親ホストへ差し出すノード（コンポーネントは子を平坦化）。"""
        if self.node is not None:
            return [self.node]
        return [n for child in self.children for n in child.host_nodes()]

    def host_parent(self) -> "Fiber":
        fiber = self.parent
        while fiber is not None and fiber.node is None:
            fiber = fiber.parent
        if fiber is None:
            raise RuntimeError("fiber is not attached to a host root")
        return fiber

    def walk(self) -> Iterator["Fiber"]:
        """帰りがけ順（子が先）に部分木をたどる。"""
        for child in self.children:
            yield from child.walk()
        yield self

    def __repr__(self) -> str:
        kind = self.element.kind_name if self.element is not None else "<root>"
        return f"Fiber({kind!r}, key={self.key!r})"


def _assign_ref(ref: Any, value: Any) -> None:
    if ref is None:
        return
    if isinstance(ref, Ref):
        ref.current = value
    elif callable(ref):
        ref(value)


class Reconciler:
    """1 サーフェス分のファイバー木を所有し、要素ツリーをシーンへ反映する。"""

    def __init__(self, state: Any, *, catalogue: KindCatalogue | None = None) -> None:
        self.state = state
        self.catalogue = catalogue if catalogue is not None else DEFAULT_CATALOGUE
        self.root = Fiber(None, node=InstanceNode(kind="scene", object=state.scene))
        self.element: Element | None = None
        self._suspended: list[Fiber] = []
        state.reconciler = self

    # ---- public ----
    def render(self, element: Element | None) -> None:
        """`element` を前回確定したツリーと比較して反映する。"""
        if element is not None and not isinstance(element, Element):
            raise TypeError(f"render() expects an Element or None, got {type(element).__name__}")
        self.element = element
        self.state.element = element
        self._reconcile_children(self.root, [element] if element is not None else [])
        self._sync_host_children(self.root)

    def rerender(self) -> None:
        """直前のツリー全体を再反映する。"""
        self.render(self.element)

    @property
    def suspended_fibers(self) -> list[Fiber]:
        return list(self._suspended)

    def resume_suspended(self) -> None:
        """中断中のコンポーネントだけを描き直し、その最寄りホストの子の並びを揃える。

        再び中断したものは次の完了まで残る。取り外し済みのファイバーは捨てる。
        """
        waiting, self._suspended = self._suspended, []
        for fiber in waiting:
            if not fiber.mounted or not fiber.suspended:
                continue
            self._render_component(fiber)
            self._sync_host_children(fiber.host_parent())

    def unmount(self) -> None:
        """全ファイバーを取り外す（シーン本体は残す）。"""
        for child in self.root.children:
            self._remove(child)
        self.root.children = []
        self._suspended = []
        self.element = None
        self.state.element = None

    # ---- diff ----
    def _can_update(self, fiber: Fiber, element: Element) -> bool:
        old = fiber.element
        if old is None:
            return False
        if old.is_component or element.is_component:
            if old.kind is not element.kind:
                return False
        elif self.catalogue.normalize_key(old.kind) != self.catalogue.normalize_key(element.kind):
            return False
        return (
            old.attach == element.attach
            and old.object is element.object
            and same_value(old.args, element.args)
        )

    def _reconcile_children(self, fiber: Fiber, elements: Sequence[Element]) -> None:
        keyed: dict[Any, Fiber] = {}
        unkeyed: list[Fiber] = []
        stale: list[Fiber] = []
        for child in fiber.children:
            if child.key is None:
                unkeyed.append(child)
            elif child.key in keyed:
                stale.append(child)
            else:
                keyed[child.key] = child

        matches: list[tuple[Element, Fiber | None]] = []
        cursor = 0
        for element in elements:
            if element.key is not None:
                candidate = keyed.pop(element.key, None)
            else:
                candidate = unkeyed[cursor] if cursor < len(unkeyed) else None
                cursor += 1
            if candidate is not None and not self._can_update(candidate, element):
                stale.append(candidate)
                candidate = None
            matches.append((element, candidate))
        stale.extend(keyed.values())
        stale.extend(unkeyed[cursor:])

        # 先に外しておくと、置き換え先が同じ attach スロットを正しく引き継げる
        for old in stale:
            self._remove(old)

        children: list[Fiber] = []
        for element, candidate in matches:
            if candidate is None:
                children.append(self._mount(element, fiber))
            else:
                self._update(candidate, element)
                children.append(candidate)
        fiber.children = children

    def _mount(self, element: Element, parent: Fiber) -> Fiber:
        fiber = Fiber(element, parent=parent)
        if element.is_component:
            self._render_component(fiber)
            return fiber

        fiber.node = create_instance(
            element.kind,  # type: ignore[arg-type]
            element.props,
            args=element.args,
            attach=element.attach,
            object=element.object,
            catalogue=self.catalogue,
            handlers=self.state.handlers,
        )
        self._reconcile_children(fiber, element.children)
        self._sync_host_children(fiber)
        _assign_ref(element.props.get("ref"), fiber.node.object)
        return fiber

    def _update(self, fiber: Fiber, element: Element) -> None:
        previous = fiber.element
        fiber.element = element
        if element.is_component:
            self._render_component(fiber)
            return

        node = fiber.node
        assert node is not None
        apply_props(node.object, element.props, node.props, handlers=self.state.handlers)
        node.props = dict(element.props)

        old_ref = previous.props.get("ref") if previous is not None else None
        new_ref = element.props.get("ref")
        if old_ref is not new_ref:
            _assign_ref(old_ref, None)
            _assign_ref(new_ref, node.object)

        self._reconcile_children(fiber, element.children)
        self._sync_host_children(fiber)

    def _render_component(self, fiber: Fiber) -> None:
        element = fiber.element
        assert element is not None
        fiber.hook_cursor = 0
        try:
            with hooks.rendering(self.state, fiber):
                output = element.kind(element.component_props())  # type: ignore[operator]
        except Suspended:
            fiber.suspended = True
            if not any(f is fiber for f in self._suspended):
                self._suspended.append(fiber)
            logger.debug("%r suspended; keeping previous children", fiber)
            return
        fiber.suspended = False
        self._drop_frame_refs(fiber, fiber.hook_cursor)

        if output is not None and not isinstance(output, Element):
            raise TypeError(
                f"component {element.kind_name} must return an Element or None, "
                f"got {type(output).__name__}"
            )
        self._reconcile_children(fiber, [output] if output is not None else [])

    # ---- ordering ----
    def _sync_host_children(self, fiber: Fiber) -> None:
        """ホスト `fiber` の子ノードを attach スロットへ付け、空間的な子を要素順に並べる。"""
        parent = fiber.node
        assert parent is not None
        host = parent.object

        spatial: list[InstanceNode] = []
        for child in fiber.children:
            for node in child.host_nodes():
                if node.attach and hasattr(host, node.attach):
                    if getattr(host, node.attach) is not node.object:
                        append_child(parent, node)
                elif isinstance(node.object, Object3D):
                    spatial.append(node)

        if not isinstance(host, Object3D) or not spatial:
            return
        wanted = {id(n.object) for n in spatial}
        current = [c for c in host.children if id(c) in wanted]
        if len(current) == len(spatial) and all(
            c is n.object for c, n in zip(current, spatial)
        ):
            return

        anchor: InstanceNode | None = None
        for node in reversed(spatial):
            if anchor is None:
                if node.object.parent is not host:
                    append_child(parent, node)
            else:
                insert_before(parent, node, anchor)
            anchor = node

    # ---- removal ----
    def _drop_frame_refs(self, fiber: Fiber, keep: int) -> None:
        for ref in fiber.frame_refs[keep:]:
            self.state.remove_subscriber(ref)
        del fiber.frame_refs[keep:]

    def _remove(self, fiber: Fiber) -> None:
        keep = {
            id(f.node.object) for f in fiber.walk() if f.node is not None and not f.node.disposable
        }
        events = self.state.events
        for f in fiber.walk():
            f.mounted = False
            self._drop_frame_refs(f, 0)
            if f.node is not None:
                assert f.element is not None
                _assign_ref(f.element.props.get("ref"), None)
                self.state.handlers.discard(f.node.object)
                if events is not None:
                    events.forget(f.node.object)
            logger.debug("unmounted %r", f)

        parent = fiber.host_parent().node
        assert parent is not None
        for node in fiber.host_nodes():
            remove_child(parent, node, dispose=node.disposable, keep=keep)


__all__ = ["Fiber", "Reconciler"]
