"""
どこで: `engine.scene.element`。
何を: 宣言的な要素記述 `Element` と、そのビルダ `h`/`create_element`、参照ホルダ `Ref`。
なぜ: 望むシーン内容を不変な木として記述し、リコンサイラが前回の木と比較できるようにするため。

使用例:
    tree = h("group", None,
             h("mesh", {"position": (0, 0, 0), "on_click": clicked},
               h("box_geometry", args=(1, 1, 1)),
               h("mesh_standard_material", color="orange")))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar, Union

T = TypeVar("T")

# 要素から取り出して専用フィールドへ置くキー
_LIFTED_KEYS = ("key", "attach", "args", "object")

Kind = Union[str, Callable[..., Any]]


class Ref(Generic[T]):
    """`current` を 1 つ保持するだけの可変ホルダ（`ref` プロップ/フレーム購読で使う）。"""

    __slots__ = ("current",)

    def __init__(self, current: T | None = None) -> None:
        self.current = current

    def __repr__(self) -> str:
        return f"Ref({self.current!r})"


_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class Element:
    """1 つのシーンオブジェクト（またはコンポーネント呼び出し）の記述。

    - `kind`: 登録済み kind 名、"primitive"、またはコンポーネント関数。
    - `props`: 読み取り専用マッピング（`key`/`attach`/`args`/`object` は含まない）。
    - `children`: 子要素のタプル。
    """

    kind: Kind
    props: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    children: tuple["Element", ...] = ()
    key: Any = None
    attach: str | None = None
    args: Any = None
    object: Any = None

    @property
    def is_component(self) -> bool:
        return callable(self.kind) and not isinstance(self.kind, str)

    @property
    def kind_name(self) -> str:
        if isinstance(self.kind, str):
            return self.kind
        return getattr(self.kind, "__name__", repr(self.kind))

    def component_props(self) -> dict[str, Any]:
        """コンポーネントへ渡す props（children を含む）。"""
        props = dict(self.props)
        if self.children:
            props["children"] = self.children
        if self.key is not None:
            props.setdefault("key", self.key)
        return props

    def __repr__(self) -> str:
        return f"Element({self.kind_name!r}, key={self.key!r}, children={len(self.children)})"


def _flatten_children(children: Iterable[Any]) -> tuple[Element, ...]:
    out: list[Element] = []
    for child in children:
        if child is None or child is False or child is True:
            continue
        if isinstance(child, (list, tuple)):
            out.extend(_flatten_children(child))
        elif isinstance(child, Element):
            out.append(child)
        else:
            raise TypeError(f"children must be Element instances, got {type(child).__name__}")
    return tuple(out)


def create_element(
    kind: Kind, props: Mapping[str, Any] | None = None, *children: Any, **kwprops: Any
) -> Element:
    """`Element` を生成する（`props` 辞書とキーワード引数はマージされ、後者が優先）。"""
    if not isinstance(kind, str) and not callable(kind):
        raise TypeError(f"element kind must be a str or a callable component, got {kind!r}")
    merged: dict[str, Any] = dict(props or {})
    merged.update(kwprops)
    nested = merged.pop("children", None)
    lifted = {name: merged.pop(name, None) for name in _LIFTED_KEYS}
    if nested is not None and not children:
        children = (nested,)
    return Element(
        kind=kind,
        props=MappingProxyType(merged),
        children=_flatten_children(children),
        **lifted,
    )


h = create_element


__all__ = ["Element", "Ref", "create_element", "h", "Kind"]
