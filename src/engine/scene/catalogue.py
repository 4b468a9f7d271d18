"""
どこで: `engine.scene.catalogue`（kind → ファクトリの明示テーブル）。
何を: 要素 kind 名を構築可能な型/関数へ解決する `KindCatalogue` と、ビルトイン登録。
なぜ: 文字列からの動的な型探索をやめ、登録時に検証されたテーブルで解決し、
未登録は `UnknownKindError` として型付きで失敗させるため。

概要:
- キーは `BaseRegistry` の正規化を通る（"BoxGeometry" と "box_geometry" は同一）。
- "primitive" は既存オブジェクトを差し込むための予約名で、登録できない。
- `@register_kind` / `@register_kind("name")` でユーザ型を既定カタログへ追加できる。
"""

from __future__ import annotations

from typing import Any, Callable

from common.base_registry import BaseRegistry
from engine.core.camera import OrthographicCamera, PerspectiveCamera
from engine.core.geometry import BoxGeometry, BufferGeometry, PlaneGeometry, SphereGeometry
from engine.core.material import MeshBasicMaterial, MeshStandardMaterial, Texture
from engine.core.object3d import AmbientLight, DirectionalLight, Group, Mesh, PointLight, Scene

from .errors import UnknownKindError

PRIMITIVE_KIND = "primitive"

Factory = Callable[..., Any]

_BUILTINS: tuple[Factory, ...] = (
    Scene,
    Group,
    Mesh,
    AmbientLight,
    DirectionalLight,
    PointLight,
    PerspectiveCamera,
    OrthographicCamera,
    BufferGeometry,
    BoxGeometry,
    PlaneGeometry,
    SphereGeometry,
    MeshBasicMaterial,
    MeshStandardMaterial,
    Texture,
)


class KindCatalogue(BaseRegistry):
    """kind 名 → ファクトリ（クラスまたは関数）のレジストリ。"""

    def _validate(self, key: str, obj: Any) -> None:
        if key == PRIMITIVE_KIND:
            raise ValueError(f"'{PRIMITIVE_KIND}' is reserved and can't be registered")
        super()._validate(key, obj)

    def resolve(self, kind: str) -> tuple[str, Factory]:
        """kind を (正規化キー, ファクトリ) へ解決する。未登録は `UnknownKindError`。"""
        try:
            key = self.normalize_key(kind)
        except (TypeError, ValueError) as e:
            raise UnknownKindError(kind) from e
        factory = self._registry.get(key)
        if factory is None:
            raise UnknownKindError(kind, self.list_all())
        return key, factory

    def copy(self) -> "KindCatalogue":
        clone = KindCatalogue()
        clone._registry.update(self._registry)
        return clone


def builtin_catalogue() -> KindCatalogue:
    """ビルトイン型を登録した新しいカタログを返す。"""
    catalogue = KindCatalogue()
    for factory in _BUILTINS:
        catalogue.add(factory.__name__, factory)
    return catalogue


DEFAULT_CATALOGUE = builtin_catalogue()


def register_kind(arg: Any | None = None, /, name: str | None = None):
    """既定カタログへ型/関数を登録するデコレータ。

    使用例:
    - `@register_kind` / `@register_kind()`               → クラス/関数名から自動推論。
    - `@register_kind("torus_knot")` / `@register_kind(name=...)` → 明示名で登録。
    """
    if callable(arg) and not isinstance(arg, str) and name is None:
        return DEFAULT_CATALOGUE.add(arg.__name__, arg)

    resolved = arg if isinstance(arg, str) else name

    def _decorator(obj: Any):
        return DEFAULT_CATALOGUE.add(resolved or obj.__name__, obj)

    return _decorator


__all__ = [
    "KindCatalogue",
    "builtin_catalogue",
    "DEFAULT_CATALOGUE",
    "register_kind",
    "PRIMITIVE_KIND",
]
