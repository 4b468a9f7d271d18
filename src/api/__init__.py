"""
どこで: `api` 入口（高レベル公開 API）。
何を: 要素ビルダ `h`・`Ref`・フック・`register_kind`・`render`/`unmount`/`run` を再輸出。
なぜ: 利用者が単一名前空間から「シーンを記述 → サーフェスへ描画 → ループ実行」まで完結できるようにするため。

Usage:
    from api import h, run, use_frame, Ref

    def Box(props):
        ref = Ref()
        use_frame(lambda state, dt: ref.current.rotation.set(0, state.loop.clock.elapsed, 0))
        return h("mesh", {"ref": ref, "position": props.get("position", (0, 0, 0))},
                 h("box_geometry", args=(1, 1, 1)),
                 h("mesh_standard_material", color="orange"))

    def App(props):
        return h("group", None,
                 h("ambient_light", intensity=0.3),
                 h("point_light", position=(10, 10, 10)),
                 h(Box, position=(-1.2, 0, 0)),
                 h(Box, position=(1.2, 0, 0)))

    run(App)
"""

from engine.scene.catalogue import register_kind
from engine.scene.element import Element, Ref, create_element, h
from engine.scene.errors import (
    MissingObjectError,
    SceneError,
    UnknownKindError,
    UsedOutsideSurfaceError,
)
from engine.scene.hooks import use_frame, use_resource, use_surface
from engine.scene.roots import RootManager

from .roots import close_manager, get_manager, render, set_manager, unmount
from .runner import run

__all__ = [
    # 要素
    "h",
    "create_element",
    "Element",
    "Ref",
    "register_kind",
    # フック
    "use_frame",
    "use_surface",
    "use_resource",
    # ルート
    "render",
    "unmount",
    "get_manager",
    "set_manager",
    "close_manager",
    "RootManager",
    "run",
    # 例外
    "SceneError",
    "UnknownKindError",
    "MissingObjectError",
    "UsedOutsideSurfaceError",
]

# バージョン情報
__version__ = "2026.10"
