"""
どこで: `engine.scene` サブパッケージ。
何を: 宣言的な要素ツリーをシーングラフへ反映するリコンサイラ一式
（要素/カタログ/インスタンス生成/props 適用/付け外し/描画ループ/ポインタイベント/ルート管理）。
なぜ: 呼び出し側は「望むシーン」を毎回記述するだけで、生成・更新・破棄とフレーム駆動を任せられるようにするため。
"""

from .catalogue import DEFAULT_CATALOGUE, KindCatalogue, register_kind
from .element import Element, Ref, create_element, h
from .errors import (
    MissingObjectError,
    SceneError,
    Suspended,
    UnknownKindError,
    UsedOutsideSurfaceError,
)
from .events import PointerEvent, PointerEventManager
from .handlers import HandlerStore
from .hooks import use_frame, use_resource, use_surface
from .instance import InstanceNode, create_instance
from .loop import RenderLoop, SurfaceState
from .mutator import append_child, insert_before, remove_child
from .props import apply_props
from .reconciler import Fiber, Reconciler
from .roots import RootManager

__all__ = [
    "DEFAULT_CATALOGUE",
    "KindCatalogue",
    "register_kind",
    "Element",
    "Ref",
    "create_element",
    "h",
    "SceneError",
    "UnknownKindError",
    "MissingObjectError",
    "UsedOutsideSurfaceError",
    "Suspended",
    "PointerEvent",
    "PointerEventManager",
    "HandlerStore",
    "use_frame",
    "use_resource",
    "use_surface",
    "InstanceNode",
    "create_instance",
    "RenderLoop",
    "SurfaceState",
    "append_child",
    "insert_before",
    "remove_child",
    "apply_props",
    "Fiber",
    "Reconciler",
    "RootManager",
]
