"""
どこで: `engine.core.object3d`。
何を: 保持型シーングラフのノード（Object3D/Group/Scene/Mesh/ライト）。
なぜ: リコンサイラが生成・更新・付け外しする実体を、レンダラ/レイキャスタから
同じ木として読めるようにするため。

不変条件:
- 1 つのオブジェクトが属する親は高々 1 つ（`add` は既存の親から先に外す）。
- `children` の所属判定は同一性（`is`）。`Object3D` は `__eq__` を持たない。
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

import numpy as np

from .dispatcher import EventDispatcher
from .math3d import Color, Euler, Vector3, compose_matrix, euler_from_rotation, look_rotation


class Object3D(EventDispatcher):
    """空間上の変換と子を持つシーングラフの基本ノード。"""

    is_scene = False

    def __init__(self) -> None:
        self.name = ""
        self.position = Vector3()
        self.rotation = Euler()
        self.scale = Vector3(1.0, 1.0, 1.0)
        self.visible = True
        self.children: list[Object3D] = []
        self.parent: Object3D | None = None
        self.matrix = np.eye(4)
        self.matrix_world = np.eye(4)
        self.user_data: dict[str, Any] = {}
        self._listeners = {}

    # ---- 子の付け外し ----
    def add(self, *objects: "Object3D") -> "Object3D":
        for obj in objects:
            if obj is self:
                raise ValueError("object can't be added as a child of itself")
            if obj.parent is not None:
                obj.parent.remove(obj)
            obj.parent = self
            self.children.append(obj)
            obj.dispatch_event("added")
        return self

    def remove(self, *objects: "Object3D") -> "Object3D":
        for obj in objects:
            idx = self.index_of(obj)
            if idx < 0:
                continue
            del self.children[idx]
            obj.parent = None
            obj.dispatch_event("removed")
        return self

    def index_of(self, obj: "Object3D") -> int:
        """`obj` の子インデックス（同一性で比較、無ければ -1）。"""
        for i, child in enumerate(self.children):
            if child is obj:
                return i
        return -1

    def remove_from_parent(self) -> "Object3D":
        if self.parent is not None:
            self.parent.remove(self)
        return self

    def traverse(self, fn: Callable[["Object3D"], None]) -> None:
        fn(self)
        for child in list(self.children):
            child.traverse(fn)

    def iter_descendants(self) -> Iterator["Object3D"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    # ---- 変換 ----
    def update_matrix(self) -> None:
        self.matrix = compose_matrix(self.position, self.rotation, self.scale)

    def update_matrix_world(self) -> None:
        """自身と子孫の `matrix_world` を親から順に再計算する。"""
        self.update_matrix()
        if self.parent is None:
            self.matrix_world = self.matrix
        else:
            self.matrix_world = self.parent.matrix_world @ self.matrix
        for child in self.children:
            child.update_matrix_world()

    def look_at(self, x: float, y: float, z: float) -> None:
        """+Z 軸がワールド座標 (x, y, z) を向くよう回転を設定する。"""
        rot = look_rotation((x, y, z), self.position.to_tuple())
        self.rotation.set(*euler_from_rotation(rot))

    def world_position(self) -> np.ndarray:
        return np.array(self.matrix_world[:3, 3], dtype=np.float64)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return f"<{type(self).__name__}{label} children={len(self.children)}>"


class Group(Object3D):
    """変換だけを持つ入れ物。"""


class Scene(Object3D):
    """シーンのルート。`background` が None ならレンダラの clear_color を使う。"""

    is_scene = True

    def __init__(self) -> None:
        super().__init__()
        self.background: Color | None = None


class Mesh(Object3D):
    """ジオメトリとマテリアルのスロットを持つ描画ノード。"""

    def __init__(self, geometry: Any = None, material: Any = None) -> None:
        super().__init__()
        self.geometry = geometry
        self.material = material


class Light(Object3D):
    def __init__(self, color: Any = 0xFFFFFF, intensity: float = 1.0) -> None:
        super().__init__()
        self.color = Color(color)
        self.intensity = float(intensity)


class AmbientLight(Light):
    pass


class DirectionalLight(Light):
    """`position` から原点（`target`）へ向かう平行光源。"""

    def __init__(self, color: Any = 0xFFFFFF, intensity: float = 1.0) -> None:
        super().__init__(color, intensity)
        self.position.set(0.0, 1.0, 0.0)
        self.target = Vector3()


class PointLight(Light):
    def __init__(
        self,
        color: Any = 0xFFFFFF,
        intensity: float = 1.0,
        distance: float = 0.0,
        decay: float = 2.0,
    ) -> None:
        super().__init__(color, intensity)
        self.distance = float(distance)
        self.decay = float(decay)


__all__ = [
    "Object3D",
    "Group",
    "Scene",
    "Mesh",
    "Light",
    "AmbientLight",
    "DirectionalLight",
    "PointLight",
]
