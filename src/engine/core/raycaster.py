"""
どこで: `engine.core.raycaster`。
何を: カメラからの光線生成と、シーングラフ（Mesh）との交差判定。
なぜ: ポインタ入力をシーン上のインスタンスへ対応付ける（合成ポインタイベント）ため。

手順:
1) `set_from_camera(ndc, camera)` — NDC の near/far 点を逆投影して光線を作る。
2) `intersect_objects(objects, recursive=True)` — 可視 Mesh ごとに
   バウンディング球で早期棄却 → ローカル空間で Möller–Trumbore（ベクトル化）。
3) 結果は距離の昇順（手前が先頭）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from .camera import Camera
from .math3d import transform_points
from .object3d import Mesh, Object3D

_EPS = 1e-9


@dataclass(frozen=True)
class Ray:
    origin: np.ndarray
    direction: np.ndarray  # 正規化済み

    def at(self, t: float) -> np.ndarray:
        return self.origin + self.direction * t

    def transformed(self, m: np.ndarray) -> "Ray":
        """4x4 行列 `m` を適用した光線（方向は再正規化しない）。"""
        o = transform_points(m, self.origin[None, :])[0]
        d = m[:3, :3] @ self.direction
        return Ray(o, d)


@dataclass(frozen=True)
class Intersection:
    distance: float
    point: np.ndarray
    object: Object3D
    face_index: int


def intersect_triangles(ray: Ray, triangles: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Möller–Trumbore を (M,3,3) 三角形へ一括適用する。

    Returns
    -------
    (t, hit) : 各三角形の光線パラメータ t と、ヒットしたかのマスク。両面判定。
    """
    tris = np.asarray(triangles, dtype=np.float64)
    if tris.size == 0:
        return np.zeros(0), np.zeros(0, dtype=bool)
    v0, v1, v2 = tris[:, 0], tris[:, 1], tris[:, 2]
    e1 = v1 - v0
    e2 = v2 - v0
    p = np.cross(ray.direction, e2)
    det = np.einsum("ij,ij->i", e1, p)
    ok = np.abs(det) > _EPS
    inv = np.zeros_like(det)
    inv[ok] = 1.0 / det[ok]
    s = ray.origin - v0
    u = np.einsum("ij,ij->i", s, p) * inv
    q = np.cross(s, e1)
    v = (q @ ray.direction) * inv
    t = np.einsum("ij,ij->i", e2, q) * inv
    hit = ok & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0) & (t > _EPS)
    return t, hit


class Raycaster:
    def __init__(self, near: float = 0.0, far: float = float("inf")) -> None:
        self.near = float(near)
        self.far = float(far)
        self.ray = Ray(np.zeros(3), np.array([0.0, 0.0, -1.0]))

    def set(self, origin: Sequence[float], direction: Sequence[float]) -> None:
        d = np.asarray(direction, dtype=np.float64)
        n = np.linalg.norm(d)
        if n == 0.0:
            raise ValueError("ray direction must be non-zero")
        self.ray = Ray(np.asarray(origin, dtype=np.float64), d / n)

    def set_from_camera(self, ndc: Sequence[float], camera: Camera) -> None:
        """NDC 座標 (x, y)（-1..1）を通るカメラ光線を設定する。"""
        if camera.parent is None:
            camera.update_matrix_world()
        inv = camera.matrix_world @ np.linalg.inv(camera.projection_matrix)
        x, y = float(ndc[0]), float(ndc[1])
        near_far = transform_points(inv, np.array([[x, y, -1.0], [x, y, 1.0]]))
        self.set(near_far[0], near_far[1] - near_far[0])

    def intersect_object(self, obj: Object3D, recursive: bool = True) -> list[Intersection]:
        hits: list[Intersection] = []
        self._collect(obj, recursive, hits)
        hits.sort(key=lambda h: h.distance)
        return hits

    def intersect_objects(
        self, objects: Iterable[Object3D], recursive: bool = True
    ) -> list[Intersection]:
        hits: list[Intersection] = []
        for obj in objects:
            self._collect(obj, recursive, hits)
        hits.sort(key=lambda h: h.distance)
        return hits

    # ---- internal ----
    def _collect(self, obj: Object3D, recursive: bool, out: list[Intersection]) -> None:
        if not obj.visible:
            return
        if isinstance(obj, Mesh):
            hit = self._intersect_mesh(obj)
            if hit is not None:
                out.append(hit)
        if recursive:
            for child in obj.children:
                self._collect(child, recursive, out)

    def _intersect_mesh(self, mesh: Mesh) -> Intersection | None:
        geometry = mesh.geometry
        if geometry is None or getattr(geometry, "is_empty", True):
            return None
        world = mesh.matrix_world
        # バウンディング球（ワールド空間）で早期棄却
        center, radius = geometry.bounding_sphere
        w_center = transform_points(world, center[None, :])[0]
        w_radius = radius * float(np.max(np.linalg.norm(world[:3, :3], axis=0)))
        oc = w_center - self.ray.origin
        tca = float(oc @ self.ray.direction)
        d2 = float(oc @ oc) - tca * tca
        if d2 > w_radius * w_radius + _EPS:
            return None

        try:
            inv_world = np.linalg.inv(world)
        except np.linalg.LinAlgError:
            # スケール 0 などの退化行列は当たらない
            return None
        local_ray = self.ray.transformed(inv_world)
        t, mask = intersect_triangles(local_ray, geometry.triangles())
        if not np.any(mask):
            return None
        candidates = np.flatnonzero(mask)
        best = int(candidates[np.argmin(t[candidates])])
        local_point = local_ray.at(float(t[best]))
        point = transform_points(world, local_point[None, :])[0]
        distance = float(np.linalg.norm(point - self.ray.origin))
        if distance < self.near or distance > self.far:
            return None
        return Intersection(distance=distance, point=point, object=mesh, face_index=best)


__all__ = ["Ray", "Intersection", "Raycaster", "intersect_triangles"]
