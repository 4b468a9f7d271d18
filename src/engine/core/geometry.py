"""
三角形メッシュ用のバッファジオメトリ。

データモデル（不変条件）:
- `positions: float32 ndarray (N, 3)` — 頂点座標。
- `normals: float32 ndarray (N, 3)` — 頂点法線（未指定なら面法線の累積から算出）。
- `uvs: float32 ndarray (N, 2) | None` — テクスチャ座標（任意）。
- `indices: uint32 ndarray (M, 3)` — 三角形ごとの頂点 index（反時計回りが表）。
- dtype/形状は生成時に検証・正規化し、以降は読み取り専用として扱う。

リソース寿命:
- `dispose()` は 1 度だけ "dispose" を通知する。レンダラはこれを受けて VBO/IBO を解放する。
- 破棄後のジオメトリは再描画されない（再利用したい場合は新しく作る）。

構築ユーティリティ:
- `BoxGeometry(width, height, depth)` — 面ごとに独立した 24 頂点/12 三角形。
- `PlaneGeometry(width, height)` — XY 平面、+Z 向き。
- `SphereGeometry(radius, width_segments, height_segments)` — 緯度経度グリッド。
"""

from __future__ import annotations

import numpy as np

from .dispatcher import EventDispatcher


def _normalize_buffers(
    positions: np.ndarray,
    indices: np.ndarray | None,
    normals: np.ndarray | None,
    uvs: np.ndarray | None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray | None, np.ndarray | None]:
    """`BufferGeometry` 生成時の内部正規化ヘルパ。"""
    pos = np.ascontiguousarray(np.asarray(positions, dtype=np.float32))
    if pos.ndim != 2 or pos.shape[1] != 3:
        raise ValueError("positions は形状 (N, 3) の配列である必要があります。")

    if indices is None:
        if pos.shape[0] % 3 != 0:
            raise ValueError("indices 省略時、頂点数は 3 の倍数である必要があります。")
        idx = np.arange(pos.shape[0], dtype=np.uint32).reshape(-1, 3)
    else:
        idx = np.ascontiguousarray(np.asarray(indices, dtype=np.int64).reshape(-1, 3))
        if idx.size and (idx.min() < 0 or idx.max() >= pos.shape[0]):
            raise ValueError("indices が positions の範囲外を参照しています。")
        idx = idx.astype(np.uint32)

    nrm = None
    if normals is not None:
        nrm = np.ascontiguousarray(np.asarray(normals, dtype=np.float32))
        if nrm.shape != pos.shape:
            raise ValueError("normals は positions と同じ形状である必要があります。")

    uv = None
    if uvs is not None:
        uv = np.ascontiguousarray(np.asarray(uvs, dtype=np.float32))
        if uv.shape != (pos.shape[0], 2):
            raise ValueError("uvs は形状 (N, 2) の配列である必要があります。")
    return pos, idx, nrm, uv


def compute_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """面法線（面積重み）を頂点へ累積し正規化した法線を返す。"""
    normals = np.zeros_like(positions, dtype=np.float32)
    if indices.size == 0:
        return normals
    tri = positions[indices.astype(np.int64)]
    face = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    for k in range(3):
        np.add.at(normals, indices[:, k].astype(np.int64), face)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    np.divide(normals, lengths, out=normals, where=lengths > 0)
    return normals


class BufferGeometry(EventDispatcher):
    """三角形メッシュの頂点/インデックスを保持する。"""

    def __init__(
        self,
        positions: np.ndarray | None = None,
        indices: np.ndarray | None = None,
        normals: np.ndarray | None = None,
        uvs: np.ndarray | None = None,
    ) -> None:
        if positions is None:
            positions = np.zeros((0, 3), dtype=np.float32)
        pos, idx, nrm, uv = _normalize_buffers(positions, indices, normals, uvs)
        self.positions = pos
        self.indices = idx
        self.normals = nrm if nrm is not None else compute_vertex_normals(pos, idx)
        self.uvs = uv
        self.disposed = False
        self._bounding_sphere: tuple[np.ndarray, float] | None = None

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0

    @property
    def bounding_sphere(self) -> tuple[np.ndarray, float]:
        """(中心, 半径)。AABB 中心から最遠頂点までの距離で近似する（遅延計算）。"""
        if self._bounding_sphere is None:
            if self.vertex_count == 0:
                self._bounding_sphere = (np.zeros(3), 0.0)
            else:
                pts = self.positions.astype(np.float64)
                center = (pts.min(axis=0) + pts.max(axis=0)) / 2.0
                radius = float(np.max(np.linalg.norm(pts - center, axis=1)))
                self._bounding_sphere = (center, radius)
        return self._bounding_sphere

    def triangles(self) -> np.ndarray:
        """(M, 3, 3) の三角形頂点配列。"""
        return self.positions[self.indices.astype(np.int64)]

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.dispatch_event("dispose")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} verts={self.vertex_count} tris={self.triangle_count}>"


# ── ビルトイン形状 ───────────────────
_BOX_FACES = (
    # (法線, u 軸, v 軸)。u×v が法線と一致するよう並べる（反時計回りが表）。
    ((1.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 1.0, 0.0)),
    ((-1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 1.0, 0.0)),
    ((0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, -1.0)),
    ((0.0, -1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0)),
    ((0.0, 0.0, 1.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
    ((0.0, 0.0, -1.0), (-1.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
)
_QUAD_CORNERS = ((-1.0, -1.0), (1.0, -1.0), (1.0, 1.0), (-1.0, 1.0))


class BoxGeometry(BufferGeometry):
    def __init__(self, width: float = 1.0, height: float = 1.0, depth: float = 1.0) -> None:
        half = np.array([width, height, depth], dtype=np.float64) / 2.0
        positions: list[np.ndarray] = []
        normals: list[tuple[float, float, float]] = []
        uvs: list[tuple[float, float]] = []
        indices: list[tuple[int, int, int]] = []
        for face_no, (n, u, v) in enumerate(_BOX_FACES):
            n_arr, u_arr, v_arr = np.array(n), np.array(u), np.array(v)
            base = face_no * 4
            for su, sv in _QUAD_CORNERS:
                positions.append((n_arr + su * u_arr + sv * v_arr) * half)
                normals.append(n)
                uvs.append(((su + 1.0) / 2.0, (sv + 1.0) / 2.0))
            indices.append((base, base + 1, base + 2))
            indices.append((base, base + 2, base + 3))
        super().__init__(np.array(positions), np.array(indices), np.array(normals), np.array(uvs))
        self.parameters = {"width": float(width), "height": float(height), "depth": float(depth)}


class PlaneGeometry(BufferGeometry):
    def __init__(self, width: float = 1.0, height: float = 1.0) -> None:
        hw, hh = width / 2.0, height / 2.0
        positions = np.array([(su * hw, sv * hh, 0.0) for su, sv in _QUAD_CORNERS])
        normals = np.tile([0.0, 0.0, 1.0], (4, 1))
        uvs = np.array([((su + 1.0) / 2.0, (sv + 1.0) / 2.0) for su, sv in _QUAD_CORNERS])
        super().__init__(positions, np.array([(0, 1, 2), (0, 2, 3)]), normals, uvs)
        self.parameters = {"width": float(width), "height": float(height)}


class SphereGeometry(BufferGeometry):
    def __init__(
        self, radius: float = 1.0, width_segments: int = 32, height_segments: int = 16
    ) -> None:
        ws = max(3, int(width_segments))
        hs = max(2, int(height_segments))
        u = np.linspace(0.0, 1.0, ws + 1)
        v = np.linspace(0.0, 1.0, hs + 1)
        uu, vv = np.meshgrid(u, v)  # (hs+1, ws+1)
        theta = uu * 2.0 * np.pi
        phi = vv * np.pi
        unit = np.stack(
            [-np.cos(theta) * np.sin(phi), np.cos(phi), np.sin(theta) * np.sin(phi)], axis=-1
        ).reshape(-1, 3)
        uvs = np.stack([uu, 1.0 - vv], axis=-1).reshape(-1, 2)

        indices: list[tuple[int, int, int]] = []
        row = ws + 1
        for iy in range(hs):
            for ix in range(ws):
                a = iy * row + ix + 1
                b = iy * row + ix
                c = (iy + 1) * row + ix
                d = (iy + 1) * row + ix + 1
                if iy != 0:
                    indices.append((a, b, d))
                if iy != hs - 1:
                    indices.append((b, c, d))
        super().__init__(unit * float(radius), np.array(indices), unit, uvs)
        self.parameters = {
            "radius": float(radius),
            "width_segments": ws,
            "height_segments": hs,
        }


__all__ = [
    "BufferGeometry",
    "BoxGeometry",
    "PlaneGeometry",
    "SphereGeometry",
    "compute_vertex_normals",
]
