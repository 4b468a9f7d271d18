"""
どこで: `engine.core.math3d`。
何を: 可変値型 `Vector3`/`Euler`/`Color` と 4x4 行列ユーティリティ（numpy）。
なぜ: Property Applier が「copy/set/set_scalar 契約」で値を書き込めるよう、
シーンオブジェクトの属性を小さな可変値型で統一するため。

行列の規約:
- 列ベクトル規約（`p' = M @ p`）、dtype は float64。
- GPU へ渡すときは `to_gl_bytes(m)`（列優先 float32）を使う。
- Euler は XYZ 順（`R = Rx @ Ry @ Rz`）。
"""

from __future__ import annotations

import math
from typing import Iterator, Sequence

import numpy as np

from util.color import hex_int_to_rgb, normalize_color, srgb_to_linear


class Vector3:
    """3 成分ベクトル（可変）。"""

    __slots__ = ("x", "y", "z")

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> None:
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    def set(self, x: float, y: float, z: float) -> "Vector3":
        self.x, self.y, self.z = float(x), float(y), float(z)
        return self

    def set_scalar(self, s: float) -> "Vector3":
        self.x = self.y = self.z = float(s)
        return self

    def copy(self, other: "Vector3") -> "Vector3":
        self.x, self.y, self.z = other.x, other.y, other.z
        return self

    def clone(self) -> "Vector3":
        return Vector3(self.x, self.y, self.z)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Vector3):
            return self.to_tuple() == other.to_tuple()
        if isinstance(other, (tuple, list)) and len(other) == 3:
            return self.to_tuple() == tuple(float(v) for v in other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Vector3({self.x:g}, {self.y:g}, {self.z:g})"


class Euler:
    """XYZ 順のオイラー角（ラジアン、可変）。"""

    __slots__ = ("x", "y", "z", "order")

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0, order: str = "XYZ"):
        if order != "XYZ":
            raise ValueError(f"unsupported euler order: {order!r} (only 'XYZ')")
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)
        self.order = order

    def set(self, x: float, y: float, z: float, order: str | None = None) -> "Euler":
        if order is not None and order != "XYZ":
            raise ValueError(f"unsupported euler order: {order!r} (only 'XYZ')")
        self.x, self.y, self.z = float(x), float(y), float(z)
        return self

    def copy(self, other: "Euler") -> "Euler":
        self.x, self.y, self.z = other.x, other.y, other.z
        return self

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Euler):
            return self.to_tuple() == other.to_tuple()
        if isinstance(other, (tuple, list)) and len(other) == 3:
            return self.to_tuple() == tuple(float(v) for v in other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Euler({self.x:g}, {self.y:g}, {self.z:g})"


class Color:
    """RGB 色（各成分 0–1、可変）。

    `set` は Color / Hex 文字列 / 0xRRGGBB 整数 / (r, g, b) を受理する。
    色管理が有効な場合、Property Applier が書き込み後に `convert_srgb_to_linear()` を呼ぶ。
    """

    __slots__ = ("r", "g", "b")

    def __init__(self, *value: object) -> None:
        self.r = self.g = self.b = 1.0
        if value:
            self.set(*value)

    def set(self, *value: object) -> "Color":
        if len(value) == 3:
            r, g, b = value
            return self.set_rgb(float(r), float(g), float(b))  # type: ignore[arg-type]
        if len(value) != 1:
            raise TypeError(f"Color.set() takes 1 or 3 arguments ({len(value)} given)")
        v = value[0]
        if isinstance(v, Color):
            return self.copy(v)
        if isinstance(v, int) and not isinstance(v, bool):
            return self.set_rgb(*hex_int_to_rgb(v))
        r, g, b, _a = normalize_color(v)
        return self.set_rgb(r, g, b)

    def set_rgb(self, r: float, g: float, b: float) -> "Color":
        self.r, self.g, self.b = float(r), float(g), float(b)
        return self

    def copy(self, other: "Color") -> "Color":
        self.r, self.g, self.b = other.r, other.g, other.b
        return self

    def convert_srgb_to_linear(self) -> "Color":
        self.r = srgb_to_linear(self.r)
        self.g = srgb_to_linear(self.g)
        self.b = srgb_to_linear(self.b)
        return self

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def __iter__(self) -> Iterator[float]:
        yield self.r
        yield self.g
        yield self.b

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Color):
            return self.to_tuple() == other.to_tuple()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Color({self.r:.4g}, {self.g:.4g}, {self.b:.4g})"


# ---------- 行列 ------------------------------------------------------------ #
def rotation_matrix(euler: Euler | Sequence[float]) -> np.ndarray:
    """XYZ 順オイラー角の 3x3 回転行列。"""
    x, y, z = (float(v) for v in euler)
    cx, sx = math.cos(x), math.sin(x)
    cy, sy = math.cos(y), math.sin(y)
    cz, sz = math.cos(z), math.sin(z)
    rx = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rx @ ry @ rz


def euler_from_rotation(m: np.ndarray) -> tuple[float, float, float]:
    """3x3（または 4x4 の左上）回転行列から XYZ 順オイラー角を求める。"""
    m13 = float(np.clip(m[0, 2], -1.0, 1.0))
    y = math.asin(m13)
    if abs(m13) < 0.9999999:
        x = math.atan2(-m[1, 2], m[2, 2])
        z = math.atan2(-m[0, 1], m[0, 0])
    else:
        x = math.atan2(m[2, 1], m[1, 1])
        z = 0.0
    return (float(x), float(y), float(z))


def compose_matrix(position: Vector3, rotation: Euler, scale: Vector3) -> np.ndarray:
    """平行移動・回転・スケールから 4x4 アフィン行列を合成する。"""
    m = np.eye(4)
    m[:3, :3] = rotation_matrix(rotation) * np.array([scale.x, scale.y, scale.z])
    m[:3, 3] = (position.x, position.y, position.z)
    return m


def look_rotation(
    eye: Sequence[float], target: Sequence[float], up: Sequence[float] = (0.0, 1.0, 0.0)
) -> np.ndarray:
    """`eye` から `target` を向く（-Z が前方）3x3 回転行列。"""
    e = np.asarray(eye, dtype=np.float64)
    t = np.asarray(target, dtype=np.float64)
    u = np.asarray(up, dtype=np.float64)
    z = e - t
    n = np.linalg.norm(z)
    z = np.array([0.0, 0.0, 1.0]) if n == 0.0 else z / n
    x = np.cross(u, z)
    if np.linalg.norm(x) < 1e-12:
        # up と視線が平行: 別の基準軸で直交軸を得る
        alt = np.array([1.0, 0.0, 0.0]) if abs(z[0]) < 0.9 else np.array([0.0, 0.0, 1.0])
        x = np.cross(alt, z)
    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return np.stack([x, y, z], axis=1)


def perspective_matrix(fov_deg: float, aspect: float, near: float, far: float) -> np.ndarray:
    """OpenGL 形式の透視投影行列（クリップ z は -1..1）。"""
    f = 1.0 / math.tan(math.radians(fov_deg) / 2.0)
    m = np.zeros((4, 4))
    m[0, 0] = f / aspect
    m[1, 1] = f
    m[2, 2] = (far + near) / (near - far)
    m[2, 3] = (2.0 * far * near) / (near - far)
    m[3, 2] = -1.0
    return m


def orthographic_matrix(
    left: float, right: float, top: float, bottom: float, near: float, far: float
) -> np.ndarray:
    m = np.eye(4)
    m[0, 0] = 2.0 / (right - left)
    m[1, 1] = 2.0 / (top - bottom)
    m[2, 2] = -2.0 / (far - near)
    m[0, 3] = -(right + left) / (right - left)
    m[1, 3] = -(top + bottom) / (top - bottom)
    m[2, 3] = -(far + near) / (far - near)
    return m


def transform_points(m: np.ndarray, points: np.ndarray) -> np.ndarray:
    """(N,3) 点列へ 4x4 行列を適用し、同次座標の w で割って返す。"""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homo = np.hstack([pts, np.ones((pts.shape[0], 1))]) @ m.T
    return homo[:, :3] / homo[:, 3:4]


def to_gl_bytes(m: np.ndarray) -> bytes:
    """行列を GLSL `mat4`/`mat3` が期待する列優先 float32 バイト列へ変換する。"""
    return np.ascontiguousarray(m.T, dtype=np.float32).tobytes()


__all__ = [
    "Vector3",
    "Euler",
    "Color",
    "rotation_matrix",
    "euler_from_rotation",
    "compose_matrix",
    "look_rotation",
    "perspective_matrix",
    "orthographic_matrix",
    "transform_points",
    "to_gl_bytes",
]
