"""
どこで: `engine.core.camera`。
何を: 投影行列を持つカメラ（透視/正射影）。
なぜ: レンダラの view/projection とレイキャスタの逆投影で同じ行列を共有するため。
"""

from __future__ import annotations

import numpy as np

from .math3d import euler_from_rotation, look_rotation, orthographic_matrix, perspective_matrix
from .object3d import Object3D


class Camera(Object3D):
    """-Z 方向を向くカメラの基底。"""

    def __init__(self) -> None:
        super().__init__()
        self.projection_matrix = np.eye(4)

    @property
    def view_matrix(self) -> np.ndarray:
        return np.linalg.inv(self.matrix_world)

    def look_at(self, x: float, y: float, z: float) -> None:
        """-Z 軸がワールド座標 (x, y, z) を向くよう回転を設定する。"""
        rot = look_rotation(self.position.to_tuple(), (x, y, z))
        self.rotation.set(*euler_from_rotation(rot))

    def set_aspect(self, aspect: float) -> None:  # pragma: no cover - サブクラスで上書き
        """ビューポートの縦横比を反映する（既定は何もしない）。"""

    def update_projection_matrix(self) -> None:  # pragma: no cover - サブクラスで上書き
        pass


class PerspectiveCamera(Camera):
    def __init__(
        self, fov: float = 75.0, aspect: float = 1.0, near: float = 0.1, far: float = 1000.0
    ) -> None:
        super().__init__()
        self.fov = float(fov)
        self.aspect = float(aspect)
        self.near = float(near)
        self.far = float(far)
        self.update_projection_matrix()

    def set_aspect(self, aspect: float) -> None:
        self.aspect = float(aspect)

    def update_projection_matrix(self) -> None:
        self.projection_matrix = perspective_matrix(self.fov, self.aspect, self.near, self.far)


class OrthographicCamera(Camera):
    """`zoom` で拡縮する正射影カメラ。縦横比は left/right の比で扱う。"""

    def __init__(
        self,
        left: float = -1.0,
        right: float = 1.0,
        top: float = 1.0,
        bottom: float = -1.0,
        near: float = 0.1,
        far: float = 1000.0,
    ) -> None:
        super().__init__()
        self.left = float(left)
        self.right = float(right)
        self.top = float(top)
        self.bottom = float(bottom)
        self.near = float(near)
        self.far = float(far)
        self.zoom = 1.0
        self.update_projection_matrix()

    def set_aspect(self, aspect: float) -> None:
        half_h = (self.top - self.bottom) / 2.0
        self.left = -half_h * float(aspect)
        self.right = half_h * float(aspect)

    def update_projection_matrix(self) -> None:
        z = self.zoom if self.zoom > 0 else 1.0
        self.projection_matrix = orthographic_matrix(
            self.left / z, self.right / z, self.top / z, self.bottom / z, self.near, self.far
        )


__all__ = ["Camera", "PerspectiveCamera", "OrthographicCamera"]
