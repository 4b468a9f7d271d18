"""
どこで: `engine.core.material`。
何を: メッシュの見た目（色/不透明度/テクスチャ）を表すマテリアルとテクスチャ。
なぜ: Mesh の "material" スロットに付け外しされる破棄可能リソースとして扱うため。
"""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np

from .dispatcher import EventDispatcher
from .math3d import Color


class Texture(EventDispatcher):
    """RGBA8 画像（H, W, 4）を保持するテクスチャ。`dispose()` で GPU 側も解放される。"""

    def __init__(self, image: np.ndarray | None = None) -> None:
        if image is None:
            image = np.full((1, 1, 4), 255, dtype=np.uint8)
        img = np.ascontiguousarray(np.asarray(image, dtype=np.uint8))
        if img.ndim != 3 or img.shape[2] not in (3, 4):
            raise ValueError("image は形状 (H, W, 3|4) の配列である必要があります。")
        if img.shape[2] == 3:
            alpha = np.full(img.shape[:2] + (1,), 255, dtype=np.uint8)
            img = np.concatenate([img, alpha], axis=2)
        self.image = img
        self.version = 0
        self.disposed = False

    @property
    def size(self) -> tuple[int, int]:
        return (int(self.image.shape[1]), int(self.image.shape[0]))

    def mark_dirty(self) -> None:
        """画像を書き換えた後に呼ぶ（レンダラが次フレームで再転送する）。"""
        self.version += 1

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.dispatch_event("dispose")


class Material(EventDispatcher):
    """マテリアル基底。生成時の辞書/キーワードは `set_values` で適用する。"""

    lit = False

    def __init__(self, parameters: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self.color = Color(0xFFFFFF)
        self.opacity = 1.0
        self.transparent = False
        self.visible = True
        self.double_sided = False
        self.map: Texture | None = None
        self.disposed = False
        values = dict(parameters or {})
        values.update(kwargs)
        self.set_values(values)

    def set_values(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            current = getattr(self, key, None)
            if current is None and not hasattr(self, key):
                raise AttributeError(f"{type(self).__name__} has no property {key!r}")
            if isinstance(current, Color):
                current.set(value)
            else:
                setattr(self, key, value)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.dispatch_event("dispose")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} color={self.color!r}>"


class MeshBasicMaterial(Material):
    """ライティングの影響を受けない単色マテリアル。"""

    lit = False


class MeshStandardMaterial(Material):
    """拡散 + 発光のシンプルな照明付きマテリアル（roughness/metalness は保持のみ）。"""

    lit = True

    def __init__(self, parameters: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self.roughness = 1.0
        self.metalness = 0.0
        self.emissive = Color(0x000000)
        super().__init__(parameters, **kwargs)


__all__ = ["Texture", "Material", "MeshBasicMaterial", "MeshStandardMaterial"]
