"""
どこで: `engine.render` の低レベルメッシュ層。
何を: 1 つの `BufferGeometry` に対応する VBO/IBO/VAO の確保・転送・解放を担当する `MeshBuffer`。
なぜ: GPU 転送の詳細を Renderer から切り離し、ジオメトリの差し替えや解放を一元化するため。
"""

from __future__ import annotations

from typing import Any

import numpy as np

# 頂点レイアウト: position(3) + normal(3) + uv(2)
VERTEX_FORMAT = "3f 3f 2f"
VERTEX_ATTRIBUTES = ("in_position", "in_normal", "in_uv")


def interleave(geometry: Any) -> np.ndarray:
    """ジオメトリの頂点属性を (N, 8) float32 の連続配列へまとめる（uv 欠落は 0 埋め）。"""
    n = geometry.vertex_count
    uvs = geometry.uvs if geometry.uvs is not None else np.zeros((n, 2), dtype=np.float32)
    return np.ascontiguousarray(
        np.hstack([geometry.positions, geometry.normals, uvs]), dtype=np.float32
    )


class MeshBuffer:
    """
    ジオメトリ 1 つ分の描画データを GPU に保持する
    """

    def __init__(self, ctx: Any, program: Any, geometry: Any):
        """
        ctx: moderngl コンテキスト
        program: `in_position`/`in_normal`/`in_uv` を受け取るシェーダープログラム
        geometry: 転送元の `BufferGeometry`
        """
        self.ctx = ctx
        self.program = program
        self.geometry = geometry
        self.vbo: Any = None
        self.ibo: Any = None
        self.vao: Any = None
        self.index_count: int = 0
        self.upload(geometry)

    # ---------- バッファ操作 ----------
    def upload(self, geometry: Any) -> None:
        """頂点/インデックスを GPU へ送り、VAO を張り直す"""
        self.release()
        vertices = interleave(geometry)
        indices = np.ascontiguousarray(geometry.indices, dtype=np.uint32).reshape(-1)

        self.vbo = self.ctx.buffer(vertices.tobytes())
        self.ibo = self.ctx.buffer(indices.tobytes())
        self.vao = self.ctx.vertex_array(
            self.program,
            [(self.vbo, VERTEX_FORMAT, *VERTEX_ATTRIBUTES)],
            index_buffer=self.ibo,
            index_element_size=4,
        )
        self.geometry = geometry
        self.index_count = int(indices.size)

    def render(self, mode: Any) -> None:
        if self.vao is None or self.index_count == 0:
            return
        self.vao.render(mode, vertices=self.index_count)

    def release(self) -> None:
        """GPUのメモリを解放する（二重呼び出し可）"""
        for name in ("vao", "vbo", "ibo"):
            resource = getattr(self, name)
            if resource is not None:
                resource.release()
                setattr(self, name, None)
        self.index_count = 0


__all__ = ["MeshBuffer", "interleave", "VERTEX_FORMAT", "VERTEX_ATTRIBUTES"]
