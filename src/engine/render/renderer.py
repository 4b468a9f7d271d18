"""
どこで: `engine.render` の高レベル描画。
何を: シーングラフをたどって可視メッシュをカメラ越しに ModernGL で描画する `SceneRenderer`。
なぜ: 毎フレームの行列/ライト/マテリアル uniform の設定と、ジオメトリ・テクスチャの
GPU リソース寿命を一箇所に集約し、描画ループからは `render(scene, camera)` だけに見せるため。
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

import moderngl as mgl
import numpy as np

from common.types import ObjectRef
from engine.core.camera import Camera
from engine.core.math3d import Color, to_gl_bytes
from engine.core.object3d import AmbientLight, DirectionalLight, Mesh, Object3D, PointLight
from util.utils import config_section

from .mesh_buffer import MeshBuffer
from .shader import MAX_DIRECTIONAL_LIGHTS, MAX_POINT_LIGHTS, Shader

logger = logging.getLogger(__name__)


def _set_uniform(program: Any, name: str, value: Any) -> None:
    """存在する uniform にだけ値を設定する（最適化で消えた uniform は無視）。"""
    member = program.get(name, None)
    if member is not None:
        member.value = value


def _write_uniform(program: Any, name: str, data: bytes) -> None:
    member = program.get(name, None)
    if member is not None:
        member.write(data)


def _vec3_array(rows: list[tuple[float, float, float]], size: int) -> bytes:
    out = np.zeros((size, 3), dtype=np.float32)
    if rows:
        out[: len(rows)] = rows
    return out.tobytes()


def iter_visible_meshes(root: Object3D) -> Iterator[Mesh]:
    """`visible` な部分木だけをたどり、描画可能な Mesh を列挙する。"""
    if not root.visible:
        return
    if isinstance(root, Mesh):
        geometry, material = root.geometry, root.material
        if (
            geometry is not None
            and material is not None
            and not getattr(geometry, "is_empty", True)
            and getattr(material, "visible", True)
        ):
            yield root
    for child in root.children:
        yield from iter_visible_meshes(child)


class SceneRenderer:
    """
    シーンとカメラを受け取り、1 フレーム分を描画する。
    ジオメトリ/テクスチャの GPU 側リソースは初回描画時に作り、元オブジェクトの
    "dispose" 通知で解放する。
    """

    def __init__(
        self,
        ctx: Any,
        *,
        antialias: bool = True,
        alpha: bool = True,
        power_preference: str = "high-performance",
        owns_context: bool = True,
    ):
        """
        ctx: moderngl コンテキスト（surface の GL コンテキスト上に作られたもの）
        antialias / power_preference: 生成時ヒント（MSAA はウィンドウ側の Config で確保する）
        alpha: True なら背景を透過（クリア時のアルファ 0）で描く
        owns_context: True なら `release()` でコンテキストも解放する
        """
        self.ctx = ctx
        self.antialias = bool(antialias)
        self.alpha = bool(alpha)
        self.power_preference = str(power_preference)
        self._owns_context = owns_context

        cfg = config_section("renderer")
        self.clear_color = Color(cfg.get("clear_color") or 0x000000)
        self._pixel_ratio = float(cfg.get("pixel_ratio") or 1.0)
        self.width = 0
        self.height = 0

        self.program = Shader.create_shader(ctx)
        self._buffers: dict[ObjectRef, MeshBuffer] = {}
        self._textures: dict[ObjectRef, tuple[Any, int]] = {}
        self.released = False

        ctx.enable(mgl.DEPTH_TEST | mgl.BLEND)
        ctx.blend_func = (mgl.SRC_ALPHA, mgl.ONE_MINUS_SRC_ALPHA)

    # ---- size ----
    @property
    def pixel_ratio(self) -> float:
        return self._pixel_ratio

    @pixel_ratio.setter
    def pixel_ratio(self, value: float) -> None:
        self.set_pixel_ratio(value)

    def set_pixel_ratio(self, value: float) -> None:
        self._pixel_ratio = max(float(value), 1e-6)
        self._apply_viewport()

    def set_size(self, width: int, height: int) -> None:
        """論理ピクセルでの描画サイズ（ビューポートは pixel_ratio 倍）。"""
        self.width = max(int(width), 0)
        self.height = max(int(height), 0)
        self._apply_viewport()

    def _apply_viewport(self) -> None:
        if self.released:
            return
        self.ctx.viewport = (
            0,
            0,
            int(round(self.width * self._pixel_ratio)),
            int(round(self.height * self._pixel_ratio)),
        )

    # ---- GPU resources ----
    def buffer_for(self, geometry: Any) -> MeshBuffer:
        key = ObjectRef(geometry)
        buffer = self._buffers.get(key)
        if buffer is None:
            buffer = MeshBuffer(self.ctx, self.program, geometry)
            self._buffers[key] = buffer
            geometry.add_event_listener("dispose", self._on_resource_dispose)
        return buffer

    def texture_for(self, texture: Any) -> Any:
        key = ObjectRef(texture)
        cached = self._textures.get(key)
        if cached is not None and cached[1] == texture.version:
            return cached[0]
        if cached is not None:
            cached[0].release()
        else:
            texture.add_event_listener("dispose", self._on_resource_dispose)
        gl_texture = self.ctx.texture(texture.size, 4, texture.image.tobytes())
        self._textures[key] = (gl_texture, texture.version)
        return gl_texture

    def _on_resource_dispose(self, event: dict[str, Any]) -> None:
        target = event["target"]
        key = ObjectRef(target)
        buffer = self._buffers.pop(key, None)
        if buffer is not None:
            buffer.release()
        cached = self._textures.pop(key, None)
        if cached is not None:
            cached[0].release()
        target.remove_event_listener("dispose", self._on_resource_dispose)

    @property
    def buffer_count(self) -> int:
        return len(self._buffers)

    # ---- drawing ----
    def _clear(self, scene: Object3D) -> None:
        background = getattr(scene, "background", None)
        if isinstance(background, Color):
            r, g, b = background.to_tuple()
            a = 1.0
        else:
            r, g, b = self.clear_color.to_tuple()
            a = 0.0 if self.alpha else 1.0
        self.ctx.clear(r, g, b, a, depth=1.0)

    def _upload_lights(self, scene: Object3D) -> None:
        ambient = np.zeros(3)
        directions: list[tuple[float, float, float]] = []
        dir_colors: list[tuple[float, float, float]] = []
        positions: list[tuple[float, float, float]] = []
        point_colors: list[tuple[float, float, float]] = []
        falloff: list[tuple[float, float]] = []
        for obj in scene.iter_descendants():
            if not obj.visible:
                continue
            if isinstance(obj, AmbientLight):
                ambient += np.asarray(obj.color.to_tuple()) * obj.intensity
            elif isinstance(obj, DirectionalLight) and len(directions) < MAX_DIRECTIONAL_LIGHTS:
                d = obj.target.to_array() - obj.world_position()
                norm = float(np.linalg.norm(d))
                if norm > 0.0:
                    directions.append(tuple(d / norm))
                    dir_colors.append(tuple(np.asarray(obj.color.to_tuple()) * obj.intensity))
            elif isinstance(obj, PointLight) and len(positions) < MAX_POINT_LIGHTS:
                positions.append(tuple(obj.world_position()))
                point_colors.append(tuple(np.asarray(obj.color.to_tuple()) * obj.intensity))
                falloff.append((obj.distance, obj.decay))

        program = self.program
        _set_uniform(program, "u_ambient", tuple(float(v) for v in ambient))
        _set_uniform(program, "u_dir_count", len(directions))
        _write_uniform(program, "u_dir_direction", _vec3_array(directions, MAX_DIRECTIONAL_LIGHTS))
        _write_uniform(program, "u_dir_color", _vec3_array(dir_colors, MAX_DIRECTIONAL_LIGHTS))
        _set_uniform(program, "u_point_count", len(positions))
        _write_uniform(program, "u_point_position", _vec3_array(positions, MAX_POINT_LIGHTS))
        _write_uniform(program, "u_point_color", _vec3_array(point_colors, MAX_POINT_LIGHTS))
        fall = np.zeros((MAX_POINT_LIGHTS, 2), dtype=np.float32)
        if falloff:
            fall[: len(falloff)] = falloff
        _write_uniform(program, "u_point_falloff", fall.tobytes())

    def _draw_mesh(self, mesh: Mesh) -> None:
        material = mesh.material
        program = self.program
        model = mesh.matrix_world
        normal_matrix = np.linalg.inv(model[:3, :3]).T
        _write_uniform(program, "u_model", to_gl_bytes(model))
        _write_uniform(program, "u_normal_matrix", to_gl_bytes(normal_matrix))
        _set_uniform(program, "u_color", material.color.to_tuple())
        _set_uniform(program, "u_opacity", float(material.opacity))
        emissive = getattr(material, "emissive", None)
        _set_uniform(program, "u_emissive", emissive.to_tuple() if emissive else (0.0, 0.0, 0.0))
        _set_uniform(program, "u_lit", bool(material.lit))

        texture = material.map
        if texture is not None and not texture.disposed:
            self.texture_for(texture).use(location=0)
            _set_uniform(program, "u_map", 0)
            _set_uniform(program, "u_use_map", True)
        else:
            _set_uniform(program, "u_use_map", False)

        if material.double_sided:
            self.ctx.disable(mgl.CULL_FACE)
        else:
            self.ctx.enable(mgl.CULL_FACE)
        self.buffer_for(mesh.geometry).render(mgl.TRIANGLES)

    def render(self, scene: Object3D, camera: Camera) -> None:
        """`scene` を `camera` から描画する（不透明 → 半透明の順、半透明は奥から）。"""
        if self.released:
            return
        scene.update_matrix_world()
        if camera.parent is None:
            camera.update_matrix_world()
        self._clear(scene)

        _write_uniform(self.program, "u_view", to_gl_bytes(camera.view_matrix))
        _write_uniform(self.program, "u_projection", to_gl_bytes(camera.projection_matrix))
        self._upload_lights(scene)

        opaque: list[Mesh] = []
        transparent: list[Mesh] = []
        for mesh in iter_visible_meshes(scene):
            material = mesh.material
            if material.transparent or material.opacity < 1.0:
                transparent.append(mesh)
            else:
                opaque.append(mesh)
        eye = camera.world_position()
        transparent.sort(key=lambda m: -float(np.linalg.norm(m.world_position() - eye)))

        for mesh in opaque:
            self._draw_mesh(mesh)
        for mesh in transparent:
            self._draw_mesh(mesh)

    def release(self) -> None:
        """バッファ/テクスチャ/プログラム（所有していればコンテキストも）を解放する。"""
        if self.released:
            return
        for key, buffer in list(self._buffers.items()):
            key.obj.remove_event_listener("dispose", self._on_resource_dispose)
            buffer.release()
        self._buffers.clear()
        for key, (gl_texture, _version) in list(self._textures.items()):
            key.obj.remove_event_listener("dispose", self._on_resource_dispose)
            gl_texture.release()
        self._textures.clear()
        self.program.release()
        if self._owns_context:
            self.ctx.release()
        self.released = True
        logger.debug("scene renderer released")


def default_renderer_factory(surface: Any, **options: Any) -> SceneRenderer:
    """`surface` の GL コンテキストを current にして ModernGL レンダラを作る。"""
    switch_to = getattr(surface, "switch_to", None)
    if callable(switch_to):
        switch_to()
    ctx = mgl.create_context()
    renderer = SceneRenderer(ctx, **options)
    if config_section("renderer").get("pixel_ratio") is None:
        ratio = getattr(surface, "pixel_ratio", None)
        if isinstance(ratio, (int, float)) and ratio > 0:
            renderer.set_pixel_ratio(ratio)
    return renderer


__all__ = ["SceneRenderer", "default_renderer_factory", "iter_visible_meshes"]
