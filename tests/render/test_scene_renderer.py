from __future__ import annotations

from typing import Any

import numpy as np
import pytest

from engine.core.camera import PerspectiveCamera
from engine.core.geometry import BoxGeometry
from engine.core.material import MeshBasicMaterial, MeshStandardMaterial, Texture
from engine.core.math3d import Color
from engine.core.object3d import AmbientLight, Group, Mesh, PointLight, Scene
from engine.render.renderer import SceneRenderer, iter_visible_meshes


class _Uniform:
    def __init__(self) -> None:
        self.value: Any = None
        self.data: bytes | None = None

    def write(self, data: bytes) -> None:
        self.data = data


class _DummyProgram:
    """`program.get(name, None)` で uniform を返す（`missing` は最適化で消えた扱い）。"""

    def __init__(self, missing: tuple[str, ...] = ()) -> None:
        self.uniforms: dict[str, _Uniform] = {}
        self.missing = set(missing)
        self.released = False

    def get(self, name: str, default: Any = None) -> Any:
        if name in self.missing:
            return default
        return self.uniforms.setdefault(name, _Uniform())

    def release(self) -> None:
        self.released = True


class _Releasable:
    def __init__(self) -> None:
        self.released = False

    def release(self) -> None:
        self.released = True

    def use(self, location: int = 0) -> None:
        pass


class _DummyVAO(_Releasable):
    def __init__(self, ctx: "_DummyCtx") -> None:
        super().__init__()
        self.ctx = ctx

    def render(self, mode: int, vertices: int) -> None:
        self.ctx.draws.append(self.ctx.current_color())


class _DummyCtx:
    def __init__(self, missing: tuple[str, ...] = ()) -> None:
        self.program_obj = _DummyProgram(missing)
        self.viewport = (0, 0, 0, 0)
        self.blend_func = None
        self.clears: list[tuple[float, ...]] = []
        self.draws: list[Any] = []
        self.textures: list[_Releasable] = []
        self.released = False

    def program(self, **shaders: str) -> _DummyProgram:
        return self.program_obj

    def current_color(self) -> Any:
        return self.program_obj.get("u_color").value

    def enable(self, flags: int) -> None:
        pass

    def disable(self, flags: int) -> None:
        pass

    def clear(self, r, g, b, a, depth=1.0) -> None:
        self.clears.append((r, g, b, a))

    def buffer(self, data: bytes) -> _Releasable:
        return _Releasable()

    def vertex_array(self, *args: Any, **kwargs: Any) -> _DummyVAO:
        return _DummyVAO(self)

    def texture(self, size, components, data) -> _Releasable:
        tex = _Releasable()
        self.textures.append(tex)
        return tex

    def release(self) -> None:
        self.released = True


def _mesh(color, z: float = 0.0, **material: Any) -> Mesh:
    mesh = Mesh(BoxGeometry(), MeshBasicMaterial(color=color, **material))
    mesh.position.set(0.0, 0.0, z)
    return mesh


def _camera() -> PerspectiveCamera:
    camera = PerspectiveCamera()
    camera.position.set(0.0, 0.0, 5.0)
    return camera


def test_size_and_pixel_ratio_drive_viewport() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx)
    renderer.set_size(100, 50)
    assert ctx.viewport == (0, 0, 100, 50)
    renderer.pixel_ratio = 2.0
    assert ctx.viewport == (0, 0, 200, 100)


def test_opaque_first_then_transparent_back_to_front() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx)
    scene = Scene()
    scene.add(
        _mesh((0, 0, 1), z=1.0, transparent=True, opacity=0.5),
        _mesh((0, 1, 0), z=-1.0, transparent=True, opacity=0.5),
        _mesh((1, 0, 0)),
    )
    renderer.render(scene, _camera())
    assert ctx.draws == [(1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]


def test_hidden_subtrees_and_empty_meshes_are_skipped() -> None:
    scene = Scene()
    hidden = Group()
    hidden.visible = False
    hidden.add(_mesh(0xFF0000))
    scene.add(hidden, Mesh(), _mesh(0x00FF00))
    assert len(list(iter_visible_meshes(scene))) == 1


def test_clear_uses_scene_background_or_alpha() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx, alpha=True)
    scene = Scene()
    renderer.render(scene, _camera())
    assert ctx.clears[-1][3] == 0.0

    scene.background = Color(0x0000FF)
    renderer.render(scene, _camera())
    assert ctx.clears[-1] == (0.0, 0.0, 1.0, 1.0)


def test_lights_are_uploaded() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx)
    scene = Scene()
    ambient = AmbientLight(0xFFFFFF, 0.5)
    point = PointLight(0xFFFFFF, 2.0)
    point.position.set(1.0, 2.0, 3.0)
    scene.add(ambient, point, Mesh(BoxGeometry(), MeshStandardMaterial()))
    renderer.render(scene, _camera())

    program = ctx.program_obj
    assert program.uniforms["u_ambient"].value == pytest.approx((0.5, 0.5, 0.5))
    assert program.uniforms["u_point_count"].value == 1
    positions = np.frombuffer(program.uniforms["u_point_position"].data, dtype=np.float32)
    np.testing.assert_allclose(positions[:3], [1.0, 2.0, 3.0])
    assert program.uniforms["u_lit"].value is True


def test_missing_uniforms_are_ignored() -> None:
    ctx = _DummyCtx(missing=("u_emissive", "u_point_falloff", "u_map"))
    renderer = SceneRenderer(ctx)
    scene = Scene()
    scene.add(_mesh(0xFFFFFF))
    renderer.render(scene, _camera())
    assert "u_emissive" not in ctx.program_obj.uniforms


def test_geometry_dispose_releases_gpu_buffers() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx)
    mesh = _mesh(0xFFFFFF)
    scene = Scene()
    scene.add(mesh)
    renderer.render(scene, _camera())
    assert renderer.buffer_count == 1
    buffer = renderer.buffer_for(mesh.geometry)

    mesh.geometry.dispose()
    assert renderer.buffer_count == 0
    assert buffer.vao is None


def test_texture_reuploaded_on_version_change_and_released_on_dispose() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx)
    texture = Texture(np.zeros((2, 2, 4), dtype=np.uint8))
    first = renderer.texture_for(texture)
    assert renderer.texture_for(texture) is first

    texture.mark_dirty()
    second = renderer.texture_for(texture)
    assert second is not first and first.released

    texture.dispose()
    assert second.released


def test_release_frees_everything_once() -> None:
    ctx = _DummyCtx()
    renderer = SceneRenderer(ctx)
    mesh = _mesh(0xFFFFFF)
    scene = Scene()
    scene.add(mesh)
    renderer.render(scene, _camera())

    renderer.release()
    renderer.release()
    assert renderer.released
    assert ctx.program_obj.released
    assert ctx.released
    assert not mesh.geometry.has_event_listener("dispose", renderer._on_resource_dispose)

    # 解放後の描画は何もしない
    draws = len(ctx.draws)
    renderer.render(scene, _camera())
    assert len(ctx.draws) == draws
