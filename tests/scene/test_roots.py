from __future__ import annotations

import pytest

from engine.core.frame_clock import ManualScheduler
from engine.scene.element import h
from engine.scene.errors import UnknownKindError, UsedOutsideSurfaceError
from engine.scene.hooks import use_frame, use_resource, use_surface
from engine.scene.roots import RootManager


def spinning_box(log: list[float]):
    def SpinningBox(props):  # noqa: N802 - コンポーネント名
        def spin(state, dt):
            mesh = state.scene.children[0]
            mesh.rotation.x += dt
            log.append(dt)

        use_frame(spin)
        return h("mesh", None, h("box_geometry"), h("mesh_basic_material"))

    return SpinningBox


def test_mount_frame_and_unmount(manager, surface, scheduler, renderers) -> None:
    ticks: list[float] = []
    state = manager.render(h(spinning_box(ticks)), surface)

    assert manager.is_mounted(surface)
    assert manager.surfaces == [surface]
    assert state.viewport == (100, 100)
    assert renderers[0].sizes == [(100, 100)]
    assert renderers[0].options == {
        "antialias": True,
        "alpha": True,
        "power_preference": "high-performance",
    }

    scheduler.step(0.25)
    assert ticks == [0.25]
    assert state.scene.children[0].rotation.x == pytest.approx(0.25)
    assert len(renderers[0].renders) == 1

    manager.unmount(surface)
    assert renderers[0].released
    assert not manager.is_mounted(surface)
    assert manager.get_state(surface) is None
    assert surface.handler_count == 0
    assert scheduler.callbacks == ()
    assert state.subscribers == []
    assert state.scene.children == []

    scheduler.step(0.25)
    assert ticks == [0.25]


def test_second_render_reuses_state(manager, surface, renderers) -> None:
    first = manager.render(h("group"), surface)
    second = manager.render(h("group", name="again"), surface)
    assert first is second
    assert len(renderers) == 1
    assert state_names(second) == ["again"]


def state_names(state) -> list[str]:
    return [c.name for c in state.scene.children]


def test_unmount_unknown_surface_is_noop(manager, surface) -> None:
    manager.unmount(surface)
    assert len(manager) == 0


def test_repeated_mount_unmount(manager, surface, renderers) -> None:
    for _ in range(3):
        manager.render(h("mesh"), surface)
        manager.unmount(surface)
    assert len(renderers) == 3
    assert all(r.released for r in renderers)
    assert surface.handler_count == 0


def test_independent_surfaces(manager, surface_factory, scheduler) -> None:
    a, b = surface_factory(), surface_factory(200, 100)
    state_a = manager.render(h("group", name="a"), a)
    state_b = manager.render(h("group", name="b"), b)
    assert state_a is not state_b
    assert state_b.viewport == (200, 100)
    assert len(manager) == 2

    manager.unmount(a)
    assert manager.surfaces == [b]
    assert len(scheduler.callbacks) == 1


def test_explicit_size(manager, surface, renderers) -> None:
    state = manager.render(h("group"), surface, size={"width": 320, "height": 240})
    assert state.viewport == (320, 240)
    assert state.camera.aspect == pytest.approx(320 / 240)
    # 明示サイズでは resize イベントを購読しない
    surface.resize(10, 10)
    assert state.viewport == (320, 240)


def test_negative_size_rejected(manager, surface) -> None:
    with pytest.raises(ValueError):
        manager.render(h("group"), surface, size=(-1, 10))


def test_renderer_and_camera_options(manager, surface, renderers) -> None:
    state = manager.render(
        h("group"),
        surface,
        renderer_options={"pixel_ratio": 2.0, "clear_color": "#ff0000"},
        camera_options={"fov": 40, "position": (0, 0, 10)},
    )
    renderer = renderers[0]
    assert renderer.pixel_ratio == 2.0
    assert renderer.clear_color.r == pytest.approx(1.0)
    assert state.camera.fov == pytest.approx(40.0)
    assert state.camera.position.z == pytest.approx(10.0)


def test_use_surface_returns_state(manager, surface) -> None:
    seen = []

    def Probe(props):  # noqa: N802 - コンポーネント名
        seen.append(use_surface())
        return None

    state = manager.render(h(Probe), surface)
    assert seen == [state]


def test_hooks_outside_render_raise() -> None:
    with pytest.raises(UsedOutsideSurfaceError):
        use_surface()
    with pytest.raises(UsedOutsideSurfaceError):
        use_frame(lambda s, dt: None)


def test_resource_loaded_on_worker_rerenders(manager, surface, scheduler) -> None:
    def load(name: str) -> str:
        return name * 2

    def Label(props):  # noqa: N802 - コンポーネント名
        return h("group", name=use_resource(load, "ab"))

    state = manager.render(h(Label), surface)
    (future,) = state.resources.values()
    future.result(timeout=5)

    scheduler.step()
    assert state_names(state) == ["abab"]
    assert state.pending == set()


def test_close_unmounts_everything(renderer_factory, surface_factory, renderers) -> None:
    scheduler = ManualScheduler()
    with RootManager(renderer_factory, scheduler=scheduler, resource_workers=1) as roots:
        roots.render(h("group"), surface_factory())
        roots.render(h("group"), surface_factory())
    assert len(roots) == 0
    assert all(r.released for r in renderers)
    assert scheduler.callbacks == ()
    with pytest.raises(RuntimeError):
        roots.render(h("group"), surface_factory())


def test_failed_first_render_leaves_nothing_mounted(
    manager, surface, scheduler, renderers
) -> None:
    with pytest.raises(UnknownKindError):
        manager.render(h("no_such_kind"), surface)
    assert not manager.is_mounted(surface)
    assert renderers[0].released
    assert surface.handler_count == 0
    assert scheduler.callbacks == ()


def test_settled_resource_does_not_rerun_siblings(manager, surface, scheduler) -> None:
    sibling_calls: list[int] = []

    def load(name: str) -> str:
        return name

    def Label(props):  # noqa: N802 - コンポーネント名
        return h("group", name=use_resource(load, "late"))

    def Sibling(props):  # noqa: N802 - コンポーネント名
        sibling_calls.append(1)
        return h("group", name="sibling")

    state = manager.render(h("group", None, h(Label), h(Sibling)), surface)
    (future,) = state.resources.values()
    future.result(timeout=5)

    scheduler.step()
    assert [c.name for c in state.scene.children[0].children] == ["late", "sibling"]
    assert sibling_calls == [1]
