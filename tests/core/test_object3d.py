from __future__ import annotations

import numpy as np
import pytest

from engine.core.camera import OrthographicCamera, PerspectiveCamera
from engine.core.object3d import DirectionalLight, Group, Mesh, Object3D, Scene


def test_add_reparents_and_fires_events() -> None:
    a, b, child = Group(), Group(), Object3D()
    events: list[str] = []
    child.add_event_listener("added", lambda e: events.append("added"))
    child.add_event_listener("removed", lambda e: events.append("removed"))

    a.add(child)
    b.add(child)
    assert child.parent is b
    assert a.children == [] and b.children == [child]
    assert events == ["added", "removed", "added"]


def test_add_self_rejected() -> None:
    g = Group()
    with pytest.raises(ValueError):
        g.add(g)


def test_index_of_uses_identity() -> None:
    g = Group()
    first, second = Mesh(), Mesh()
    g.add(first, second)
    assert g.index_of(second) == 1
    assert g.index_of(Mesh()) == -1
    second.remove_from_parent()
    assert g.children == [first]


def test_world_matrix_composes_parent_transforms() -> None:
    scene = Scene()
    parent = Group()
    parent.position.set(1, 0, 0)
    parent.scale.set(2, 2, 2)
    child = Object3D()
    child.position.set(0, 1, 0)
    scene.add(parent)
    parent.add(child)

    scene.update_matrix_world()
    np.testing.assert_allclose(child.world_position(), [1.0, 2.0, 0.0])


def test_traverse_and_descendants() -> None:
    root = Group()
    a, b = Group(), Mesh()
    root.add(a)
    a.add(b)
    seen: list[Object3D] = []
    root.traverse(seen.append)
    assert seen == [root, a, b]
    assert list(root.iter_descendants()) == [a, b]


def test_scene_flag_and_light_defaults() -> None:
    assert Scene.is_scene and not Group.is_scene
    light = DirectionalLight(0xFFFFFF, 0.5)
    assert light.position == (0, 1, 0)
    assert light.intensity == 0.5


def test_perspective_aspect_updates_projection() -> None:
    camera = PerspectiveCamera(fov=90.0)
    before = camera.projection_matrix.copy()
    camera.set_aspect(2.0)
    camera.update_projection_matrix()
    assert camera.projection_matrix[0, 0] == pytest.approx(before[0, 0] / 2.0)


def test_orthographic_zoom_and_aspect() -> None:
    camera = OrthographicCamera()
    camera.set_aspect(2.0)
    camera.update_projection_matrix()
    assert camera.left == pytest.approx(-2.0)
    assert camera.right == pytest.approx(2.0)
