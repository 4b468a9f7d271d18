from __future__ import annotations

import numpy as np
import pytest

from engine.core.camera import PerspectiveCamera
from engine.core.geometry import BoxGeometry, PlaneGeometry
from engine.core.object3d import Group, Mesh, Scene
from engine.core.raycaster import Ray, Raycaster, intersect_triangles


def _camera() -> PerspectiveCamera:
    camera = PerspectiveCamera()
    camera.position.set(0.0, 0.0, 5.0)
    camera.look_at(0.0, 0.0, 0.0)
    camera.update_matrix_world()
    return camera


def test_intersect_triangles_hits_both_sides() -> None:
    tri = np.array([[[-1, -1, 0], [1, -1, 0], [0, 1, 0]]], dtype=np.float64)
    front = Ray(np.array([0.0, 0.0, 1.0]), np.array([0.0, 0.0, -1.0]))
    back = Ray(np.array([0.0, 0.0, -1.0]), np.array([0.0, 0.0, 1.0]))
    for ray in (front, back):
        t, hit = intersect_triangles(ray, tri)
        assert hit.tolist() == [True]
        assert t[0] == pytest.approx(1.0)


def test_intersect_triangles_empty_input() -> None:
    ray = Ray(np.zeros(3), np.array([0.0, 0.0, -1.0]))
    t, hit = intersect_triangles(ray, np.zeros((0, 3, 3)))
    assert t.size == 0 and hit.size == 0


def test_set_rejects_zero_direction() -> None:
    with pytest.raises(ValueError):
        Raycaster().set((0, 0, 0), (0, 0, 0))


def test_center_ray_hits_box_at_origin() -> None:
    scene = Scene()
    box = Mesh(BoxGeometry())
    scene.add(box)
    scene.update_matrix_world()

    caster = Raycaster()
    caster.set_from_camera((0.0, 0.0), _camera())
    (hit,) = caster.intersect_object(scene)
    assert hit.object is box
    np.testing.assert_allclose(hit.point, [0.0, 0.0, 0.5], atol=1e-6)


def test_corner_ray_misses() -> None:
    scene = Scene()
    scene.add(Mesh(BoxGeometry()))
    scene.update_matrix_world()
    caster = Raycaster()
    caster.set_from_camera((-1.0, -1.0), _camera())
    assert caster.intersect_object(scene) == []


def test_results_sorted_nearest_first_and_hidden_skipped() -> None:
    scene = Scene()
    near, far, hidden = Mesh(PlaneGeometry()), Mesh(PlaneGeometry()), Mesh(PlaneGeometry())
    near.position.set(0, 0, 1)
    far.position.set(0, 0, -1)
    hidden.position.set(0, 0, 2)
    hidden.visible = False
    group = Group()
    group.add(far, near)
    scene.add(group, hidden)
    scene.update_matrix_world()

    caster = Raycaster()
    caster.set((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
    hits = caster.intersect_object(scene)
    assert [h.object for h in hits] == [near, far]
    assert [h.distance for h in hits] == pytest.approx([4.0, 6.0])
    assert caster.intersect_object(scene, recursive=False) == []


def test_scaled_mesh_and_far_limit() -> None:
    scene = Scene()
    mesh = Mesh(BoxGeometry())
    mesh.scale.set(1.0, 1.0, 4.0)
    scene.add(mesh)
    scene.update_matrix_world()

    caster = Raycaster()
    caster.set((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
    (hit,) = caster.intersect_object(scene)
    assert hit.distance == pytest.approx(3.0)

    caster.far = 2.5
    assert caster.intersect_object(scene) == []
