from __future__ import annotations

import numpy as np
import pytest

from engine.core.geometry import (
    BoxGeometry,
    BufferGeometry,
    PlaneGeometry,
    SphereGeometry,
    compute_vertex_normals,
)
from engine.core.material import MeshStandardMaterial, Texture


def test_buffer_geometry_normalizes_dtypes_and_indices() -> None:
    g = BufferGeometry(np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]]))
    assert g.positions.dtype == np.float32
    assert g.indices.dtype == np.uint32
    assert g.indices.tolist() == [[0, 1, 2]]
    np.testing.assert_allclose(g.normals, [[0, 0, 1]] * 3)
    assert g.triangles().shape == (1, 3, 3)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"positions": np.zeros((4, 2))},
        {"positions": np.zeros((4, 3))},
        {"positions": np.zeros((3, 3)), "indices": np.array([0, 1, 3])},
        {"positions": np.zeros((3, 3)), "normals": np.zeros((2, 3))},
        {"positions": np.zeros((3, 3)), "uvs": np.zeros((3, 3))},
    ],
)
def test_buffer_geometry_rejects_bad_shapes(kwargs) -> None:
    with pytest.raises(ValueError):
        BufferGeometry(**kwargs)


def test_empty_geometry() -> None:
    g = BufferGeometry()
    assert g.is_empty
    assert g.bounding_sphere[1] == 0.0


def test_box_geometry_counts_bounds_and_outward_normals() -> None:
    g = BoxGeometry(2, 4, 6)
    assert (g.vertex_count, g.triangle_count) == (24, 12)
    np.testing.assert_allclose(g.positions.min(axis=0), [-1, -2, -3])
    np.testing.assert_allclose(g.positions.max(axis=0), [1, 2, 3])
    tris = g.triangles().astype(np.float64)
    face = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    centers = tris.mean(axis=1)
    assert np.all(np.einsum("ij,ij->i", face, centers) > 0)
    center, radius = g.bounding_sphere
    np.testing.assert_allclose(center, 0.0)
    assert radius == pytest.approx(np.sqrt(1 + 4 + 9))


def test_plane_and_sphere() -> None:
    plane = PlaneGeometry(2, 2)
    assert plane.triangle_count == 2
    np.testing.assert_allclose(plane.normals, [[0, 0, 1]] * 4)

    sphere = SphereGeometry(2.0, 8, 4)
    np.testing.assert_allclose(np.linalg.norm(sphere.positions, axis=1), 2.0, rtol=1e-5)
    assert sphere.parameters == {"radius": 2.0, "width_segments": 8, "height_segments": 4}
    # 極の行は三角形 1 枚ずつ
    assert sphere.triangle_count == 2 * 8 * (4 - 1)


def test_compute_vertex_normals_empty() -> None:
    normals = compute_vertex_normals(np.zeros((3, 3), np.float32), np.zeros((0, 3), np.uint32))
    assert normals.shape == (3, 3) and not normals.any()


def test_dispose_notifies_once() -> None:
    g = BoxGeometry()
    events: list[dict] = []
    g.add_event_listener("dispose", events.append)
    g.dispose()
    g.dispose()
    assert g.disposed
    assert [e["target"] for e in events] == [g]


def test_material_values_and_unknown_property() -> None:
    m = MeshStandardMaterial({"color": "red"}, opacity=0.5, emissive=0x00FF00)
    assert m.color.to_tuple() == (1.0, 0.0, 0.0)
    assert m.emissive.to_tuple() == (0.0, 1.0, 0.0)
    assert m.opacity == 0.5
    with pytest.raises(AttributeError):
        MeshStandardMaterial(shininess=3)


def test_texture_rgb_promoted_to_rgba() -> None:
    tex = Texture(np.zeros((2, 3, 3), dtype=np.uint8))
    assert tex.image.shape == (2, 3, 4)
    assert tex.size == (3, 2)
    assert np.all(tex.image[..., 3] == 255)
    tex.mark_dirty()
    assert tex.version == 1
    with pytest.raises(ValueError):
        Texture(np.zeros((2, 2), dtype=np.uint8))
