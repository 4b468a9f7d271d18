from __future__ import annotations

import pytest

from engine.core.geometry import BoxGeometry
from engine.core.material import MeshStandardMaterial
from engine.core.math3d import Vector3
from engine.core.object3d import Group, Mesh
from engine.scene.catalogue import builtin_catalogue
from engine.scene.errors import MissingObjectError, UnknownKindError
from engine.scene.handlers import HandlerStore
from engine.scene.instance import SLOT_UNSET, construct, create_instance, default_attach


def test_unknown_kind_raises() -> None:
    with pytest.raises(UnknownKindError):
        create_instance("not_a_kind", {})


def test_primitive_requires_object() -> None:
    with pytest.raises(MissingObjectError):
        create_instance("primitive", {})


def test_primitive_wraps_given_object_and_infers_attach() -> None:
    geo = BoxGeometry()
    node = create_instance("primitive", {}, object=geo)
    assert node.kind == "primitive"
    assert node.object is geo
    assert node.attach == "geometry"


@pytest.mark.parametrize(
    "kind, attach",
    [
        ("box_geometry", "geometry"),
        ("SphereGeometry", "geometry"),
        ("mesh_basic_material", "material"),
        ("mesh", None),
        ("group", None),
    ],
)
def test_default_attach_by_kind_suffix(kind: str, attach: str | None) -> None:
    assert create_instance(kind, {}).attach == attach


def test_explicit_attach_overrides_default() -> None:
    node = create_instance("box_geometry", {}, attach="custom")
    assert node.attach == "custom"
    assert default_attach("plane_geometry") == "geometry"


def test_args_spread_single_and_none() -> None:
    assert construct(lambda *a: a, None) == ()
    assert construct(lambda *a: a, [1, 2]) == (1, 2)
    assert construct(lambda *a: a, (3,)) == (3,)
    assert construct(lambda *a: a, 4) == (4,)

    box = create_instance("box_geometry", {}, args=(2, 3, 4)).object
    assert box.parameters == {"width": 2.0, "height": 3.0, "depth": 4.0}


def test_applies_props_and_routes_handlers() -> None:
    handlers = HandlerStore()

    def clicked(event):
        return None

    node = create_instance(
        "mesh",
        {"position": (1, 2, 3), "name": "m", "on_click": clicked, "ref": object()},
        handlers=handlers,
    )
    mesh = node.object
    assert isinstance(mesh, Mesh)
    assert mesh.position == Vector3(1, 2, 3)
    assert mesh.name == "m"
    assert not hasattr(mesh, "on_click")
    assert handlers.get(mesh, "on_click") is clicked
    assert node.props["name"] == "m"
    assert node.previous_slot_value is SLOT_UNSET


def test_material_color_prop_goes_through_color_set() -> None:
    node = create_instance("mesh_standard_material", {"color": 0xFF0000})
    mat = node.object
    assert isinstance(mat, MeshStandardMaterial)
    assert mat.color.to_tuple() == pytest.approx((1.0, 0.0, 0.0))


def test_custom_catalogue() -> None:
    cat = builtin_catalogue()
    cat.add("thing_group", Group)
    node = create_instance("ThingGroup", {}, catalogue=cat)
    assert isinstance(node.object, Group)
    assert node.kind == "thing_group"


def test_disposable_flag_follows_dispose_prop() -> None:
    assert create_instance("group", {}).disposable
    assert not create_instance("group", {"dispose": None}).disposable
