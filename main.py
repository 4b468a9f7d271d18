from __future__ import annotations

import math

from api import Ref, h, run, use_frame

SPACING = 1.6


def Box(props):
    """ホバーで色が変わり、クリックで拡大/縮小する回転ボックス。"""
    ref: Ref = Ref()
    hovered = {"on": False}
    active = {"on": False}

    def spin(state, dt: float) -> None:
        mesh = ref.current
        if mesh is None:
            return
        mesh.rotation.x += dt * 0.8
        mesh.rotation.y += dt * 0.5
        mesh.material.color.set("#ff69b4" if hovered["on"] else "#ffa500")
        mesh.material.color.convert_srgb_to_linear()

    def toggle(event) -> None:
        active["on"] = not active["on"]
        event.object.scale.set_scalar(1.5 if active["on"] else 1.0)
        event.stop_propagation()

    use_frame(spin)
    return h(
        "mesh",
        {
            "ref": ref,
            "position": props.get("position", (0.0, 0.0, 0.0)),
            "on_pointer_over": lambda e: hovered.update(on=True),
            "on_pointer_out": lambda e: hovered.update(on=False),
            "on_click": toggle,
        },
        h("box_geometry", args=(1, 1, 1)),
        h("mesh_standard_material", color="orange"),
    )


def App(props):
    count = int(props.get("count", 3))
    offset = (count - 1) * SPACING / 2.0
    return h(
        "group",
        None,
        h("ambient_light", intensity=math.pi * 0.1),
        h("point_light", position=(10, 10, 10), intensity=1.0),
        [h(Box, key=i, position=(i * SPACING - offset, 0.0, 0.0)) for i in range(count)],
    )


if __name__ == "__main__":
    run(App, props={"count": 3}, width=800, height=600, caption="pyxiscene demo")
