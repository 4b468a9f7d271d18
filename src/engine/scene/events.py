"""
どこで: `engine.scene.events`（Event Manager）。
何を: サーフェスのマウス入力をレイキャストに変換し、交差したオブジェクトへ
合成ポインタイベント（hover/click/pointer_*/wheel）を配送する。
なぜ: シーンオブジェクトは入力を直接受け取れないため、カメラ光線との交差で対象を決め、
ハンドラストアに登録された `on_*` ハンドラを呼び分けるため。

リスナ表（pyglet イベント → 論理名, passive）:
- on_mouse_motion / on_mouse_drag → hover（passive）
- on_mouse_press → pointer_down / on_mouse_release → pointer_up / on_mouse_scroll → wheel
- on_mouse_leave → pointer_leave（passive）
passive なリスナはイベントを消費しない。そうでないものはハンドラが 1 つでも走れば
`EVENT_HANDLED` を返してウィンドウ側の後続ハンドラを止める。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Protocol, Sequence

from pyglet.event import EVENT_HANDLED

from common.settings import get as get_settings
from common.types import ObjectRef
from engine.core.raycaster import Intersection, Raycaster

logger = logging.getLogger(__name__)

# (pyglet イベント名, 論理名, passive)
LISTENERS: tuple[tuple[str, str, bool], ...] = (
    ("on_mouse_motion", "hover", True),
    ("on_mouse_drag", "hover", True),
    ("on_mouse_press", "pointer_down", False),
    ("on_mouse_release", "pointer_up", False),
    ("on_mouse_scroll", "wheel", False),
    ("on_mouse_leave", "pointer_leave", True),
)


class EventManager(Protocol):
    def connect(self, surface: Any, state: Any) -> None: ...

    def disconnect(self, surface: Any) -> None: ...

    def forget(self, obj: Any) -> None: ...


@dataclass(eq=False)
class PointerEvent:
    """ハンドラへ渡す合成イベント。

    - `type`: ハンドラ名から `on_` を除いたもの（"click", "pointer_enter" など）。
    - `object`: 配送先のオブジェクト。`intersection` はその交差情報（hover 解除時は None）。
    - `intersections`: 今回の全交差（近い順）。

    1 回の配送で対象ごとに別のイベントを作り、`stop_propagation` の状態だけを共有する
    （保持したイベントの `object` が後から変わることはない）。
    """

    type: str
    object: Any
    x: float
    y: float
    ndc: tuple[float, float]
    intersection: Intersection | None = None
    intersections: Sequence[Intersection] = ()
    button: int | None = None
    modifiers: int | None = None
    delta: tuple[float, float] | None = None
    _stop: list[bool] = field(default_factory=lambda: [False], init=False, repr=False)

    @property
    def distance(self) -> float | None:
        return self.intersection.distance if self.intersection is not None else None

    @property
    def point(self) -> Any:
        return self.intersection.point if self.intersection is not None else None

    @property
    def stopped(self) -> bool:
        return self._stop[0]

    def stop_propagation(self) -> None:
        """以降の対象への配送を止める。"""
        self._stop[0] = True

    def retarget(self, hit: Intersection) -> "PointerEvent":
        """同じ入力を次の交差対象へ向けた新しいイベント（停止フラグは共有）。"""
        event = replace(self, object=hit.object, intersection=hit)
        event._stop = self._stop
        return event


def _native_details(native: str, args: tuple[Any, ...]) -> dict[str, Any]:
    """pyglet ハンドラ引数 (x, y の後ろ) をイベント属性へ写す。"""
    if native in ("on_mouse_press", "on_mouse_release"):
        return {"button": args[0], "modifiers": args[1]}
    if native == "on_mouse_drag":
        return {"delta": (args[0], args[1]), "button": args[2], "modifiers": args[3]}
    if native in ("on_mouse_motion", "on_mouse_scroll"):
        return {"delta": (args[0], args[1])}
    return {}


def _unique_hits(hits: Sequence[Intersection]) -> list[Intersection]:
    seen: set[ObjectRef] = set()
    out: list[Intersection] = []
    for hit in hits:
        ref = ObjectRef(hit.object)
        if ref not in seen:
            seen.add(ref)
            out.append(hit)
    return out


class PointerEventManager:
    """サーフェス 1 枚分のポインタイベント配送。

    `hovered` は同一性キー（`ObjectRef`）で、現在レイが交差しているオブジェクトを保持する。
    """

    def __init__(self, raycaster: Raycaster | None = None) -> None:
        self.raycaster = raycaster if raycaster is not None else Raycaster()
        self.hovered: dict[ObjectRef, Intersection] = {}
        self.surface: Any = None
        self.state: Any = None
        self._listeners: dict[str, Callable[..., Any]] = {}

    @property
    def connected(self) -> bool:
        return self.surface is not None

    def connect(self, surface: Any, state: Any) -> None:
        if self.surface is not None:
            self.disconnect(self.surface)
        self.surface = surface
        self.state = state
        self._listeners = {
            native: self._make_listener(native, logical, passive)
            for native, logical, passive in LISTENERS
        }
        surface.push_handlers(**self._listeners)
        logger.debug("pointer events connected to %r", surface)

    def disconnect(self, surface: Any) -> None:
        if self.surface is None or surface is not self.surface:
            return
        if self._listeners:
            surface.remove_handlers(**self._listeners)
        self._listeners = {}
        self.hovered.clear()
        self.surface = None
        self.state = None
        logger.debug("pointer events disconnected from %r", surface)

    def forget(self, obj: Any) -> None:
        """取り外されたオブジェクトをホバー集合から黙って外す（退出イベントは出さない）。"""
        self.hovered.pop(ObjectRef(obj), None)

    # ---- input ----
    def _make_listener(self, native: str, logical: str, passive: bool) -> Callable[..., Any]:
        def _listener(x: float, y: float, *args: Any) -> Any:
            handled = self.handle(logical, x, y, **_native_details(native, args))
            if not passive and handled:
                return EVENT_HANDLED
            return None

        _listener.__name__ = native
        return _listener

    def to_ndc(self, x: float, y: float) -> tuple[float, float]:
        """サーフェス座標（左下原点）→ NDC（-1..1）。"""
        width, height = self.state.viewport
        if width <= 0 or height <= 0:
            width, height = self.state.resolve_size()
        return (x / width * 2.0 - 1.0, y / height * 2.0 - 1.0)

    def intersect(self, ndc: tuple[float, float]) -> list[Intersection]:
        state = self.state
        state.scene.update_matrix_world()
        self.raycaster.set_from_camera(ndc, state.camera)
        return _unique_hits(self.raycaster.intersect_object(state.scene, recursive=True))

    def handle(self, logical: str, x: float, y: float, **details: Any) -> bool:
        """論理イベント 1 件を処理し、ハンドラが 1 つでも呼ばれたら True を返す。"""
        if self.state is None:
            return False
        ndc = self.to_ndc(x, y)
        if logical == "pointer_leave":
            return self._leave_all(x, y, ndc)

        hits = self.intersect(ndc)
        base = {"x": x, "y": y, "ndc": ndc, "intersections": hits, **details}
        if logical == "hover":
            handled = self._update_hover(hits, base)
            return self._dispatch("on_pointer_move", hits, base) or handled
        if logical == "pointer_down":
            return self._dispatch("on_pointer_down", hits, base)
        if logical == "pointer_up":
            handled = self._dispatch("on_pointer_up", hits, base)
            return self._dispatch("on_click", hits, base) or handled
        if logical == "wheel":
            return self._dispatch("on_wheel", hits, base)
        return False

    # ---- dispatch ----
    def _call(self, obj: Any, name: str, event: PointerEvent) -> bool:
        handler = self.state.handlers.get(obj, name)
        if handler is None:
            return False
        if get_settings().DEBUG_EVENTS:
            logger.debug("dispatch %s -> %r", name, obj)
        handler(event)
        return True

    def _dispatch(self, name: str, hits: Sequence[Intersection], base: dict[str, Any]) -> bool:
        """交差したオブジェクトへ近い順に配送する（`stop_propagation` で打ち切り）。"""
        event_type = name[len("on_"):]
        handled = False
        event: PointerEvent | None = None
        for hit in hits:
            if event is None:
                event = PointerEvent(type=event_type, object=hit.object, intersection=hit, **base)
            else:
                event = event.retarget(hit)
            handled = self._call(hit.object, name, event) or handled
            if event.stopped:
                break
        return handled

    def _dispatch_one(
        self, obj: Any, names: Sequence[str], hit: Intersection | None, base: dict[str, Any]
    ) -> bool:
        handled = False
        for name in names:
            event = PointerEvent(type=name[len("on_"):], object=obj, intersection=hit, **base)
            handled = self._call(obj, name, event) or handled
        return handled

    def _update_hover(self, hits: Sequence[Intersection], base: dict[str, Any]) -> bool:
        handled = False
        current = {ObjectRef(hit.object): hit for hit in hits}
        for ref, hit in current.items():
            if ref not in self.hovered:
                self.hovered[ref] = hit
                handled = (
                    self._dispatch_one(ref.obj, ("on_pointer_enter", "on_pointer_over"), hit, base)
                    or handled
                )
            else:
                self.hovered[ref] = hit
        for ref in [r for r in self.hovered if r not in current]:
            del self.hovered[ref]
            handled = (
                self._dispatch_one(ref.obj, ("on_pointer_out", "on_pointer_leave"), None, base)
                or handled
            )
        return handled

    def _leave_all(self, x: float, y: float, ndc: tuple[float, float]) -> bool:
        base = {"x": x, "y": y, "ndc": ndc}
        handled = False
        for ref in list(self.hovered):
            del self.hovered[ref]
            handled = (
                self._dispatch_one(ref.obj, ("on_pointer_out", "on_pointer_leave"), None, base)
                or handled
            )
        return handled


__all__ = ["PointerEventManager", "PointerEvent", "EventManager", "LISTENERS"]
