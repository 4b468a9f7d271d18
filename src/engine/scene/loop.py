"""
どこで: `engine.scene.loop`（Render Loop）。
何を: サーフェス 1 枚分の状態束 `SurfaceState` と、毎フレーム購読者を呼んでから描画する `RenderLoop`。
なぜ: レンダラ/カメラ/シーンの三つ組と購読者リストを 1 箇所で所有し、
固定間隔タイマではなく GUI ループのフレーム登録で描画を駆動するため。

フレームの流れ:
1) 生存フラグの確認（停止後に登録が残っていても何もしない）
2) 完了した非同期リソースがあれば直前のツリーを再リコンサイル
3) 購読中のコールバックを現在の登録順に `callback(state, dt)` で呼ぶ
4) `renderer.render(scene, camera)`
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Any, Mapping

from engine.core.camera import Camera, PerspectiveCamera
from engine.core.frame_clock import FrameClock, FrameScheduler
from engine.core.object3d import Scene
from util.utils import config_section

from .element import Element, Ref
from .handlers import HandlerStore
from .props import apply_props

logger = logging.getLogger(__name__)

RENDERER_DEFAULTS: Mapping[str, Any] = {
    "antialias": True,
    "alpha": True,
    "power_preference": "high-performance",
}

_DEFAULT_FOV = 75.0
_DEFAULT_CAMERA_POSITION = (0.0, 0.0, 5.0)


def make_default_camera(options: Mapping[str, Any] | None = None) -> PerspectiveCamera:
    """既定の透視カメラを作る（設定ファイルの fov/near/far/position を初期値に使う）。

    `options` は Property Applier で適用し、`rotation` が無ければ原点を向かせる。
    """
    cfg = config_section("camera")
    camera = PerspectiveCamera(
        fov=cfg.get("fov", _DEFAULT_FOV),
        near=cfg.get("near", 0.1),
        far=cfg.get("far", 1000.0),
    )
    position = cfg.get("position", _DEFAULT_CAMERA_POSITION)
    try:
        camera.position.set(*(float(v) for v in position))
    except (TypeError, ValueError):
        logger.warning("invalid camera.position in config: %r", position)
        camera.position.set(*_DEFAULT_CAMERA_POSITION)

    options = options or {}
    apply_props(camera, options)
    if "rotation" not in options:
        camera.look_at(0.0, 0.0, 0.0)
    camera.update_projection_matrix()
    return camera


def _index_of_ref(refs: list[Ref], ref: Ref) -> int:
    for i, r in enumerate(refs):
        if r is ref:
            return i
    return -1


@dataclass(eq=False)
class SurfaceState:
    """出力サーフェス 1 枚分の状態。

    - `size`: 明示サイズ（None ならサーフェスの `get_size()` から求める）。
    - `viewport`: 直近に反映した (幅, 高さ)。
    - `subscribers`: フレーム購読中の `Ref`（同一性で集合として扱う）。
    - `resources` / `pending`: `use_resource` のキャッシュと未完了の Future。
    """

    surface: Any
    renderer: Any
    camera: Camera
    scene: Scene = field(default_factory=Scene)
    size: tuple[int, int] | None = None
    viewport: tuple[int, int] = (0, 0)
    handlers: HandlerStore = field(default_factory=HandlerStore)
    subscribers: list[Ref] = field(default_factory=list)
    events: Any = None
    loop: "RenderLoop | None" = None
    reconciler: Any = None
    element: Element | None = None
    executor: Executor | None = None
    resources: dict[tuple[Any, ...], Future] = field(default_factory=dict)
    pending: set[Future] = field(default_factory=set)

    # ---- frame subscription ----
    def subscribe(self, ref: Ref) -> None:
        """購読状態をトグルする（未登録なら追加、登録済みなら解除）。"""
        index = _index_of_ref(self.subscribers, ref)
        if index >= 0:
            del self.subscribers[index]
            logger.debug("frame subscriber removed (toggle): %r", ref)
        else:
            self.subscribers.append(ref)
            logger.debug("frame subscriber added (toggle): %r", ref)

    def add_subscriber(self, ref: Ref) -> None:
        """未登録なら追加する（登録済みなら何もしない）。"""
        if _index_of_ref(self.subscribers, ref) < 0:
            self.subscribers.append(ref)

    def remove_subscriber(self, ref: Ref) -> None:
        """登録済みなら解除する（未登録なら何もしない）。"""
        index = _index_of_ref(self.subscribers, ref)
        if index >= 0:
            del self.subscribers[index]

    def is_subscribed(self, ref: Ref) -> bool:
        return _index_of_ref(self.subscribers, ref) >= 0

    # ---- size ----
    def resolve_size(self) -> tuple[int, int]:
        if self.size is not None:
            return self.size
        width, height = self.surface.get_size()
        return int(width), int(height)

    def resize(self) -> tuple[int, int]:
        """サイズを求め直し、レンダラとカメラの縦横比/投影へ反映する。"""
        width, height = self.resolve_size()
        self.renderer.set_size(width, height)
        self.camera.set_aspect(width / height if height > 0 else 1.0)
        self.camera.update_projection_matrix()
        self.viewport = (width, height)
        return self.viewport

    # ---- resources ----
    def take_settled(self) -> bool:
        """完了した未決 Future を取り除き、1 つでもあれば True を返す。"""
        done = [f for f in self.pending if f.done()]
        self.pending.difference_update(done)
        return bool(done)


class RenderLoop:
    """`SurfaceState` をフレームごとに進める。

    スケジューラへ登録するのは `_on_frame` だけで、`stop()` で登録を取り消し
    生存フラグも落とす（停止後に発火した呼び出しは何もしない）。
    """

    def __init__(self, state: SurfaceState, scheduler: FrameScheduler) -> None:
        self.state = state
        self.scheduler = scheduler
        self.clock = FrameClock()
        self.running = False
        self._resize_listening = False
        state.loop = self

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.scheduler.schedule(self._on_frame)
        if self.state.size is None and hasattr(self.state.surface, "push_handlers"):
            self.state.surface.push_handlers(on_resize=self._on_resize)
            self._resize_listening = True
        logger.debug("render loop started for %r", self.state.surface)

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.scheduler.unschedule(self._on_frame)
        if self._resize_listening:
            self.state.surface.remove_handlers(on_resize=self._on_resize)
            self._resize_listening = False
        logger.debug("render loop stopped for %r", self.state.surface)

    def tick(self, dt: float | None = None) -> None:
        """1 フレーム分の処理（購読者 → 描画）。"""
        if not self.running:
            return
        state = self.state
        dt = self.clock.tick(dt)

        if state.take_settled() and state.reconciler is not None:
            state.reconciler.resume_suspended()

        for ref in list(state.subscribers):
            if not self.running:
                return
            # 途中で解除された購読者は呼ばない
            if not state.is_subscribed(ref):
                continue
            callback = ref.current
            if callback is not None:
                callback(state, dt)

        if self.running:
            state.renderer.render(state.scene, state.camera)

    def _on_frame(self, dt: float) -> None:
        self.tick(dt)

    def _on_resize(self, width: int, height: int) -> None:
        if self.running and self.state.size is None:
            self.state.resize()


__all__ = ["SurfaceState", "RenderLoop", "RENDERER_DEFAULTS", "make_default_camera"]
