"""
どこで: `engine.scene.roots`（Root Lifecycle Manager）。
何を: サーフェス → `SurfaceState` の所有マップを持ち、初回描画での状態生成、
毎回のリコンサイル、明示的なアンマウントを行う `RootManager`。
なぜ: プロセス全体の静的レジストリを避け、ルートの寿命をマネージャ（＝アプリ/セッション）に
結び付けるため。アンマウントは戻る前にループ停止・リスナ解除・レンダラ解放を終える。

使用例:
    with RootManager(default_renderer_factory) as roots:
        state = roots.render(h(App), window)
        pyglet.app.run()
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterator, Mapping, Union

from common.settings import get as get_settings
from common.types import ObjectRef

from .catalogue import KindCatalogue
from .element import Element
from .events import EventManager, PointerEventManager
from .loop import RENDERER_DEFAULTS, RenderLoop, SurfaceState, make_default_camera
from .props import apply_props
from .reconciler import Reconciler

logger = logging.getLogger(__name__)

RendererFactory = Callable[..., Any]
SizeLike = Union[tuple[int, int], Mapping[str, int]]


def _normalize_size(size: SizeLike | None) -> tuple[int, int] | None:
    """`(w, h)` または `{"width": w, "height": h}` を `(w, h)` にする。"""
    if size is None:
        return None
    if isinstance(size, Mapping):
        width, height = size["width"], size["height"]
    else:
        width, height = size
    width, height = int(width), int(height)
    if width < 0 or height < 0:
        raise ValueError(f"size must be non-negative, got {(width, height)}")
    return width, height


class RootManager:
    """サーフェスごとの描画ルートを所有する。

    引数:
        renderer_factory: `factory(surface, **RENDERER_DEFAULTS)` でレンダラを返す呼び出し可能。
        scheduler: フレームスケジューラ（既定は `PygletScheduler`）。
        event_manager_factory: サーフェスごとのイベントマネージャを作る（既定 `PointerEventManager`）。
        resource_workers: `use_resource` 用スレッド数（既定は設定 `PXS_RESOURCE_WORKERS`）。
        catalogue: kind カタログ（既定はビルトイン+登録済み）。
    """

    def __init__(
        self,
        renderer_factory: RendererFactory,
        *,
        scheduler: Any = None,
        event_manager_factory: Callable[[], EventManager] | None = None,
        resource_workers: int | None = None,
        catalogue: KindCatalogue | None = None,
    ) -> None:
        if scheduler is None:
            from engine.core.frame_clock import PygletScheduler

            scheduler = PygletScheduler()
        self._renderer_factory = renderer_factory
        self._scheduler = scheduler
        self._event_manager_factory = event_manager_factory or PointerEventManager
        self._catalogue = catalogue
        workers = resource_workers
        if workers is None:
            workers = get_settings().RESOURCE_WORKERS
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, int(workers)), thread_name_prefix="pyxiscene-resource"
        )
        self._roots: dict[ObjectRef, SurfaceState] = {}
        self._closed = False

    # ---- queries ----
    @property
    def surfaces(self) -> list[Any]:
        return [ref.obj for ref in self._roots]

    def is_mounted(self, surface: Any) -> bool:
        return ObjectRef(surface) in self._roots

    def get_state(self, surface: Any) -> SurfaceState | None:
        return self._roots.get(ObjectRef(surface))

    def __len__(self) -> int:
        return len(self._roots)

    def __iter__(self) -> Iterator[SurfaceState]:
        return iter(list(self._roots.values()))

    # ---- lifecycle ----
    def render(
        self,
        element: Element | None,
        surface: Any,
        *,
        size: SizeLike | None = None,
        renderer_options: Mapping[str, Any] | None = None,
        camera_options: Mapping[str, Any] | None = None,
        event_manager: EventManager | None = None,
    ) -> SurfaceState:
        """`element` を `surface` へ描画する（初回は状態を生成し、以後は差分反映）。"""
        if self._closed:
            raise RuntimeError("RootManager is closed")
        explicit = _normalize_size(size)
        state = self._roots.get(ObjectRef(surface))
        if state is not None:
            if explicit is not None:
                state.size = explicit
            state.resize()
            state.reconciler.render(element)
            return state

        state = self._create_state(
            surface, explicit, renderer_options, camera_options, event_manager
        )
        # 初回の反映に失敗したらルートを残さない（ループ/リスナ/レンダラも解放する）
        try:
            state.resize()
            state.reconciler.render(element)
        except Exception:
            self.unmount(surface)
            raise
        return state

    def _create_state(
        self,
        surface: Any,
        size: tuple[int, int] | None,
        renderer_options: Mapping[str, Any] | None,
        camera_options: Mapping[str, Any] | None,
        event_manager: EventManager | None,
    ) -> SurfaceState:
        renderer = self._renderer_factory(surface, **RENDERER_DEFAULTS)
        if renderer_options:
            apply_props(renderer, renderer_options)
        state = SurfaceState(
            surface=surface,
            renderer=renderer,
            camera=make_default_camera(camera_options),
            size=size,
            executor=self._executor,
        )
        Reconciler(state, catalogue=self._catalogue)

        manager = event_manager
        if manager is None and get_settings().EVENTS_ENABLED:
            manager = self._event_manager_factory()
        if manager is not None:
            manager.connect(surface, state)
        state.events = manager

        RenderLoop(state, self._scheduler).start()
        self._roots[ObjectRef(surface)] = state
        logger.info("mounted root on %r", surface)
        return state

    def unmount(self, surface: Any) -> None:
        """ループ停止 → イベント解除 → ファイバー解体 → レンダラ解放 → 追跡解除。未知なら何もしない。"""
        key = ObjectRef(surface)
        state = self._roots.get(key)
        if state is None:
            return
        if state.loop is not None:
            state.loop.stop()
        if state.events is not None:
            state.events.disconnect(surface)
            state.events = None
        state.reconciler.unmount()

        release = getattr(state.renderer, "release", None)
        if callable(release):
            release()

        for future in state.pending:
            future.cancel()
        state.pending.clear()
        state.resources.clear()
        state.subscribers.clear()
        state.handlers.clear()
        del self._roots[key]
        logger.info("unmounted root from %r", surface)

    def close(self) -> None:
        """全ルートをアンマウントし、リソース読込スレッドを止める。"""
        if self._closed:
            return
        for state in list(self._roots.values()):
            self.unmount(state.surface)
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._closed = True

    def __enter__(self) -> "RootManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["RootManager", "RendererFactory"]
