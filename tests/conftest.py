"""共通フィクスチャ。

- 乱数シード固定
- GL/ウィンドウ無しで動くフェイクのサーフェス/レンダラ
- 手動で進めるフレームスケジューラと、それらを使う `RootManager`
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

import numpy as np
import pytest

from common import settings
from engine.core.frame_clock import ManualScheduler
from engine.core.math3d import Color
from engine.scene.roots import RootManager


class FakeSurface:
    """pyglet の `EventDispatcher` 風ハンドラスタックを持つ最小サーフェス。"""

    def __init__(self, width: int = 100, height: int = 100) -> None:
        self.width = width
        self.height = height
        self._stack: list[dict[str, Callable[..., Any]]] = []

    def get_size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def get_framebuffer_size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def switch_to(self) -> None:
        return None

    def push_handlers(self, **handlers: Callable[..., Any]) -> None:
        self._stack.insert(0, dict(handlers))

    def remove_handlers(self, **handlers: Callable[..., Any]) -> None:
        for frame in self._stack:
            if any(frame.get(name) == fn for name, fn in handlers.items()):
                for name, fn in handlers.items():
                    if frame.get(name) == fn:
                        del frame[name]
                if not frame:
                    self._stack.remove(frame)
                return

    def dispatch(self, name: str, *args: Any) -> Any:
        """上のフレームから順に呼び、真値が返ったらそこで止める（pyglet と同じ）。"""
        for frame in list(self._stack):
            handler = frame.get(name)
            if handler is not None:
                result = handler(*args)
                if result:
                    return result
        return None

    def resize(self, width: int, height: int) -> None:
        self.width, self.height = width, height
        self.dispatch("on_resize", width, height)

    @property
    def handler_count(self) -> int:
        return sum(len(frame) for frame in self._stack)


class DummyRenderer:
    """呼び出しを記録するだけのレンダラ。"""

    def __init__(self, surface: Any, **options: Any) -> None:
        self.surface = surface
        self.options = dict(options)
        self.clear_color = Color(0x000000)
        self.pixel_ratio = 1.0
        self.sizes: list[tuple[int, int]] = []
        self.renders: list[tuple[Any, Any]] = []
        self.released = False

    def set_size(self, width: int, height: int) -> None:
        self.sizes.append((width, height))

    def render(self, scene: Any, camera: Any) -> None:
        self.renders.append((scene, camera))

    def release(self) -> None:
        self.released = True


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """環境変数由来の設定をテストごとに既定へ戻す。"""
    for name in (
        "PXS_COLOR_MANAGEMENT",
        "PXS_EVENTS_ENABLED",
        "PXS_DEBUG_EVENTS",
        "PXS_RESOURCE_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)
    settings.reload_from_env()
    yield
    settings.reload_from_env()


@pytest.fixture()
def surface_factory() -> Callable[..., FakeSurface]:
    return FakeSurface


@pytest.fixture()
def surface() -> FakeSurface:
    return FakeSurface(100, 100)


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def renderers() -> list[DummyRenderer]:
    """`renderer_factory` が作ったレンダラの記録。"""
    return []


@pytest.fixture()
def renderer_factory(renderers: list[DummyRenderer]) -> Callable[..., DummyRenderer]:
    def _factory(surface: Any, **options: Any) -> DummyRenderer:
        renderer = DummyRenderer(surface, **options)
        renderers.append(renderer)
        return renderer

    return _factory


@pytest.fixture()
def manager(
    renderer_factory: Callable[..., DummyRenderer], scheduler: ManualScheduler
) -> Iterator[RootManager]:
    roots = RootManager(renderer_factory, scheduler=scheduler, resource_workers=1)
    yield roots
    roots.close()
