"""
どこで: `api.roots`。
何を: 既定の `RootManager`（ModernGL レンダラ + pyglet スケジューラ）を遅延生成し、
`render`/`unmount` をモジュール関数として提供する。
なぜ: 手早く使う場面ではマネージャの生成・受け渡しを省略したいため（寿命は `close_manager()` まで）。
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from engine.scene.element import Element
from engine.scene.loop import SurfaceState
from engine.scene.roots import RootManager

logger = logging.getLogger(__name__)

_manager: RootManager | None = None


def get_manager() -> RootManager:
    """既定マネージャを返す（初回呼び出しで生成）。"""
    global _manager
    if _manager is None:
        from engine.render.renderer import default_renderer_factory

        _manager = RootManager(default_renderer_factory)
        logger.debug("default RootManager created")
    return _manager


def set_manager(manager: RootManager | None) -> RootManager | None:
    """既定マネージャを差し替え、直前のものを返す（閉じはしない）。"""
    global _manager
    previous, _manager = _manager, manager
    return previous


def close_manager() -> None:
    """既定マネージャを閉じて破棄する（全ルートがアンマウントされる）。"""
    global _manager
    if _manager is not None:
        _manager.close()
        _manager = None


def render(
    element: Element | None,
    surface: Any,
    *,
    size: Any = None,
    renderer_options: Mapping[str, Any] | None = None,
    camera_options: Mapping[str, Any] | None = None,
    event_manager: Any = None,
) -> SurfaceState:
    """`element` を `surface` へ描画する（既定マネージャ経由）。"""
    return get_manager().render(
        element,
        surface,
        size=size,
        renderer_options=renderer_options,
        camera_options=camera_options,
        event_manager=event_manager,
    )


def unmount(surface: Any) -> None:
    """`surface` のルートを外す。既定マネージャ未生成/未描画なら何もしない。"""
    if _manager is not None:
        _manager.unmount(surface)


__all__ = ["get_manager", "set_manager", "close_manager", "render", "unmount"]
