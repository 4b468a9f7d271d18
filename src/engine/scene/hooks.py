"""
どこで: `engine.scene.hooks`。
何を: コンポーネント内から使うフック（`use_surface`/`use_frame`/`use_resource`）と、
レンダー中の文脈を保持する contextvar。
なぜ: コンポーネント関数の引数を増やさずにサーフェス状態へ到達させ、
レンダー外からの呼び出しを `UsedOutsideSurfaceError` で即座に失敗させるため。

概要:
- リコンサイラがコンポーネント呼び出しの間だけ `rendering(state, fiber)` で文脈を張る。
- `use_frame` は呼び出し順（フックカーソル）ごとに 1 つの `Ref` を持ち、毎レンダーで
  `current` を最新のコールバックへ差し替える（購読は冪等な add）。
- `use_resource` は (loader, *key) ごとに Future をキャッシュし、未完了なら `Suspended` を送出する。
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import Future
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, TypeVar

from .element import Ref
from .errors import Suspended, UsedOutsideSurfaceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

FrameHandler = Callable[[Any, float], None]


@dataclass(frozen=True)
class RenderContext:
    state: Any
    fiber: Any


_current: contextvars.ContextVar[RenderContext | None] = contextvars.ContextVar(
    "pyxiscene_render_context", default=None
)


@contextmanager
def rendering(state: Any, fiber: Any) -> Iterator[RenderContext]:
    """`fiber` のコンポーネント呼び出し中だけフック文脈を有効にする。"""
    ctx = RenderContext(state=state, fiber=fiber)
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


def current_context() -> RenderContext | None:
    return _current.get()


def _require(api_name: str) -> RenderContext:
    ctx = _current.get()
    if ctx is None:
        raise UsedOutsideSurfaceError(api_name)
    return ctx


def use_surface() -> Any:
    """描画中サーフェスの `SurfaceState` を返す。"""
    return _require("use_surface").state


def use_frame(callback: FrameHandler) -> Ref:
    """毎フレーム `callback(state, dt)` を呼ぶよう購読する。

    コンポーネントがアンマウントされる（または次のレンダーで呼ばなくなる）と購読は外れる。
    """
    ctx = _require("use_frame")
    fiber = ctx.fiber
    index = fiber.hook_cursor
    fiber.hook_cursor += 1
    if index < len(fiber.frame_refs):
        ref = fiber.frame_refs[index]
        ref.current = callback
    else:
        ref = Ref(callback)
        fiber.frame_refs.append(ref)
    ctx.state.add_subscriber(ref)
    return ref


def _run_inline(loader: Callable[..., T], key: tuple[Any, ...]) -> "Future[T]":
    future: Future[T] = Future()
    try:
        future.set_result(loader(*key))
    except Exception as e:  # result() で呼び出し側へ再送出される
        future.set_exception(e)
    return future


def use_resource(loader: Callable[..., T], *key: Any) -> T:
    """`loader(*key)` の結果を返す。未完了ならコンポーネントを中断（`Suspended`）する。

    - 同じ (loader, *key) の読込はサーフェスごとに 1 回だけ実行され、結果はキャッシュされる。
    - 読込中の例外は完了後のレンダーで送出される。
    """
    ctx = _require("use_resource")
    state = ctx.state
    cache_key = (loader, *key)
    future = state.resources.get(cache_key)
    if future is None:
        executor = state.executor
        if executor is None:
            future = _run_inline(loader, key)
        else:
            future = executor.submit(loader, *key)
            logger.debug("resource load submitted: %r", cache_key)
        state.resources[cache_key] = future
    if not future.done():
        state.pending.add(future)
        raise Suspended(future)
    return future.result()


__all__ = [
    "use_surface",
    "use_frame",
    "use_resource",
    "rendering",
    "current_context",
    "RenderContext",
    "Suspended",
]
