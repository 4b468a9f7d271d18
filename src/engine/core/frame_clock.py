"""
どこで: `engine.core` のフレーム駆動。
何を: dt 測定付きの `FrameClock` と、毎フレーム呼び出しを登録/取消するスケジューラ群。
なぜ: 描画ループを固定間隔タイマではなく GUI ループの「毎フレーム」登録で駆動し、
かつテストやヘッドレス実行では手動でフレームを進められるようにするため。

スケジューラ:
- `PygletScheduler` — `pyglet.clock.schedule`（毎フレーム 1 回、間隔指定なし）/`unschedule`。
- `ManualScheduler` — `step(dt)` で登録済みコールバックを 1 回ずつ呼ぶ。
"""

from __future__ import annotations

import time
from typing import Callable, Protocol

FrameCallback = Callable[[float], None]


class FrameClock:
    """前回呼び出しからの経過秒を測る極小クラス。"""

    def __init__(self) -> None:
        self._last_time = time.perf_counter()
        self.elapsed = 0.0
        self.frame = 0

    def tick(self, dt: float | None = None) -> float:
        """1 フレーム進め、そのフレームの dt を返す。"""
        now = time.perf_counter()
        if dt is None:  # pyglet は dt を渡してくれる
            dt = now - self._last_time
        self._last_time = now
        self.elapsed += dt
        self.frame += 1
        return dt


class FrameScheduler(Protocol):
    """毎フレーム呼び出しの登録/取消インターフェース。"""

    def schedule(self, callback: FrameCallback) -> None: ...

    def unschedule(self, callback: FrameCallback) -> None: ...


class PygletScheduler:
    """`pyglet.clock` のフレーム単位登録に委譲する。"""

    def schedule(self, callback: FrameCallback) -> None:
        import pyglet

        pyglet.clock.schedule(callback)

    def unschedule(self, callback: FrameCallback) -> None:
        import pyglet

        pyglet.clock.unschedule(callback)


class ManualScheduler:
    """手動でフレームを進めるスケジューラ（ヘッドレス/テスト用）。"""

    def __init__(self) -> None:
        self._callbacks: list[FrameCallback] = []

    @property
    def callbacks(self) -> tuple[FrameCallback, ...]:
        return tuple(self._callbacks)

    def schedule(self, callback: FrameCallback) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unschedule(self, callback: FrameCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def step(self, dt: float = 1.0 / 60.0, frames: int = 1) -> None:
        for _ in range(frames):
            # 呼び出し中の unschedule に備えてコピーを回す
            for cb in list(self._callbacks):
                if cb in self._callbacks:
                    cb(dt)


__all__ = ["FrameClock", "FrameScheduler", "PygletScheduler", "ManualScheduler", "FrameCallback"]
