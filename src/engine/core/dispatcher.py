"""
どこで: `engine.core.dispatcher`。
何を: 型名ごとにリスナを持つ最小イベントディスパッチャ。
なぜ: Object3D の "added"/"removed"、ジオメトリ/マテリアルの "dispose" を同じ仕組みで通知し、
レンダラ側の GPU リソース解放などを疎結合に保つため。
"""

from __future__ import annotations

from typing import Any, Callable

Listener = Callable[[dict[str, Any]], None]


class EventDispatcher:
    """`add_event_listener`/`remove_event_listener`/`dispatch_event` を提供する mixin。"""

    _listeners: dict[str, list[Listener]]

    def _listener_table(self) -> dict[str, list[Listener]]:
        try:
            return self._listeners
        except AttributeError:
            self._listeners = {}
            return self._listeners

    def add_event_listener(self, type_: str, listener: Listener) -> None:
        listeners = self._listener_table().setdefault(type_, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, type_: str, listener: Listener) -> None:
        listeners = self._listener_table().get(type_)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def has_event_listener(self, type_: str, listener: Listener) -> bool:
        return listener in self._listener_table().get(type_, ())

    def dispatch_event(self, type_: str, **payload: Any) -> None:
        event = {"type": type_, "target": self, **payload}
        # 通知中の解除に備えてコピーを回す
        for listener in list(self._listener_table().get(type_, ())):
            listener(event)


__all__ = ["EventDispatcher", "Listener"]
