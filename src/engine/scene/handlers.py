"""
どこで: `engine.scene.handlers`。
何を: シーンオブジェクト（同一性）→ イベントハンドラ辞書の外部ストア。
なぜ: ハンドラをシーンオブジェクト自身の属性に混ぜず、Property Applier（書き込み）と
Event Manager（読み出し）の間で共有するため。キーは `ObjectRef` なので、ハッシュ不可・
弱参照不可の値（`Color`/`Vector3` などの slots 型）も登録できる。取り外し時は
リコンサイラが `discard` で消す。
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from common.types import ObjectRef

Handler = Callable[[Any], Any]


class HandlerStore:
    def __init__(self) -> None:
        self._table: dict[ObjectRef, dict[str, Handler]] = {}

    def replace(self, obj: Any, handlers: Mapping[str, Handler]) -> None:
        """`obj` のハンドラを丸ごと置き換える（空なら登録を消す）。"""
        if handlers:
            self._table[ObjectRef(obj)] = dict(handlers)
        else:
            self._table.pop(ObjectRef(obj), None)

    def get(self, obj: Any, name: str) -> Handler | None:
        entry = self._table.get(ObjectRef(obj))
        return entry.get(name) if entry else None

    def handlers_for(self, obj: Any) -> dict[str, Handler]:
        return dict(self._table.get(ObjectRef(obj), {}))

    def has_any(self, obj: Any) -> bool:
        return ObjectRef(obj) in self._table

    def discard(self, obj: Any) -> None:
        self._table.pop(ObjectRef(obj), None)

    def clear(self) -> None:
        self._table.clear()

    def __len__(self) -> int:
        return len(self._table)


__all__ = ["HandlerStore", "Handler"]
