"""
どこで: `common.types`。
何を: 同一性でハッシュ/比較する参照ラッパ `ObjectRef`。
なぜ: `__eq__` を持つ値（Vector3/numpy 配列など）や `__hash__ = None` の型を、
辞書キーや集合要素として「同じオブジェクトかどうか」だけで扱いたいため
（ホバー集合、GPU リソースキャッシュ、ルート表）。
"""

from __future__ import annotations

from typing import Any


class ObjectRef:
    __slots__ = ("obj",)

    def __init__(self, obj: Any) -> None:
        self.obj = obj

    def __hash__(self) -> int:
        return id(self.obj)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectRef):
            return NotImplemented
        return self.obj is other.obj

    def unwrap(self) -> Any:
        return self.obj

    def __repr__(self) -> str:
        return f"ObjectRef({type(self.obj).__qualname__}@{id(self.obj):#x})"


__all__ = ["ObjectRef"]
