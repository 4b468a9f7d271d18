"""
どこで: `common.base_registry`。
何を: 正規化した文字列キー → ファクトリ（クラス/関数）の表を持つレジストリ基底。
なぜ: kind 名の解決を文字列からの動的探索ではなく登録済みの表で行い、
登録時点で検証（callable か、重複していないか）を済ませるため。

キー正規化:
- "-" は "_" に置き換える。
- 大文字を含む名前はキャメル → スネーク（"BoxGeometry" → "box_geometry"）。
- それ以外は小文字化のみ。
"""

from __future__ import annotations

import re
from typing import Any, Callable

_WORD_BOUNDARY = re.compile(r"(.)([A-Z][a-z]+)")
_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")


class BaseRegistry:
    """名前 → ファクトリ。サブクラスは `_validate` で登録条件を足す。"""

    def __init__(self) -> None:
        self._registry: dict[str, Any] = {}

    @classmethod
    def normalize_key(cls, name: str) -> str:
        if not isinstance(name, str):
            raise TypeError(f"registry key must be a str, got {type(name).__name__}")
        if not name:
            raise ValueError("registry key must not be empty")
        key = name.replace("-", "_")
        if key.lower() == key:
            return key
        key = _WORD_BOUNDARY.sub(r"\1_\2", key)
        return _LOWER_UPPER.sub(r"\1_\2", key).lower()

    def _validate(self, key: str, obj: Any) -> None:
        if not callable(obj):
            raise TypeError(f"only callables can be registered as {key!r}: got {obj!r}")

    # ---- 登録 ----
    def add(self, name: str, obj: Any) -> Any:
        """`obj` を `name` で登録して返す。同じキーに別オブジェクトがあれば ValueError。"""
        key = self.normalize_key(name)
        self._validate(key, obj)
        existing = self._registry.get(key)
        if existing is not None and existing is not obj:
            raise ValueError(f"{key!r} is already registered")
        self._registry[key] = obj
        return obj

    def register(self, name: str | None = None) -> Callable[[Any], Any]:
        """`@reg.register()` / `@reg.register("name")`。名前省略時は `__name__` を使う。"""

        def _decorator(obj: Any) -> Any:
            return self.add(name or obj.__name__, obj)

        return _decorator

    def unregister(self, name: str) -> None:
        self._registry.pop(self.normalize_key(name), None)

    def clear(self) -> None:
        self._registry.clear()

    # ---- 参照 ----
    def get(self, name: str) -> Any:
        try:
            return self._registry[self.normalize_key(name)]
        except KeyError:
            raise KeyError(f"{name!r} is not registered") from None

    def is_registered(self, name: str) -> bool:
        return self.normalize_key(name) in self._registry

    def list_all(self) -> list[str]:
        """登録キー（登録順）。"""
        return list(self._registry)

    @property
    def registry(self) -> dict[str, Any]:
        """表のコピー。"""
        return dict(self._registry)


__all__ = ["BaseRegistry"]
