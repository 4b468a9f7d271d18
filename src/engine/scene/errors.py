"""
どこで: `engine.scene.errors`。
何を: リコンサイル/フック API の例外型。
なぜ: 呼び出し側が「未登録 kind」「primitive の実体欠落」「サーフェス外からのフック呼び出し」を
型で区別して扱えるようにするため。
"""

from __future__ import annotations


class SceneError(Exception):
    """pyxiscene の例外基底。"""


class UnknownKindError(SceneError, LookupError):
    """要素 kind がカタログに登録されていない。"""

    def __init__(self, kind: object, known: list[str] | None = None) -> None:
        self.kind = kind
        self.known = sorted(known or [])
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"unknown element kind {kind!r}{hint}")


class MissingObjectError(SceneError, ValueError):
    """`primitive` 要素に `object` が渡されていない。"""

    def __init__(self, message: str = "'primitive' elements require an 'object' prop") -> None:
        super().__init__(message)


class UsedOutsideSurfaceError(SceneError, RuntimeError):
    """サーフェス状態を必要とするフック/API がレンダー外で呼ばれた。"""

    def __init__(self, api_name: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name}() can only be used inside a component rendered to a surface")


class Suspended(Exception):
    """`use_resource` の読込が未完了（エラーではなく制御フロー）。

    リコンサイラが捕捉し、そのコンポーネントの前回の子を残したまま兄弟の処理を続ける。
    """

    def __init__(self, future: object) -> None:
        self.future = future
        super().__init__("component suspended on a pending resource")


__all__ = [
    "SceneError",
    "UnknownKindError",
    "MissingObjectError",
    "UsedOutsideSurfaceError",
    "Suspended",
]
