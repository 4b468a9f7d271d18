"""
どこで: `common.logging`。
何を: ランナー/デモ向けの最小ロギング設定ヘルパ。
なぜ: ライブラリ側は `logging.getLogger(__name__)` だけを使い、設定はエントリポイントに任せるため。
"""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(level: int | str) -> int:
    """"DEBUG" などの文字列/数値をログレベル整数へ解決する（不明値は INFO）。"""
    if isinstance(level, str):
        value = getattr(logging, level.upper(), None)
        return value if isinstance(value, int) else logging.INFO
    return int(level)


def setup_default_logging(level: int | str = "INFO") -> None:
    """最小限のロギング設定を 1 度だけ適用する。

    - ルートロガーにハンドラが既にあれば何もしない（no-op）
    - `api.run` やデモから呼び出す想定
    """
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(level=resolve_level(level), format=_FORMAT)


__all__ = ["setup_default_logging", "resolve_level"]
