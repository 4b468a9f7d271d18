"""
どこで: `common.env`。
何を: 環境変数を bool/int として読む小さなヘルパ。
なぜ: `os.environ` の直接参照とパース失敗時の扱いを `common.settings` の読み込み処理だけに閉じ込めるため。
未設定・解釈できない値はいずれも既定値になる（例外にしない）。
"""

from __future__ import annotations

import os

_TRUTHY = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSY = frozenset({"0", "false", "f", "no", "n", "off"})


def env_bool(name: str, default: bool = False) -> bool:
    """"1"/"yes"/"on" などを True、"0"/"no"/"off" などを False として読む。

    数字は 0 以外を True とみなす（"2" → True）。
    """
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    text = raw.strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    try:
        return int(text) != 0
    except ValueError:
        return bool(default)


def env_int(name: str, default: int | None = None, *, min_value: int | None = None) -> int | None:
    """整数として読む。`min_value` を下回る値は `min_value` に切り上げる。"""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    if min_value is not None:
        value = max(value, min_value)
    return value


__all__ = ["env_bool", "env_int"]
