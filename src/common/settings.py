"""
どこで: `common.settings`
何を: 実行時フラグ（色管理/イベント/リソース読込ワーカ数など）を型付きで一元管理する。
なぜ: `os.getenv` の散在を避け、既定値/型の一貫性とテスト容易性を保つため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int


@dataclass
class _Settings:
    # 色: sRGB 指定を線形空間へ変換してから保持する
    COLOR_MANAGEMENT: bool = True

    # イベント
    EVENTS_ENABLED: bool = True
    DEBUG_EVENTS: bool = False

    # 非同期リソース読込（use_resource）
    RESOURCE_WORKERS: int = 2


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込（`PXS_` 接頭辞）。"""
    _settings.COLOR_MANAGEMENT = env_bool("PXS_COLOR_MANAGEMENT", True)
    _settings.EVENTS_ENABLED = env_bool("PXS_EVENTS_ENABLED", True)
    _settings.DEBUG_EVENTS = env_bool("PXS_DEBUG_EVENTS", False)
    _settings.RESOURCE_WORKERS = env_int("PXS_RESOURCE_WORKERS", 2, min_value=1) or 1


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
