"""
どこで: `common` パッケージ。
何を: レジストリ基底・環境変数/設定・ロギング補助などの軽量ユーティリティ。
なぜ: engine/api の双方から再利用する基盤を分離し、依存の向きを単純化するため。
"""

from .base_registry import BaseRegistry

__all__ = [
    "BaseRegistry",
]
