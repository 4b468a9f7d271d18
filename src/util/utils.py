"""
どこで: `util.utils`。
何を: `configs/default.yaml` とルート `config.yaml` を読む設定ローダ。
なぜ: カメラ/レンダラ/ウィンドウの既定値をコードから外し、PyYAML での読込失敗を
「設定なし」として扱う（フェイルソフト）ため。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

# これらのどれかを含む最も近い祖先をプロジェクトルートとみなす
_ROOT_MARKERS = (".git", "pyproject.toml", "configs")


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML のトップレベル辞書を返す。読めない/辞書でない場合は空辞書。"""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def _find_project_root(start: Path) -> Path:
    """`start` から上へたどって `_ROOT_MARKERS` を持つディレクトリを探す。

    見つからなければ `start.parent.parent`（`<repo>/src/util` → `<repo>` の想定）。
    """
    here = start.resolve()
    for candidate in (here, *here.parents):
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return start.parent.parent


def load_config() -> dict[str, Any]:
    """既定設定にルート `config.yaml` をトップレベル単位で上書きした辞書を返す。

    セクション内のキーはマージしない（`camera:` を書けば既定の `camera` は丸ごと置き換わる）。
    """
    root = _find_project_root(Path(__file__).parent)
    config = _read_yaml(root / "configs" / "default.yaml")
    config.update(_read_yaml(root / "config.yaml"))
    return config


def config_section(name: str, config: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """設定の 1 セクションを辞書で返す（無い/辞書でない場合は空）。"""
    source = load_config() if config is None else config
    section = source.get(name) if isinstance(source, Mapping) else None
    return dict(section) if isinstance(section, Mapping) else {}
