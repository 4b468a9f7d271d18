"""
どこで: `api.runner`（実行ランナー）。
何を: コンポーネント（または要素）を `RenderWindow` へ描画し、pyglet のイベントループを回す `run`。
なぜ: ウィンドウ生成 → ルート描画 → ループ実行 → 終了時アンマウント、の定型を 1 呼び出しにまとめるため。

実行フロー（概要）:
1) ロギング: `common.logging.setup_default_logging` を 1 度だけ適用。
2) 設定: `width`/`height`/`caption` が未指定なら `configs/default.yaml` の `window` から補完
   （なければ 800x600, "pyxiscene"）。
3) `init_only=True` ならウィンドウを作らずに戻る（ヘッドレスでの作成フェーズ検証用）。
4) `RenderWindow` を作り、既定の `RootManager` で描画。
5) `pyglet.app.run()`。ウィンドウが閉じたらルートをアンマウントしてから戻る。

例:
    from api import h, run, use_frame

    def Spinner(props):
        ref = Ref()
        use_frame(lambda state, dt: ref.current and ref.current.rotation.set(0, state.loop.clock.elapsed, 0))
        return h("mesh", {"ref": ref}, h("box_geometry"), h("mesh_standard_material", color="hotpink"))

    run(Spinner, width=640, height=480)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from common.logging import setup_default_logging
from engine.scene.element import Element, h
from util.utils import config_section

from .roots import get_manager

logger = logging.getLogger(__name__)

_DEFAULT_WINDOW = {"width": 800, "height": 600, "caption": "pyxiscene"}


def resolve_window(
    width: int | None, height: int | None, caption: str | None
) -> tuple[int, int, str]:
    """引数 → 設定 `window` → 既定値の順でウィンドウサイズとタイトルを決める。"""
    cfg = {**_DEFAULT_WINDOW, **config_section("window")}
    w = int(width if width is not None else cfg["width"])
    hgt = int(height if height is not None else cfg["height"])
    if w <= 0 or hgt <= 0:
        raise ValueError(f"window size must be positive, got {(w, hgt)}")
    return w, hgt, str(caption if caption is not None else cfg["caption"])


def run(
    component: Callable[..., Any] | Element,
    *,
    props: Mapping[str, Any] | None = None,
    width: int | None = None,
    height: int | None = None,
    caption: str | None = None,
    samples: int = 4,
    renderer_options: Mapping[str, Any] | None = None,
    camera_options: Mapping[str, Any] | None = None,
    log_level: int | str = "INFO",
    init_only: bool = False,
) -> None:
    """`component` をウィンドウへ描画して、ウィンドウが閉じるまでループを回す。

    Parameters
    ----------
    component : Callable | Element
        ルートにするコンポーネント関数（`props` を受け取る）または作成済みの要素。
    props : Mapping | None
        コンポーネントへ渡す props（`component` が要素なら無視）。
    width, height, caption : 任意
        ウィンドウ設定。未指定なら設定ファイルの `window` セクションから補完。
    samples : int, default 4
        MSAA サンプル数（0 で無効）。
    renderer_options, camera_options : Mapping | None
        レンダラ/カメラへ Property Applier 経由で適用する上書き。
    init_only : bool, default False
        True でウィンドウ/GL を作らずに戻る。
    """
    setup_default_logging(log_level)
    width, height, caption = resolve_window(width, height, caption)
    element = component if isinstance(component, Element) else h(component, props)

    if init_only:
        logger.debug("init_only: skip window creation (%dx%d)", width, height)
        return None

    # 遅延インポート（ヘッドレス環境でのウィンドウ生成を避ける）
    import pyglet

    from engine.core.render_window import RenderWindow

    window = RenderWindow(width, height, caption=caption, samples=samples)
    manager = get_manager()
    manager.render(
        element,
        window,
        renderer_options=renderer_options,
        camera_options=camera_options,
    )

    def on_close() -> None:
        # 既定の on_close（ウィンドウを閉じる）より先にループ/リスナ/GL を片付ける
        manager.unmount(window)

    window.push_handlers(on_close=on_close)
    try:
        pyglet.app.run()
    finally:
        manager.unmount(window)
    return None


__all__ = ["run", "resolve_window"]
