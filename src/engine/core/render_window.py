"""
どこで: `engine.core` の描画サーフェス（Pyglet Window 薄ラッパ）。
何を: MSAA/深度バッファ付きのウィンドウと、中心配置・サイズ問い合わせを提供。
なぜ: ルート管理がサーフェスに求める最小インターフェース
（`get_size`/`get_framebuffer_size`/`push_handlers`/`remove_handlers`/`switch_to`）を満たすため。

使用例:
    win = RenderWindow(800, 600, caption="demo")
    state = api.render(h(App), win)
    pyglet.app.run()
"""

from __future__ import annotations

import pyglet
from pyglet.gl import Config


class RenderWindow(pyglet.window.Window):
    def __init__(
        self,
        width: int,
        height: int,
        *,
        caption: str = "pyxiscene",
        resizable: bool = True,
        samples: int = 4,
    ):
        """ウィンドウを生成する。

        引数:
            width: ウィンドウ幅（論理ピクセル）。
            height: ウィンドウ高さ（論理ピクセル）。
            caption: タイトル。
            samples: MSAA サンプル数（0 で無効）。
        """
        config = Config(
            double_buffer=True,
            depth_size=24,
            sample_buffers=1 if samples > 0 else 0,
            samples=max(0, int(samples)),
            vsync=True,
        )
        super().__init__(
            width=width, height=height, caption=caption, config=config, resizable=resizable
        )
        # 最初の描画タイミングで中央配置を行うフラグ
        self._should_center = True

    def on_draw(self):  # Pyglet 既定のイベント名
        """描画は描画ループが行う。ここでは初回の中央配置だけを処理する。"""
        if self._should_center:
            self._should_center = False
            self.center_on_screen()

    def center_on_screen(self) -> None:
        screen = self.screen
        if screen is None:
            return
        x = screen.x + max(0, (screen.width - self.width) // 2)
        y = screen.y + max(0, (screen.height - self.height) // 2)
        self.set_location(x, y)

    @property
    def pixel_ratio(self) -> float:
        """論理ピクセルに対するフレームバッファ倍率（HiDPI で 2.0 など）。"""
        fb_w, _fb_h = self.get_framebuffer_size()
        return fb_w / self.width if self.width else 1.0


__all__ = ["RenderWindow"]
