"""
どこで: `util.color`。
何を: 色指定の正規化（Hex 文字列/整数 0xRRGGBB/RGB(A) タプル）と sRGB↔線形変換。
なぜ: Property Applier・レンダラ・設定ファイルで同一の受理仕様とエラーメッセージを使うため。
"""

from __future__ import annotations

from typing import Sequence


# CSS 名前色（よく使うものだけ）
NAMED_COLORS: dict[str, int] = {
    "black": 0x000000,
    "white": 0xFFFFFF,
    "red": 0xFF0000,
    "green": 0x008000,
    "lime": 0x00FF00,
    "blue": 0x0000FF,
    "yellow": 0xFFFF00,
    "cyan": 0x00FFFF,
    "magenta": 0xFF00FF,
    "gray": 0x808080,
    "grey": 0x808080,
    "silver": 0xC0C0C0,
    "orange": 0xFFA500,
    "hotpink": 0xFF69B4,
    "pink": 0xFFC0CB,
    "purple": 0x800080,
    "royalblue": 0x4169E1,
    "skyblue": 0x87CEEB,
    "tomato": 0xFF6347,
    "gold": 0xFFD700,
}


def _clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else 1.0 if x > 1.0 else float(x)


def parse_hex_color_str(s: str) -> tuple[float, float, float, float]:
    """Hex 文字列から RGBA(0–1) を返す。

    受理形式: "#RRGGBB", "#RRGGBBAA", "0xRRGGBB", "0xRRGGBBAA", "RRGGBB", "RRGGBBAA"。
    大文字/小文字は不問。
    """
    t = s.strip()
    if t.startswith("#"):
        t = t[1:]
    elif t.lower().startswith("0x"):
        t = t[2:]
    if len(t) not in (6, 8):
        raise ValueError(f"invalid hex color length: '{s}' (expected RRGGBB or RRGGBBAA)")
    try:
        r = int(t[0:2], 16)
        g = int(t[2:4], 16)
        b = int(t[4:6], 16)
        a = int(t[6:8], 16) if len(t) == 8 else 255
    except ValueError as e:
        raise ValueError(f"invalid hex color: '{s}'") from e
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


def hex_int_to_rgb(value: int) -> tuple[float, float, float]:
    """0xRRGGBB 形式の整数を RGB(0–1) に変換する。"""
    if value < 0 or value > 0xFFFFFF:
        raise ValueError(f"hex color int out of range: {value!r}")
    return (
        ((value >> 16) & 0xFF) / 255.0,
        ((value >> 8) & 0xFF) / 255.0,
        (value & 0xFF) / 255.0,
    )


def normalize_color(value: object) -> tuple[float, float, float, float]:
    """色を RGBA(0–1) へ正規化する。

    - 受理: CSS 名前色（`NAMED_COLORS`）, Hex 文字列, 0xRRGGBB 整数, (r,g,b[,a]) （0–1 または 0–255）
    - 返値: (r,g,b,a) （0–1）
    """
    if isinstance(value, str):
        named = NAMED_COLORS.get(value.strip().lower())
        if named is not None:
            r, g, b = hex_int_to_rgb(named)
            return (r, g, b, 1.0)
        return parse_hex_color_str(value)
    if isinstance(value, int) and not isinstance(value, bool):
        r, g, b = hex_int_to_rgb(value)
        return (r, g, b, 1.0)
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"unsupported color type: {type(value)!r}")
    seq: Sequence[float] = value
    if len(seq) not in (3, 4):
        raise ValueError("color tuple/list must be length 3 or 4")
    try:
        fseq = [float(v) for v in seq]
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid color tuple/list: {value!r}") from e
    if len(fseq) == 3:
        fseq.append(1.0)
    if all(0.0 <= x <= 1.0 for x in fseq):
        r, g, b, a = fseq
        return (_clamp01(r), _clamp01(g), _clamp01(b), _clamp01(a))
    # 0–255 とみなし、整数丸め → 0–1 へスケール
    if len(seq) == 3:
        fseq[3] = 255.0
    r8, g8, b8, a8 = (max(0, min(255, int(round(x)))) for x in fseq)
    return (r8 / 255.0, g8 / 255.0, b8 / 255.0, a8 / 255.0)


def srgb_to_linear(c: float) -> float:
    """sRGB 成分（0–1）を線形成分へ変換する。"""
    if c < 0.04045:
        return c * 0.0773993808
    return pow(c * 0.9478672986 + 0.0521327014, 2.4)


def linear_to_srgb(c: float) -> float:
    """線形成分（0–1）を sRGB 成分へ変換する。"""
    if c < 0.0031308:
        return c * 12.92
    return 1.055 * pow(c, 0.41666) - 0.055


__all__ = [
    "NAMED_COLORS",
    "parse_hex_color_str",
    "hex_int_to_rgb",
    "normalize_color",
    "srgb_to_linear",
    "linear_to_srgb",
]
