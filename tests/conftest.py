"""テスト共通フィクスチャ

テスト用の画像はすべてPillowで生成する。
"""

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from imgzap.formats import Format
from imgzap.parser.icon import build_icon_file

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)

SQUARE_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="32" height="32" viewBox="0 0 32 32">
  <rect x="0" y="0" width="32" height="32" fill="#ff0000"/>
</svg>
"""

# 横長の文書（幅64、高さ32）
WIDE_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="64" height="32" viewBox="0 0 64 32">
  <rect x="0" y="0" width="64" height="32" fill="#0000ff"/>
</svg>
"""

# 左半分のみ塗りつぶした文書
HALF_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="32" height="32" viewBox="0 0 32 32">
  <rect x="0" y="0" width="16" height="32" fill="#00ff00"/>
</svg>
"""


def make_image(
    size: tuple[int, int] = (32, 32),
    mode: str = "RGBA",
    color: tuple[int, ...] = RED,
) -> Image.Image:
    """2色の図形を含むテスト画像を生成する

    左上の四分の一を青、それ以外を指定色で塗る。
    """
    if mode in ("RGB", "L", "P", "1"):
        base = Image.new("RGB", size, color[:3])
        base.paste(BLUE[:3], (0, 0, size[0] // 2, size[1] // 2))
        return base if mode == "RGB" else base.convert(mode)
    base = Image.new("RGBA", size, color)
    base.paste(BLUE, (0, 0, size[0] // 2, size[1] // 2))
    return base if mode == "RGBA" else base.convert(mode)


def png_bytes(image: Image.Image) -> bytes:
    """画像をPNGバイト列に変換する"""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def make_icon_bytes(frames: list[Image.Image]) -> bytes:
    """PNGペイロードのICOファイルをフレーム順そのままに組み立てる"""
    return build_icon_file([(img.width, img.height, 32, png_bytes(img)) for img in frames])


@pytest.fixture
def write_image(tmp_path: Path) -> Callable[..., Path]:
    """Pillowで画像ファイルを書き出すファクトリ"""

    def _write(
        name: str,
        fmt: Format,
        size: tuple[int, int] = (32, 32),
        mode: str = "RGBA",
    ) -> Path:
        path = tmp_path / name
        if fmt == Format.SVG:
            path.write_text(SQUARE_SVG, encoding="utf-8")
            return path
        if fmt == Format.ICO:
            path.write_bytes(
                make_icon_bytes([make_image((16, 16), mode), make_image(size, mode)])
            )
            return path
        image = make_image(size, mode)
        if fmt == Format.JPEG or (fmt == Format.BMP and mode == "RGBA"):
            image = image.convert("RGB")
        image.save(path, format=fmt.pillow_format)
        return path

    return _write


@pytest.fixture
def write_svg(tmp_path: Path) -> Callable[[str, str], Path]:
    """SVGファイルを書き出すファクトリ"""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
