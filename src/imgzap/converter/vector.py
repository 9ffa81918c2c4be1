"""SVGラスタライズモジュール

SVG文書を解析し、固定サイズの正方形RGBAキャンバスへ描画する。
描画にはcairosvgを使う。テキスト要素のフォントはcairo（fontconfig）の
システムフォントから解決され、相対参照は変換元ファイルのディレクトリを
基準に解決される。

縦横の拡大率は独立に計算する（キャンバス / 文書幅、キャンバス / 文書高さ）。
ルート要素の preserveAspectRatio を none にして描画するため、
正方形でない文書はアスペクト比を保たずにキャンバス全体へ引き伸ばされる。
"""

from __future__ import annotations

import io
from pathlib import Path

from cairosvg.parser import Tree
from cairosvg.surface import PNGSurface
from PIL import Image

from imgzap.config import DEFAULT_CANVAS_SIZE
from imgzap.converter.base import BaseConverter, Pixmap
from imgzap.converter.raster import RasterCodec
from imgzap.errors import AllocationError, ImageIOError, ParseError, UnsupportedConversionError
from imgzap.formats import Format

# cairoのイメージサーフェスの一辺の上限
MAX_CANVAS_SIZE = 32767


class VectorRasterizer(BaseConverter):
    """SVGを変換元とするコーデック経路

    Attributes:
        canvas_size: ラスタライズするキャンバスの一辺（ピクセル）
    """

    def __init__(self, raster: RasterCodec, canvas_size: int = DEFAULT_CANVAS_SIZE) -> None:
        """VectorRasterizerを初期化する

        Args:
            raster: 描画結果の書き出しに使うラスターコーデック
            canvas_size: キャンバスの一辺（ピクセル）
        """
        self._raster = raster
        self.canvas_size = canvas_size

    def can_convert(self, source_format: Format) -> bool:
        return source_format.is_vector

    def convert(self, source: Path, dest: Path, target: Format) -> None:
        """SVGをラスタライズして変換先フォーマットで保存する

        ICOの場合はアイコンのサイズ列でコンテナを生成し、
        それ以外はラスターエンコード規則（JPEGは平坦化）に従う。
        """
        if target.is_vector:
            raise UnsupportedConversionError("SVGからSVGへの変換経路はありません", source)
        self._validate_source(source)
        pixmap = self.rasterize(source, self.canvas_size)
        image = pixmap.to_image()
        try:
            self._raster.save(image, dest, target)
        finally:
            image.close()

    def rasterize(self, source: Path, canvas_size: int = DEFAULT_CANVAS_SIZE) -> Pixmap:
        """SVGファイルを canvas_size × canvas_size のPixmapへ描画する

        Args:
            source: SVGファイルのパス
            canvas_size: キャンバスの一辺（ピクセル）

        Returns:
            ストレートアルファのRGBA Pixmap

        Raises:
            AllocationError: キャンバスを確保できない場合
            ParseError: 文書を解析できない、または文書サイズが正でない場合
            ImageIOError: ファイルを読めない場合
        """
        if not 0 < canvas_size <= MAX_CANVAS_SIZE:
            raise AllocationError(f"キャンバスサイズが不正です: {canvas_size}", source)

        try:
            data = source.read_bytes()
        except OSError as e:
            raise ImageIOError(f"ファイルを読み込めません: {e}", source) from e

        try:
            tree = Tree(bytestring=data, url=str(source.resolve()))
        except Exception as e:
            raise ParseError(f"SVGを解析できません: {e}", source) from e
        if _has_empty_extent(tree):
            raise ParseError("SVGの文書サイズが正ではありません", source)
        tree["preserveAspectRatio"] = "none"

        output = io.BytesIO()
        try:
            surface = PNGSurface(
                tree, output, 96, output_width=canvas_size, output_height=canvas_size
            )
            surface.finish()
        except MemoryError as e:
            raise AllocationError(
                f"{canvas_size}x{canvas_size}のキャンバスを確保できません", source
            ) from e
        except Exception as e:
            raise ParseError(f"SVGを描画できません: {e}", source) from e

        # cairoのPNG出力はストレートアルファのため、そのまま読み込める
        with Image.open(io.BytesIO(output.getvalue())) as img:
            rendered = img.convert("RGBA")
        if rendered.size != (canvas_size, canvas_size):
            raise ParseError(f"描画結果のサイズが不正です: {rendered.size}", source)
        return Pixmap.from_image(rendered)


def _has_empty_extent(tree: Tree) -> bool:
    """viewBox、または数値で指定された幅・高さが0以下かどうか"""
    viewbox = tree.get("viewBox")
    if viewbox:
        try:
            values = [float(v) for v in viewbox.replace(",", " ").split()]
        except ValueError:
            return False
        if len(values) == 4 and (values[2] <= 0 or values[3] <= 0):
            return True
    for name in ("width", "height"):
        value = tree.get(name, "").strip().removesuffix("px")
        try:
            if float(value) <= 0:
                return True
        except ValueError:
            continue
    return False
