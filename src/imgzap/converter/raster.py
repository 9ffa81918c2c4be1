"""ラスター画像変換モジュール

PNG/JPEG/WEBP/TIFF/BMP/AVIF の汎用デコードとエンコードを提供する。
JPEG出力時のアルファ平坦化規則と、ICO/SVGなど汎用エンコーダを持たない
変換先への振り分けもここで行う。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from PIL import Image, ImageColor

from imgzap.config import DEFAULT_ICON_SIZES, RasterConfig
from imgzap.converter.base import BaseConverter, atomic_output
from imgzap.converter.icon import write_icon
from imgzap.converter.vectorizer import Vectorizer
from imgzap.errors import DecodeError, EncodeError, ImageIOError, UnsupportedConversionError
from imgzap.formats import Format

# Pillowの各ライターがそのまま受け付けるモード
_WRITABLE_MODES: dict[Format, frozenset[str]] = {
    Format.PNG: frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}),
    Format.BMP: frozenset({"1", "L", "P", "RGB", "RGBA"}),
    Format.TIFF: frozenset({"1", "L", "LA", "I", "I;16", "F", "P", "RGB", "RGBA", "CMYK"}),
    Format.WEBP: frozenset({"RGB", "RGBA"}),
    Format.AVIF: frozenset({"RGB", "RGBA"}),
}


def has_alpha(image: Image.Image) -> bool:
    """画像が透過情報を持つかを返す"""
    return image.has_transparency_data


class RasterCodec(BaseConverter):
    """汎用ラスター画像コーデック

    Pillowで読み書きできるフォーマット間の変換を行う。
    JPEGへの出力では必ず3チャンネルへ変換し、アルファの存在で失敗しない。
    それ以外のフォーマットでは元のチャンネル構成を保つ。

    Attributes:
        config: エンコード設定
        icon_sizes: ICO出力時のサイズ列
    """

    def __init__(
        self,
        config: RasterConfig | None = None,
        icon_sizes: tuple[int, ...] = DEFAULT_ICON_SIZES,
        vectorizer: Vectorizer | None = None,
    ) -> None:
        """RasterCodecを初期化する

        Args:
            config: エンコード設定（Noneの場合はデフォルト設定）
            icon_sizes: ICO出力時のサイズ列
            vectorizer: SVG出力時に使うベクター化器

        Raises:
            ValueError: jpeg_backgroundが色として解釈できない場合
        """
        self.config = config or RasterConfig()
        self.icon_sizes = icon_sizes
        self._vectorizer = vectorizer or Vectorizer()
        self._background: tuple[int, int, int] | None = None
        if self.config.jpeg_background is not None:
            self._background = ImageColor.getrgb(self.config.jpeg_background)[:3]

    def can_convert(self, source_format: Format) -> bool:
        return source_format.generic_encodable

    def convert(self, source: Path, dest: Path, target: Format) -> None:
        """ラスター画像を指定フォーマットへ変換する

        SVGへの変換は変換元ファイルを直接トレースする。
        """
        self._validate_source(source)
        image = self.decode(source)
        try:
            self.save(image, dest, target, trace_source=source)
        finally:
            image.close()

    def decode(self, path: Path) -> Image.Image:
        """画像ファイルをデコードする

        複数フレームを持つファイルは先頭フレームを返す。

        Args:
            path: 画像ファイルのパス

        Returns:
            ピクセルデータ読み込み済みのPIL.Image

        Raises:
            ImageIOError: ファイルを開けない場合
            DecodeError: 内容を画像として解釈できない場合
        """
        try:
            f = path.open("rb")
        except OSError as e:
            raise ImageIOError(f"ファイルを開けません: {e}", path) from e

        with f:
            try:
                image = Image.open(f)
                image.load()
            except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
                raise DecodeError(f"画像をデコードできません: {e}", path) from e
        return image

    def encode(self, image: Image.Image, path: Path, fmt: Format) -> None:
        """画像を指定フォーマットでファイルに保存する

        Args:
            image: 保存する画像
            path: 保存先パス
            fmt: 保存フォーマット（汎用エンコード可能なもの）

        Raises:
            UnsupportedConversionError: fmtが汎用エンコード不可の場合
            EncodeError: 圧縮・書き込みに失敗した場合
        """
        if not fmt.generic_encodable:
            raise UnsupportedConversionError(
                f"{fmt.display_name}は汎用エンコーダで書き出せません", path
            )

        prepared = self.prepare(image, fmt)
        with atomic_output(path) as tmp:
            try:
                prepared.save(tmp, format=fmt.pillow_format, **self._save_options(fmt))
            except (OSError, ValueError, KeyError) as e:
                raise EncodeError(
                    f"{fmt.display_name}へのエンコードに失敗しました: {e}", path
                ) from e

    def save(
        self,
        image: Image.Image,
        dest: Path,
        target: Format,
        trace_source: Path | None = None,
    ) -> None:
        """変換先フォーマットに応じてエンコード経路を選んで保存する

        Args:
            image: 保存する画像
            dest: 保存先パス
            target: 変換先フォーマット
            trace_source: SVG出力時にトレースする元ファイル（Noneの場合はimageを使う）
        """
        if target.generic_encodable:
            self.encode(image, dest, target)
        elif target.is_container:
            write_icon(image, dest, self.icon_sizes)
        elif target.is_vector:
            self._vectorizer.trace_to_vector(trace_source or image, dest)
        else:
            raise UnsupportedConversionError(
                f"{target.display_name}への変換経路がありません", dest
            )

    def prepare(self, image: Image.Image, fmt: Format) -> Image.Image:
        """書き出し前に画像モードを調整する

        JPEGは3チャンネルへ平坦化する。その他はライターが受け付けない
        モードの場合のみ RGB/RGBA へ広げる。
        """
        if fmt.requires_opaque:
            return self.flatten(image)

        writable = _WRITABLE_MODES.get(fmt)
        if writable is None or image.mode in writable:
            return image
        return image.convert("RGBA" if has_alpha(image) else "RGB")

    def flatten(self, image: Image.Image) -> Image.Image:
        """画像を不透明な3チャンネル画像に変換する

        jpeg_background未設定時はアルファチャンネルを破棄する。
        設定時はその色の上にアルファ合成する。
        """
        if self._background is None or not has_alpha(image):
            return image if image.mode == "RGB" else image.convert("RGB")

        rgba = image.convert("RGBA")
        canvas = Image.new("RGB", rgba.size, self._background)
        canvas.paste(rgba, mask=rgba.getchannel("A"))
        return canvas

    def _save_options(self, fmt: Format) -> dict[str, Any]:
        """フォーマットごとの保存オプションを返す"""
        if fmt == Format.JPEG:
            return {"quality": self.config.jpeg_quality}
        if fmt == Format.WEBP:
            return {"quality": self.config.webp_quality, "lossless": self.config.webp_lossless}
        if fmt == Format.AVIF:
            return {"quality": self.config.avif_quality}
        return {}
