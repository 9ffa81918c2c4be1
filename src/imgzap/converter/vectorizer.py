"""ベクター化モジュール

ラスター画像をトレースしてSVG文書を生成する。
トレース処理そのもの（色量子化・曲線フィッティング）はvtracerに
デフォルト設定で委譲し、ここでは入出力の契約のみを保証する。
"""

from __future__ import annotations

from pathlib import Path

import vtracer
from PIL import Image

from imgzap.converter.base import write_bytes_atomic
from imgzap.errors import TracingError


class Vectorizer:
    """vtracerによるラスター→ベクター変換

    入力はメモリ上の画像、またはデコード可能なラスター画像ファイル。
    生成されたSVGテキストはそのまま変換先へ書き出す。
    """

    def trace(self, source: Image.Image | Path) -> str:
        """画像をトレースしてSVGテキストを返す

        Args:
            source: トレース対象の画像、または画像ファイルのパス

        Returns:
            SVG文書テキスト

        Raises:
            TracingError: 入力を読み込めない、またはトレースに失敗した場合
        """
        if isinstance(source, Path):
            try:
                with Image.open(source) as img:
                    rgba = img.convert("RGBA")
            except (OSError, ValueError, Image.DecompressionBombError) as e:
                raise TracingError(f"トレース対象を読み込めません: {e}", source) from e
            path: Path | None = source
        else:
            rgba = source if source.mode == "RGBA" else source.convert("RGBA")
            path = None

        try:
            raw = rgba.tobytes()
            pixels = [tuple(raw[i : i + 4]) for i in range(0, len(raw), 4)]
            svg = vtracer.convert_pixels_to_svg(pixels, size=rgba.size)
        except Exception as e:
            raise TracingError(f"SVGへのトレースに失敗しました: {e}", path) from e

        if not svg or "<svg" not in svg:
            raise TracingError("トレース結果が有効なSVGではありません", path)
        return svg

    def trace_to_vector(self, source: Image.Image | Path, dest: Path) -> None:
        """画像をトレースしてSVGファイルとして保存する

        トレースが完了してから書き込むため、失敗時に部分的なファイルは残らない。

        Args:
            source: トレース対象の画像、または画像ファイルのパス
            dest: 出力先SVGファイルのパス

        Raises:
            TracingError: トレースに失敗した場合
            ImageIOError: 書き込みに失敗した場合
        """
        svg = self.trace(source)
        write_bytes_atomic(dest, svg.encode("utf-8"))
