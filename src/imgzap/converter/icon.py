"""ICOアイコン変換モジュール

複数解像度を持つICOコンテナのデコード（最大フレームの抽出）と、
1枚の画像から複数解像度のICOコンテナを生成するエンコードを提供する。
"""

from __future__ import annotations

import io
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image

from imgzap.config import DEFAULT_ICON_SIZES, MAX_ICON_SIZE
from imgzap.converter.base import BaseConverter, write_bytes_atomic
from imgzap.errors import (
    DecodeError,
    EmptyContainerError,
    EncodeError,
    ImageIOError,
    UnsupportedConversionError,
)
from imgzap.formats import Format
from imgzap.parser.icon import (
    PNG_SIGNATURE,
    build_icon_file,
    entry_payload,
    read_icon_directory,
    single_entry_icon,
)

if TYPE_CHECKING:
    from imgzap.converter.raster import RasterCodec

_BIT_COUNT: dict[str, int] = {"1": 1, "L": 8, "P": 8, "LA": 16, "RGB": 24, "RGBA": 32}


@dataclass(frozen=True)
class IconFrame:
    """ICOコンテナの1フレーム

    Attributes:
        size: 一辺のピクセル数（正方形）
        bit_count: ディレクトリに記録するビット深度
        data: PNG圧縮済みのペイロード
    """

    size: int
    bit_count: int
    data: bytes = field(repr=False)


def _working_modes(image: Image.Image) -> tuple[str, str]:
    """リサイズ時のモードと出力時のモードを決める

    L/LA/RGB/RGBA はそのまま保つ。パレット画像は透過がなければ
    パレットに戻し、透過があればRGBAにする。その他はRGB/RGBAに広げる。

    Returns:
        (リサイズ用モード, 出力モード)
    """
    alpha = image.has_transparency_data
    if image.mode in ("L", "LA", "RGB", "RGBA"):
        return image.mode, image.mode
    if image.mode == "P":
        return ("RGBA", "RGBA") if alpha else ("RGB", "P")
    if image.mode == "1":
        return "L", "L"
    wide = "RGBA" if alpha else "RGB"
    return wide, wide


def encode_frames(
    image: Image.Image,
    sizes: tuple[int, ...] | list[int],
    max_workers: int | None = None,
) -> list[IconFrame]:
    """サイズごとのICOフレームを生成する

    各サイズのリサイズとPNG圧縮は独立しているため並列に実行する。
    結果は完了順ではなく sizes の順に並ぶ。

    Args:
        image: 元画像
        sizes: 生成する一辺のサイズ列
        max_workers: 並列数（Noneの場合はCPU数とサイズ数の小さい方）

    Returns:
        sizes と同じ順のフレームリスト

    Raises:
        EncodeError: サイズが不正、またはいずれかのフレーム生成に失敗した場合
    """
    if not sizes:
        raise EncodeError("アイコンサイズが指定されていません")
    for size in sizes:
        if not 1 <= size <= MAX_ICON_SIZE:
            raise EncodeError(f"アイコンサイズは1〜{MAX_ICON_SIZE}で指定してください: {size}")

    resize_mode, output_mode = _working_modes(image)
    try:
        base = image if image.mode == resize_mode else image.convert(resize_mode)
        base.load()
    except (OSError, ValueError) as e:
        raise EncodeError(f"アイコン用の画像変換に失敗しました: {e}") from e

    def render(size: int) -> IconFrame:
        resized = base.resize((size, size), Image.Resampling.LANCZOS)
        if resized.mode != output_mode:
            resized = resized.convert(output_mode, palette=Image.Palette.ADAPTIVE)
        buffer = io.BytesIO()
        resized.save(buffer, format="PNG")
        return IconFrame(
            size=size,
            bit_count=_BIT_COUNT.get(output_mode, 32),
            data=buffer.getvalue(),
        )

    workers = max_workers or min(len(sizes), os.cpu_count() or 1)
    try:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # mapは入力順で結果を返す
            return list(executor.map(render, sizes))
    except (OSError, ValueError, MemoryError) as e:
        raise EncodeError(f"アイコンフレームの生成に失敗しました: {e}") from e


def encode_icon(
    image: Image.Image,
    sizes: tuple[int, ...] | list[int] = DEFAULT_ICON_SIZES,
    max_workers: int | None = None,
) -> bytes:
    """画像から複数解像度のICOコンテナを生成する

    Args:
        image: 元画像
        sizes: 生成する一辺のサイズ列（この順でディレクトリに並ぶ）
        max_workers: フレーム生成の並列数

    Returns:
        ICOファイルのバイト列

    Raises:
        EncodeError: フレーム生成またはコンテナの直列化に失敗した場合
    """
    frames = encode_frames(image, sizes, max_workers)
    try:
        return build_icon_file(
            [(frame.size, frame.size, frame.bit_count, frame.data) for frame in frames]
        )
    except ValueError as e:
        raise EncodeError(f"ICOコンテナの直列化に失敗しました: {e}") from e


def write_icon(
    image: Image.Image,
    dest: Path,
    sizes: tuple[int, ...] | list[int] = DEFAULT_ICON_SIZES,
) -> None:
    """画像をICOファイルとして保存する

    全フレームの生成が成功した場合のみ書き込むため、部分的なコンテナは残らない。

    Raises:
        EncodeError: エンコードに失敗した場合（destのパスを付与して再送出）
        ImageIOError: 書き込みに失敗した場合
    """
    try:
        data = encode_icon(image, sizes)
    except EncodeError as e:
        if e.path is None:
            e.path = dest
        raise
    write_bytes_atomic(dest, data)


class IconCodec(BaseConverter):
    """ICOコンテナを変換元とするコーデック経路

    最大面積のフレームを取り出し、変換先に応じてラスターエンコードまたは
    ベクター化へ渡す。
    """

    def __init__(self, raster: RasterCodec) -> None:
        """IconCodecを初期化する

        Args:
            raster: 取り出したフレームの書き出しに使うラスターコーデック
        """
        self._raster = raster

    def can_convert(self, source_format: Format) -> bool:
        return source_format.is_container

    def convert(self, source: Path, dest: Path, target: Format) -> None:
        if target.is_container:
            raise UnsupportedConversionError("ICOからICOへの変換経路はありません", source)
        self._validate_source(source)
        image = self.decode_largest(source)
        try:
            self._raster.save(image, dest, target)
        finally:
            image.close()

    def decode_largest(self, source: Path) -> Image.Image:
        """ICOファイルから面積最大のフレームをデコードする

        同じ面積のフレームが複数ある場合はディレクトリ順で最初のものを選ぶ。

        Args:
            source: ICOファイルのパス

        Returns:
            デコードしたフレーム画像

        Raises:
            ImageIOError: ファイルを読めない場合
            EmptyContainerError: エントリが1つもない場合
            DecodeError: ディレクトリまたはフレームデータが壊れている場合
        """
        try:
            data = source.read_bytes()
        except OSError as e:
            raise ImageIOError(f"ファイルを読み込めません: {e}", source) from e

        try:
            directory = read_icon_directory(data)
        except DecodeError as e:
            e.path = source
            raise

        entry = directory.largest()
        if entry is None:
            raise EmptyContainerError("ICOファイルに画像が含まれていません", source)

        payload = entry_payload(data, entry)
        blob = payload if payload.startswith(PNG_SIGNATURE) else single_entry_icon(data, entry)
        try:
            image = Image.open(io.BytesIO(blob))
            image.load()
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            raise DecodeError(
                f"ICOエントリ{entry.index}をデコードできません: {e}", source
            ) from e
        return image
