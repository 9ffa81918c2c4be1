"""Converter基底クラスモジュール

各コーデック経路が継承する基底クラスと共通データ型を定義する。
ConversionJob、Pixmap、変換結果、および出力ファイルの原子的書き込みを提供する。
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from PIL import Image

from imgzap.errors import ImageIOError
from imgzap.formats import Format, output_path_for


class ConversionStatus(Enum):
    """変換ステータス

    ジョブ単位の変換結果を表す。
    同一フォーマットの組はジョブ自体が生成されないため、スキップ状態は持たない。
    """

    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionJob:
    """変換ジョブ

    ディスパッチャが (変換元ファイル, 変換先フォーマット) の組ごとに生成する
    一時的な値。永続化はしない。

    Attributes:
        source: 変換元ファイルのパス
        source_format: 外部で判定済みの変換元フォーマット
        target_format: 変換先フォーマット
        conflict: 変換先パスが他のファイルと重なる場合の理由（計画時に設定）
    """

    source: Path
    source_format: Format
    target_format: Format
    conflict: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.source_format == self.target_format:
            raise ValueError(
                f"同一フォーマットへの変換ジョブは作成できません: "
                f"{self.source} ({self.source_format.display_name})"
            )

    @property
    def dest(self) -> Path:
        """変換先パス（拡張子をターゲットの正規拡張子に置換）"""
        return output_path_for(self.source, self.target_format)

    def describe(self) -> str:
        """ログ出力用のジョブ表記を返す"""
        return f"{self.source} -> {self.target_format.display_name}"


@dataclass(frozen=True)
class ConversionResult:
    """変換結果を表すデータクラス

    Attributes:
        source_path: 変換元ファイルのパス
        dest_path: 変換先ファイルのパス（失敗時はNone）
        status: 変換ステータス
        target_format: 変換先フォーマット
        message: 追加メッセージ（エラー詳細等）
        error_kind: 失敗時の例外種別名
        bytes_before: 変換前のファイルサイズ（バイト）
        bytes_after: 変換後のファイルサイズ（バイト）
    """

    source_path: Path
    dest_path: Path | None
    status: ConversionStatus
    target_format: Format | None = None
    message: str = ""
    error_kind: str | None = None
    bytes_before: int = 0
    bytes_after: int = 0

    @property
    def compression_ratio(self) -> float:
        """圧縮率を計算する（bytes_after / bytes_before）

        Returns:
            圧縮率。bytes_beforeが0の場合は1.0を返す
        """
        if self.bytes_before == 0:
            return 1.0
        return self.bytes_after / self.bytes_before

    @property
    def is_success(self) -> bool:
        """変換が成功したかどうかを返す"""
        return self.status == ConversionStatus.SUCCESS


@dataclass(frozen=True)
class Pixmap:
    """RGBA8 ピクセルバッファ

    ストレートアルファ（非プリマルチプライ）の RGBA を行優先で保持する。
    不変条件: len(data) == width * height * 4

    Attributes:
        width: 幅（ピクセル）
        height: 高さ（ピクセル）
        data: RGBAバイト列
    """

    width: int
    height: int
    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Pixmapのサイズが不正です: {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Pixmapのバッファ長が不正です: {len(self.data)} (期待値 {expected})"
            )

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        """指定座標のRGBA値を返す"""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"座標が範囲外です: ({x}, {y})")
        offset = (y * self.width + x) * 4
        r, g, b, a = self.data[offset : offset + 4]
        return (r, g, b, a)

    def to_image(self) -> Image.Image:
        """PIL.Image（RGBAモード）に変換する"""
        return Image.frombytes("RGBA", self.size, self.data)

    @classmethod
    def from_image(cls, image: Image.Image) -> Pixmap:
        """PIL.Imageから生成する（RGBAへ変換）"""
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return cls(width=rgba.width, height=rgba.height, data=rgba.tobytes())


@contextlib.contextmanager
def atomic_output(dest: Path) -> Iterator[Path]:
    """出力ファイルを原子的に書き込むためのコンテキストマネージャ

    変換先と同じディレクトリに一時ファイルを作成してそのパスを渡し、
    ブロックが正常終了した場合のみ変換先へ置き換える。
    例外発生時は一時ファイルを削除するため、部分的な出力は残らない。

    Args:
        dest: 最終的な変換先パス

    Yields:
        書き込み用の一時ファイルパス

    Raises:
        ImageIOError: 一時ファイルの作成または置き換えに失敗した場合
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent
        )
        os.close(fd)
    except OSError as e:
        raise ImageIOError(f"出力ファイルを作成できません: {e}", dest) from e

    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
        try:
            os.replace(tmp_path, dest)
        except OSError as e:
            raise ImageIOError(f"出力ファイルを書き込めません: {e}", dest) from e
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def write_bytes_atomic(dest: Path, data: bytes) -> None:
    """バイト列を原子的にファイルへ書き込む

    Raises:
        ImageIOError: 書き込みに失敗した場合
    """
    with atomic_output(dest) as tmp:
        try:
            tmp.write_bytes(data)
        except OSError as e:
            raise ImageIOError(f"出力ファイルを書き込めません: {e}", dest) from e


class BaseConverter(ABC):
    """コーデック経路の基底クラス

    ディスパッチャは変換元フォーマットに対して can_convert が True を返す
    最初の経路にジョブを渡す。
    """

    @abstractmethod
    def can_convert(self, source_format: Format) -> bool:
        """この経路で扱える変換元フォーマットかを判定する"""
        ...

    @abstractmethod
    def convert(self, source: Path, dest: Path, target: Format) -> None:
        """ファイルを変換して変換先へ書き出す

        Args:
            source: 変換元ファイルのパス
            dest: 変換先ファイルのパス
            target: 変換先フォーマット

        Raises:
            ConversionError: 変換に失敗した場合（サブクラスで型付け）
        """
        ...

    def _validate_source(self, source: Path) -> None:
        """変換元ファイルの検証を行う

        Raises:
            ImageIOError: ファイルが存在しない、またはディレクトリの場合
        """
        if not source.exists():
            raise ImageIOError(f"変換元ファイルが見つかりません: {source}", source)
        if source.is_dir():
            raise ImageIOError(f"変換元はファイルである必要があります: {source}", source)
