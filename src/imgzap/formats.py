"""画像フォーマットレジストリ

サポートする8種類の画像フォーマットと、その能力（汎用エンコード可否、
コンテナ形式か、ベクター形式か）を定義する。
選択集合（SelectionSet）とターゲット集合（TargetSet）の型もここで定義する。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class FormatInfo:
    """フォーマットの能力情報

    Attributes:
        display_name: 表示名（例: "PNG"）
        extension: 正規の拡張子（小文字、ドットなし）
        pillow_format: Pillowでのフォーマット名。汎用エンコード不可の場合はNone
        is_container: 複数フレームを持つコンテナ形式か
        is_vector: ベクター形式か
        mime_types: このフォーマットに対応するMIMEタイプ
    """

    display_name: str
    extension: str
    pillow_format: str | None
    is_container: bool = False
    is_vector: bool = False
    mime_types: tuple[str, ...] = ()


class Format(Enum):
    """サポートする画像フォーマット

    宣言順はバッチ変換時のジョブ生成順にも使われる。
    """

    PNG = FormatInfo("PNG", "png", "PNG", mime_types=("image/png",))
    JPEG = FormatInfo("JPEG", "jpeg", "JPEG", mime_types=("image/jpeg",))
    WEBP = FormatInfo("WEBP", "webp", "WEBP", mime_types=("image/webp",))
    TIFF = FormatInfo("TIFF", "tiff", "TIFF", mime_types=("image/tiff",))
    BMP = FormatInfo("BMP", "bmp", "BMP", mime_types=("image/bmp",))
    ICO = FormatInfo(
        "ICO",
        "ico",
        None,
        is_container=True,
        mime_types=("image/x-icon", "image/vnd.microsoft.icon"),
    )
    AVIF = FormatInfo("AVIF", "avif", "AVIF", mime_types=("image/avif",))
    SVG = FormatInfo("SVG", "svg", None, is_vector=True, mime_types=("image/svg+xml",))

    @property
    def display_name(self) -> str:
        return self.value.display_name

    @property
    def extension(self) -> str:
        """正規の拡張子（小文字、ドットなし）"""
        return self.value.extension

    @property
    def pillow_format(self) -> str | None:
        return self.value.pillow_format

    @property
    def generic_encodable(self) -> bool:
        """Pillowの汎用エンコーダで直接書き出せるか"""
        return self.value.pillow_format is not None

    @property
    def is_container(self) -> bool:
        return self.value.is_container

    @property
    def is_vector(self) -> bool:
        return self.value.is_vector

    @property
    def requires_opaque(self) -> bool:
        """アルファチャンネルを持てないフォーマットか"""
        return self is Format.JPEG

    @classmethod
    def from_mime(cls, mime: str) -> Format | None:
        """MIMEタイプからフォーマットを取得する

        Args:
            mime: MIMEタイプ文字列

        Returns:
            対応するフォーマット。未対応の場合はNone
        """
        normalized = mime.split(";", 1)[0].strip().lower()
        for fmt in cls:
            if normalized in fmt.value.mime_types:
                return fmt
        return None

    @classmethod
    def from_name(cls, name: str) -> Format:
        """表示名または拡張子からフォーマットを取得する

        CLI引数や設定ファイルの値を解決するために使う。
        ファイルの形式判定には使わない。

        Raises:
            ValueError: 該当するフォーマットがない場合
        """
        key = name.strip().lower().lstrip(".")
        aliases = {"jpg": "jpeg", "tif": "tiff"}
        key = aliases.get(key, key)
        for fmt in cls:
            if fmt.extension == key:
                return fmt
        raise ValueError(f"未対応のフォーマットです: {name}")


@dataclass(frozen=True)
class SelectionEntry:
    """選択集合の1要素

    Attributes:
        format: 外部の内容判定で確定したフォーマット
        included: 変換対象に含めるか
    """

    format: Format
    included: bool = True


SelectionSet = Mapping[Path, SelectionEntry]
TargetSet = Mapping[Format, bool]


def all_targets(enabled: bool = False) -> dict[Format, bool]:
    """全フォーマットを含むターゲット集合を生成する

    Args:
        enabled: 全フォーマットの初期値

    Returns:
        フォーマット→有効フラグの辞書
    """
    return {fmt: enabled for fmt in Format}


def targets_of(formats: Iterable[Format]) -> dict[Format, bool]:
    """指定したフォーマットのみを有効にしたターゲット集合を生成する"""
    enabled = set(formats)
    return {fmt: fmt in enabled for fmt in Format}


def output_path_for(source: Path, target: Format) -> Path:
    """変換先パスを返す

    変換元パスの拡張子をターゲットの正規拡張子に置き換えた兄弟パス。
    例: logo.png -> logo.ico
    """
    return source.with_suffix(f".{target.extension}")
