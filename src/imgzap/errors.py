"""変換エラー定義モジュール

コーデック各層が送出する型付き例外を定義する。
ConversionDispatcher のみがこれらを捕捉してログに記録し、
それ以外の層はすべて呼び出し元へ伝播させる。
"""

from __future__ import annotations

from pathlib import Path


class ConversionError(Exception):
    """変換処理エラーの基底クラス

    Attributes:
        path: エラーの対象となったファイルパス（不明な場合はNone）
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    @property
    def kind(self) -> str:
        """ログ出力用のエラー種別名を返す"""
        return type(self).__name__


class ImageIOError(ConversionError):
    """ファイルのオープン・作成・読み書きに失敗した"""


class DecodeError(ConversionError):
    """変換元の内容が不正でデコードできない"""


class ParseError(DecodeError):
    """ベクター文書を解析できない"""


class EmptyContainerError(DecodeError):
    """アイコンコンテナにエントリが存在しない"""


class EncodeError(ConversionError):
    """リサイズ・圧縮・コンテナ直列化に失敗した"""


class AllocationError(ConversionError):
    """指定サイズのキャンバスを確保できない"""


class TracingError(ConversionError):
    """ラスター→ベクター変換に失敗した"""


class UnsupportedConversionError(ConversionError):
    """変換元と変換先の組み合わせに対応するコーデック経路がない"""


class OutputConflictError(ConversionError):
    """変換先パスが変換元ファイル、または別ジョブの変換先と重なる"""
