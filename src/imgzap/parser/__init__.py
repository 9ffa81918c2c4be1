"""Parser module for imgzap.

画像ファイルの内容からフォーマットを判定するモジュールと、
ICOコンテナのディレクトリを解析するモジュールを提供する。
"""

from imgzap.parser.detector import collect_images, detect_bytes, detect_format
from imgzap.parser.icon import (
    IconDirectory,
    IconEntry,
    build_icon_file,
    read_icon_directory,
)

__all__ = [
    "IconDirectory",
    "IconEntry",
    "build_icon_file",
    "collect_images",
    "detect_bytes",
    "detect_format",
    "read_icon_directory",
]
