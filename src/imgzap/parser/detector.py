"""画像フォーマット検出モジュール

ファイル先頭のバイト列から画像フォーマットを判定する。
拡張子は一切参照しない。CLIが変換対象の選択集合を組み立てる際に使う。
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from imgzap.formats import Format, SelectionEntry

# 判定に読み込む先頭バイト数
_SNIFF_SIZE = 1024

_MAGIC_BYTES: tuple[tuple[bytes, Format], ...] = (
    (b"\x89PNG\r\n\x1a\n", Format.PNG),
    (b"\xff\xd8\xff", Format.JPEG),
    (b"II*\x00", Format.TIFF),
    (b"MM\x00*", Format.TIFF),
    (b"\x00\x00\x01\x00", Format.ICO),
    (b"BM", Format.BMP),
)

_AVIF_BRANDS = (b"avif", b"avis")

# XML宣言・コメント・DOCTYPE・空白の後に<svgが現れるか
_SVG_PATTERN = re.compile(
    rb"^\s*(?:<\?xml[^>]*\?>\s*)?(?:(?:<!--.*?-->|<!DOCTYPE[^>]*>)\s*)*<svg[\s>/]",
    re.DOTALL | re.IGNORECASE,
)


def detect_bytes(header: bytes) -> Format | None:
    """先頭バイト列からフォーマットを判定する

    Args:
        header: ファイル先頭のバイト列

    Returns:
        判定したフォーマット。対応外の場合はNone
    """
    if header.startswith(b"RIFF") and header[8:12] == b"WEBP":
        return Format.WEBP

    if header[4:8] == b"ftyp" and _has_avif_brand(header):
        return Format.AVIF

    for magic, fmt in _MAGIC_BYTES:
        if header.startswith(magic):
            return fmt

    text = header.removeprefix(b"\xef\xbb\xbf")
    if _SVG_PATTERN.match(text):
        return Format.SVG
    return None


def _has_avif_brand(header: bytes) -> bool:
    """ISO-BMFFのftypボックスにAVIFブランドが含まれるか"""
    box_size = int.from_bytes(header[0:4], "big")
    end = min(box_size, len(header)) if box_size >= 16 else len(header)
    major = header[8:12]
    if major in _AVIF_BRANDS:
        return True
    # major(4) minor_version(4) の後に compatible brands が並ぶ
    compatible = header[16:end]
    return any(compatible[i : i + 4] in _AVIF_BRANDS for i in range(0, len(compatible) - 3, 4))


def detect_format(path: Path) -> Format | None:
    """ファイルの内容からフォーマットを判定する

    Args:
        path: 判定対象のファイルパス

    Returns:
        判定したフォーマット。読めない、または対応外の場合はNone
    """
    try:
        with open(path, "rb") as f:
            header = f.read(_SNIFF_SIZE)
    except OSError:
        return None
    return detect_bytes(header)


def collect_images(paths: Iterable[Path], recursive: bool = False) -> dict[Path, SelectionEntry]:
    """パスの一覧から画像ファイルを集めて選択集合を作る

    ディレクトリは直下（recursive=Trueの場合は再帰的に）のファイルを走査する。
    内容から画像と判定できたファイルのみを選択状態で含める。

    Args:
        paths: ファイルまたはディレクトリのパス
        recursive: サブディレクトリも走査するか

    Returns:
        ファイルパス → 選択エントリの辞書（走査順）
    """
    selection: dict[Path, SelectionEntry] = {}
    for path in paths:
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            candidates: Iterable[Path] = sorted(p for p in path.glob(pattern) if p.is_file())
        elif path.is_file():
            candidates = [path]
        else:
            continue

        for candidate in candidates:
            if candidate in selection:
                continue
            fmt = detect_format(candidate)
            if fmt is not None:
                selection[candidate] = SelectionEntry(format=fmt, included=True)
    return selection
