"""ICOディレクトリ解析モジュール

ICOファイル先頭のICONDIRとICONDIRENTRYを解析し、
各エントリのサイズとペイロード位置を取得する。
ペイロード（PNGまたはDIB）のデコードは行わない。
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from imgzap.errors import DecodeError

# ICONDIR: reserved(2) type(2) count(2)
_HEADER = struct.Struct("<HHH")
# ICONDIRENTRY: width(1) height(1) colors(1) reserved(1) planes(2) bit_count(2)
#               bytes_in_res(4) image_offset(4)
_ENTRY = struct.Struct("<BBBBHHII")

ICON_TYPE = 1
CURSOR_TYPE = 2

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@dataclass(frozen=True)
class IconEntry:
    """ICOディレクトリのエントリ

    Attributes:
        index: ディレクトリ内の位置（0始まり）
        width: 幅（バイト値0は256として解釈済み）
        height: 高さ（バイト値0は256として解釈済み）
        color_count: パレット色数（0はパレットなし）
        planes: プレーン数（カーソルではホットスポットX）
        bit_count: ビット深度（カーソルではホットスポットY）
        size: ペイロードのバイト数
        offset: ファイル先頭からのペイロード位置
    """

    index: int
    width: int
    height: int
    color_count: int
    planes: int
    bit_count: int
    size: int
    offset: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class IconDirectory:
    """ICOディレクトリ

    Attributes:
        type: 1=アイコン、2=カーソル
        entries: ディレクトリ順のエントリ列
    """

    type: int
    entries: tuple[IconEntry, ...]

    def largest(self) -> IconEntry | None:
        """面積（幅×高さ）が最大のエントリを返す

        同じ面積のエントリが複数ある場合はディレクトリ順で最初のものを選ぶ。
        エントリがない場合はNone。
        """
        best: IconEntry | None = None
        for entry in self.entries:
            if best is None or entry.area > best.area:
                best = entry
        return best


def read_icon_directory(data: bytes) -> IconDirectory:
    """ICOファイルのディレクトリを解析する

    Args:
        data: ICOファイル全体のバイト列

    Returns:
        解析したディレクトリ

    Raises:
        DecodeError: ヘッダーが不正、または範囲外を指すエントリがある場合
    """
    if len(data) < _HEADER.size:
        raise DecodeError("ICOヘッダーが短すぎます")

    reserved, icon_type, count = _HEADER.unpack_from(data, 0)
    if reserved != 0 or icon_type not in (ICON_TYPE, CURSOR_TYPE):
        raise DecodeError("ICO形式ではありません")

    table_end = _HEADER.size + count * _ENTRY.size
    if len(data) < table_end:
        raise DecodeError(f"ICOディレクトリが途中で切れています（エントリ数 {count}）")

    entries: list[IconEntry] = []
    for i in range(count):
        (
            width,
            height,
            color_count,
            _reserved,
            planes,
            bit_count,
            size,
            offset,
        ) = _ENTRY.unpack_from(data, _HEADER.size + i * _ENTRY.size)

        if size == 0 or offset < table_end or offset + size > len(data):
            raise DecodeError(f"ICOエントリ{i}のデータ位置が不正です")

        entries.append(
            IconEntry(
                index=i,
                width=width or 256,
                height=height or 256,
                color_count=color_count,
                planes=planes,
                bit_count=bit_count,
                size=size,
                offset=offset,
            )
        )

    return IconDirectory(type=icon_type, entries=tuple(entries))


def entry_payload(data: bytes, entry: IconEntry) -> bytes:
    """エントリのペイロードを切り出す"""
    return data[entry.offset : entry.offset + entry.size]


def build_icon_file(frames: list[tuple[int, int, int, bytes]]) -> bytes:
    """ICOファイルを組み立てる

    Args:
        frames: (幅, 高さ, ビット深度, ペイロード) のリスト。この順でディレクトリに並ぶ

    Returns:
        ICOファイルのバイト列

    Raises:
        ValueError: 幅・高さが1〜256の範囲外の場合
    """
    header = _HEADER.pack(0, ICON_TYPE, len(frames))
    offset = _HEADER.size + len(frames) * _ENTRY.size
    table = bytearray()
    payloads = bytearray()
    for width, height, bit_count, payload in frames:
        if not (1 <= width <= 256 and 1 <= height <= 256):
            raise ValueError(f"ICOフレームのサイズが範囲外です: {width}x{height}")
        table += _ENTRY.pack(
            width % 256,
            height % 256,
            0,
            0,
            1,
            bit_count,
            len(payload),
            offset,
        )
        payloads += payload
        offset += len(payload)
    return header + bytes(table) + bytes(payloads)


def single_entry_icon(data: bytes, entry: IconEntry) -> bytes:
    """指定エントリのみを含むICOファイルを組み立てる

    DIBペイロードをPillowのICOデコーダに渡すために使う。
    ディレクトリのバイト値はそのまま引き継ぐ。
    """
    payload = entry_payload(data, entry)
    header = _HEADER.pack(0, ICON_TYPE, 1)
    record = _ENTRY.pack(
        entry.width % 256,
        entry.height % 256,
        entry.color_count,
        0,
        entry.planes,
        entry.bit_count,
        len(payload),
        _HEADER.size + _ENTRY.size,
    )
    return header + record + payload
