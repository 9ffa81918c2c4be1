"""ICOディレクトリ解析のテスト"""

import struct

import pytest

from imgzap.errors import DecodeError
from imgzap.parser.icon import (
    CURSOR_TYPE,
    ICON_TYPE,
    IconDirectory,
    IconEntry,
    build_icon_file,
    entry_payload,
    read_icon_directory,
    single_entry_icon,
)


def _entry(index: int, width: int, height: int) -> IconEntry:
    return IconEntry(
        index=index,
        width=width,
        height=height,
        color_count=0,
        planes=1,
        bit_count=32,
        size=1,
        offset=0,
    )


class TestBuildAndRead:
    """ICOファイルの組み立てと解析のテスト"""

    def test_entries_in_given_order(self) -> None:
        """フレームは渡した順にディレクトリへ並ぶ"""
        data = build_icon_file(
            [
                (64, 64, 32, b"A" * 10),
                (16, 16, 32, b"B" * 5),
                (32, 32, 8, b"C" * 7),
            ]
        )

        directory = read_icon_directory(data)

        assert directory.type == ICON_TYPE
        assert [(e.width, e.height) for e in directory.entries] == [(64, 64), (16, 16), (32, 32)]
        assert [e.index for e in directory.entries] == [0, 1, 2]
        assert directory.entries[2].bit_count == 8
        assert entry_payload(data, directory.entries[0]) == b"A" * 10
        assert entry_payload(data, directory.entries[1]) == b"B" * 5
        assert entry_payload(data, directory.entries[2]) == b"C" * 7

    def test_size_256_stored_as_zero(self) -> None:
        """256は0バイトで記録され、解析時に256へ戻る"""
        data = build_icon_file([(256, 256, 32, b"X")])

        assert data[6] == 0
        assert data[7] == 0
        entry = read_icon_directory(data).entries[0]
        assert (entry.width, entry.height) == (256, 256)

    @pytest.mark.parametrize(
        "size",
        [
            pytest.param(0, id="異常系: 0"),
            pytest.param(257, id="異常系: 257"),
        ],
    )
    def test_build_rejects_out_of_range(self, size: int) -> None:
        """1〜256の範囲外はValueError"""
        with pytest.raises(ValueError):
            build_icon_file([(size, size, 32, b"X")])

    def test_empty_directory(self) -> None:
        """エントリ0件のファイルも解析できる"""
        directory = read_icon_directory(build_icon_file([]))
        assert directory.entries == ()
        assert directory.largest() is None

    def test_cursor_type_accepted(self) -> None:
        """カーソル形式のヘッダーも受け付ける"""
        data = bytearray(build_icon_file([(32, 32, 32, b"X")]))
        data[2:4] = struct.pack("<H", CURSOR_TYPE)
        assert read_icon_directory(bytes(data)).type == CURSOR_TYPE

    def test_single_entry_icon(self) -> None:
        """指定エントリのみを含むICOを組み立てる"""
        data = build_icon_file([(16, 16, 32, b"small"), (48, 48, 24, b"large-payload")])
        entry = read_icon_directory(data).entries[1]

        single = read_icon_directory(single_entry_icon(data, entry))

        assert len(single.entries) == 1
        assert (single.entries[0].width, single.entries[0].bit_count) == (48, 24)
        assert entry_payload(single_entry_icon(data, entry), single.entries[0]) == b"large-payload"


class TestReadErrors:
    """不正なICOの解析エラーのテスト"""

    @pytest.mark.parametrize(
        "data",
        [
            pytest.param(b"\x00\x00", id="異常系: ヘッダーが短い"),
            pytest.param(b"\x01\x00\x01\x00\x00\x00", id="異常系: reservedが0以外"),
            pytest.param(b"\x00\x00\x03\x00\x00\x00", id="異常系: 種別が不正"),
            pytest.param(b"\x00\x00\x01\x00\x02\x00" + b"\x00" * 16, id="異常系: テーブルが途中で切れる"),
        ],
    )
    def test_invalid_header(self, data: bytes) -> None:
        with pytest.raises(DecodeError):
            read_icon_directory(data)

    def test_payload_out_of_range(self) -> None:
        """ペイロードがファイル末尾を越える場合はDecodeError"""
        data = build_icon_file([(16, 16, 32, b"payload")])
        with pytest.raises(DecodeError, match="エントリ0"):
            read_icon_directory(data[:-3])

    def test_payload_overlaps_table(self) -> None:
        """ペイロード位置がディレクトリ内を指す場合はDecodeError"""
        data = bytearray(build_icon_file([(16, 16, 32, b"payload")]))
        struct.pack_into("<I", data, 6 + 12, 0)
        with pytest.raises(DecodeError):
            read_icon_directory(bytes(data))


class TestLargest:
    """最大フレーム選択のテスト"""

    def test_picks_max_area(self) -> None:
        """面積が最大のエントリを選ぶ"""
        directory = IconDirectory(
            type=ICON_TYPE,
            entries=(_entry(0, 16, 16), _entry(1, 64, 64), _entry(2, 32, 32)),
        )
        largest = directory.largest()
        assert largest is not None
        assert largest.index == 1

    def test_tie_picks_first_in_directory_order(self) -> None:
        """同じ面積の場合はディレクトリ順で最初のものを選ぶ"""
        directory = IconDirectory(
            type=ICON_TYPE,
            entries=(_entry(0, 16, 16), _entry(1, 32, 32), _entry(2, 32, 32), _entry(3, 64, 16)),
        )
        largest = directory.largest()
        assert largest is not None
        assert largest.index == 1
