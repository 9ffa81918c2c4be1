"""画像フォーマット検出のテスト"""

from collections.abc import Callable
from pathlib import Path

import pytest

from imgzap.formats import Format
from imgzap.parser.detector import collect_images, detect_bytes, detect_format


class TestDetectBytes:
    """先頭バイト列によるフォーマット判定のテスト"""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            pytest.param(b"\x89PNG\r\n\x1a\n\x00\x00", Format.PNG, id="正常系: PNG"),
            pytest.param(b"\xff\xd8\xff\xe0\x00\x10JFIF", Format.JPEG, id="正常系: JPEG"),
            pytest.param(b"RIFF\x24\x00\x00\x00WEBPVP8 ", Format.WEBP, id="正常系: WEBP"),
            pytest.param(b"II*\x00\x08\x00\x00\x00", Format.TIFF, id="正常系: TIFF リトルエンディアン"),
            pytest.param(b"MM\x00*\x00\x00\x00\x08", Format.TIFF, id="正常系: TIFF ビッグエンディアン"),
            pytest.param(b"BM\x36\x00\x00\x00", Format.BMP, id="正常系: BMP"),
            pytest.param(b"\x00\x00\x01\x00\x01\x00", Format.ICO, id="正常系: ICO"),
            pytest.param(
                b"\x00\x00\x00\x1cftypavif\x00\x00\x00\x00avifmif1",
                Format.AVIF,
                id="正常系: AVIF メジャーブランド",
            ),
            pytest.param(
                b"\x00\x00\x00\x1cftypmif1\x00\x00\x00\x00mif1avif",
                Format.AVIF,
                id="正常系: AVIF 互換ブランド",
            ),
            pytest.param(b"<svg xmlns='http://www.w3.org/2000/svg'/>", Format.SVG, id="正常系: SVG"),
            pytest.param(
                b'\xef\xbb\xbf<?xml version="1.0"?>\n<!-- logo -->\n'
                b'<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN" "x">\n<svg>',
                Format.SVG,
                id="正常系: SVG BOM・宣言・コメント付き",
            ),
            pytest.param(
                b"\x00\x00\x00\x1cftypheic\x00\x00\x00\x00mif1heic",
                None,
                id="異常系: HEIC",
            ),
            pytest.param(b"RIFF\x24\x00\x00\x00WAVEfmt ", None, id="異常系: WAV"),
            pytest.param(b"GIF89a", None, id="異常系: GIF"),
            pytest.param(b"<html><body/></html>", None, id="異常系: HTML"),
            pytest.param(b"", None, id="異常系: 空"),
        ],
    )
    def test_detect_bytes(self, header: bytes, expected: Format | None) -> None:
        assert detect_bytes(header) == expected


class TestDetectFormat:
    """ファイル内容による判定のテスト"""

    @pytest.mark.parametrize(
        "fmt",
        [pytest.param(fmt, id=f"正常系: {fmt.display_name}") for fmt in Format],
    )
    def test_detects_written_files(
        self, write_image: Callable[..., Path], fmt: Format
    ) -> None:
        """Pillowで書き出したファイルを内容から判定できる"""
        path = write_image(f"sample.{fmt.extension}", fmt)
        assert detect_format(path) == fmt

    def test_ignores_extension(self, write_image: Callable[..., Path], tmp_path: Path) -> None:
        """拡張子と内容が食い違っていても内容で判定する"""
        path = write_image("actually_png.jpeg", Format.PNG)
        assert detect_format(path) == Format.PNG

    def test_missing_file(self, tmp_path: Path) -> None:
        """読めないファイルはNone"""
        assert detect_format(tmp_path / "missing.png") is None


class TestCollectImages:
    """選択集合の収集テスト"""

    def test_collects_directory_sorted(
        self, tmp_path: Path, write_image: Callable[..., Path]
    ) -> None:
        """ディレクトリ直下の画像をパス順に集める"""
        b = write_image("b.png", Format.PNG)
        a = write_image("a.bmp", Format.BMP, mode="RGB")
        (tmp_path / "c.txt").write_text("text")
        sub = tmp_path / "sub"
        sub.mkdir()
        (sub / "d.svg").write_text("<svg/>")

        selection = collect_images([tmp_path])

        assert list(selection) == [a, b]
        assert selection[a].format == Format.BMP
        assert selection[b].format == Format.PNG
        assert all(entry.included for entry in selection.values())

    def test_recursive(self, tmp_path: Path) -> None:
        """recursive=Trueでサブディレクトリも走査する"""
        sub = tmp_path / "sub"
        sub.mkdir()
        svg = sub / "d.svg"
        svg.write_text("<svg/>")

        assert collect_images([tmp_path]) == {}
        assert list(collect_images([tmp_path], recursive=True)) == [svg]

    def test_deduplicates(self, write_image: Callable[..., Path]) -> None:
        """同じファイルを複数回指定しても1件になる"""
        path = write_image("a.png", Format.PNG)
        assert list(collect_images([path, path])) == [path]
