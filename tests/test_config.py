"""設定ファイル読み込みのテスト"""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from imgzap.config import (
    DEFAULT_ICON_SIZES,
    ConfigError,
    ImgzapConfig,
    get_default_config,
    load_config,
    validate_icon_sizes,
)


class TestDefaultConfig:
    """デフォルト設定のテスト"""

    def test_get_default_config_returns_imgzap_config(self) -> None:
        """デフォルト設定がImgzapConfigを返す"""
        assert isinstance(get_default_config(), ImgzapConfig)

    def test_default_raster_config(self) -> None:
        """ラスター設定のデフォルト値が正しい"""
        config = get_default_config()
        assert config.raster.jpeg_quality == 95
        assert config.raster.webp_quality == 90
        assert config.raster.webp_lossless is False
        assert config.raster.avif_quality == 80
        assert config.raster.jpeg_background is None

    def test_default_vector_and_icon_config(self) -> None:
        """キャンバスサイズとアイコンサイズ列のデフォルト値が正しい"""
        config = get_default_config()
        assert config.vector.canvas_size == 256
        assert config.icon.sizes == (16, 32, 48, 64, 128, 256)
        assert config.icon.sizes == DEFAULT_ICON_SIZES
        assert config.workers is None


class TestLoadConfig:
    """設定読み込みのテスト"""

    def test_load_config_file_not_found(self, tmp_path: Path) -> None:
        """存在しないファイルでConfigError"""
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nonexistent.yml")

    def test_load_config_invalid_yaml(self, tmp_path: Path) -> None:
        """無効なYAMLでConfigError"""
        config_file = tmp_path / "invalid.yml"
        config_file.write_text("this is not valid yaml: [")

        with pytest.raises(ConfigError, match="YAML"):
            load_config(config_file)

    def test_load_config_empty_file(self, tmp_path: Path) -> None:
        """空のファイルはデフォルト設定を返す"""
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")

        assert load_config(config_file) == get_default_config()

    def test_load_config_non_mapping_yaml(self, tmp_path: Path) -> None:
        """マッピング形式でないYAMLでConfigError"""
        config_file = tmp_path / "list.yml"
        config_file.write_text("- item1\n- item2")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_load_config_merges_with_defaults(self, tmp_path: Path) -> None:
        """部分的な設定がデフォルト値とマージされる"""
        config_file = tmp_path / "partial.yml"
        config_file.write_text("raster:\n  jpeg_quality: 70\n")

        config = load_config(config_file)
        assert config.raster.jpeg_quality == 70
        assert config.raster.webp_quality == 90
        assert config.vector.canvas_size == 256
        assert config.icon.sizes == DEFAULT_ICON_SIZES

    def test_load_config_full_settings(self, tmp_path: Path) -> None:
        """全ての設定が正しく読み込まれる"""
        config_content = """
raster:
  jpeg_quality: 80
  webp_quality: 75
  webp_lossless: true
  avif_quality: 60
  jpeg_background: "#ffffff"
vector:
  canvas_size: 512
icon:
  sizes: [256, 48, 16]
workers: 2
"""
        config_file = tmp_path / "full.yml"
        config_file.write_text(config_content)

        config = load_config(config_file)
        assert config.raster.jpeg_quality == 80
        assert config.raster.webp_quality == 75
        assert config.raster.webp_lossless is True
        assert config.raster.avif_quality == 60
        assert config.raster.jpeg_background == "#ffffff"
        assert config.vector.canvas_size == 512
        assert config.icon.sizes == (256, 48, 16)
        assert config.workers == 2

    @pytest.mark.parametrize(
        "content",
        [
            pytest.param("raster:\n  jpeg_quality: 101\n", id="異常系: 品質が上限超過"),
            pytest.param("raster:\n  webp_quality: -1\n", id="異常系: 品質が負"),
            pytest.param("raster:\n  avif_quality: high\n", id="異常系: 品質が文字列"),
            pytest.param("vector:\n  canvas_size: 0\n", id="異常系: キャンバスが0"),
            pytest.param("vector:\n  canvas_size: true\n", id="異常系: キャンバスが真偽値"),
            pytest.param("icon:\n  sizes: 16\n", id="異常系: サイズ列がリストでない"),
            pytest.param("icon:\n  sizes: []\n", id="異常系: サイズ列が空"),
            pytest.param("icon:\n  sizes: [16, 512]\n", id="異常系: サイズが256超過"),
            pytest.param("workers: 0\n", id="異常系: ワーカー数が0"),
            pytest.param(
                "raster:\n  webp_lossless: \"false\"\n", id="異常系: ロスレス指定が文字列"
            ),
            pytest.param("raster:\n  webp_lossless: 1\n", id="異常系: ロスレス指定が数値"),
            pytest.param(
                "raster:\n  jpeg_background: notacolor\n", id="異常系: 解釈できない背景色"
            ),
            pytest.param("raster:\n  jpeg_background: 255\n", id="異常系: 背景色が数値"),
        ],
    )
    def test_load_config_invalid_values(self, tmp_path: Path, content: str) -> None:
        """不正な値でConfigError"""
        config_file = tmp_path / "invalid.yml"
        config_file.write_text(content)

        with pytest.raises(ConfigError):
            load_config(config_file)


class TestValidateIconSizes:
    """アイコンサイズ検証のテスト"""

    def test_preserves_order(self) -> None:
        """指定した順序が保たれる"""
        assert validate_icon_sizes([64, 16, 256]) == (64, 16, 256)

    @pytest.mark.parametrize(
        "sizes",
        [
            pytest.param([0], id="異常系: 0"),
            pytest.param([257], id="異常系: 257"),
            pytest.param([16.5], id="異常系: 小数"),
            pytest.param([True], id="異常系: 真偽値"),
        ],
    )
    def test_rejects_invalid(self, sizes: list) -> None:
        """範囲外や整数以外はConfigError"""
        with pytest.raises(ConfigError):
            validate_icon_sizes(sizes)


class TestConfigImmutability:
    """設定のイミュータビリティテスト"""

    def test_config_is_frozen(self) -> None:
        """設定は変更できない"""
        config = get_default_config()
        with pytest.raises(FrozenInstanceError):
            config.workers = 4  # type: ignore[misc]
