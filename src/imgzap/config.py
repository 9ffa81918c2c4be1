"""Configuration module for imgzap."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from PIL import ImageColor

DEFAULT_ICON_SIZES: tuple[int, ...] = (16, 32, 48, 64, 128, 256)
DEFAULT_CANVAS_SIZE = 256

# ICOディレクトリエントリの幅・高さは1バイト（0が256を表す）
MAX_ICON_SIZE = 256


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


@dataclass(frozen=True)
class RasterConfig:
    """ラスター画像エンコード設定

    Attributes:
        jpeg_quality: JPEG品質（0-100）
        webp_quality: WebP品質（0-100）
        webp_lossless: WebPをロスレスで保存するか
        avif_quality: AVIF品質（0-100）
        jpeg_background: JPEG出力時にアルファを合成する背景色。
            Noneの場合はアルファチャンネルを単純に破棄する
    """

    jpeg_quality: int = 95
    webp_quality: int = 90
    webp_lossless: bool = False
    avif_quality: int = 80
    jpeg_background: str | None = None


@dataclass(frozen=True)
class VectorConfig:
    """ベクター画像ラスタライズ設定"""

    canvas_size: int = DEFAULT_CANVAS_SIZE


@dataclass(frozen=True)
class IconConfig:
    """アイコン生成設定"""

    sizes: tuple[int, ...] = DEFAULT_ICON_SIZES


@dataclass(frozen=True)
class ImgzapConfig:
    """ルート設定"""

    raster: RasterConfig = field(default_factory=RasterConfig)
    vector: VectorConfig = field(default_factory=VectorConfig)
    icon: IconConfig = field(default_factory=IconConfig)
    workers: int | None = None


def load_config(path: Path) -> ImgzapConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        ImgzapConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込み、パース、値の検証エラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return ImgzapConfig(
        raster=_merge_raster_config(data.get("raster", {}), default.raster),
        vector=_merge_vector_config(data.get("vector", {}), default.vector),
        icon=_merge_icon_config(data.get("icon", {}), default.icon),
        workers=_parse_workers(data.get("workers", default.workers)),
    )


def get_default_config() -> ImgzapConfig:
    """デフォルト設定を取得する"""
    return ImgzapConfig()


def validate_icon_sizes(sizes: list[int] | tuple[int, ...]) -> tuple[int, ...]:
    """アイコンサイズ列を検証する

    Raises:
        ConfigError: 空、または1〜256の範囲外の値を含む場合
    """
    if not sizes:
        raise ConfigError("アイコンサイズが指定されていません")
    for size in sizes:
        if isinstance(size, bool) or not isinstance(size, int):
            raise ConfigError(f"アイコンサイズは整数である必要があります: {size!r}")
        if not 1 <= size <= MAX_ICON_SIZE:
            raise ConfigError(f"アイコンサイズは1〜{MAX_ICON_SIZE}の範囲で指定してください: {size}")
    return tuple(sizes)


def _merge_raster_config(data: dict[str, Any], default: RasterConfig) -> RasterConfig:
    """ラスター設定をマージする"""
    if not isinstance(data, dict):
        return default
    return RasterConfig(
        jpeg_quality=_parse_quality(data.get("jpeg_quality", default.jpeg_quality)),
        webp_quality=_parse_quality(data.get("webp_quality", default.webp_quality)),
        webp_lossless=_parse_flag(
            "webp_lossless", data.get("webp_lossless", default.webp_lossless)
        ),
        avif_quality=_parse_quality(data.get("avif_quality", default.avif_quality)),
        jpeg_background=_parse_color(data.get("jpeg_background", default.jpeg_background)),
    )


def _merge_vector_config(data: dict[str, Any], default: VectorConfig) -> VectorConfig:
    """ベクター設定をマージする"""
    if not isinstance(data, dict):
        return default
    canvas_size = data.get("canvas_size", default.canvas_size)
    if isinstance(canvas_size, bool) or not isinstance(canvas_size, int) or canvas_size <= 0:
        raise ConfigError(f"canvas_sizeは正の整数である必要があります: {canvas_size!r}")
    return VectorConfig(canvas_size=canvas_size)


def _merge_icon_config(data: dict[str, Any], default: IconConfig) -> IconConfig:
    """アイコン設定をマージする"""
    if not isinstance(data, dict):
        return default
    sizes = data.get("sizes", list(default.sizes))
    if not isinstance(sizes, list):
        raise ConfigError("icon.sizesはリストである必要があります")
    return IconConfig(sizes=validate_icon_sizes(sizes))


def _parse_quality(value: Any) -> int:
    """品質値を検証する"""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise ConfigError(f"品質は0〜100の整数で指定してください: {value!r}")
    return value


def _parse_workers(value: Any) -> int | None:
    """ワーカー数を検証する"""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"workersは正の整数である必要があります: {value!r}")
    return value


def _parse_flag(name: str, value: Any) -> bool:
    """真偽値を検証する（"false" などの文字列は受け付けない）"""
    if not isinstance(value, bool):
        raise ConfigError(f"{name}はtrueまたはfalseで指定してください: {value!r}")
    return value


def _parse_color(value: Any) -> str | None:
    """背景色を検証する

    PillowのImageColorが解釈できる色指定（"#ffffff"、"white" など）のみ受け付ける。
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"jpeg_backgroundは色の文字列で指定してください: {value!r}")
    try:
        ImageColor.getrgb(value)
    except ValueError as e:
        raise ConfigError(f"jpeg_backgroundを色として解釈できません: {value!r}") from e
    return value
