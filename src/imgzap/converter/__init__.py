"""Converter module for imgzap.

画像フォーマット変換機能を提供するモジュール。
ラスター画像、ICOコンテナ、SVGのラスタライズ、ベクター化の各経路と、
それらへジョブを振り分けるディスパッチャを統一されたインターフェースで扱う。
"""

from imgzap.converter.base import (
    BaseConverter,
    ConversionJob,
    ConversionResult,
    ConversionStatus,
    Pixmap,
)
from imgzap.converter.icon import IconCodec, IconFrame, encode_frames, encode_icon, write_icon
from imgzap.converter.manager import (
    ConversionDispatcher,
    ConversionSummary,
    ProgressCallback,
    plan_jobs,
)
from imgzap.converter.raster import RasterCodec
from imgzap.converter.vector import VectorRasterizer
from imgzap.converter.vectorizer import Vectorizer

__all__ = [
    "BaseConverter",
    "ConversionDispatcher",
    "ConversionJob",
    "ConversionResult",
    "ConversionStatus",
    "ConversionSummary",
    "IconCodec",
    "IconFrame",
    "Pixmap",
    "ProgressCallback",
    "RasterCodec",
    "VectorRasterizer",
    "Vectorizer",
    "encode_frames",
    "encode_icon",
    "plan_jobs",
    "write_icon",
]
