"""コーデックバックエンドチェッカー"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata

from PIL import features


@dataclass(frozen=True)
class CheckResult:
    """チェック結果"""

    name: str
    required: bool
    found: bool
    version: str | None
    message: str | None


@dataclass(frozen=True)
class DependencyInfo:
    """依存ライブラリ情報

    Attributes:
        name: 表示名
        distribution: パッケージ名（Pillowの機能チェックの場合はNone）
        feature: Pillowの機能名（features.checkに渡す名前）
        required: 必須か
    """

    name: str
    required: bool
    distribution: str | None = None
    feature: str | None = None


DEPENDENCIES: list[DependencyInfo] = [
    DependencyInfo(name="Pillow", distribution="Pillow", required=True),
    DependencyInfo(name="WebP codec", feature="webp", required=True),
    DependencyInfo(name="AVIF codec", feature="avif", required=True),
    DependencyInfo(name="libtiff", feature="libtiff", required=False),
    DependencyInfo(name="CairoSVG", distribution="CairoSVG", required=True),
    DependencyInfo(name="vtracer", distribution="vtracer", required=True),
]


def check_dependency(info: DependencyInfo) -> CheckResult:
    """単一の依存をチェックする"""
    if info.feature is not None:
        found = bool(features.check(info.feature))
        return CheckResult(
            name=info.name,
            required=info.required,
            found=found,
            version=features.version(info.feature) if found else None,
            message=None if found else f"Pillowが '{info.feature}' 対応でビルドされていません",
        )

    distribution = info.distribution or info.name
    try:
        version = metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return CheckResult(
            name=info.name,
            required=info.required,
            found=False,
            version=None,
            message=f"パッケージ '{distribution}' がインストールされていません",
        )
    return CheckResult(
        name=info.name,
        required=info.required,
        found=True,
        version=version,
        message=None,
    )


def check_all_dependencies() -> list[CheckResult]:
    """全ての依存をチェックする"""
    return [check_dependency(info) for info in DEPENDENCIES]
