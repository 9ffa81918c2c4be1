"""ConversionDispatcher モジュール

選択されたファイル × 有効な変換先フォーマットの直積からジョブを生成し、
変換元フォーマットに応じたコーデック経路へ振り分けて実行する。
ジョブの失敗はここでのみ捕捉され、ログに記録された上でバッチは継続する。
"""

from __future__ import annotations

import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

from imgzap.config import ImgzapConfig, get_default_config
from imgzap.converter.base import (
    BaseConverter,
    ConversionJob,
    ConversionResult,
    ConversionStatus,
)
from imgzap.converter.icon import IconCodec
from imgzap.converter.raster import RasterCodec
from imgzap.converter.vector import VectorRasterizer
from imgzap.converter.vectorizer import Vectorizer
from imgzap.errors import ConversionError, OutputConflictError, UnsupportedConversionError
from imgzap.formats import Format, SelectionSet, TargetSet, output_path_for
from imgzap.logger import ConversionLogger


@dataclass
class ConversionSummary:
    """変換サマリー

    バッチ変換の結果を保持するデータクラス。
    同一フォーマットの組はジョブにならないため、ここには現れない。

    Attributes:
        total: ジョブの総数
        success: 変換成功数
        failed: 変換失敗数
        results: ジョブ計画順の変換結果
    """

    total: int = 0
    success: int = 0
    failed: int = 0
    results: list[ConversionResult] = field(default_factory=list)

    @property
    def failures(self) -> list[ConversionResult]:
        """失敗した変換結果のリストを返す"""
        return [r for r in self.results if r.status == ConversionStatus.FAILED]

    def add(self, result: ConversionResult) -> None:
        """結果を追加して集計を更新する"""
        self.results.append(result)
        if result.is_success:
            self.success += 1
        else:
            self.failed += 1


# 進捗コールバックの型エイリアス（完了数, 総数）
ProgressCallback = Callable[[int, int], None]


def plan_jobs(selection: SelectionSet, targets: TargetSet) -> list[ConversionJob]:
    """選択集合とターゲット集合から変換ジョブのリストを生成する

    選択されたファイルごとに、有効なフォーマットのうち変換元と異なるものについて
    ジョブを作る。同一フォーマットの組は何も記録せずに除外する。
    順序は選択集合の順、その中でFormatの宣言順。

    フォーマットは内容から判定されるため、拡張子と内容が食い違うファイルでは
    変換先パスが選択集合内のファイル自身や、先行ジョブの変換先と重なることがある。
    そのようなジョブには conflict を設定し、実行時に OutputConflictError として失敗させる。

    Args:
        selection: ファイルパス → (判定済みフォーマット, 選択フラグ)
        targets: フォーマット → 有効フラグ

    Returns:
        変換ジョブのリスト
    """
    enabled = [fmt for fmt in Format if targets.get(fmt, False)]
    sources = {Path(path).resolve() for path in selection}
    claimed: dict[Path, Path] = {}
    jobs: list[ConversionJob] = []
    for source, entry in selection.items():
        if not entry.included:
            continue
        for target in enabled:
            if target == entry.format:
                continue
            dest = output_path_for(Path(source), target)
            key = dest.resolve()
            conflict: str | None = None
            if key in sources:
                conflict = f"変換先が選択された変換元ファイルと重なります: {dest}"
            elif key in claimed:
                conflict = f"変換先が {claimed[key]} の変換先と重なります: {dest}"
            else:
                claimed[key] = Path(source)
            jobs.append(ConversionJob(Path(source), entry.format, target, conflict=conflict))
    return jobs


class ConversionDispatcher:
    """変換ディスパッチャ

    ジョブを変換元フォーマットで振り分ける:
    ベクター → VectorRasterizer、コンテナ → IconCodec、その他 → RasterCodec。
    ジョブ同士は独立しており、max_workers > 1 の場合はスレッドプールで並列実行する。

    Attributes:
        config: 変換設定
        converters: 振り分け順のコーデック経路
        max_workers: 最大ワーカー数
        logger: ログ出力先
        progress_callback: 進捗報告用コールバック
    """

    def __init__(
        self,
        config: ImgzapConfig | None = None,
        logger: ConversionLogger | None = None,
        max_workers: int | None = None,
        progress_callback: ProgressCallback | None = None,
        converters: list[BaseConverter] | None = None,
    ) -> None:
        """ConversionDispatcherを初期化する

        Args:
            config: 変換設定（Noneの場合はデフォルト設定）
            logger: ロガー（Noneの場合はNORMALレベルのコンソールロガー）
            max_workers: 最大ワーカー数（Noneの場合は設定値、未設定ならCPU数）
            progress_callback: 進捗報告用コールバック関数
            converters: コーデック経路（Noneの場合は設定から標準構成を組み立てる）
        """
        self.config = config or get_default_config()
        self.logger = logger or ConversionLogger()
        self.max_workers = max_workers or self.config.workers or self.calculate_workers()
        self.progress_callback = progress_callback
        self.converters = converters if converters is not None else self._build_converters()

    def _build_converters(self) -> list[BaseConverter]:
        raster = RasterCodec(
            config=self.config.raster,
            icon_sizes=self.config.icon.sizes,
            vectorizer=Vectorizer(),
        )
        return [
            VectorRasterizer(raster, canvas_size=self.config.vector.canvas_size),
            IconCodec(raster),
            raster,
        ]

    def convert_all(self, selection: SelectionSet, targets: TargetSet) -> ConversionSummary:
        """選択されたすべてのファイルを有効なすべてのフォーマットへ変換する

        失敗したジョブはログに記録して次のジョブへ進む。例外は送出しない。

        Args:
            selection: ファイルパス → (判定済みフォーマット, 選択フラグ)
            targets: フォーマット → 有効フラグ

        Returns:
            変換結果のサマリー
        """
        jobs = plan_jobs(selection, targets)
        return self.run_jobs(jobs)

    def run_jobs(self, jobs: list[ConversionJob]) -> ConversionSummary:
        """計画済みのジョブを実行する

        結果は完了順ではなくジョブの順でサマリーに並ぶ。
        """
        summary = ConversionSummary(total=len(jobs))
        completed_count = 0
        lock = Lock()

        def process(job: ConversionJob) -> ConversionResult:
            nonlocal completed_count
            result = self._run_job(job)
            with lock:
                completed_count += 1
                if self.progress_callback:
                    self.progress_callback(completed_count, summary.total)
            return result

        if self.max_workers <= 1 or len(jobs) <= 1:
            results = [process(job) for job in jobs]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(process, jobs))

        for result in results:
            summary.add(result)
        return summary

    def execute(self, job: ConversionJob) -> ConversionResult:
        """単一ジョブを実行する

        Args:
            job: 変換ジョブ

        Returns:
            成功時の変換結果

        Raises:
            ConversionError: 変換に失敗した場合
        """
        if job.conflict is not None:
            raise OutputConflictError(job.conflict, job.source)
        converter = self.get_converter(job.source_format)
        if converter is None:
            raise UnsupportedConversionError(
                f"{job.source_format.display_name}から"
                f"{job.target_format.display_name}への変換経路がありません",
                job.source,
            )

        self.logger.debug(f"{job.describe()}: {type(converter).__name__}")
        bytes_before = _file_size(job.source)
        converter.convert(job.source, job.dest, job.target_format)

        return ConversionResult(
            source_path=job.source,
            dest_path=job.dest,
            status=ConversionStatus.SUCCESS,
            target_format=job.target_format,
            bytes_before=bytes_before,
            bytes_after=_file_size(job.dest),
        )

    def _run_job(self, job: ConversionJob) -> ConversionResult:
        """ジョブを実行し、失敗を結果として記録する"""
        try:
            result = self.execute(job)
        except ConversionError as e:
            return self._failed(job, e.kind, str(e))
        except Exception as e:
            return self._failed(job, type(e).__name__, str(e))

        self.logger.log_conversion(job.source, job.dest, result.status.value)
        return result

    def _failed(self, job: ConversionJob, kind: str, detail: str) -> ConversionResult:
        self.logger.log_failure(job, kind, detail)
        return ConversionResult(
            source_path=job.source,
            dest_path=None,
            status=ConversionStatus.FAILED,
            target_format=job.target_format,
            message=detail,
            error_kind=kind,
        )

    def get_converter(self, source_format: Format) -> BaseConverter | None:
        """変換元フォーマットに対応するコーデック経路を取得する"""
        for converter in self.converters:
            if converter.can_convert(source_format):
                return converter
        return None

    @staticmethod
    def calculate_workers() -> int:
        """CPUコア数からワーカー数を決める（最小1）"""
        return max(1, os.cpu_count() or 1)


def _file_size(path: Path) -> int:
    """ファイルサイズを取得する（存在しない場合は0）"""
    if path.exists():
        return path.stat().st_size
    return 0
