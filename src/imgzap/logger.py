"""進捗表示およびログ出力のインターフェース定義

このモジュールは、imgzapのバッチ変換の進捗表示とログ出力を定義する。
VerboseLevel (詳細ログレベル)に応じた出力制御を行い、
ジョブ単位の失敗を診断メッセージとして報告するために使用される。
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from threading import Lock
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from imgzap.converter.base import ConversionJob
    from imgzap.converter.manager import ConversionSummary


class VerboseLevel(IntEnum):
    """詳細ログレベル

    ログ出力の詳細度を制御するための列挙型。
    QUIET: エラーのみ出力
    NORMAL: 進捗バーとサマリ出力
    VERBOSE: 変換ファイル一覧も出力（-vオプション）
    DEBUG: コーデック経路の選択も出力（-vvオプション）
    """

    QUIET = -1
    NORMAL = 0
    VERBOSE = 1
    DEBUG = 2


class ProgressDisplay(Protocol):
    """進捗表示のプロトコル

    バッチ変換の進捗を表示するためのインターフェース。
    """

    def start(self, total: int) -> None:
        """バッチ開始を表示する

        Args:
            total: ジョブの総数
        """
        ...

    def update(self, current: int, message: str = "") -> None:
        """進捗を更新する

        Args:
            current: 完了したジョブ数
            message: 追加の進捗メッセージ（オプション）
        """
        ...

    def finish(self, success: bool, message: str = "") -> None:
        """バッチ終了を表示する

        Args:
            success: 全ジョブが成功したか
            message: 終了メッセージ（オプション）
        """
        ...


@dataclass
class LogConfig:
    """ログ設定

    ログ出力の動作を制御するための設定データクラス。

    Attributes:
        verbose_level: ログの詳細度レベル
        log_file: ログ出力先ファイルパス（Noneの場合はファイル出力なし）
        use_color: カラー出力を使用するか
        use_emoji: emoji表示を使用するか
    """

    verbose_level: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None
    use_color: bool = True
    use_emoji: bool = True


class ConversionLogger:
    """変換ログ出力クラス

    VerboseLevelに応じてメッセージのフィルタリングを行う。
    並列実行されるジョブから呼ばれるため、出力はロックで直列化する。

    使用例:
        >>> config = LogConfig(verbose_level=VerboseLevel.VERBOSE)
        >>> logger = ConversionLogger(config)
        >>> logger.info("変換を開始します")
        >>> logger.verbose("logo.png を処理中")
    """

    _ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

    def __init__(self, config: LogConfig | None = None) -> None:
        """ロガーを初期化する

        Args:
            config: ログ設定（Noneの場合はデフォルト設定）
        """
        self._config = config or LogConfig()
        self._lock = Lock()
        self._log_file: TextIO | None = None
        if self._config.log_file:
            # クラス自体がコンテキストマネージャとして動作し、__exit__でファイルを閉じる
            self._log_file = open(self._config.log_file, "w", encoding="utf-8")  # noqa: SIM115

    def __enter__(self) -> ConversionLogger:
        """コンテキストマネージャのエントリポイント"""
        return self

    def __exit__(self, *args: object) -> None:
        """コンテキストマネージャの終了処理"""
        self.close()

    def close(self) -> None:
        """ログファイルを閉じる"""
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    @property
    def config(self) -> LogConfig:
        """ログ設定を取得する"""
        return self._config

    def _print(self, message: str, file: TextIO | None = None) -> None:
        if file is None:
            file = sys.stdout
        print(message, file=file)

    def _emit(self, level: str, message: str, show: bool, file: TextIO | None = None) -> None:
        """コンソールとファイルへ出力する"""
        with self._lock:
            if show:
                self._print(message, file=file)
            self._log_to_file(level, message)

    def _log_to_file(self, level: str, message: str) -> None:
        """ファイルにログ出力する

        Args:
            level: ログレベル文字列
            message: 出力するメッセージ
        """
        if self._log_file:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            clean_message = self._strip_ansi(message)
            self._log_file.write(f"[{timestamp}] {level}: {clean_message}\n")
            self._log_file.flush()

    def _strip_ansi(self, text: str) -> str:
        return self._ANSI_ESCAPE_PATTERN.sub("", text)

    def info(self, message: str) -> None:
        """情報メッセージを出力する（NORMAL以上）"""
        self._emit("INFO", message, self._config.verbose_level >= VerboseLevel.NORMAL)

    def verbose(self, message: str) -> None:
        """詳細メッセージを出力する（VERBOSE以上）"""
        self._emit("VERBOSE", message, self._config.verbose_level >= VerboseLevel.VERBOSE)

    def debug(self, message: str) -> None:
        """デバッグメッセージを出力する（DEBUG以上）"""
        self._emit("DEBUG", message, self._config.verbose_level >= VerboseLevel.DEBUG)

    def error(self, message: str) -> None:
        """エラーメッセージを出力する（常に出力）"""
        with self._lock:
            self._print(f"エラー: {message}", file=sys.stderr)
            self._log_to_file("ERROR", message)

    def warning(self, message: str) -> None:
        """警告メッセージを出力する（QUIET以上）"""
        with self._lock:
            if self._config.verbose_level > VerboseLevel.QUIET:
                self._print(f"警告: {message}")
            self._log_to_file("WARNING", message)

    def create_progress(self) -> ProgressDisplay:
        """進捗表示インスタンスを作成する"""
        return ConsoleProgressDisplay(
            use_color=self._config.use_color,
            use_emoji=self._config.use_emoji,
        )

    def log_conversion(self, source: Path, dest: Path, status: str) -> None:
        """ファイル変換をログする（VERBOSE以上）

        Args:
            source: 変換元ファイルパス
            dest: 変換先ファイルパス
            status: 変換ステータス
        """
        self.verbose(f"変換: {source.name} -> {dest.name} [{status}]")

    def log_failure(self, job: ConversionJob, kind: str, detail: str) -> None:
        """ジョブの失敗をログする（常に出力）

        Args:
            job: 失敗したジョブ
            kind: エラー種別名
            detail: エラー詳細
        """
        self.error(
            f"{job.target_format.display_name}への変換に失敗しました: "
            f"{job.source} [{kind}] {detail}"
        )

    def log_summary(self, summary: ConversionSummary) -> None:
        """変換サマリを出力する（NORMAL以上）"""
        if summary.failed == 0:
            mark = "✅" if self._config.use_emoji else "[OK]"
        else:
            mark = "⚠️" if self._config.use_emoji else "[WARN]"
        self.info(
            f"{mark} 変換完了: 成功 {summary.success} / 失敗 {summary.failed} "
            f"(全 {summary.total} ジョブ)"
        )


class ConsoleProgressDisplay:
    """コンソール進捗表示

    バッチ変換の進捗を進捗バーでコンソールに表示するクラス。
    """

    BAR_WIDTH = 40

    def __init__(self, use_color: bool = True, use_emoji: bool = True) -> None:
        """進捗表示を初期化する

        Args:
            use_color: カラー出力を使用するか
            use_emoji: 絵文字を使用するか
        """
        self._use_color = use_color
        self._use_emoji = use_emoji
        self._total = 0
        self._current = 0

    def start(self, total: int) -> None:
        self._total = total
        self._current = 0
        prefix = "\U0001f504 " if self._use_emoji else ""
        print(f"{prefix}Converting images ({total} jobs)...")

    def update(self, current: int, message: str = "") -> None:
        self._current = current
        if self._total > 0:
            percent = int((current / self._total) * 100)
            filled = int(self.BAR_WIDTH * current / self._total)
            bar = "█" * filled + "░" * (self.BAR_WIDTH - filled)
            msg_part = f" {message}" if message else ""
            print(f"\r   [{bar}] {percent}%{msg_part}", end="", flush=True)

    def finish(self, success: bool, message: str = "") -> None:
        full_bar = "█" * self.BAR_WIDTH
        if success:
            mark = "✓" if self._use_emoji else "done"
            print(f"\r   [{full_bar}] 100% {mark}")
        else:
            mark = "✗" if self._use_emoji else "failed"
            msg_part = f": {message}" if message else ""
            print(f"\r   [{full_bar}] {mark}{msg_part}")
