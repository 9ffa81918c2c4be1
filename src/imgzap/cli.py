"""CLI entry point for imgzap."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from imgzap import __version__
from imgzap.config import ConfigError, ImgzapConfig, get_default_config, load_config
from imgzap.converter import ConversionDispatcher, plan_jobs
from imgzap.doctor import check_all_dependencies
from imgzap.formats import Format, targets_of
from imgzap.logger import ConversionLogger, LogConfig, VerboseLevel
from imgzap.parser.detector import collect_images
from imgzap.types import ExitCode

app = typer.Typer(help="画像ファイルを複数のフォーマットへ一括変換するCLIツール")
console = Console()


def _format_size(size_bytes: int) -> str:
    """バイト数を人間が読みやすい形式に変換する"""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _verbose_level(verbose: int, quiet: bool) -> VerboseLevel:
    if quiet:
        return VerboseLevel.QUIET
    return VerboseLevel(min(verbose, VerboseLevel.DEBUG))


@app.command()
def convert(
    paths: Annotated[list[Path], typer.Argument(help="変換元の画像ファイルまたはディレクトリ")],
    to: Annotated[
        list[str], typer.Option("-t", "--to", help="変換先フォーマット（複数指定可）")
    ],
    recursive: Annotated[
        bool, typer.Option("-r", "--recursive", help="ディレクトリを再帰的に走査")
    ] = False,
    config_path: Annotated[
        Path | None, typer.Option("-c", "--config", help="設定ファイル（YAML）")
    ] = None,
    workers: Annotated[int | None, typer.Option(help="並列ジョブ数")] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    quiet: Annotated[bool, typer.Option("-q", "--quiet", help="エラーのみ出力")] = False,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
) -> None:
    """画像を指定したフォーマットへ変換する"""
    config: ImgzapConfig = get_default_config()
    if config_path is not None:
        try:
            config = load_config(config_path)
        except ConfigError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(ExitCode.INVALID_INPUT) from e

    try:
        formats = [Format.from_name(name) for name in to]
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT) from e

    missing = [str(p) for p in paths if not p.exists()]
    if missing:
        console.print(f"[red]Error: パスが見つかりません: {', '.join(missing)}[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    selection = collect_images(paths, recursive=recursive)
    if not selection:
        console.print("[red]Error: 変換できる画像が見つかりません[/red]")
        raise typer.Exit(ExitCode.INVALID_INPUT)

    targets = targets_of(formats)
    jobs = plan_jobs(selection, targets)
    log_config = LogConfig(verbose_level=_verbose_level(verbose, quiet), log_file=log_file)

    with ConversionLogger(log_config) as logger:
        show_progress = log_config.verbose_level == VerboseLevel.NORMAL and len(jobs) > 0
        progress = logger.create_progress()
        if show_progress:
            progress.start(len(jobs))

        def progress_callback(current: int, total: int) -> None:
            progress.update(current)

        dispatcher = ConversionDispatcher(
            config=config,
            logger=logger,
            max_workers=workers,
            progress_callback=progress_callback if show_progress else None,
        )
        summary = dispatcher.run_jobs(jobs)

        if show_progress:
            progress.finish(summary.failed == 0)
        logger.log_summary(summary)

    if log_config.verbose_level >= VerboseLevel.VERBOSE and summary.results:
        table = Table(title="変換結果")
        table.add_column("ステータス", justify="center")
        table.add_column("変換元", justify="left")
        table.add_column("変換先", justify="left")
        table.add_column("サイズ", justify="right")
        for result in summary.results:
            if result.is_success:
                status = "[green]✓[/green]"
                dest = str(result.dest_path)
                size = _format_size(result.bytes_after)
            else:
                status = "[red]✗[/red]"
                dest = result.error_kind or "-"
                size = "-"
            table.add_row(status, str(result.source_path), dest, size)
        console.print(table)

    if summary.failed:
        raise typer.Exit(ExitCode.ERROR)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def formats() -> None:
    """対応フォーマットの一覧を表示する"""
    table = Table(title="対応フォーマット")
    table.add_column("フォーマット", style="cyan")
    table.add_column("拡張子", justify="left")
    table.add_column("汎用エンコード", justify="center")
    table.add_column("コンテナ", justify="center")
    table.add_column("ベクター", justify="center")

    def mark(value: bool) -> str:
        return "[green]✓[/green]" if value else "-"

    for fmt in Format:
        table.add_row(
            fmt.display_name,
            f".{fmt.extension}",
            mark(fmt.generic_encodable),
            mark(fmt.is_container),
            mark(fmt.is_vector),
        )

    console.print(table)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def doctor() -> None:
    """コーデックバックエンドをチェックする"""
    results = check_all_dependencies()

    table = Table(title="依存チェック結果")
    table.add_column("ステータス", justify="center")
    table.add_column("名前", justify="left")
    table.add_column("バージョン", justify="left")
    table.add_column("必須", justify="center")
    table.add_column("メッセージ", justify="left")

    has_missing_required = False

    for result in results:
        if result.found:
            status = "[green]✓[/green]"
        else:
            status = "[red]✗[/red]"
            if result.required:
                has_missing_required = True

        required_str = "[yellow]必須[/yellow]" if result.required else "オプション"
        table.add_row(
            status, result.name, result.version or "-", required_str, result.message or ""
        )

    console.print(table)

    if has_missing_required:
        console.print("\n[red]エラー: 必須の依存が不足しています[/red]")
        raise typer.Exit(ExitCode.DEPENDENCY_ERROR)
    console.print("\n[green]すべての必須の依存が利用可能です[/green]")
    raise typer.Exit(ExitCode.SUCCESS)


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"imgzap {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """imgzap CLI - 画像フォーマット一括変換"""
    pass
