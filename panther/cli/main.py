"""
Main CLI application using Typer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from panther.catalog.loader import load_catalog, source_records
from panther.cli.formatters import format_report, format_summary, print_header, report_to_json
from panther.core.config import AppConfig, load_config_file
from panther.core.errors import CatalogError
from panther.modules.base import SourceRecord
from panther.modules.http_probe import ProbeExecutor
from panther.parallel.executor import ProbeScheduler, records_for_urls
from panther.report.models import AvailabilityReport
from panther.storage.csv_handler import CSVHandler
from panther.storage.logger import add_run_log, setup_logging

EXIT_OK = 0
EXIT_UNAVAILABLE = 1
EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="panther",
    help="Check that every source listed in an extension catalog is reachable",
    add_completion=False,
)

console = Console()


def _fail(message: str) -> None:
    console.print(f"[bold red]✗ {escape(message)}[/bold red]")
    raise typer.Exit(EXIT_CONFIG_ERROR)


def _init_context(output_dir: Optional[Path], verbose: bool, **overrides: Any):
    """
    Initialize shared objects: config and logger.
    Uses optional config file (~/.panther.yaml or ./.panther.yaml) for defaults when CLI does not set values.
    """
    settings = load_config_file()
    if output_dir is not None:
        settings["output_dir"] = output_dir
    settings["verbose"] = verbose or settings.get("verbose", False)
    settings.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = AppConfig(**settings)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        _fail(f"Invalid configuration: {errors}")

    logger = setup_logging(config.output_dir, config.verbose)
    return config, logger


def _run_checks(
    config: AppConfig,
    records: List[SourceRecord],
    show_progress: bool,
) -> AvailabilityReport:
    scheduler = ProbeScheduler(config.scheduler_config(), ProbeExecutor(config.probe_config()))

    if not show_progress:
        return scheduler.run(records)

    with Progress(
        TextColumn("[dim]{task.description}[/dim]"),
        SpinnerColumn(),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Probing sources…", total=len(records))

        def _cb(completed: int, total: int) -> None:
            progress.update(task, completed=completed)

        return scheduler.run(records, progress_callback=_cb)


def _emit(report: AvailabilityReport, output_format: str, failures_only: bool) -> None:
    if output_format == "json":
        typer.echo(report_to_json(report))
    else:
        format_report(report, console, failures_only=failures_only)
        format_summary(report, console)


def _exit_code(report: AvailabilityReport) -> int:
    return EXIT_UNAVAILABLE if any(True for _ in report.failures()) else EXIT_OK


def _check_format(output_format: str) -> str:
    output_format = output_format.lower()
    if output_format not in ("rich", "json"):
        _fail(f"Unknown output format {output_format!r} (expected 'rich' or 'json')")
    return output_format


@app.callback(invoke_without_command=True)
def _default(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    Panther - extension catalog source availability checker.
    """
    if version:
        from panther import __version__
        console.print(f"panther {__version__}")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def check(
    catalog: Optional[str] = typer.Option(
        None,
        "--catalog",
        "-c",
        help="Catalog URL or local JSON file (default: keiyoushi index.min.json)",
    ),
    lang: Optional[str] = typer.Option(
        None,
        "--lang",
        "-l",
        help="Only check extensions with this language code (e.g. es)",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-j",
        help="Maximum number of probes in flight",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-probe timeout in seconds",
    ),
    run_timeout: Optional[float] = typer.Option(
        None,
        "--run-timeout",
        help="Deadline for the whole run in seconds; outstanding probes are marked timed out",
    ),
    failures_only: bool = typer.Option(
        False,
        "--failures-only",
        help="Only list sources that are not reachable",
    ),
    csv_path: Optional[Path] = typer.Option(
        None,
        "--csv",
        help="Also export outcomes to this CSV file",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory for logs, downloaded catalog and results",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    output_format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format: 'rich' (default) or 'json'",
    ),
):
    """
    Download (or read) the catalog and check every source it lists.
    """
    output_format = _check_format(output_format)
    config, logger = _init_context(
        output_dir,
        verbose,
        catalog=catalog,
        lang=lang,
        max_concurrency=concurrency,
        per_probe_timeout=timeout,
        run_timeout=run_timeout,
    )
    run_dir = config.create_run_dir("catalog_check")
    rich_output = output_format == "rich"

    if rich_output:
        print_header(console)

    run_log = add_run_log(run_dir)
    try:
        report = _check_catalog(config, logger, run_dir, output_format, failures_only, csv_path)
    finally:
        logger.remove(run_log)

    if rich_output:
        console.print(f"[dim]Results saved to {run_dir}[/dim]")
    raise typer.Exit(_exit_code(report))


def _check_catalog(
    config: AppConfig,
    logger,
    run_dir: Path,
    output_format: str,
    failures_only: bool,
    csv_path: Optional[Path],
) -> AvailabilityReport:
    """Load the catalog, probe its sources, then print and store the report."""
    try:
        extensions = load_catalog(config.catalog, run_dir)
    except CatalogError as e:
        logger.error(str(e))
        _fail(str(e))

    records = source_records(extensions, config.lang)
    scope = f" (lang={config.lang})" if config.lang else ""
    logger.info(f"Catalog has {len(extensions)} extension(s); {len(records)} source(s) to check{scope}")

    report = _run_checks(config, records, show_progress=output_format == "rich")
    _emit(report, output_format, failures_only)

    rows = CSVHandler(run_dir / "results.csv").write_report(report)
    if csv_path is not None:
        CSVHandler(csv_path).write_report(report)
        logger.info(f"Exported {rows} row(s) to {csv_path}")

    config.save_metadata(
        run_dir,
        {
            "catalog": config.catalog,
            "lang": config.lang,
            "max_concurrency": config.max_concurrency,
            "per_probe_timeout": config.per_probe_timeout,
            "run_timeout": config.run_timeout,
            "extensions": len(report),
            "sources": report.total_outcomes,
        },
    )

    return report


@app.command()
def url(
    urls: List[str] = typer.Argument(..., help="One or more URLs to check"),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-j",
        help="Maximum number of probes in flight",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-probe timeout in seconds",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory for logs",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    output_format: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format: 'rich' (default) or 'json'",
    ),
):
    """
    Check one or more URLs directly, without a catalog.
    """
    output_format = _check_format(output_format)
    config, _logger = _init_context(
        output_dir,
        verbose,
        max_concurrency=concurrency,
        per_probe_timeout=timeout,
    )

    records = records_for_urls(urls)
    report = _run_checks(config, records, show_progress=False)
    _emit(report, output_format, failures_only=False)
    raise typer.Exit(_exit_code(report))
