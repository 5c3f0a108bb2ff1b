"""
Rich formatting utilities for CLI output.
"""

import json
from typing import Dict

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from panther.__version__ import __version__
from panther.modules.base import ProbeOutcome, ProbeStatus
from panther.report.aggregator import summarize
from panther.report.models import AvailabilityReport


def print_header(console: Console) -> None:
    """Print application header."""
    console.print(
        Panel.fit(
            f"[bold]Panther[/bold] - Extension Source Availability Checker  [dim]v{__version__}[/dim]",
            border_style="cyan",
        )
    )


def _status_icon_and_color(status: ProbeStatus) -> tuple[str, str]:
    """Map a probe status to icon and color."""
    if status == ProbeStatus.REACHABLE:
        return "✓", "green"
    if status == ProbeStatus.TIMED_OUT:
        return "⏱", "yellow"
    if status == ProbeStatus.MALFORMED:
        return "?", "magenta"
    return "✗", "red"


def _status_text(outcome: ProbeOutcome) -> str:
    icon, color = _status_icon_and_color(outcome.status)
    label = outcome.status.value.replace("_", " ").upper()
    return f"[{color}]{icon} {label}[/{color}]"


def format_report(
    report: AvailabilityReport,
    console: Console,
    failures_only: bool = False,
) -> None:
    """
    Display the availability report as a table grouped by extension.

    Args:
        report: Report to display
        console: Rich console
        failures_only: Only show sources that are not reachable
    """
    table = Table(title="Source Availability", show_header=True, box=None, padding=(0, 2))
    table.add_column("Extension", style="cyan", no_wrap=True)
    table.add_column("Source", style="white")
    table.add_column("Status", style="white", no_wrap=True)
    table.add_column("Detail", style="dim")

    for owner_id, outcomes in report.items():
        first = True
        for outcome in outcomes:
            if failures_only and not outcome.status.is_failure:
                continue
            table.add_row(
                escape(owner_id) if first else "",
                escape(outcome.location),
                _status_text(outcome),
                escape(outcome.detail or ""),
            )
            first = False

    console.print()
    if table.row_count:
        console.print(table)
    elif failures_only:
        console.print("[bold green]✓ No failing sources[/bold green]")
    else:
        console.print("[dim]No sources to report.[/dim]")


def format_summary(report: AvailabilityReport, console: Console) -> None:
    """Display per-status counts and a plain-language interpretation."""
    summary = summarize(report)

    table = Table(title="Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Extensions", str(summary["owners"]))
    table.add_row("Sources", str(summary["total"]))
    for status in ProbeStatus:
        icon, color = _status_icon_and_color(status)
        table.add_row(
            status.value.replace("_", " ").title(),
            f"[{color}]{icon} {summary[status.value]}[/{color}]",
        )

    console.print()
    console.print(table)

    interpretation = get_interpretation(summary)
    if interpretation:
        console.print()
        console.print(Panel(interpretation, title="💡 In plain language", border_style="dim"))


def get_interpretation(summary: Dict[str, int]) -> str:
    """
    Generate a short, plain-language interpretation of the summary counts.
    Returns empty string if there is nothing to report.
    """
    total = summary.get("total", 0)
    if total == 0:
        return ""

    reachable = summary.get(ProbeStatus.REACHABLE.value, 0)
    if reachable == total:
        return f"All {total} source(s) answered. The catalog has no dead links right now."

    parts = [f"{total - reachable} of {total} source(s) did not answer successfully."]
    if summary.get(ProbeStatus.MALFORMED.value):
        parts.append(
            f"{summary[ProbeStatus.MALFORMED.value]} have a broken URL in the catalog and were never contacted."
        )
    if summary.get(ProbeStatus.TIMED_OUT.value):
        parts.append(
            f"{summary[ProbeStatus.TIMED_OUT.value]} timed out; try again with a longer --timeout before removing them."
        )
    dead = summary.get("owners_without_reachable_source", 0)
    if dead:
        parts.append(f"{dead} extension(s) have no working source at all.")
    return " ".join(parts)


def report_to_json(report: AvailabilityReport, pretty: bool = True) -> str:
    """Serialize a report as JSON: owner_id mapped to a list of outcomes."""
    return json.dumps(report.to_json_dict(), indent=2 if pretty else None)
