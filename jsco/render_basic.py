"""Console renderer for scan reports."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .model import FeatureReport, Report, RunSummary
from .targets import Distrib, is_supported
from .util.text import ellipsize

_SNIPPET_WIDTH = 60


def _support_line(feature: FeatureReport, targets: Sequence[Distrib]) -> Text:
    line = Text()
    for browser, version in sorted(feature.support.items()):
        ok = is_supported(browser, version, targets)
        line.append(f"{'✅' if ok else '❌'} {browser} ≥ {version}  ", style="green" if ok else "red")
    if not feature.support:
        line.append("No browser data", style="dim")
    return line


def render_report(report: Report, targets: Sequence[Distrib] = ()) -> Group:
    """Render one report's features as a Rich renderable group."""
    lines: list[Text | Table] = []

    if report.parse_errors:
        lines.append(Text(f"Skipped: {len(report.parse_errors)} syntax error(s)", style="yellow"))

    for feature in report.found_features:
        lines.append(Text(f"{feature.feature.label}", style="bold cyan"))
        if feature.mdn_url:
            lines.append(Text(feature.mdn_url, style="dim"))
        lines.append(_support_line(feature, targets))

        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("span", style="dim", no_wrap=True)
        table.add_column("code")
        for location in feature.locations:
            snippet = ellipsize(" ".join(location.code.split()), _SNIPPET_WIDTH)
            table.add_row(f"{location.start}-{location.end}", snippet)
        lines.append(table)
        lines.append(Text(""))

    if not lines:
        lines.append(Text("No tracked features found", style="dim"))

    return Group(Panel(Group(*lines), border_style="blue", title=report.path))


def render_summary(summary: RunSummary) -> Panel:
    lines = [
        Text(f"{summary.processed} Total files processed", style="cyan"),
        Text(f"{summary.with_features} Files with features", style="green"),
        Text(f"{summary.total_features} Total features found", style="magenta"),
        Text(f"{summary.total_occurrences} Total feature occurrences", style="yellow"),
    ]
    if summary.parse_failures:
        lines.append(Text(f"{summary.parse_failures} Files failed to parse", style="red"))
    if summary.fetch_failures:
        lines.append(Text(f"{summary.fetch_failures} Inputs could not be read", style="red"))
    return Panel(Group(*lines), border_style="blue", title="Analysis Summary")
