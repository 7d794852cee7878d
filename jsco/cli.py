"""Console script for jsco."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

import click
from rich.console import Console
from rich.filesize import decimal
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ._version import __version__ as _version
from .bcd import CompatResolver, FetchFunc
from .constants import DEFAULT_CACHE_DIR, DEFAULT_OUTPUT_DIR, DEFAULT_TARGETS
from .exceptions import JscoError
from .export import write_json
from .http import download_with_progress, use_shared_client
from .model import BatchResult
from .pipeline import run_batch
from .render_basic import render_report, render_summary
from .targets import Distrib, parse_target
from .util.text import debug_enabled, ellipsize

EXIT_NO_INPUTS = 1
EXIT_ALL_UNPARSEABLE = 2


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    logging.getLogger("jsco").setLevel(logging.DEBUG if debug else logging.WARNING)


def _progress_fetch(progress: Progress, cache_dir: Path) -> FetchFunc:
    """Wrap the downloader so every transfer gets its own progress bar."""

    async def _fetch(url: str, cache_key: str) -> str:
        task_id: TaskID | None = None

        def _on_progress(downloaded: int, total: int | None) -> None:
            nonlocal task_id
            if task_id is None:
                task_id = progress.add_task(
                    f"Downloading {ellipsize(url, 48)}", total=total, detail=""
                )
            detail = decimal(downloaded)
            if total is not None:
                detail = f"{detail}/{decimal(total)}"
            progress.update(task_id, completed=downloaded, total=total, detail=detail)

        try:
            return await download_with_progress(
                url, cache_key, cache_dir=cache_dir, on_progress=_on_progress
            )
        finally:
            if task_id is not None:
                progress.remove_task(task_id)

    return _fetch


async def _scan(inputs: Sequence[str], cache_dir: Path, progress: Progress) -> BatchResult:
    task_id = progress.add_task("Scanning", total=None, detail="0 files")
    scanned = 0

    def _on_scanned(_identifier: str) -> None:
        nonlocal scanned
        scanned += 1
        progress.update(task_id, advance=1, detail=f"{scanned} files")

    fetch = _progress_fetch(progress, cache_dir)
    resolver = CompatResolver(cache_dir, fetch=fetch)
    async with use_shared_client():
        return await run_batch(inputs, resolver=resolver, fetch=fetch, on_progress=_on_scanned)


def _exit_code(result: BatchResult) -> int:
    summary = result.summary
    if summary.processed == 0:
        return EXIT_NO_INPUTS
    if summary.parse_failures == summary.processed:
        return EXIT_ALL_UNPARSEABLE
    return 0


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "inputs",
    metavar="<files|dirs|globs|urls>",
    nargs=-1,
    required=True,
    type=click.STRING,
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    show_default=True,
    help="Print reports to the terminal or write a JSON artifact.",
)
@click.option(
    "-o",
    "--output-dir",
    envvar="JSCO_OUTPUT_DIR",
    default=DEFAULT_OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for JSON artifacts.",
)
@click.option(
    "--cache-dir",
    envvar="JSCO_CACHE_DIR",
    default=DEFAULT_CACHE_DIR,
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for downloaded and resolved compatibility data.",
)
@click.option(
    "-t",
    "--target",
    "targets",
    multiple=True,
    metavar="BROWSER:VERSION",
    help="Browser release to check support against, e.g. chrome:100. Repeatable. "
    "Defaults to a recent baseline of each tracked browser.",
)
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")
@click.version_option(_version, "-v", "--version")
def main(
    inputs: tuple[str, ...],
    output_format: str,
    output_dir: Path,
    cache_dir: Path,
    targets: tuple[str, ...],
    debug: bool,
) -> None:
    """
    Check which browsers support the JavaScript features your code uses

    \b
    Example usages:
      jsco app.js
      jsco src/ "dist/*.js" --format json
      jsco https://example.com/bundle.js -t chrome:90 -t safari:14
    """
    configure_logging(debug or debug_enabled())
    try:
        distribs: list[Distrib] = [parse_target(value) for value in targets or DEFAULT_TARGETS]
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--target") from exc

    console = Console()
    console.print("🔍 Starting JavaScript compatibility analysis...")
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[detail]}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            result = asyncio.run(_scan(inputs, cache_dir, progress))
    except JscoError as exc:
        raise click.ClickException(str(exc)) from exc

    if output_format.lower() == "json":
        output_file = write_json(result.reports, output_dir)
        console.print(f"Report saved to: {output_file}")
    else:
        for report in result.reports:
            if report.found_features or report.parse_errors:
                console.print(render_report(report, distribs))

    console.print(render_summary(result.summary))

    code = _exit_code(result)
    if code == EXIT_NO_INPUTS:
        console.print("No inputs could be processed.")
    elif code == EXIT_ALL_UNPARSEABLE:
        console.print("Every input failed to parse.")
    if code:
        sys.exit(code)
