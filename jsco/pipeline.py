"""Batch pipeline: enumerate inputs, fetch content, scan and aggregate reports."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import partial
import glob
import logging
from pathlib import Path

from .bcd import CompatResolver, FetchFunc
from .constants import JS_SUFFIX, QUEUE_SIZE
from .exceptions import FetchFailure
from .http import download_with_progress, with_cache_buster
from .model import BatchResult, Report, RunSummary
from .parse import parse_source, source_type_for
from .report import Aggregator
from .util.text import url_cache_key

LOGGER = logging.getLogger(__name__)


class InputKind(Enum):
    FILE = "file"
    URL = "url"
    DIRECTORY = "directory"
    GLOB = "glob"


@dataclass(frozen=True)
class InputSpec:
    kind: InputKind
    value: str


def classify_input(value: str) -> InputSpec:
    if value.startswith(("http://", "https://")):
        return InputSpec(InputKind.URL, value)
    if "*" in value:
        return InputSpec(InputKind.GLOB, value)
    if Path(value).is_dir():
        return InputSpec(InputKind.DIRECTORY, value)
    return InputSpec(InputKind.FILE, value)


def _is_script(path: Path) -> bool:
    return path.suffix == JS_SUFFIX and path.is_file()


def expand_input(spec: InputSpec) -> list[InputSpec]:
    """Expand directories and globs into the explicit inputs they name."""
    if spec.kind is InputKind.DIRECTORY:
        LOGGER.info("Scanning directory: %s", spec.value)
        paths = sorted(path for path in Path(spec.value).iterdir() if _is_script(path))
    elif spec.kind is InputKind.GLOB:
        LOGGER.info("Scanning files matching: %s", spec.value)
        matches = glob.glob(spec.value, recursive=True)
        paths = sorted(Path(match) for match in matches if _is_script(Path(match)))
    else:
        return [spec]
    return [InputSpec(InputKind.FILE, str(path)) for path in paths]


def iter_sources(inputs: Iterable[str]) -> Iterator[InputSpec]:
    """Yield every concrete file or URL named by the raw inputs, in order."""
    for value in inputs:
        yield from expand_input(classify_input(value))


def _read_source(path: Path) -> str:
    # no newline translation: spans are byte offsets into the file as stored
    return path.read_bytes().decode("utf-8")


async def read_input(spec: InputSpec, fetch: FetchFunc) -> str:
    if spec.kind is InputKind.URL:
        return await fetch(with_cache_buster(spec.value), url_cache_key(spec.value))
    try:
        return await asyncio.to_thread(_read_source, Path(spec.value))
    except (OSError, UnicodeDecodeError) as exc:
        raise FetchFailure(spec.value, f"Unable to read {spec.value} ({exc})") from exc


def summarize(reports: Sequence[Report], fetch_failures: int = 0) -> RunSummary:
    return RunSummary(
        processed=len(reports),
        with_features=sum(1 for report in reports if report.found_features),
        total_occurrences=sum(report.occurrence_count for report in reports),
        total_features=sum(len(report.found_features) for report in reports),
        parse_failures=sum(1 for report in reports if report.parse_errors),
        fetch_failures=fetch_failures,
    )


async def run_batch(
    inputs: Iterable[str],
    *,
    resolver: CompatResolver,
    fetch: FetchFunc | None = None,
    on_progress: Callable[[str], None] | None = None,
    queue_size: int = QUEUE_SIZE,
) -> BatchResult:
    """Scan every input and return reports in the order their content arrived.

    A producer task enumerates and fetches inputs onto a bounded payload
    queue while this coroutine parses, scans and finalizes them. Progress
    increments travel on their own queue so a slow progress consumer never
    holds up payload delivery.
    """
    fetch = fetch or partial(download_with_progress, cache_dir=resolver.cache_dir)
    payloads: asyncio.Queue[tuple[str, str] | None] = asyncio.Queue(maxsize=queue_size)
    progress: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size)
    fetch_failures = 0

    async def produce() -> None:
        nonlocal fetch_failures
        try:
            for value in inputs:
                try:
                    specs = await asyncio.to_thread(list, iter_sources([value]))
                except OSError as exc:
                    LOGGER.warning("Unable to list %s: %s", value, exc)
                    fetch_failures += 1
                    continue
                for spec in specs:
                    try:
                        content = await read_input(spec, fetch)
                    except FetchFailure as exc:
                        LOGGER.warning("Skipping %s: %s", spec.value, exc)
                        fetch_failures += 1
                        continue
                    await payloads.put((spec.value, content))
                    await progress.put(spec.value)
        finally:
            await payloads.put(None)
            await progress.put(None)

    async def track_progress() -> None:
        while (identifier := await progress.get()) is not None:
            if on_progress is not None:
                on_progress(identifier)

    aggregator = Aggregator(resolver)
    producer = asyncio.create_task(produce())
    tracker = asyncio.create_task(track_progress())
    reports: list[Report] = []
    try:
        while (item := await payloads.get()) is not None:
            identifier, content = item
            report = Report(path=identifier, source_code=content)
            parsed = parse_source(content, source_type_for(identifier))
            reports.append(await aggregator.process(report, parsed))
            if report.found_features:
                LOGGER.info("%s - Found %d features", identifier, len(report.found_features))
        await producer
        await tracker
    finally:
        for task in (producer, tracker):
            if not task.done():
                task.cancel()

    return BatchResult(reports=reports, summary=summarize(reports, fetch_failures))
