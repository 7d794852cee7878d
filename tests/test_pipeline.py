from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from pathlib import Path

import pytest

from jsco.bcd import CompatResolver
from jsco.exceptions import NetworkError
from jsco.feature import Feature
from jsco.model import Report
from jsco.pipeline import (
    InputKind,
    InputSpec,
    classify_input,
    expand_input,
    iter_sources,
    run_batch,
    summarize,
)
from jsco.util.text import url_cache_key

ResolverFactory = Callable[..., CompatResolver]


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_classify_input(tmp_path: Path) -> None:
    assert classify_input("https://example.com/a.js").kind is InputKind.URL
    assert classify_input("http://example.com/a.js").kind is InputKind.URL
    assert classify_input("src/*.js").kind is InputKind.GLOB
    assert classify_input(str(tmp_path)).kind is InputKind.DIRECTORY
    assert classify_input(str(tmp_path / "missing.js")).kind is InputKind.FILE


def test_expand_directory_is_flat_sorted_and_filtered(tmp_path: Path) -> None:
    _write(tmp_path / "b.js", "b")
    _write(tmp_path / "a.js", "a")
    _write(tmp_path / "notes.txt", "n")
    _write(tmp_path / "nested" / "c.js", "c")

    specs = expand_input(InputSpec(InputKind.DIRECTORY, str(tmp_path)))

    assert specs == [
        InputSpec(InputKind.FILE, str(tmp_path / "a.js")),
        InputSpec(InputKind.FILE, str(tmp_path / "b.js")),
    ]


def test_expand_glob_filters_suffix(tmp_path: Path) -> None:
    _write(tmp_path / "one.js", "1")
    _write(tmp_path / "two.json", "2")
    _write(tmp_path / "three.js", "3")

    specs = expand_input(InputSpec(InputKind.GLOB, str(tmp_path / "*")))

    assert [Path(spec.value).name for spec in specs] == ["one.js", "three.js"]


def test_iter_sources_keeps_input_order(tmp_path: Path) -> None:
    _write(tmp_path / "dir" / "z.js", "z")
    _write(tmp_path / "dir" / "y.js", "y")

    specs = list(
        iter_sources(["https://example.com/a.js", str(tmp_path / "dir"), "local.js"])
    )

    assert [spec.kind for spec in specs] == [
        InputKind.URL,
        InputKind.FILE,
        InputKind.FILE,
        InputKind.FILE,
    ]
    assert [Path(spec.value).name for spec in specs] == ["a.js", "y.js", "z.js", "local.js"]


def test_batch_with_parse_failure_in_the_middle(
    tmp_path: Path, make_resolver: ResolverFactory, caplog: pytest.LogCaptureFixture
) -> None:
    first = _write(tmp_path / "first.js", "x = a?.b;\n")
    second = _write(tmp_path / "second.js", "function (\n")
    third = _write(tmp_path / "third.js", "y = a ?? b;\nz = c ?? d;\n")

    with caplog.at_level(logging.WARNING):
        result = asyncio.run(
            run_batch([str(first), str(second), str(third)], resolver=make_resolver())
        )

    assert [report.path for report in result.reports] == [str(first), str(second), str(third)]
    one, two, three = result.reports
    assert [item.feature for item in one.found_features] == [Feature.OPTIONAL_CHAINING]
    assert one.found_features[0].support["chrome"] == "80"
    assert two.found_features == ()
    assert two.parse_errors
    assert [len(item.locations) for item in three.found_features] == [2]
    assert "Failed to parse" in caplog.text

    summary = result.summary
    assert summary.processed == 3
    assert summary.with_features == 2
    assert summary.total_occurrences == 3
    assert summary.parse_failures == 1
    assert summary.fetch_failures == 0


def test_unreadable_inputs_are_skipped(
    tmp_path: Path, make_resolver: ResolverFactory, caplog: pytest.LogCaptureFixture
) -> None:
    good = _write(tmp_path / "good.js", "a ?? b;")
    bad = tmp_path / "bad.js"
    bad.write_bytes(b"\xff\xfe\x00broken")

    with caplog.at_level(logging.WARNING, logger="jsco.pipeline"):
        result = asyncio.run(
            run_batch(
                [str(tmp_path / "missing.js"), str(bad), str(good)],
                resolver=make_resolver(),
            )
        )

    assert [report.path for report in result.reports] == [str(good)]
    assert result.summary.fetch_failures == 2
    assert "Skipping" in caplog.text


def test_directory_and_glob_inputs(tmp_path: Path, make_resolver: ResolverFactory) -> None:
    _write(tmp_path / "dir" / "b.js", "async function f() { await x; }")
    _write(tmp_path / "dir" / "a.js", "f(...xs);")
    _write(tmp_path / "globbed" / "c.js", "")

    result = asyncio.run(
        run_batch(
            [str(tmp_path / "dir"), str(tmp_path / "globbed" / "*.js")],
            resolver=make_resolver(),
        )
    )

    assert [Path(report.path).name for report in result.reports] == ["a.js", "b.js", "c.js"]
    assert result.summary.with_features == 2


def test_url_inputs_use_fetch_with_stable_cache_key(make_resolver: ResolverFactory) -> None:
    seen: list[tuple[str, str]] = []

    async def _fetch(url: str, cache_key: str) -> str:
        seen.append((url, cache_key))
        return "navigator.serviceWorker.register('/sw.js');"

    result = asyncio.run(
        run_batch(
            ["https://example.com/app.js", "https://example.com/lib.js?v=3"],
            resolver=make_resolver(),
            fetch=_fetch,
        )
    )

    assert seen[0][0].startswith("https://example.com/app.js?t=")
    assert seen[0][1] == url_cache_key("https://example.com/app.js")
    assert seen[1] == ("https://example.com/lib.js?v=3", url_cache_key("https://example.com/lib.js"))
    assert [report.path for report in result.reports] == [
        "https://example.com/app.js",
        "https://example.com/lib.js?v=3",
    ]
    assert result.reports[0].found_features[0].feature is Feature.SERVICE_WORKER


def test_failed_download_is_skipped(make_resolver: ResolverFactory) -> None:
    async def _fetch(url: str, cache_key: str) -> str:
        raise NetworkError(url, cause="ConnectError")

    result = asyncio.run(
        run_batch(["https://example.com/app.js"], resolver=make_resolver(), fetch=_fetch)
    )

    assert result.reports == []
    assert result.summary.processed == 0
    assert result.summary.fetch_failures == 1


def test_progress_and_backpressure(tmp_path: Path, make_resolver: ResolverFactory) -> None:
    paths = [str(_write(tmp_path / f"f{index:02d}.js", "a ?? b;")) for index in range(10)]
    progressed: list[str] = []

    result = asyncio.run(
        run_batch(paths, resolver=make_resolver(), on_progress=progressed.append, queue_size=1)
    )

    assert progressed == paths
    assert [report.path for report in result.reports] == paths
    assert result.summary.total_occurrences == 10


def test_unavailable_dataset_does_not_abort_batch(
    tmp_path: Path, make_resolver: ResolverFactory, dataset_factory: type
) -> None:
    path = _write(tmp_path / "a.js", "async function f() { a ?? b; await c; }")

    result = asyncio.run(run_batch([str(path)], resolver=make_resolver(dataset_factory(fail=True))))

    features = result.reports[0].found_features
    assert [item.feature for item in features] == [Feature.AWAIT, Feature.NULLISH_COALESCING]
    assert all(item.support == {} for item in features)


def test_summarize_counts() -> None:
    empty = Report(path="e.js", source_code="")
    broken = Report(path="b.js", source_code="(", parse_errors=["1:1: unexpected syntax"])

    summary = summarize([empty, broken], fetch_failures=3)

    assert summary.processed == 2
    assert summary.with_features == 0
    assert summary.total_occurrences == 0
    assert summary.parse_failures == 1
    assert summary.fetch_failures == 3


def test_recursive_glob_matches_every_depth(tmp_path: Path) -> None:
    _write(tmp_path / "src" / "top.js", "t")
    _write(tmp_path / "src" / "deep" / "inner.js", "i")
    _write(tmp_path / "src" / "deep" / "er" / "leaf.js", "l")

    specs = expand_input(InputSpec(InputKind.GLOB, str(tmp_path / "src" / "**" / "*.js")))

    assert [Path(spec.value).name for spec in specs] == ["leaf.js", "inner.js", "top.js"]


def test_crlf_sources_keep_raw_text_and_byte_offsets(
    tmp_path: Path, make_resolver: ResolverFactory
) -> None:
    raw = b"x = 1;\r\ny = a ?? b;\r\n"
    path = tmp_path / "crlf.js"
    path.write_bytes(raw)

    result = asyncio.run(run_batch([str(path)], resolver=make_resolver()))

    [report] = result.reports
    assert report.source_code == raw.decode("utf-8")
    [location] = report.found_features[0].locations
    assert location.code == "a ?? b"
    assert raw[location.start : location.end] == b"a ?? b"
