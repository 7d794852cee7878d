"""Per-source aggregation of feature occurrences."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import re

from .bcd import CompatResolver
from .constants import NEVER_SUPPORTED, SUPPORTED_ALWAYS
from .exceptions import DataUnavailable, NotFound, ParseFailure
from .feature import Feature
from .model import BrowserSupport, FeatureDraft, FeatureReport, Location, Report, Span
from .parse import ParseResult
from .scanner import scan
from .util.text import slice_span

LOGGER = logging.getLogger(__name__)

_VERSION_PART_RE = re.compile(r"\d+")


def _requirement_rank(version: str) -> tuple[int, tuple[int, ...]]:
    if version == SUPPORTED_ALWAYS:
        return (0, ())
    parts = tuple(int(part) for part in _VERSION_PART_RE.findall(version))
    if version == NEVER_SUPPORTED or not parts:
        # "false" and release-less values such as "preview"
        return (2, ())
    return (1, parts)


def merge_support(supports: Iterable[Mapping[str, str]]) -> BrowserSupport:
    """Combine support maps, keeping the most demanding requirement per browser."""
    merged: BrowserSupport = {}
    for support in supports:
        for browser, version in support.items():
            current = merged.get(browser)
            if current is None or _requirement_rank(version) > _requirement_rank(current):
                merged[browser] = version
    return dict(sorted(merged.items()))


class Aggregator:
    def __init__(self, resolver: CompatResolver) -> None:
        self.resolver = resolver

    async def record(self, report: Report, feature: Feature, span: Span) -> None:
        if report.finalized:
            raise ValueError(f"Report for {report.path} is already finalized")
        draft = report.features.get(feature)
        if draft is None:
            support, mdn_url = await self._lookup(feature)
            draft = FeatureDraft(feature=feature, support=support, mdn_url=mdn_url)
            report.features[feature] = draft
        draft.spans.append(span)

    async def _lookup(self, feature: Feature) -> tuple[BrowserSupport, str]:
        try:
            record = await self.resolver.resolve(feature)
        except (DataUnavailable, NotFound) as exc:
            LOGGER.error("No browser data for %s: %s", feature.label, exc)
            return {}, ""
        return await self.resolver.browser_support(feature), record.mdn_url or ""

    def finalize(self, report: Report) -> Report:
        source = report.source_code.encode("utf-8")
        found: list[FeatureReport] = []
        for draft in sorted(report.features.values(), key=lambda item: item.feature.key):
            locations = tuple(
                Location(start=span.start, end=span.end, code=slice_span(source, *span))
                for span in draft.spans
            )
            found.append(
                FeatureReport(
                    feature=draft.feature,
                    locations=locations,
                    support=dict(draft.support),
                    mdn_url=draft.mdn_url,
                )
            )
        report.found_features = tuple(found)
        report.browser_support = merge_support(item.support for item in found)
        report.finalized = True
        return report

    async def process(self, report: Report, parsed: ParseResult) -> Report:
        """Scan one parsed source into its report and finalize it."""
        try:
            occurrences = scan(parsed, report.path)
        except ParseFailure as exc:
            LOGGER.warning("%s", exc)
            for diagnostic in exc.diagnostics:
                LOGGER.debug("  %s: %s", report.path, diagnostic)
            report.parse_errors = exc.diagnostics
            return self.finalize(report)

        for occurrence in occurrences:
            await self.record(report, occurrence.feature, occurrence.span)
        return self.finalize(report)
