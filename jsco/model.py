"""Data models for compatibility records, occurrences and reports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .feature import Feature

BrowserSupport = dict[str, str]


class Span(NamedTuple):
    """Half-open UTF-8 byte range ``[start, end)`` into a source."""

    start: int
    end: int


@dataclass(frozen=True)
class Occurrence:
    feature: Feature
    span: Span


@dataclass(frozen=True)
class Status:
    deprecated: bool = False
    experimental: bool = False
    standard_track: bool = False


@dataclass(frozen=True)
class CompatibilityRecord:
    """One ``__compat`` block from browser-compat-data."""

    status: Status
    support: Mapping[str, Any]
    description: str | None = None
    mdn_url: str | None = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> CompatibilityRecord:
        raw_status = payload.get("status")
        if not isinstance(raw_status, Mapping):
            raw_status = {}
        raw_support = payload.get("support")
        if not isinstance(raw_support, Mapping):
            raw_support = {}
        return cls(
            status=Status(
                deprecated=bool(raw_status.get("deprecated", False)),
                experimental=bool(raw_status.get("experimental", False)),
                standard_track=bool(raw_status.get("standard_track", False)),
            ),
            support=dict(raw_support),
            description=payload.get("description"),
            mdn_url=payload.get("mdn_url"),
        )

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": {
                "deprecated": self.status.deprecated,
                "experimental": self.status.experimental,
                "standard_track": self.status.standard_track,
            },
            "support": dict(self.support),
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.mdn_url is not None:
            payload["mdn_url"] = self.mdn_url
        return payload


@dataclass(frozen=True)
class Location:
    start: int
    end: int
    code: str


@dataclass(frozen=True)
class FeatureReport:
    """Finalized aggregate of one feature over one source."""

    feature: Feature
    locations: tuple[Location, ...]
    support: Mapping[str, str]
    mdn_url: str = ""

    @property
    def key(self) -> str:
        return self.feature.key


@dataclass
class FeatureDraft:
    """Mutable per-feature accumulator used while a source is being scanned."""

    feature: Feature
    support: BrowserSupport
    mdn_url: str = ""
    spans: list[Span] = field(default_factory=list)


@dataclass
class Report:
    path: str
    source_code: str
    features: dict[Feature, FeatureDraft] = field(default_factory=dict)
    found_features: tuple[FeatureReport, ...] = ()
    browser_support: BrowserSupport = field(default_factory=dict)
    parse_errors: list[str] = field(default_factory=list)
    finalized: bool = False

    @property
    def occurrence_count(self) -> int:
        return sum(len(item.locations) for item in self.found_features)


@dataclass(frozen=True)
class RunSummary:
    processed: int
    with_features: int
    total_occurrences: int
    total_features: int = 0
    parse_failures: int = 0
    fetch_failures: int = 0


@dataclass(frozen=True)
class BatchResult:
    reports: list[Report]
    summary: RunSummary
