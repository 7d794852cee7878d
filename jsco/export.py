"""JSON artifact writer and reader for scan reports."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
import json
from pathlib import Path
from typing import Any

from .feature import Feature
from .model import FeatureReport, Location, Report


def feature_to_dict(feature: FeatureReport) -> dict[str, Any]:
    return {
        "feat_type": feature.key,
        "locations": [
            {"start": location.start, "end": location.end, "code": location.code}
            for location in feature.locations
        ],
        "support": dict(sorted(feature.support.items())),
        "mdn_url": feature.mdn_url,
    }


def report_to_dict(report: Report) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "browser_support": dict(report.browser_support),
        "path": report.path,
        "source_code": report.source_code,
    }
    if report.found_features:
        payload["found_features"] = [feature_to_dict(item) for item in report.found_features]
    if report.parse_errors:
        payload["parse_errors"] = list(report.parse_errors)
    return payload


def write_json(
    reports: Sequence[Report],
    output_dir: Path | str,
    *,
    now: datetime | None = None,
) -> Path:
    """Write reports to ``<output_dir>/report_<timestamp>.json``."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    output_file = directory / f"report_{stamp}.json"
    output_file.write_text(
        json.dumps([report_to_dict(report) for report in reports], indent=2),
        encoding="utf-8",
    )
    return output_file


def feature_from_dict(payload: Mapping[str, Any]) -> FeatureReport:
    return FeatureReport(
        feature=Feature.from_key(payload["feat_type"]),
        locations=tuple(
            Location(start=item["start"], end=item["end"], code=item["code"])
            for item in payload.get("locations", [])
        ),
        support=dict(payload.get("support", {})),
        mdn_url=payload.get("mdn_url", ""),
    )


def report_from_dict(payload: Mapping[str, Any]) -> Report:
    return Report(
        path=payload["path"],
        source_code=payload.get("source_code", ""),
        found_features=tuple(
            feature_from_dict(item) for item in payload.get("found_features", [])
        ),
        browser_support=dict(payload.get("browser_support", {})),
        parse_errors=list(payload.get("parse_errors", [])),
        finalized=True,
    )


def read_json(path: Path | str) -> list[Report]:
    """Load reports back from an artifact written by ``write_json``."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return [report_from_dict(item) for item in data]
