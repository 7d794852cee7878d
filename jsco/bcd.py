"""Browser-compat-data resolver with per-feature and whole-dataset caches."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from functools import partial
import json
import logging
from pathlib import Path
from typing import Any

from .constants import (
    BCD_CACHE_KEY,
    BCD_URL,
    COMPAT_KEY,
    DEFAULT_CACHE_DIR,
    FEATURE_CACHE_SUBDIR,
    NEVER_SUPPORTED,
    SUPPORTED_ALWAYS,
    TRACKED_BROWSERS,
)
from .exceptions import DataUnavailable, FetchFailure, NotFound, SchemaMismatch
from .feature import Feature
from .http import download_with_progress
from .model import BrowserSupport, CompatibilityRecord
from .util.text import feature_cache_name

LOGGER = logging.getLogger(__name__)

FetchFunc = Callable[[str, str], Awaitable[str]]


def read_from_path(document: Any, path: str) -> Any | None:
    """Walk a dotted path through nested mappings."""
    current = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def version_added(browser: str, raw: Any) -> str | None:
    """Select the minimum version from a raw support value.

    Lists of alternative entries are not merged: the first entry wins.
    ``True`` and ``False`` map to the always/never sentinels and a missing
    ``version_added`` means no data. Any other shape raises SchemaMismatch.
    """
    if raw is None:
        return None
    if isinstance(raw, list):
        if not raw:
            return None
        entry = raw[0]
    else:
        entry = raw
    if not isinstance(entry, Mapping):
        raise SchemaMismatch(browser, raw)

    value = entry.get("version_added")
    if value is True:
        return SUPPORTED_ALWAYS
    if value is False:
        return NEVER_SUPPORTED
    if isinstance(value, str):
        return value
    if value is None:
        return None
    raise SchemaMismatch(browser, raw)


def support_from_record(record: CompatibilityRecord) -> BrowserSupport:
    support: BrowserSupport = {}
    for browser in TRACKED_BROWSERS:
        try:
            version = version_added(browser, record.support.get(browser))
        except SchemaMismatch as exc:
            LOGGER.warning("%s", exc)
            continue
        if version is not None:
            support[browser] = version
    return support


class CompatResolver:
    """Resolves features to compatibility records.

    Lookups go through three layers: an in-process single-flight task per
    feature, a JSON file per feature under ``<cache_dir>/features``, and the
    whole BCD document, which is downloaded at most once per resolver.
    """

    def __init__(
        self,
        cache_dir: Path | str = DEFAULT_CACHE_DIR,
        *,
        fetch: FetchFunc | None = None,
        dataset_url: str = BCD_URL,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.feature_dir = self.cache_dir / FEATURE_CACHE_SUBDIR
        self.dataset_url = dataset_url
        self._fetch = fetch or partial(download_with_progress, cache_dir=self.cache_dir)
        self._records: dict[Feature, asyncio.Future[CompatibilityRecord]] = {}
        self._dataset: asyncio.Future[Mapping[str, Any]] | None = None

    async def resolve(self, feature: Feature) -> CompatibilityRecord:
        task = self._records.get(feature)
        if task is None:
            task = asyncio.ensure_future(self._resolve_uncached(feature))
            self._records[feature] = task
        return await asyncio.shield(task)

    async def browser_support(self, feature: Feature) -> BrowserSupport:
        return support_from_record(await self.resolve(feature))

    async def mdn_url(self, feature: Feature) -> str:
        record = await self.resolve(feature)
        return record.mdn_url or ""

    def feature_cache_path(self, feature: Feature) -> Path:
        return self.feature_dir / feature_cache_name(feature.key)

    async def _resolve_uncached(self, feature: Feature) -> CompatibilityRecord:
        cached = await asyncio.to_thread(self._read_feature_cache, feature)
        if cached is not None:
            return cached

        dataset = await self._load_dataset()
        node = read_from_path(dataset, feature.key)
        if not isinstance(node, Mapping) or not isinstance(node.get(COMPAT_KEY), Mapping):
            raise NotFound(feature.key)

        record = CompatibilityRecord.from_json(node[COMPAT_KEY])
        await asyncio.to_thread(self._write_feature_cache, feature, record)
        return record

    def _read_feature_cache(self, feature: Feature) -> CompatibilityRecord | None:
        path = self.feature_cache_path(feature)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            LOGGER.debug("Ignoring unreadable feature cache %s: %s", path, exc)
            return None
        if not isinstance(payload, Mapping):
            return None
        return CompatibilityRecord.from_json(payload)

    def _write_feature_cache(self, feature: Feature, record: CompatibilityRecord) -> None:
        path = self.feature_cache_path(feature)
        try:
            self.feature_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(record.to_json()), encoding="utf-8")
        except OSError as exc:
            LOGGER.debug("Could not write feature cache %s: %s", path, exc)

    async def _load_dataset(self) -> Mapping[str, Any]:
        if self._dataset is None:
            self._dataset = asyncio.ensure_future(self._download_dataset())
        return await asyncio.shield(self._dataset)

    def _read_dataset_cache(self) -> Mapping[str, Any] | None:
        path = self.cache_dir / BCD_CACHE_KEY
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            # a truncated snapshot would otherwise be served back by the downloader
            LOGGER.warning("Discarding unreadable dataset cache %s: %s", path, exc)
            path.unlink(missing_ok=True)
            return None
        return document if isinstance(document, Mapping) else None

    async def _download_dataset(self) -> Mapping[str, Any]:
        cached = await asyncio.to_thread(self._read_dataset_cache)
        if cached is not None:
            LOGGER.info("Using cached browser compatibility data")
            return cached

        try:
            raw = await self._fetch(self.dataset_url, BCD_CACHE_KEY)
        except FetchFailure as exc:
            raise DataUnavailable(str(exc)) from exc

        try:
            document = await asyncio.to_thread(json.loads, raw)
        except ValueError as exc:
            raise DataUnavailable(f"invalid JSON from {self.dataset_url}") from exc
        if not isinstance(document, Mapping):
            raise DataUnavailable(f"unexpected document shape from {self.dataset_url}")
        LOGGER.debug("Loaded browser compatibility data (%d top-level keys)", len(document))
        return document
