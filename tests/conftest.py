from __future__ import annotations

from collections.abc import Callable
import json
from pathlib import Path
from typing import Any

import pytest

from jsco.bcd import CompatResolver
from jsco.exceptions import NetworkError


def _compat(
    mdn_url: str,
    chrome: Any,
    firefox: Any,
    safari: Any,
    edge: Any,
) -> dict[str, Any]:
    return {
        "__compat": {
            "mdn_url": mdn_url,
            "status": {"deprecated": False, "experimental": False, "standard_track": True},
            "support": {
                "chrome": chrome,
                "chrome_android": {"version_added": "80"},
                "firefox": firefox,
                "safari": safari,
                "edge": edge,
            },
        }
    }


BCD_DOCUMENT: dict[str, Any] = {
    "api": {
        "Navigator": {
            "serviceWorker": _compat(
                "https://developer.mozilla.org/docs/Web/API/Navigator/serviceWorker",
                {"version_added": "40"},
                {"version_added": "44"},
                {"version_added": "11.1"},
                {"version_added": "17"},
            )
        },
    },
    "javascript": {
        "operators": {
            "optional_chaining": _compat(
                "https://developer.mozilla.org/docs/Web/JavaScript/Reference/Operators/Optional_chaining",
                {"version_added": "80"},
                {"version_added": "74"},
                [{"version_added": "13.1"}, {"version_added": "13", "flags": [{"type": "preference"}]}],
                {"version_added": "80"},
            ),
            "nullish_coalescing": _compat(
                "https://developer.mozilla.org/docs/Web/JavaScript/Reference/Operators/Nullish_coalescing",
                {"version_added": "80"},
                {"version_added": "72"},
                {"version_added": "13.1"},
                {"version_added": "80"},
            ),
            "await": _compat(
                "https://developer.mozilla.org/docs/Web/JavaScript/Reference/Operators/await",
                {"version_added": "55"},
                {"version_added": "52"},
                {"version_added": "10.1"},
                {"version_added": "14"},
            ),
            "spread": _compat(
                "https://developer.mozilla.org/docs/Web/JavaScript/Reference/Operators/Spread_syntax",
                {"version_added": True},
                {"version_added": "16"},
                {"version_added": False},
                {"version_added": None},
            ),
        },
        "classes": {
            "private_class_fields": _compat(
                "https://developer.mozilla.org/docs/Web/JavaScript/Reference/Classes/Private_properties",
                {"version_added": "74"},
                {"version_added": "90"},
                {"version_added": "14.1"},
                {"version_added": "79"},
            ),
            "private_class_methods": _compat(
                "https://developer.mozilla.org/docs/Web/JavaScript/Reference/Classes/Private_properties",
                {"version_added": "84"},
                {"version_added": "90"},
                {"version_added": "15"},
                {"version_added": "84"},
            ),
        },
    },
}


class FakeDataset:
    """Serves a BCD document in place of the download collaborator."""

    def __init__(self, document: dict[str, Any] | None = None, *, fail: bool = False) -> None:
        self.document = BCD_DOCUMENT if document is None else document
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, url: str, cache_key: str) -> str:
        self.calls.append((url, cache_key))
        if self.fail:
            raise NetworkError(url, cause="offline")
        return json.dumps(self.document)


@pytest.fixture
def fake_dataset() -> FakeDataset:
    return FakeDataset()


@pytest.fixture
def dataset_factory() -> type[FakeDataset]:
    return FakeDataset


@pytest.fixture
def make_resolver(tmp_path: Path) -> Callable[..., CompatResolver]:
    def _make(fetch: Any = None, cache_dir: Path | None = None) -> CompatResolver:
        return CompatResolver(cache_dir or tmp_path / "cache", fetch=fetch or FakeDataset())

    return _make


@pytest.fixture
def write_dataset_cache() -> Callable[[Path], Path]:
    def _write(cache_dir: Path) -> Path:
        cache_dir.mkdir(parents=True, exist_ok=True)
        path = cache_dir / "browser-compat-data.json"
        path.write_text(json.dumps(BCD_DOCUMENT), encoding="utf-8")
        return path

    return _write
