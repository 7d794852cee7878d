"""Constants used across pyjsco."""

from __future__ import annotations

from typing import Final

BCD_URL: Final[str] = "https://cdn.jsdelivr.net/npm/@mdn/browser-compat-data/data.json"
BCD_CACHE_KEY: Final[str] = "browser-compat-data.json"
FEATURE_CACHE_SUBDIR: Final[str] = "features"
COMPAT_KEY: Final[str] = "__compat"

DEFAULT_CACHE_DIR: Final[str] = ".jsco-cache"
DEFAULT_OUTPUT_DIR: Final[str] = "jsco-output"

TRACKED_BROWSERS: Final[tuple[str, ...]] = (
    "chrome",
    "firefox",
    "safari",
    "edge",
)

# browserslist distribution names accepted for each tracked browser family
BROWSER_FAMILIES: Final[dict[str, frozenset[str]]] = {
    "chrome": frozenset({"chrome", "and_chr", "chrome android"}),
    "firefox": frozenset({"firefox", "firefox android"}),
    "safari": frozenset({"safari", "ios_saf"}),
    "edge": frozenset({"edge"}),
}

SUPPORTED_ALWAYS: Final[str] = "true"
NEVER_SUPPORTED: Final[str] = "false"

JS_SUFFIX: Final[str] = ".js"
QUEUE_SIZE: Final[int] = 32

DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0
DOWNLOAD_CHUNK_SIZE: Final[int] = 64 * 1024

DEBUG_ENV_VAR: Final[str] = "JSCO_DEBUG"

# used when no --target is given, a conservative browserslist "defaults" baseline
DEFAULT_TARGETS: Final[tuple[str, ...]] = (
    "chrome:109",
    "edge:109",
    "firefox:115",
    "safari:15.6",
    "ios_saf:15.6",
)
