"""Exception types for pyjsco."""

from __future__ import annotations

from collections.abc import Sequence


class JscoError(Exception):
    """Base exception for expected application errors."""


class FetchFailure(JscoError):
    """Raised when an input could not be read or downloaded."""

    def __init__(self, target: str, detail: str | None = None) -> None:
        self.target = target
        super().__init__(detail or f"Unable to read {target}")


class NetworkError(FetchFailure):
    """Raised when a network operation fails."""

    def __init__(self, url: str, *, cause: str | None = None) -> None:
        detail = f"Unable to connect for {url}"
        if cause:
            detail = f"{detail} ({cause})"
        super().__init__(url, detail)


class RequestTimeoutError(FetchFailure):
    """Raised when a request times out."""

    def __init__(self, url: str) -> None:
        super().__init__(url, f"Request timed out for {url}")


class HttpStatusError(FetchFailure):
    """Raised when a non-200 HTTP response is returned."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(url, f"Request failed with HTTP {status_code} for {url}")


class ContentError(FetchFailure):
    """Raised when a response body is unexpectedly empty."""

    def __init__(self, url: str) -> None:
        super().__init__(url, f"Received empty content from {url}")


class ParseFailure(JscoError):
    """Raised when a source has syntax errors and must be skipped."""

    def __init__(self, identifier: str, diagnostics: Sequence[str]) -> None:
        self.identifier = identifier
        self.diagnostics = list(diagnostics)
        count = len(self.diagnostics)
        super().__init__(f"Failed to parse {identifier} ({count} error{'s' if count != 1 else ''})")


class DataUnavailable(JscoError):
    """Raised when the compatibility dataset cannot be obtained."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Browser compatibility data unavailable: {reason}")


class NotFound(JscoError):
    """Raised when a lookup key has no compatibility entry."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Feature {key} not found in browser compatibility data")


class SchemaMismatch(JscoError):
    """Raised when a support entry has an unrecognized shape."""

    def __init__(self, browser: str, value: object) -> None:
        self.browser = browser
        self.value = value
        super().__init__(f"Unknown support shape for {browser}: {value!r}")
