"""Target browser distributions and support checks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import re

from .constants import BROWSER_FAMILIES, NEVER_SUPPORTED, SUPPORTED_ALWAYS

_MAJOR_RE = re.compile(r"(\d+)")
_TARGET_RE = re.compile(r"^\s*(?P<name>[A-Za-z_ ]+?)\s*[: ]\s*(?P<version>[\w.]+)\s*$")


@dataclass(frozen=True)
class Distrib:
    """One targeted browser release, named as browserslist names it."""

    name: str
    version: str


def parse_target(value: str) -> Distrib:
    """Parse ``"chrome:100"`` or ``"chrome 100"`` into a Distrib."""
    match = _TARGET_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid target {value!r}, expected BROWSER:VERSION")
    return Distrib(name=match.group("name").strip().lower(), version=match.group("version"))


def major_version(version: str) -> int | None:
    match = _MAJOR_RE.search(version)
    return int(match.group(1)) if match else None


def is_supported(browser: str, version: str, targets: Sequence[Distrib]) -> bool:
    """Check whether every targeted release of ``browser`` has ``version``."""
    if not targets:
        return True

    family = BROWSER_FAMILIES.get(browser.lower(), frozenset())
    matching = [target for target in targets if target.name.lower() in family]
    if not matching:
        return True
    if version == SUPPORTED_ALWAYS:
        return True
    if version == NEVER_SUPPORTED:
        return False

    required = major_version(version)
    if required is None:
        return False
    for target in matching:
        if required > (major_version(target.version) or 0):
            return False
    return True
