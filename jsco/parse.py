"""Syntax-tree collaborator built around tree-sitter."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Any, Literal
from urllib.parse import urlsplit

from tree_sitter import Language, Parser
import tree_sitter_javascript

Node = Any
SourceHint = Literal["javascript", "module", "jsx"]

_HINT_BY_SUFFIX: dict[str, SourceHint] = {
    ".js": "javascript",
    ".cjs": "javascript",
    ".mjs": "module",
    ".jsx": "jsx",
}


@dataclass(frozen=True)
class ParseResult:
    tree: Any
    source: bytes
    diagnostics: list[str] = field(default_factory=list)

    @property
    def root(self) -> Node:
        return self.tree.root_node


@lru_cache(maxsize=1)
def _language() -> Language:
    return Language(tree_sitter_javascript.language())


def source_type_for(identifier: str) -> SourceHint:
    """Guess the source variant from a path or URL suffix."""
    path = urlsplit(identifier).path if "://" in identifier else identifier
    return _HINT_BY_SUFFIX.get(PurePosixPath(path).suffix.lower(), "javascript")


def walk(root: Node) -> Iterator[Node]:
    """Yield every node of a tree once, in pre-order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _describe(node: Node) -> str:
    row, column = node.start_point
    if node.is_missing:
        return f"{row + 1}:{column + 1}: missing {node.type}"
    return f"{row + 1}:{column + 1}: unexpected syntax"


def collect_diagnostics(root: Node) -> list[str]:
    """Return one message per ERROR or MISSING node in the tree."""
    if not root.has_error:
        return []
    diagnostics: list[str] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            diagnostics.append(_describe(node))
            continue
        if node.has_error:
            stack.extend(reversed(node.children))
    return diagnostics


def parse_source(source: str, hint: SourceHint = "javascript") -> ParseResult:
    """Parse JavaScript source into a tree plus syntax diagnostics.

    The tree-sitter JavaScript grammar covers scripts, modules and JSX, so
    ``hint`` is accepted for callers that track the variant but does not
    select a different grammar.
    """
    encoded = source.encode("utf-8")
    tree = Parser(_language()).parse(encoded)
    return ParseResult(tree=tree, source=encoded, diagnostics=collect_diagnostics(tree.root_node))
