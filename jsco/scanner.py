"""Structural pattern table that turns a syntax tree into feature occurrences."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass

from .exceptions import ParseFailure
from .feature import Feature
from .model import Occurrence, Span
from .parse import Node, ParseResult, walk

_CHAIN_TYPES = frozenset({"member_expression", "subscript_expression", "call_expression"})
_LOGICAL_ASSIGNMENT_OPERATORS = frozenset({"&&=", "||=", "??="})

# returns the node whose span is recorded, or None when the pattern does not apply
Test = Callable[[Node, bytes], "Node | None"]


@dataclass(frozen=True)
class Pattern:
    node_type: str
    feature: Feature
    test: Test


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _operator(node: Node) -> str | None:
    operator = node.child_by_field_name("operator")
    return operator.type if operator is not None else None


def _chain_child(node: Node) -> Node | None:
    field = "function" if node.type == "call_expression" else "object"
    return node.child_by_field_name(field)


def _has_optional_link(node: Node) -> bool:
    current: Node | None = node
    while current is not None and current.type in _CHAIN_TYPES:
        if any(child.type == "optional_chain" for child in current.children):
            return True
        current = _chain_child(current)
    return False


def _continues_chain(node: Node) -> bool:
    parent = node.parent
    return (
        parent is not None
        and parent.type in _CHAIN_TYPES
        and _chain_child(parent) == node
    )


def _chain_root_object(node: Node) -> Node | None:
    current = node.child_by_field_name("object")
    while current is not None and current.type in ("member_expression", "subscript_expression"):
        current = current.child_by_field_name("object")
    return current


def _callee_name(node: Node, source: bytes) -> str | None:
    callee = node.child_by_field_name("function")
    if callee is None:
        return None
    if callee.type == "identifier":
        return node_text(callee, source)
    if callee.type == "member_expression":
        prop = callee.child_by_field_name("property")
        return node_text(prop, source) if prop is not None else None
    return None


def _nullish(node: Node, _source: bytes) -> Node | None:
    return node if _operator(node) == "??" else None


def _optional_chain(node: Node, _source: bytes) -> Node | None:
    if _continues_chain(node) or not _has_optional_link(node):
        return None
    return node


def _private_in(parent_type: str) -> Test:
    def _test(node: Node, _source: bytes) -> Node | None:
        parent = node.parent
        return node if parent is not None and parent.type == parent_type else None

    return _test


def _always(node: Node, _source: bytes) -> Node | None:
    return node


def _logical_assignment(node: Node, _source: bytes) -> Node | None:
    return node if _operator(node) in _LOGICAL_ASSIGNMENT_OPERATORS else None


def _numeric_separator(node: Node, source: bytes) -> Node | None:
    return node if "_" in node_text(node, source) else None


def _dynamic_import(node: Node, _source: bytes) -> Node | None:
    callee = node.child_by_field_name("function")
    return node if callee is not None and callee.type == "import" else None


def _optional_catch_binding(node: Node, _source: bytes) -> Node | None:
    return node if node.child_by_field_name("parameter") is None else None


def _for_await(node: Node, _source: bytes) -> Node | None:
    return node if any(child.type == "await" for child in node.children) else None


def _member_of(root: str, prop: str) -> Test:
    def _test(node: Node, source: bytes) -> Node | None:
        prop_node = node.child_by_field_name("property")
        if prop_node is None or node_text(prop_node, source) != prop:
            return None
        base = _chain_root_object(node)
        if base is None or base.type != "identifier" or node_text(base, source) != root:
            return None
        return node

    return _test


def _request_idle_callback(node: Node, source: bytes) -> Node | None:
    name = _callee_name(node, source)
    return node if name and "requestIdleCallback" in name else None


PATTERNS: tuple[Pattern, ...] = (
    Pattern("binary_expression", Feature.NULLISH_COALESCING, _nullish),
    Pattern("member_expression", Feature.OPTIONAL_CHAINING, _optional_chain),
    Pattern("subscript_expression", Feature.OPTIONAL_CHAINING, _optional_chain),
    Pattern("call_expression", Feature.OPTIONAL_CHAINING, _optional_chain),
    Pattern("private_property_identifier", Feature.PRIVATE_FIELD, _private_in("field_definition")),
    Pattern(
        "private_property_identifier", Feature.PRIVATE_METHOD, _private_in("method_definition")
    ),
    Pattern("await_expression", Feature.AWAIT, _always),
    Pattern("augmented_assignment_expression", Feature.LOGICAL_ASSIGNMENT, _logical_assignment),
    Pattern("number", Feature.NUMERIC_SEPARATOR, _numeric_separator),
    Pattern("call_expression", Feature.DYNAMIC_IMPORT, _dynamic_import),
    Pattern("catch_clause", Feature.OPTIONAL_CATCH_BINDING, _optional_catch_binding),
    Pattern("for_in_statement", Feature.ASYNC_ITERATION, _for_await),
    Pattern("spread_element", Feature.REST_SPREAD, _always),
    Pattern("member_expression", Feature.SERVICE_WORKER, _member_of("navigator", "serviceWorker")),
    Pattern("member_expression", Feature.PERFORMANCE_NOW, _member_of("performance", "now")),
    Pattern("call_expression", Feature.REQUEST_IDLE_CALLBACK, _request_idle_callback),
)


def _index(patterns: tuple[Pattern, ...]) -> dict[str, tuple[Pattern, ...]]:
    grouped: dict[str, list[Pattern]] = defaultdict(list)
    for pattern in patterns:
        grouped[pattern.node_type].append(pattern)
    return {node_type: tuple(items) for node_type, items in grouped.items()}


_PATTERNS_BY_TYPE = _index(PATTERNS)


def match_node(node: Node, source: bytes) -> list[Occurrence]:
    """Apply every pattern registered for the node's type."""
    found: list[Occurrence] = []
    for pattern in _PATTERNS_BY_TYPE.get(node.type, ()):
        target = pattern.test(node, source)
        if target is not None:
            found.append(Occurrence(pattern.feature, Span(target.start_byte, target.end_byte)))
    return found


def scan(result: ParseResult, identifier: str = "<source>") -> list[Occurrence]:
    """Return every feature occurrence in a parsed source, in tree order.

    Sources with syntax diagnostics are not traversed.
    """
    if result.diagnostics:
        raise ParseFailure(identifier, result.diagnostics)

    occurrences: list[Occurrence] = []
    for node in walk(result.root):
        occurrences.extend(match_node(node, result.source))
    return occurrences
