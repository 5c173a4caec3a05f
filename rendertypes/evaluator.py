"""Static reduction of render-position expressions to component identities.

Every recursive helper takes the remaining depth explicitly. Running out of
depth yields an empty result for that branch, which callers treat as
"unknown" rather than as a violation.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Set

from tree_sitter import Node

from .models import FALSE, FRAGMENT, NULL, UNDEFINED
from .syntax import (
    CLASS_TYPES,
    FUNCTION_TYPES,
    JSX_ELEMENT_TYPES,
    first_named_child,
    is_fragment,
    jsx_attributes,
    jsx_children,
    jsx_element_name,
    jsx_expression_value,
    named_children,
    node_text,
    unwrap_expression,
)
from .transparent import CHILDREN

DEFAULT_MAX_DEPTH = 10

_MAPPING_METHODS = frozenset({"map", "flatMap"})


def _dedupe(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


class ExpressionEvaluator:
    """Enumerates the component identities an expression may render."""

    def __init__(self, source: bytes, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._source = source
        self.max_depth = max_depth

    def evaluate(self, node: Optional[Node], depth: Optional[int] = None) -> List[str]:
        remaining = self.max_depth if depth is None else depth
        return _dedupe(self._evaluate(node, remaining))

    def _evaluate(self, node: Optional[Node], depth: int) -> List[str]:
        if depth <= 0:
            return []
        node = unwrap_expression(node)
        if node is None:
            return []

        kind = node.type
        if kind in JSX_ELEMENT_TYPES:
            if is_fragment(node):
                return self._evaluate_fragment(node, depth)
            name = jsx_element_name(node, self._source)
            return [name] if name else []

        if kind == "null":
            return [NULL]
        if kind == "false":
            return [FALSE]
        if kind == "undefined" or (kind == "identifier" and node_text(node, self._source) == UNDEFINED):
            return [UNDEFINED]

        if kind == "ternary_expression":
            return self._evaluate(node.child_by_field_name("consequence"), depth - 1) + self._evaluate(
                node.child_by_field_name("alternative"), depth - 1
            )

        if kind == "binary_expression":
            operator = node.child_by_field_name("operator")
            operator_text = operator.type if operator is not None else ""
            right = node.child_by_field_name("right")
            if operator_text == "&&":
                return self._evaluate(right, depth - 1)
            if operator_text in {"||", "??"}:
                return self._evaluate(node.child_by_field_name("left"), depth - 1) + self._evaluate(
                    right, depth - 1
                )
            return []

        if kind == "call_expression":
            return self._evaluate_call(node, depth - 1)

        return []

    def _evaluate_fragment(self, fragment: Node, depth: int) -> List[str]:
        results: List[str] = []
        for child in jsx_children(fragment):
            if child.type in JSX_ELEMENT_TYPES:
                if is_fragment(child):
                    results.extend(self._evaluate_fragment(child, depth - 1))
                    continue
                name = jsx_element_name(child, self._source)
                if name:
                    results.append(name)
            elif child.type == "jsx_expression":
                results.extend(self._evaluate(jsx_expression_value(child), depth - 1))
        # An always-empty fragment is still a single, valid outcome.
        return results if results else [FRAGMENT]

    def _evaluate_call(self, call: Node, depth: int) -> List[str]:
        callee = unwrap_expression(call.child_by_field_name("function"))
        if callee is None or callee.type != "member_expression":
            return []
        method = node_text(callee.child_by_field_name("property"), self._source)
        if method not in _MAPPING_METHODS:
            return []

        arguments = call.child_by_field_name("arguments")
        callback = first_named_child(arguments) if arguments is not None else None
        callback = unwrap_expression(callback)
        if callback is None:
            return []

        if callback.type == "arrow_function":
            body = callback.child_by_field_name("body")
            if body is not None and body.type != "statement_block":
                return self._evaluate(body, depth)
            return self._evaluate_block(body, depth)
        if callback.type in {"function_expression", "function"}:
            return self._evaluate_block(callback.child_by_field_name("body"), depth)
        return []

    def _evaluate_block(self, block: Optional[Node], depth: int) -> List[str]:
        if block is None:
            return []
        results: List[str] = []
        # Only top-level returns; nested blocks and functions are not entered.
        for statement in named_children(block):
            if statement.type == "return_statement":
                results.extend(self._evaluate(first_named_child(statement), depth))
        return results


def collect_returns(body: Optional[Node]) -> List[Node]:
    """``return`` statements of a function body, not descending into nested functions or classes."""
    if body is None:
        return []
    returns: List[Node] = []
    stack = list(reversed(body.named_children))
    while stack:
        node = stack.pop()
        if node.type == "return_statement":
            returns.append(node)
            continue
        if node.type in FUNCTION_TYPES or node.type in CLASS_TYPES:
            continue
        stack.extend(reversed(node.named_children))
    return returns


def evaluate_expression(
    node: Optional[Node], source: bytes, max_depth: int = DEFAULT_MAX_DEPTH
) -> List[str]:
    """Return the identities (or null/false/undefined/Fragment) ``node`` may render."""
    return ExpressionEvaluator(source, max_depth).evaluate(node)


def extract_child_element_names(
    element: Node,
    source: bytes,
    transparent: Mapping[str, Iterable[str]],
    visited: Optional[Set[str]] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """Effective child identities of ``element``, looking through transparent wrappers.

    A wrapper is never unwrapped twice along one path; each branch gets its
    own copy of ``visited``. Identities produced by the expression evaluator
    are emitted as-is.
    """
    return _dedupe(
        _extract_children(element, source, transparent, set(visited or ()), max_depth, (CHILDREN,))
    )


def unwrap_element(
    element: Node,
    source: bytes,
    transparent: Mapping[str, Iterable[str]],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """Identities a single JSX element stands for once transparent wrappers are removed."""
    return _dedupe(_unwrap(element, source, transparent, set(), max_depth))


def _unwrap(
    element: Node,
    source: bytes,
    transparent: Mapping[str, Iterable[str]],
    visited: Set[str],
    depth: int,
) -> List[str]:
    if is_fragment(element):
        return ExpressionEvaluator(source, depth).evaluate(element)
    name = jsx_element_name(element, source)
    if not name:
        return []
    if name in transparent:
        return _extract_children(element, source, transparent, set(visited), depth, transparent[name])
    return [name]


def _extract_children(
    element: Node,
    source: bytes,
    transparent: Mapping[str, Iterable[str]],
    visited: Set[str],
    depth: int,
    props: Iterable[str],
) -> List[str]:
    if depth <= 0:
        return []

    element_name = jsx_element_name(element, source)
    if element_name:
        if element_name in visited:
            return []
        visited.add(element_name)

    evaluator = ExpressionEvaluator(source)
    pass_through = set(props)
    results: List[str] = []

    if CHILDREN in pass_through:
        for child in jsx_children(element):
            if child.type in JSX_ELEMENT_TYPES:
                results.extend(_child_names(child, source, transparent, visited, depth))
            elif child.type == "jsx_expression":
                results.extend(evaluator.evaluate(jsx_expression_value(child), depth - 1))

    for prop_name, _attribute, value in jsx_attributes(element, source):
        if prop_name == CHILDREN or prop_name not in pass_through or value is None:
            continue
        if value.type in JSX_ELEMENT_TYPES:
            results.extend(_child_names(value, source, transparent, visited, depth))
        elif value.type == "jsx_expression":
            inner = unwrap_expression(jsx_expression_value(value))
            if inner is not None and inner.type in JSX_ELEMENT_TYPES:
                results.extend(_child_names(inner, source, transparent, visited, depth))
            else:
                results.extend(evaluator.evaluate(inner, depth - 1))

    return results


def _child_names(
    child: Node,
    source: bytes,
    transparent: Mapping[str, Iterable[str]],
    visited: Set[str],
    depth: int,
) -> List[str]:
    if is_fragment(child):
        return ExpressionEvaluator(source, depth - 1).evaluate(child)
    name = jsx_element_name(child, source)
    if not name:
        return []
    if name in transparent:
        return _extract_children(
            child, source, transparent, set(visited), depth - 1, transparent[name]
        )
    return [name]


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ExpressionEvaluator",
    "collect_returns",
    "evaluate_expression",
    "extract_child_element_names",
    "unwrap_element",
]
