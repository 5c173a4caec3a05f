"""Flags function components that return JSX without declaring a ``@renders`` contract."""

from __future__ import annotations

from typing import Iterable, Optional

from tree_sitter import Node

from ..contracts import ComponentDeclaration
from ..evaluator import collect_returns
from ..models import Diagnostic
from ..syntax import JSX_ELEMENT_TYPES, first_named_child, unwrap_expression
from .base import Rule, RuleContext


def _is_jsx(node: Optional[Node]) -> bool:
    node = unwrap_expression(node)
    return node is not None and node.type in JSX_ELEMENT_TYPES


def _returns_jsx(value: Optional[Node]) -> bool:
    value = unwrap_expression(value)
    if value is None:
        return False
    if _is_jsx(value):
        return True
    if value.type == "ternary_expression":
        return _is_jsx(value.child_by_field_name("consequence")) or _is_jsx(
            value.child_by_field_name("alternative")
        )
    if value.type == "binary_expression":
        return _is_jsx(value.child_by_field_name("left")) or _is_jsx(value.child_by_field_name("right"))
    return False


def has_jsx_return(declaration: ComponentDeclaration) -> bool:
    if declaration.body is None:
        return False
    if declaration.expression_body:
        return _is_jsx(declaration.body)
    return any(_returns_jsx(first_named_child(statement)) for statement in collect_returns(declaration.body))


class RequireRendersAnnotationRule(Rule):
    name = "require-renders-annotation"
    description = "Require @renders annotation on React function components"
    messages = {
        "missingRendersAnnotation": "Component '{{ componentName }}' is missing a @renders annotation",
    }
    default_severity = "off"

    def check(self, context: RuleContext) -> Iterable[Diagnostic]:
        for name, declaration in context.contracts.components.items():
            if declaration.kind != "function" or name == "default":
                continue
            if declaration.annotation is not None or not has_jsx_return(declaration):
                continue
            yield context.report(
                declaration.name_node or declaration.node,
                "missingRendersAnnotation",
                componentName=name,
            )


__all__ = ["RequireRendersAnnotationRule", "has_jsx_return"]
