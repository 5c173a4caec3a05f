"""Checks values passed to props and children annotated with ``@renders``."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from tree_sitter import Node

from ..evaluator import ExpressionEvaluator, unwrap_element
from ..models import Diagnostic, RenderEntry
from ..syntax import (
    JSX_ELEMENT_TYPES,
    is_fragment,
    iter_nodes,
    jsx_attributes,
    jsx_children,
    jsx_element_name,
    jsx_expression_value,
    unwrap_expression,
)
from ..transparent import CHILDREN
from .base import FileAnalysis, Rule, RuleContext, with_chain


class ValidRenderPropRule(Rule):
    name = "valid-render-prop"
    description = "Verify props with @renders annotations receive compatible components"
    messages = {
        "invalidRenderProp": with_chain(
            "Prop '{{ propName }}' expects @renders {{ expected | braced }} but received {{ actual }}"
        ),
        "invalidRenderChildren": with_chain(
            "Children expect @renders {{ expected | braced }} but received {{ actual }}"
        ),
    }
    default_severity = "error"

    def check(self, context: RuleContext) -> Iterable[Diagnostic]:
        analysis = context.analysis
        for element in iter_nodes(context.contracts.parsed.root, tuple(JSX_ELEMENT_TYPES)):
            if is_fragment(element):
                continue
            element_name = jsx_element_name(element, analysis.source)
            if not element_name:
                continue
            contracts = analysis.prop_contracts(element_name)
            if not contracts:
                continue
            yield from self._check_attributes(context, element, contracts)
            children_entry = contracts.get(CHILDREN)
            if children_entry is not None:
                yield from self._check_children(context, element, children_entry)

    def _check_attributes(
        self, context: RuleContext, element: Node, contracts: Dict[str, RenderEntry]
    ) -> Iterable[Diagnostic]:
        analysis = context.analysis
        for prop_name, _attribute, value in jsx_attributes(element, analysis.source):
            entry = contracts.get(prop_name)
            if entry is None or value is None:
                continue
            message_id = "invalidRenderChildren" if prop_name == CHILDREN else "invalidRenderProp"
            for actual in self._values(analysis, value):
                if analysis.satisfies(actual, entry):
                    continue
                yield context.report(
                    value,
                    message_id,
                    propName=prop_name,
                    expected=entry.annotation.display,
                    actual=actual,
                    chain=analysis.chain_for(actual),
                )

    def _check_children(
        self, context: RuleContext, element: Node, entry: RenderEntry
    ) -> Iterable[Diagnostic]:
        analysis = context.analysis
        for child in jsx_children(element):
            if child.type == "jsx_text":
                continue
            for actual in self._values(analysis, child):
                if analysis.satisfies(actual, entry):
                    continue
                yield context.report(
                    child,
                    "invalidRenderChildren",
                    expected=entry.annotation.display,
                    actual=actual,
                    chain=analysis.chain_for(actual),
                )

    @staticmethod
    def _values(analysis: FileAnalysis, node: Node) -> List[str]:
        """Identities carried by an attribute value or a JSX child."""
        target: Optional[Node] = node
        if node.type == "jsx_expression":
            target = unwrap_expression(jsx_expression_value(node))
        if target is None:
            return []
        if target.type in JSX_ELEMENT_TYPES:
            return unwrap_element(target, analysis.source, analysis.transparent, analysis.max_depth)
        return ExpressionEvaluator(analysis.source, analysis.max_depth).evaluate(target)


__all__ = ["ValidRenderPropRule"]
