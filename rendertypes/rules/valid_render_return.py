"""Checks that annotated components only return what their ``@renders`` contract allows."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from tree_sitter import Node

from ..evaluator import ExpressionEvaluator, collect_returns, unwrap_element
from ..models import NULL, Diagnostic
from ..syntax import JSX_ELEMENT_TYPES, first_named_child, unwrap_expression
from .base import Rule, RuleContext, with_chain


class ValidRenderReturnRule(Rule):
    name = "valid-render-return"
    description = "Verify component returns match @renders JSDoc annotation"
    messages = {
        "invalidRenderReturn": with_chain(
            "Component annotated with @renders {{ expected | braced }} but returns {{ actual }}"
        ),
    }
    default_severity = "error"

    def check(self, context: RuleContext) -> Iterable[Diagnostic]:
        analysis = context.analysis
        for name, declaration in context.contracts.components.items():
            if declaration.annotation is None or declaration.unchecked:
                continue
            entry = analysis.render_map.get(name)
            if entry is None:
                continue
            for node, actuals in self._returned(context, declaration.body, declaration.expression_body):
                for actual in actuals:
                    if analysis.satisfies(actual, entry):
                        continue
                    yield context.report(
                        node,
                        "invalidRenderReturn",
                        expected=entry.annotation.display,
                        actual=actual,
                        chain=analysis.chain_for(actual),
                    )

    def _returned(
        self, context: RuleContext, body: Node | None, expression_body: bool
    ) -> Iterator[Tuple[Node, List[str]]]:
        if body is None:
            return
        if expression_body:
            yield body, self._evaluate(context, body)
            return
        for statement in collect_returns(body):
            value = first_named_child(statement)
            if value is None:
                yield statement, [NULL]
                continue
            yield value, self._evaluate(context, value)

    @staticmethod
    def _evaluate(context: RuleContext, node: Node) -> List[str]:
        analysis = context.analysis
        inner = unwrap_expression(node)
        if inner is not None and inner.type in JSX_ELEMENT_TYPES:
            # A returned wrapper such as <Suspense> stands for what it wraps.
            return unwrap_element(inner, analysis.source, analysis.transparent, analysis.max_depth)
        return ExpressionEvaluator(analysis.source, analysis.max_depth).evaluate(node)


__all__ = ["ValidRenderReturnRule"]
