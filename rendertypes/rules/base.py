"""Base classes shared by lint rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional

from jinja2 import Environment, StrictUndefined
from tree_sitter import Node

from ..contracts import ContractMapBuilder, FileContracts
from ..models import FRAGMENT, NULLISH_VALUES, Diagnostic, Modifier, RenderEntry, RenderMap
from ..render_chain import can_render_component_typed, resolve_render_chain
from ..session import AnalysisSession
from ..transparent import TransparentRegistry

SEVERITIES = ("error", "warning", "off")


def _braced(value: object) -> str:
    return "{" + str(value) + "}"


_ENVIRONMENT = Environment(autoescape=False, undefined=StrictUndefined)
_ENVIRONMENT.filters["braced"] = _braced


def render_message(template: str, data: Mapping[str, object]) -> str:
    return _ENVIRONMENT.from_string(template).render(**data)


class FileAnalysis:
    """Per-file state shared by every rule: contracts, render map and transparent wrappers."""

    def __init__(
        self,
        contracts: FileContracts,
        session: AnalysisSession,
        transparent: Optional[TransparentRegistry] = None,
        max_depth: int = 10,
    ) -> None:
        self.contracts = contracts
        self.session = session
        self.max_depth = max_depth
        self.builder = ContractMapBuilder(session, max_depth)
        self._base_transparent = transparent if transparent is not None else TransparentRegistry()
        self._render_map: Optional[RenderMap] = None
        self._transparent: Optional[TransparentRegistry] = None
        self._prop_contracts: Dict[str, Dict[str, RenderEntry]] = {}

    @property
    def path(self) -> str:
        return self.contracts.path

    @property
    def source(self) -> bytes:
        return self.contracts.parsed.source

    @property
    def render_map(self) -> RenderMap:
        if self._render_map is None:
            self._render_map = self.builder.build(self.contracts)
        return self._render_map

    @property
    def transparent(self) -> TransparentRegistry:
        if self._transparent is None:
            self._transparent = self.builder.transparent_registry(self.contracts, self._base_transparent)
        return self._transparent

    def prop_contracts(self, element_name: str) -> Dict[str, RenderEntry]:
        if element_name not in self._prop_contracts:
            self._prop_contracts[element_name] = self.builder.prop_contracts(self.contracts, element_name)
        return self._prop_contracts[element_name]

    def satisfies(self, actual: str, entry: RenderEntry) -> bool:
        """Return True when rendering ``actual`` honours the contract in ``entry``."""
        annotation = entry.annotation
        if actual in NULLISH_VALUES:
            return annotation.allows_nothing()
        if actual == FRAGMENT and annotation.modifier is Modifier.MANY:
            return True
        return can_render_component_typed(
            actual,
            entry.annotation.targets,
            self.render_map,
            actual_type_id=self.session.type_id_for(actual, self.contracts),
            expected_type_ids=entry.target_type_ids,
            max_depth=self.max_depth,
        )

    def chain_for(self, actual: str) -> str:
        """``A -> B -> C`` when ``actual`` delegates to other components, else an empty string."""
        hops = resolve_render_chain(actual, self.render_map, self.max_depth)
        if not hops:
            return ""
        return " -> ".join([actual, *hops])


class RuleContext:
    """What a rule sees while checking one file."""

    def __init__(self, analysis: FileAnalysis, rule: "Rule", severity: str) -> None:
        self.analysis = analysis
        self.rule = rule
        self.severity = severity

    @property
    def contracts(self) -> FileContracts:
        return self.analysis.contracts

    @property
    def source(self) -> bytes:
        return self.analysis.source

    def report(self, node: Node, message_id: str, **data: object) -> Diagnostic:
        template = self.rule.messages[message_id]
        row, column = node.start_point
        return Diagnostic(
            rule=self.rule.name,
            message_id=message_id,
            message=render_message(template, data),
            path=self.analysis.path,
            line=row + 1,
            column=column + 1,
            severity=self.severity,
            data={key: str(value) for key, value in data.items()},
        )


class Rule(ABC):
    """Contract for rules that turn file contracts into diagnostics."""

    name: str = ""
    description: str = ""
    messages: Mapping[str, str] = {}
    default_severity: str = "error"

    @abstractmethod
    def check(self, context: RuleContext) -> Iterable[Diagnostic]:
        """Yield diagnostics for the file behind ``context``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def with_chain(template: str) -> str:
    """Append the optional ``(A -> B)`` chain suffix to a message template."""
    return template + "{% if chain is defined and chain %} ({{ chain }}){% endif %}"


def sorted_diagnostics(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    return sorted(diagnostics, key=lambda item: (item.path, item.line, item.column, item.rule))


__all__ = [
    "FileAnalysis",
    "Rule",
    "RuleContext",
    "SEVERITIES",
    "render_message",
    "sorted_diagnostics",
    "with_chain",
]
