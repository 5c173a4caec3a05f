"""Render-chain compatibility checks.

A component ``A`` annotated ``@renders {B}`` satisfies a contract for ``B``
and, transitively, for whatever ``B`` renders. Chains are followed
breadth-first over every target of a union annotation, stop at cycles and
give up after ``max_depth`` hops. Neither a cycle nor the depth limit is an
error; both simply mean "no match".
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Mapping, Optional, Protocol, Sequence, Set, Tuple, Union

from .models import Annotation, ComponentTypeId, RenderEntry

DEFAULT_MAX_DEPTH = 10

Expected = Union[str, Sequence[str]]
RenderMapLike = Mapping[str, Union[RenderEntry, Annotation]]


@dataclass(frozen=True)
class ChainNode:
    """One hop of a render chain: a display name plus its identity, when known."""

    name: str
    type_id: Optional[ComponentTypeId] = None


class IdentityStrategy(Protocol):
    """Decides whether a chain node is one of the expected components."""

    def matches(self, node: ChainNode) -> bool:
        """Return True when ``node`` satisfies the expected contract."""


class NameIdentity:
    """Structural comparison of display names."""

    def __init__(self, expected: Iterable[str]) -> None:
        self._expected = frozenset(expected)

    def matches(self, node: ChainNode) -> bool:
        return node.name in self._expected


class TypedIdentity:
    """Identity comparison that prefers type ids over display names.

    When both sides carry a type id the ids decide, so two unrelated
    components that share a name never match. When either id is missing
    the comparison degrades to the display name.
    """

    def __init__(
        self,
        expected: Sequence[str],
        expected_type_ids: Sequence[Optional[ComponentTypeId]] = (),
    ) -> None:
        self._expected: List[ChainNode] = [
            ChainNode(name, expected_type_ids[index] if index < len(expected_type_ids) else None)
            for index, name in enumerate(expected)
        ]

    def matches(self, node: ChainNode) -> bool:
        for candidate in self._expected:
            if node.type_id and candidate.type_id:
                if node.type_id == candidate.type_id:
                    return True
            elif node.name == candidate.name:
                return True
        return False


def _as_entry(value: Union[RenderEntry, Annotation, None]) -> Optional[RenderEntry]:
    if value is None or isinstance(value, RenderEntry):
        return value
    return RenderEntry(annotation=value)


def _normalise_expected(expected: Expected) -> Tuple[str, ...]:
    if isinstance(expected, str):
        return (expected,)
    return tuple(expected)


def _next_hops(entry: RenderEntry) -> List[ChainNode]:
    return [
        ChainNode(target, entry.type_id_for(index))
        for index, target in enumerate(entry.annotation.targets)
    ]


def _walk(
    start: ChainNode,
    render_map: RenderMapLike,
    identity: Optional[IdentityStrategy],
    max_depth: int,
) -> Tuple[bool, List[str]]:
    """Breadth-first walk over the chain rooted at ``start``.

    Returns whether a node matched ``identity`` and the names visited in order
    (excluding ``start``). Without an identity the whole reachable chain is
    returned.
    """
    if identity is not None and identity.matches(start):
        return True, []

    visited: Set[str] = {start.name}
    order: List[str] = []
    frontier: Deque[Tuple[ChainNode, int]] = deque([(start, 0)])

    while frontier:
        node, depth = frontier.popleft()
        if depth >= max_depth:
            continue
        entry = _as_entry(render_map.get(node.name))
        if entry is None:
            continue
        for hop in _next_hops(entry):
            if identity is not None and identity.matches(hop):
                return True, order + [hop.name]
            if hop.name in visited:
                continue
            visited.add(hop.name)
            order.append(hop.name)
            frontier.append((hop, depth + 1))

    return False, order


def can_render_component(
    actual: str,
    expected: Expected,
    render_map: RenderMapLike,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Return True when ``actual`` is, or renders through a chain, one of ``expected``.

    Examples:
        - ``Header`` can render ``Header`` (direct match)
        - ``MyHeader`` can render ``Header`` when ``MyHeader`` has ``@renders {Header}``
        - ``CustomHeader`` can render ``Header`` when ``CustomHeader @renders {MyHeader}``
          and ``MyHeader @renders {Header}``
    """
    identity = NameIdentity(_normalise_expected(expected))
    matched, _ = _walk(ChainNode(actual), render_map, identity, max_depth)
    return matched


def can_render_component_typed(
    actual: str,
    expected: Expected,
    render_map: RenderMapLike,
    *,
    actual_type_id: Optional[ComponentTypeId] = None,
    expected_type_ids: Sequence[Optional[ComponentTypeId]] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Identity-aware variant of :func:`can_render_component`.

    ``expected_type_ids`` runs parallel to ``expected``. Type ids recorded on
    render-map entries are used for every hop of the chain.
    """
    expected_names = _normalise_expected(expected)
    if not any(expected_type_ids) and actual_type_id is None:
        return can_render_component(actual, expected_names, render_map, max_depth)
    identity = TypedIdentity(expected_names, expected_type_ids)
    matched, _ = _walk(ChainNode(actual, actual_type_id), render_map, identity, max_depth)
    return matched


def resolve_render_chain(
    start: str,
    render_map: RenderMapLike,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> List[str]:
    """Names reachable from ``start`` in visiting order, for messages like ``A -> B -> C``.

    ``A @renders {B}`` and ``B @renders {C}`` gives ``["B", "C"]``.
    """
    _, order = _walk(ChainNode(start), render_map, None, max_depth)
    return order


def format_render_chain(start: str, render_map: RenderMapLike, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    return " -> ".join([start, *resolve_render_chain(start, render_map, max_depth)])


__all__ = [
    "ChainNode",
    "DEFAULT_MAX_DEPTH",
    "IdentityStrategy",
    "NameIdentity",
    "TypedIdentity",
    "can_render_component",
    "can_render_component_typed",
    "format_render_chain",
    "resolve_render_chain",
]
