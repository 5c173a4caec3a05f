"""Core data models shared across rendertypes components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

# Opaque component identity, formatted as "<file path>:<symbol>".
ComponentTypeId = str

NULL = "null"
FALSE = "false"
UNDEFINED = "undefined"
FRAGMENT = "Fragment"

NULLISH_VALUES = frozenset({NULL, FALSE, UNDEFINED})


class Modifier(str, Enum):
    """Cardinality qualifier of a render contract."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    MANY = "many"

    @property
    def suffix(self) -> str:
        if self is Modifier.OPTIONAL:
            return "?"
        if self is Modifier.MANY:
            return "*"
        return ""

    @classmethod
    def from_suffix(cls, suffix: Optional[str]) -> "Modifier":
        if suffix == "?":
            return cls.OPTIONAL
        if suffix == "*":
            return cls.MANY
        return cls.REQUIRED


@dataclass(frozen=True)
class Annotation:
    """Parsed ``@renders`` contract."""

    modifier: Modifier
    targets: Tuple[str, ...]
    raw: str

    @property
    def component_name(self) -> str:
        """First-listed target."""
        return self.targets[0]

    @property
    def display(self) -> str:
        return " | ".join(self.targets)

    @property
    def is_union(self) -> bool:
        return len(self.targets) > 1

    def allows_nothing(self) -> bool:
        return self.modifier in (Modifier.OPTIONAL, Modifier.MANY)

    def with_targets(self, targets: Tuple[str, ...]) -> "Annotation":
        formatted = " | ".join(targets)
        return Annotation(
            modifier=self.modifier,
            targets=targets,
            raw=f"@renders{self.modifier.suffix} {{{formatted}}}",
        )


@dataclass(frozen=True)
class TransparentAnnotation:
    """Parsed ``@transparent`` marker and the props it passes through."""

    props: FrozenSet[str]
    raw: str


@dataclass(frozen=True)
class RenderEntry:
    """A render-map value: the contract plus the identities of its targets."""

    annotation: Annotation
    target_type_ids: Tuple[Optional[ComponentTypeId], ...] = ()

    def type_id_for(self, index: int) -> Optional[ComponentTypeId]:
        if index < len(self.target_type_ids):
            return self.target_type_ids[index]
        return None


RenderMap = Dict[str, RenderEntry]


@dataclass(frozen=True)
class ImportBinding:
    """A locally bound name introduced by an import statement."""

    local_name: str
    imported_name: str
    source: str
    importer: str


@dataclass(frozen=True)
class ResolvedAnnotation:
    """A contract found in another file, with identities resolved in that file."""

    annotation: Annotation
    type_id: Optional[ComponentTypeId]
    target_type_ids: Tuple[Optional[ComponentTypeId], ...] = ()
    origin: Optional[str] = None

    def as_entry(self) -> RenderEntry:
        return RenderEntry(annotation=self.annotation, target_type_ids=self.target_type_ids)


@dataclass
class Diagnostic:
    """Structured finding emitted by a rule."""

    rule: str
    message_id: str
    message: str
    path: str
    line: int
    column: int
    severity: str
    data: Dict[str, str] = field(default_factory=dict)


__all__ = [
    "Annotation",
    "ComponentTypeId",
    "Diagnostic",
    "FALSE",
    "FRAGMENT",
    "ImportBinding",
    "Modifier",
    "NULL",
    "NULLISH_VALUES",
    "RenderEntry",
    "RenderMap",
    "ResolvedAnnotation",
    "TransparentAnnotation",
    "UNDEFINED",
]
