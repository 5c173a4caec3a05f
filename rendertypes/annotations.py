"""Parsing of ``@renders`` and ``@transparent`` comment annotations."""

from __future__ import annotations

import re
from typing import List, Optional

from .models import Annotation, Modifier, TransparentAnnotation

# The leading group keeps tags embedded in other words (``pre@renders``) from matching.
_RENDERS_PATTERN = re.compile(r"(?:^|[^a-zA-Z@])@renders([?*])?(!)?\s*\{\s*([^}]+?)\s*\}")
_UNCHECKED_PATTERN = re.compile(r"(?:^|[^a-zA-Z@])@renders[?*]?!")
_TRANSPARENT_PATTERN = re.compile(
    r"(?:^|[^a-zA-Z@])@transparent\b(?:[ \t]*\{([^}]*)\})?"
)
_COMPONENT_NAME_PATTERN = re.compile(r"^[A-Z][a-zA-Z0-9]*(?:\.[A-Z][a-zA-Z0-9]*)*$")
_PROP_NAME_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def is_component_name(name: Optional[str]) -> bool:
    """Return True when ``name`` follows the PascalCase component convention."""
    if not name:
        return False
    return name[0].isupper()


def binding_of(component_ref: str) -> str:
    """Return the locally bound identifier of a dotted component reference."""
    return component_ref.split(".", 1)[0]


def parse_union(type_expression: str) -> Optional[List[str]]:
    """Split ``A | B.C`` into component names, or None when any member is invalid."""
    parts = [part.strip() for part in type_expression.split("|")]
    for part in parts:
        if not _COMPONENT_NAME_PATTERN.match(part):
            return None
    return parts


def parse_renders_annotation(comment: Optional[str]) -> Optional[Annotation]:
    """Parse the first ``@renders`` tag in ``comment``.

    Handles ``@renders {X}``, ``@renders? {X}``, ``@renders* {X}`` and unions
    such as ``@renders {Header | Footer}``. Returns None when the tag is
    absent or its content is not a valid component reference, leaving
    diagnostics about the malformed text to the syntax rule.
    """
    if not comment:
        return None

    match = _RENDERS_PATTERN.search(comment)
    if match is None:
        return None

    modifier_char, _unchecked, type_expression = match.groups()
    names = parse_union(type_expression)
    if not names:
        return None

    modifier = Modifier.from_suffix(modifier_char)
    formatted = " | ".join(names)
    return Annotation(
        modifier=modifier,
        targets=tuple(dict.fromkeys(names)),
        raw=f"@renders{modifier.suffix} {{{formatted}}}",
    )


def is_unchecked_annotation(comment: Optional[str]) -> bool:
    """Return True for ``@renders!`` tags whose return values are trusted, not verified."""
    if not comment:
        return False
    return _UNCHECKED_PATTERN.search(comment) is not None


def parse_transparent_annotation(comment: Optional[str]) -> Optional[TransparentAnnotation]:
    """Parse ``@transparent`` or ``@transparent {propA, propB}``."""
    if not comment:
        return None

    match = _TRANSPARENT_PATTERN.search(comment)
    if match is None:
        return None

    payload = match.group(1)
    if payload is None:
        return TransparentAnnotation(props=frozenset({"children"}), raw="@transparent")

    props = [part.strip() for part in payload.split(",")]
    if not props or any(not _PROP_NAME_PATTERN.match(prop) for prop in props):
        return None
    return TransparentAnnotation(
        props=frozenset(props),
        raw=f"@transparent {{{', '.join(props)}}}",
    )


__all__ = [
    "binding_of",
    "is_component_name",
    "is_unchecked_annotation",
    "parse_renders_annotation",
    "parse_transparent_annotation",
    "parse_union",
]
