"""Surface checks for ``@renders`` comment syntax."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..annotations import parse_renders_annotation
from ..models import Diagnostic
from ..syntax import node_text
from .base import Rule, RuleContext

# ``@renders Header`` written without braces.
_RENDERS_WITHOUT_BRACES = re.compile(
    r"(?:^|[^a-zA-Z@])@renders([?*])?(!)?\s+([A-Z][a-zA-Z0-9]*(?:\.[A-Z][a-zA-Z0-9]*)*)(?!\w)(?!\.[A-Z])(?!\s*\{)"
)
_RENDERS_BRACED = re.compile(r"(?:^|[^a-zA-Z@])@renders([?*])?(!)?\s*\{([^}]*)\}")

_EMPTY_SUGGESTION = "Provide a component name inside braces: @renders {ComponentName}"
_UPPERCASE_SUGGESTION = "Component name must start with an uppercase letter"


@dataclass(frozen=True)
class MalformedAnnotation:
    """A problem found in ``@renders`` text and the data for its message."""

    message_id: str
    data: Dict[str, str] = field(default_factory=dict)


def detect_malformed(comment: str) -> Optional[MalformedAnnotation]:
    """Return the first syntax problem of a ``@renders`` tag in ``comment``, if any."""
    if parse_renders_annotation(comment) is not None:
        return None

    match = _RENDERS_WITHOUT_BRACES.search(comment)
    if match is not None:
        modifier, unchecked, name = match.groups()
        return MalformedAnnotation(
            "missingBraces",
            {"suggestion": f"@renders{modifier or ''}{unchecked or ''} {{{name}}}"},
        )

    match = _RENDERS_BRACED.search(comment)
    if match is None:
        return None

    members = [part.strip() for part in match.group(3).split("|")]
    if not any(members):
        return MalformedAnnotation("malformedAnnotation", {"suggestion": _EMPTY_SUGGESTION})
    for member in members:
        if not member:
            return MalformedAnnotation("malformedAnnotation", {"suggestion": _EMPTY_SUGGESTION})
        if member[0].islower():
            replaced = " | ".join(
                part[0].upper() + part[1:] if part == member else part for part in members
            )
            return MalformedAnnotation(
                "lowercaseComponent",
                {
                    "componentName": member,
                    "suggestion": (
                        f"Component names must be PascalCase. Did you mean @renders {{{replaced}}}?"
                    ),
                },
            )
        if not member[0].isupper():
            return MalformedAnnotation("malformedAnnotation", {"suggestion": _UPPERCASE_SUGGESTION})
    return None


class ValidRendersJsdocRule(Rule):
    name = "valid-renders-jsdoc"
    description = "Validate @renders JSDoc annotation syntax"
    messages = {
        "missingBraces": "@renders annotation is missing braces. Use: {{ suggestion }}",
        "malformedAnnotation": "Malformed @renders annotation. {{ suggestion }}",
        "lowercaseComponent": "Component name '{{ componentName }}' should be PascalCase. {{ suggestion }}",
    }
    default_severity = "warning"

    def check(self, context: RuleContext) -> Iterable[Diagnostic]:
        parsed = context.contracts.parsed
        for comment in parsed.comments:
            text = node_text(comment, parsed.source)
            if "@renders" not in text:
                continue
            problem = detect_malformed(text)
            if problem is not None:
                yield context.report(comment, problem.message_id, **problem.data)


__all__ = ["MalformedAnnotation", "ValidRendersJsdocRule", "detect_malformed"]
