"""Tree-sitter parsing and node helpers for TS/TSX sources."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .logging import get_logger

_LOGGER = get_logger("syntax")

_GRAMMARS = {
    "tsx": tree_sitter_typescript.language_tsx,
    "typescript": tree_sitter_typescript.language_typescript,
}

_LANGUAGE_BY_SUFFIX = {
    ".tsx": "tsx",
    ".jsx": "tsx",
    ".js": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
}

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)

CLASS_TYPES = frozenset({"class_declaration", "class", "abstract_class_declaration"})

JSX_ELEMENT_TYPES = frozenset({"jsx_element", "jsx_self_closing_element"})

# Wrappers that do not change which value an expression produces.
_TRANSPARENT_EXPRESSIONS = frozenset(
    {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
        "type_assertion",
    }
)


def language_for_path(path: str | Path) -> Optional[str]:
    """Return the grammar key used for ``path``, or None when unsupported."""
    name = str(path).lower()
    for suffix, language in _LANGUAGE_BY_SUFFIX.items():
        if name.endswith(suffix):
            return language
    return None


def node_text(node: Optional[Node], source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def named_children(node: Node) -> List[Node]:
    """Named children without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def first_named_child(node: Node) -> Optional[Node]:
    children = named_children(node)
    return children[0] if children else None


def unwrap_expression(node: Optional[Node]) -> Optional[Node]:
    """Strip parentheses and type assertions around an expression."""
    while node is not None and node.type in _TRANSPARENT_EXPRESSIONS:
        node = first_named_child(node)
    return node


def string_value(node: Optional[Node], source: bytes) -> Optional[str]:
    if node is None or node.type not in {"string", "template_string"}:
        return None
    text = node_text(node, source)
    if len(text) >= 2:
        return text[1:-1]
    return None


def opening_element(element: Node) -> Optional[Node]:
    """Return the node holding the name and attributes of a JSX element."""
    if element.type == "jsx_self_closing_element":
        return element
    if element.type != "jsx_element":
        return None
    opening = element.child_by_field_name("open_tag")
    if opening is not None:
        return opening
    for child in element.children:
        if child.type == "jsx_opening_element":
            return child
    return None


def jsx_element_name(element: Node, source: bytes) -> Optional[str]:
    """Display name of a JSX element (``Header``, ``Menu.Item``, ``div``).

    Fragments and namespaced names (``svg:rect``) have no name.
    """
    opening = opening_element(element)
    if opening is None:
        return None
    name_node = opening.child_by_field_name("name")
    if name_node is None or name_node.type == "jsx_namespace_name":
        return None
    return "".join(node_text(name_node, source).split())


def is_fragment(element: Node) -> bool:
    if element.type != "jsx_element":
        return False
    opening = opening_element(element)
    return opening is not None and opening.child_by_field_name("name") is None


def jsx_children(element: Node) -> List[Node]:
    """Child nodes of a JSX element between its opening and closing tags."""
    if element.type != "jsx_element":
        return []
    return [
        child
        for child in element.named_children
        if child.type in {"jsx_element", "jsx_self_closing_element", "jsx_expression", "jsx_text"}
    ]


def jsx_attributes(element: Node, source: bytes) -> List[Tuple[str, Node, Optional[Node]]]:
    """Return ``(prop name, attribute node, value node)`` for each named attribute."""
    opening = opening_element(element)
    if opening is None:
        return []
    attributes: List[Tuple[str, Node, Optional[Node]]] = []
    for child in opening.named_children:
        if child.type != "jsx_attribute":
            continue
        parts = named_children(child)
        if not parts:
            continue
        name = node_text(parts[0], source)
        value = parts[-1] if len(parts) > 1 else None
        attributes.append((name, child, value))
    return attributes


def jsx_expression_value(node: Node) -> Optional[Node]:
    """The expression inside ``{...}``; None for empty containers and spreads."""
    inner = first_named_child(node)
    if inner is None or inner.type == "spread_element":
        return None
    return inner


def iter_nodes(root: Node, types: Optional[Sequence[str]] = None) -> Iterator[Node]:
    """Pre-order traversal of ``root``, optionally filtered by node type."""
    wanted = frozenset(types) if types is not None else None
    stack = [root]
    while stack:
        node = stack.pop()
        if wanted is None or node.type in wanted:
            yield node
        stack.extend(reversed(node.children))


class CommentIndex:
    """Looks up the comments that lead a declaration."""

    def __init__(self, root: Node, source: bytes) -> None:
        self._source = source
        self._comments: List[Node] = sorted(
            iter_nodes(root, ("comment",)), key=lambda node: node.start_byte
        )
        self._ends = [comment.end_byte for comment in self._comments]

    def __iter__(self) -> Iterator[Node]:
        return iter(self._comments)

    def comments_before(self, node: Node) -> List[Node]:
        """Comments separated from ``node`` only by whitespace, in source order."""
        position = node.start_byte
        index = bisect_right(self._ends, position) - 1
        leading: List[Node] = []
        while index >= 0:
            comment = self._comments[index]
            gap = self._source[comment.end_byte : position]
            if gap.strip():
                break
            leading.append(comment)
            position = comment.start_byte
            index -= 1
        leading.reverse()
        return leading

    def leading_text(self, node: Node) -> List[str]:
        return [node_text(comment, self._source) for comment in self.comments_before(node)]


@dataclass
class ParsedSource:
    """A parsed source file."""

    path: str
    source: bytes
    tree: Tree
    language: str
    _comments: Optional[CommentIndex] = field(default=None, repr=False)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def comments(self) -> CommentIndex:
        if self._comments is None:
            self._comments = CommentIndex(self.root, self.source)
        return self._comments

    def text(self, node: Optional[Node]) -> str:
        return node_text(node, self.source)


class SourceParser:
    """Parses TS/TSX source with a lazily created parser per grammar."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def parse(self, path: str | Path, source: str | bytes) -> ParsedSource:
        language_key = language_for_path(path) or "tsx"
        parser = self._get_parser(language_key)
        source_bytes = source.encode("utf-8") if isinstance(source, str) else source
        tree = parser.parse(source_bytes)
        if tree.root_node.has_error:
            _LOGGER.debug("Syntax errors while parsing %s; continuing with partial tree", path)
        return ParsedSource(path=str(path), source=source_bytes, tree=tree, language=language_key)

    def _get_parser(self, language_key: str) -> Parser:
        parser = self._parsers.get(language_key)
        if parser is not None:
            return parser
        language = Language(_GRAMMARS[language_key]())
        parser = Parser(language)
        self._parsers[language_key] = parser
        return parser


__all__ = [
    "CLASS_TYPES",
    "CommentIndex",
    "FUNCTION_TYPES",
    "JSX_ELEMENT_TYPES",
    "ParsedSource",
    "SourceParser",
    "first_named_child",
    "is_fragment",
    "iter_nodes",
    "jsx_attributes",
    "jsx_children",
    "jsx_element_name",
    "jsx_expression_value",
    "language_for_path",
    "named_children",
    "node_text",
    "opening_element",
    "string_value",
    "unwrap_expression",
]
