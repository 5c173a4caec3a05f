"""Per-file contract scanning and render-map construction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from tree_sitter import Node

from .annotations import (
    binding_of,
    is_component_name,
    is_unchecked_annotation,
    parse_renders_annotation,
    parse_transparent_annotation,
)
from .logging import get_logger
from .models import Annotation, ImportBinding, RenderEntry, RenderMap, TransparentAnnotation
from .syntax import (
    CLASS_TYPES,
    ParsedSource,
    first_named_child,
    iter_nodes,
    named_children,
    string_value,
    unwrap_expression,
)
from .transparent import TransparentRegistry

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .session import AnalysisSession

_LOGGER = get_logger("contracts")

DEFAULT_COMPONENT_WRAPPERS = ("memo", "forwardRef", "React.memo", "React.forwardRef")

_FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
_FUNCTION_VALUES = frozenset({"arrow_function", "function_expression", "function"})
_VARIABLE_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})
_DECLARATION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
        "abstract_class_declaration",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
    }
)
_PROP_NAME_TYPES = frozenset({"property_identifier", "string", "private_property_identifier"})


@dataclass
class ComponentDeclaration:
    """A component found in a file, with the annotations leading it."""

    name: str
    kind: str
    node: Node
    statement: Node
    body: Optional[Node]
    annotation: Optional[Annotation] = None
    unchecked: bool = False
    transparent: Optional[TransparentAnnotation] = None
    props_type: Optional[str] = None
    name_node: Optional[Node] = None

    @property
    def expression_body(self) -> bool:
        """True for arrow functions whose body is an expression rather than a block."""
        return self.body is not None and self.body.type != "statement_block"


@dataclass(frozen=True)
class ExportEntry:
    """One name exported by a file, either declared locally or re-exported."""

    exported_name: str
    local_name: Optional[str] = None
    source: Optional[str] = None
    imported_name: Optional[str] = None

    @property
    def is_reexport(self) -> bool:
        return self.source is not None


@dataclass
class FileContracts:
    """Everything one file declares that matters for render contracts."""

    path: str
    parsed: ParsedSource
    components: Dict[str, ComponentDeclaration] = field(default_factory=dict)
    declared_names: Set[str] = field(default_factory=set)
    prop_contracts: Dict[str, Dict[str, Annotation]] = field(default_factory=dict)
    prop_bases: Dict[str, List[str]] = field(default_factory=dict)
    type_aliases: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    imports: Dict[str, ImportBinding] = field(default_factory=dict)
    exports: Dict[str, ExportEntry] = field(default_factory=dict)
    star_exports: List[str] = field(default_factory=list)

    @property
    def render_annotations(self) -> Dict[str, Annotation]:
        return {
            name: declaration.annotation
            for name, declaration in self.components.items()
            if declaration.annotation is not None
        }

    @property
    def transparent_components(self) -> Dict[str, FrozenSet[str]]:
        return {
            name: declaration.transparent.props
            for name, declaration in self.components.items()
            if declaration.transparent is not None
        }

    def props_for_type(self, type_name: str, _seen: Optional[Set[str]] = None) -> Dict[str, Annotation]:
        """Prop contracts of a local props type, including those of the types it extends."""
        seen = _seen if _seen is not None else set()
        if type_name in seen:
            return {}
        seen.add(type_name)
        merged: Dict[str, Annotation] = {}
        for base in self.prop_bases.get(type_name, []):
            merged.update(self.props_for_type(base, seen))
        merged.update(self.prop_contracts.get(type_name, {}))
        return merged


class _Scanner:
    def __init__(self, parsed: ParsedSource, wrappers: Iterable[str]) -> None:
        self.parsed = parsed
        self.wrappers = frozenset(wrappers)
        self.contracts = FileContracts(path=parsed.path, parsed=parsed)

    def scan(self) -> FileContracts:
        root = self.parsed.root
        for statement in named_children(root):
            self._scan_top_level(statement)
        for node in iter_nodes(root):
            if node.type in _FUNCTION_DECLARATIONS or node.type in _FUNCTION_VALUES:
                self._scan_function(node)
            elif node.type in CLASS_TYPES:
                self._scan_class(node)
            elif node.type == "interface_declaration":
                self._scan_interface(node)
            elif node.type == "type_alias_declaration":
                self._scan_type_alias(node)
        return self.contracts

    # ------------------------------------------------------------------
    # Module structure

    def _scan_top_level(self, statement: Node) -> None:
        if statement.type == "import_statement":
            self._scan_import(statement)
        elif statement.type == "export_statement":
            self._scan_export(statement)
        else:
            self._record_declared(statement)

    def _record_declared(self, statement: Node) -> List[str]:
        names: List[str] = []
        if statement.type in _DECLARATION_TYPES:
            name_node = statement.child_by_field_name("name")
            if name_node is not None:
                names.append(self.parsed.text(name_node))
        elif statement.type in _VARIABLE_DECLARATIONS:
            for declarator in statement.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    names.append(self.parsed.text(name_node))
        self.contracts.declared_names.update(names)
        return names

    def _scan_import(self, statement: Node) -> None:
        source = string_value(statement.child_by_field_name("source"), self.parsed.source)
        if source is None:
            return
        clause = next((child for child in statement.named_children if child.type == "import_clause"), None)
        if clause is None:
            return
        for child in clause.named_children:
            if child.type == "identifier":
                self._add_import(self.parsed.text(child), "default", source)
            elif child.type == "namespace_import":
                alias = next((part for part in child.named_children if part.type == "identifier"), None)
                if alias is not None:
                    self._add_import(self.parsed.text(alias), "*", source)
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    name = self.parsed.text(specifier.child_by_field_name("name"))
                    alias_node = specifier.child_by_field_name("alias")
                    local = self.parsed.text(alias_node) if alias_node is not None else name
                    if name:
                        self._add_import(local, name.strip("'\""), source)

    def _add_import(self, local_name: str, imported_name: str, source: str) -> None:
        self.contracts.imports[local_name] = ImportBinding(
            local_name=local_name,
            imported_name=imported_name,
            source=source,
            importer=self.parsed.path,
        )

    def _scan_export(self, statement: Node) -> None:
        exports = self.contracts.exports
        source = string_value(statement.child_by_field_name("source"), self.parsed.source)
        is_default = any(child.type == "default" for child in statement.children)

        declaration = statement.child_by_field_name("declaration")
        if declaration is not None:
            names = self._record_declared(declaration)
            if is_default:
                local = names[0] if names else "default"
                exports["default"] = ExportEntry("default", local_name=local)
            for name in names:
                exports.setdefault(name, ExportEntry(name, local_name=name))
            return

        value = statement.child_by_field_name("value")
        if is_default and value is not None:
            exports["default"] = ExportEntry("default", local_name=self._default_export_name(value))
            return

        for child in statement.named_children:
            if child.type == "export_clause":
                for specifier in child.named_children:
                    if specifier.type != "export_specifier":
                        continue
                    name = self.parsed.text(specifier.child_by_field_name("name")).strip("'\"")
                    alias_node = specifier.child_by_field_name("alias")
                    exported = self.parsed.text(alias_node).strip("'\"") if alias_node is not None else name
                    if source is not None:
                        exports[exported] = ExportEntry(exported, source=source, imported_name=name)
                    else:
                        exports[exported] = ExportEntry(exported, local_name=name)
                return
            if child.type == "namespace_export" and source is not None:
                alias = next((part for part in child.named_children if part.type == "identifier"), None)
                if alias is not None:
                    name = self.parsed.text(alias)
                    exports[name] = ExportEntry(name, source=source, imported_name="*")
                return

        if source is not None:
            self.contracts.star_exports.append(source)

    def _default_export_name(self, value: Node) -> str:
        value = unwrap_expression(value) or value
        if value.type == "identifier":
            return self.parsed.text(value)
        if value.type == "call_expression" and self._is_wrapper_call(value):
            arguments = value.child_by_field_name("arguments")
            inner = first_named_child(arguments) if arguments is not None else None
            if inner is not None:
                return self._default_export_name(inner)
        name_node = value.child_by_field_name("name")
        if name_node is not None and value.type in _FUNCTION_VALUES | CLASS_TYPES:
            return self.parsed.text(name_node)
        return "default"

    # ------------------------------------------------------------------
    # Components

    def _is_wrapper_call(self, call: Node) -> bool:
        callee = call.child_by_field_name("function")
        return self.parsed.text(callee) in self.wrappers

    def _scan_function(self, node: Node) -> None:
        located = self._locate_component(node)
        if located is None:
            return
        name, statement, declarator = located
        if not is_component_name(name) and name != "default":
            return
        body = node.child_by_field_name("body")
        declaration = ComponentDeclaration(
            name=name,
            kind="function",
            node=node,
            statement=statement,
            body=body,
            props_type=self._function_props_type(node, declarator, name),
            name_node=(declarator or node).child_by_field_name("name"),
        )
        self._attach_annotations(declaration)
        self._add_component(declaration)

    def _locate_component(self, node: Node) -> Optional[Tuple[str, Node, Optional[Node]]]:
        if node.type in _FUNCTION_DECLARATIONS:
            name = self.parsed.text(node.child_by_field_name("name"))
            if not name:
                return None
            return name, _export_wrapper(node), None

        current = node
        parent = current.parent
        while parent is not None and parent.type in {"arguments", "parenthesized_expression"}:
            if parent.type == "parenthesized_expression":
                current, parent = parent, parent.parent
                continue
            call = parent.parent
            if call is None or call.type != "call_expression" or not self._is_wrapper_call(call):
                return None
            current, parent = call, call.parent

        if parent is None:
            return None
        if parent.type == "variable_declarator":
            if not _same_node(parent.child_by_field_name("value"), current):
                return None
            name_node = parent.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                return None
            holder = parent.parent
            statement = _export_wrapper(holder) if holder is not None else parent
            return self.parsed.text(name_node), statement, parent
        if parent.type == "export_statement":
            name_node = node.child_by_field_name("name")
            name = self.parsed.text(name_node) if name_node is not None else "default"
            return name, parent, None
        return None

    def _scan_class(self, node: Node) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            if node.parent is None or node.parent.type != "export_statement":
                return
            name = "default"
        else:
            name = self.parsed.text(name_node)
        if not is_component_name(name) and name != "default":
            return
        render = self._render_method(node)
        if render is None:
            return
        declaration = ComponentDeclaration(
            name=name,
            kind="class",
            node=node,
            statement=_export_wrapper(node),
            body=render.child_by_field_name("body"),
            props_type=self._class_props_type(node),
            name_node=name_node,
        )
        self._attach_annotations(declaration)
        self._add_component(declaration)

    def _render_method(self, node: Node) -> Optional[Node]:
        body = node.child_by_field_name("body")
        if body is None:
            return None
        for member in body.named_children:
            if member.type == "method_definition" and self.parsed.text(member.child_by_field_name("name")) == "render":
                return member
        return None

    def _attach_annotations(self, declaration: ComponentDeclaration) -> None:
        for text in self.parsed.comments.leading_text(declaration.statement):
            if declaration.annotation is None:
                annotation = parse_renders_annotation(text)
                if annotation is not None:
                    declaration.annotation = annotation
                    declaration.unchecked = is_unchecked_annotation(text)
            if declaration.transparent is None:
                declaration.transparent = parse_transparent_annotation(text)

    def _add_component(self, declaration: ComponentDeclaration) -> None:
        existing = self.contracts.components.get(declaration.name)
        if existing is not None:
            _LOGGER.debug(
                "Ignoring second declaration of %s in %s", declaration.name, self.parsed.path
            )
            return
        self.contracts.components[declaration.name] = declaration

    # ------------------------------------------------------------------
    # Props types

    def _function_props_type(self, node: Node, declarator: Optional[Node], name: str) -> Optional[str]:
        parameters = node.child_by_field_name("parameters")
        if parameters is not None:
            first = first_named_child(parameters)
            if first is not None:
                type_name = self._type_name(first.child_by_field_name("type"), name)
                if type_name:
                    return type_name
        if declarator is not None:
            annotation = declarator.child_by_field_name("type")
            arguments = _first_descendant(annotation, "type_arguments")
            if arguments is not None:
                return self._type_name(first_named_child(arguments), name)
        return None

    def _class_props_type(self, node: Node) -> Optional[str]:
        for child in node.named_children:
            if child.type != "class_heritage":
                continue
            arguments = _first_descendant(child, "type_arguments")
            if arguments is not None:
                return self._type_name(first_named_child(arguments), None)
        return None

    def _type_name(self, node: Optional[Node], owner: Optional[str]) -> Optional[str]:
        if node is None:
            return None
        if node.type == "type_annotation":
            node = first_named_child(node)
            if node is None:
                return None
        if node.type in {"type_identifier", "nested_type_identifier"}:
            return self.parsed.text(node)
        if node.type == "generic_type":
            return self.parsed.text(node.child_by_field_name("name")) or None
        if node.type == "object_type" and owner:
            # Inline props types are registered under the component name.
            self._collect_props(owner, node)
            return owner
        return None

    def _scan_interface(self, node: Node) -> None:
        name = self.parsed.text(node.child_by_field_name("name"))
        body = node.child_by_field_name("body")
        if not name or body is None:
            return
        for child in node.named_children:
            if child.type == "extends_type_clause":
                bases = [
                    self.parsed.text(base.child_by_field_name("name") or base)
                    if base.type == "generic_type"
                    else self.parsed.text(base)
                    for base in named_children(child)
                ]
                self.contracts.prop_bases.setdefault(name, []).extend(bases)
        self._collect_props(name, body)

    def _scan_type_alias(self, node: Node) -> None:
        name = self.parsed.text(node.child_by_field_name("name"))
        value = node.child_by_field_name("value")
        if not name or value is None:
            return
        if value.type == "union_type":
            members = _union_members(value, self.parsed)
            if members and len(members) > 1 and all(is_component_name(binding_of(m)) for m in members):
                self.contracts.type_aliases[name] = tuple(members)
            return
        if value.type == "object_type":
            self._collect_props(name, value)
        elif value.type == "intersection_type":
            for part in named_children(value):
                if part.type == "object_type":
                    self._collect_props(name, part)
                elif part.type in {"type_identifier", "generic_type"}:
                    base = self._type_name(part, None)
                    if base:
                        self.contracts.prop_bases.setdefault(name, []).append(base)

    def _collect_props(self, owner: str, body: Node) -> None:
        for member in body.named_children:
            if member.type != "property_signature":
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None or name_node.type not in _PROP_NAME_TYPES:
                continue
            prop_name = self.parsed.text(name_node).strip("'\"")
            for text in self.parsed.comments.leading_text(member):
                annotation = parse_renders_annotation(text)
                if annotation is not None:
                    self.contracts.prop_contracts.setdefault(owner, {})[prop_name] = annotation
                    break


def _same_node(left: Optional[Node], right: Optional[Node]) -> bool:
    if left is None or right is None:
        return False
    return (left.start_byte, left.end_byte, left.type) == (right.start_byte, right.end_byte, right.type)


def _export_wrapper(node: Node) -> Node:
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        return parent
    return node


def _first_descendant(node: Optional[Node], node_type: str) -> Optional[Node]:
    if node is None:
        return None
    return next(iter_nodes(node, (node_type,)), None)


def _union_members(node: Node, parsed: ParsedSource) -> Optional[List[str]]:
    members: List[str] = []
    for part in named_children(node):
        if part.type == "union_type":
            nested = _union_members(part, parsed)
            if nested is None:
                return None
            members.extend(nested)
        elif part.type in {"type_identifier", "nested_type_identifier"}:
            members.append(parsed.text(part))
        else:
            return None
    return members


def scan_source(
    parsed: ParsedSource, wrappers: Iterable[str] = DEFAULT_COMPONENT_WRAPPERS
) -> FileContracts:
    """Collect components, annotations, props contracts, imports and exports of one file."""
    return _Scanner(parsed, wrappers).scan()


class ContractMapBuilder:
    """Builds identity-aware render maps, reaching into other files through a session."""

    def __init__(self, session: "AnalysisSession", max_depth: int = 10) -> None:
        self.session = session
        self.max_depth = max_depth

    def expand_aliases(self, annotation: Annotation, contracts: FileContracts) -> Annotation:
        """Expand ``@renders {Alias}`` where ``type Alias = A | B`` into ``A | B``."""
        if annotation.is_union:
            return annotation
        expanded = contracts.type_aliases.get(annotation.component_name)
        if expanded is None:
            expanded = self.session.resolve_type_alias(contracts, annotation.component_name)
        if expanded:
            return annotation.with_targets(tuple(expanded))
        return annotation

    def entry_for(self, annotation: Annotation, contracts: FileContracts) -> RenderEntry:
        """A render entry whose target identities are resolved in ``contracts``' scope."""
        annotation = self.expand_aliases(annotation, contracts)
        type_ids = tuple(self.session.type_id_for(target, contracts) for target in annotation.targets)
        return RenderEntry(annotation=annotation, target_type_ids=type_ids)

    def build(self, contracts: FileContracts) -> RenderMap:
        render_map: RenderMap = {}
        for name, annotation in contracts.render_annotations.items():
            render_map[name] = self.entry_for(annotation, contracts)

        for local_name, binding in contracts.imports.items():
            if local_name in render_map:
                continue
            resolved = self.session.resolve_annotation(binding)
            if resolved is None:
                continue
            render_map[local_name] = resolved.as_entry()
            if resolved.origin is not None:
                self._pull_chain(render_map, resolved.origin, resolved.annotation.targets, self.max_depth)

        for entry in list(render_map.values()):
            self._pull_chain(render_map, contracts.path, entry.annotation.targets, self.max_depth)
        return render_map

    def _pull_chain(self, render_map: RenderMap, origin: str, targets: Sequence[str], depth: int) -> None:
        """Add contracts of chain hops that live in other files and are not imported here."""
        if depth <= 0:
            return
        origin_contracts = self.session.contracts_for(origin)
        if origin_contracts is None:
            return
        for target in targets:
            if target in render_map:
                continue
            resolved = self.session.resolve_local_annotation(origin_contracts, target)
            if resolved is None:
                continue
            render_map[target] = resolved.as_entry()
            if resolved.origin is not None:
                self._pull_chain(render_map, resolved.origin, resolved.annotation.targets, depth - 1)

    def prop_contracts(self, contracts: FileContracts, element_name: str) -> Dict[str, RenderEntry]:
        """Prop contracts that apply to a JSX element named ``element_name``."""
        declaration = contracts.components.get(element_name)
        if declaration is not None and declaration.props_type:
            props = self.session.props_for_type(contracts, declaration.props_type)
            if props:
                return {name: self.entry_for(annotation, owner) for name, (annotation, owner) in props.items()}

        for candidate in (f"{element_name}Props", element_name, f"I{element_name}Props"):
            props = contracts.props_for_type(candidate)
            if props:
                return {name: self.entry_for(annotation, contracts) for name, annotation in props.items()}

        if declaration is None:
            return self.session.resolve_prop_contracts(contracts, element_name)
        return {}

    def transparent_registry(
        self, contracts: FileContracts, base: Optional[TransparentRegistry] = None
    ) -> TransparentRegistry:
        """``base`` plus local and imported ``@transparent`` components."""
        registry = base if base is not None else TransparentRegistry()
        entries: Dict[str, FrozenSet[str]] = dict(contracts.transparent_components)
        for local_name, binding in contracts.imports.items():
            if local_name in entries:
                continue
            props = self.session.resolve_transparent(binding)
            if props is not None:
                entries[local_name] = props
        return registry.extended(entries)


__all__ = [
    "ComponentDeclaration",
    "ContractMapBuilder",
    "DEFAULT_COMPONENT_WRAPPERS",
    "ExportEntry",
    "FileContracts",
    "scan_source",
]
