"""Cross-file contract resolution scoped to one analysis session.

A session owns every memoized lookup: parsed file contracts, annotations
resolved through imports and barrel re-exports, transparent markers and
prop contracts. Entries are written once and never updated. Disposing the
session drops them all, so nothing leaks between unrelated runs.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from .annotations import binding_of
from .contracts import DEFAULT_COMPONENT_WRAPPERS, ContractMapBuilder, FileContracts, scan_source
from .logging import get_logger
from .models import Annotation, ComponentTypeId, ImportBinding, RenderEntry, ResolvedAnnotation
from .syntax import SourceParser

_LOGGER = get_logger("session")

DEFAULT_MAX_HOPS = 10

_RESOLVE_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js", ".d.ts", ".mts", ".mjs")
_JS_TO_TS = {".js": (".ts", ".tsx"), ".jsx": (".tsx",), ".mjs": (".mts",)}

Origin = Tuple[FileContracts, str]


class SessionClosedError(RuntimeError):
    """Raised when a disposed session is used."""


def _normalise(path: str | Path) -> str:
    return os.path.normpath(os.path.abspath(str(path)))


class AnalysisSession:
    """Resolves contracts declared in other files for the duration of one run."""

    def __init__(
        self,
        *,
        parser: Optional[SourceParser] = None,
        base_paths: Iterable[str | Path] = (),
        sources: Optional[Mapping[str | Path, str]] = None,
        wrappers: Iterable[str] = DEFAULT_COMPONENT_WRAPPERS,
        max_hops: int = DEFAULT_MAX_HOPS,
    ) -> None:
        self._parser = parser or SourceParser()
        self._base_paths = [_normalise(path) for path in base_paths]
        self._sources: Dict[str, str] = {_normalise(path): text for path, text in (sources or {}).items()}
        self._wrappers = tuple(wrappers)
        self.max_hops = max_hops
        self._contracts: Dict[str, Optional[FileContracts]] = {}
        self._annotations: Dict[str, Optional[ResolvedAnnotation]] = {}
        self._transparent: Dict[str, Optional[FrozenSet[str]]] = {}
        self._props: Dict[str, Dict[str, RenderEntry]] = {}
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle

    def __enter__(self) -> "AnalysisSession":
        self._ensure_open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def closed(self) -> bool:
        return self._closed

    def clear(self) -> None:
        """Forget every memoized lookup; the session stays usable."""
        self._contracts.clear()
        self._annotations.clear()
        self._transparent.clear()
        self._props.clear()

    def dispose(self) -> None:
        """Release all cached state. Further use raises :class:`SessionClosedError`."""
        self.clear()
        self._sources.clear()
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Analysis session has been disposed")

    def add_source(self, path: str | Path, text: str) -> None:
        """Supply in-memory text for ``path``; it takes precedence over the file on disk."""
        self._ensure_open()
        self._sources[_normalise(path)] = text
        self.clear()

    # ------------------------------------------------------------------
    # Files and modules

    def contracts_for(self, path: str | Path) -> Optional[FileContracts]:
        """Parsed contracts of ``path``, read through the cache."""
        self._ensure_open()
        key = _normalise(path)
        if key in self._contracts:
            return self._contracts[key]
        text = self._read(key)
        contracts = None
        if text is not None:
            parsed = self._parser.parse(key, text)
            contracts = scan_source(parsed, self._wrappers)
        self._contracts[key] = contracts
        return contracts

    def _read(self, key: str) -> Optional[str]:
        if key in self._sources:
            return self._sources[key]
        try:
            return Path(key).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            _LOGGER.debug("Unable to read %s: %s", key, exc)
            return None

    def _exists(self, key: str) -> bool:
        return key in self._sources or os.path.isfile(key)

    def resolve_module(self, importer: str, specifier: str) -> Optional[str]:
        """Resolve an import specifier to a source path, or None."""
        if specifier.startswith("."):
            bases = [os.path.join(os.path.dirname(_normalise(importer)), specifier)]
        else:
            bases = [os.path.join(base, specifier) for base in self._base_paths]
        for base in bases:
            for candidate in self._candidates(_normalise(base)):
                if self._exists(candidate):
                    return candidate
        _LOGGER.debug("Could not resolve module %r imported from %s", specifier, importer)
        return None

    @staticmethod
    def _candidates(base: str) -> List[str]:
        candidates: List[str] = []
        stem, suffix = os.path.splitext(base)
        if suffix in _RESOLVE_EXTENSIONS:
            candidates.append(base)
        for replacement in _JS_TO_TS.get(suffix, ()):
            candidates.append(stem + replacement)
        candidates.extend(base + extension for extension in _RESOLVE_EXTENSIONS)
        candidates.extend(os.path.join(base, "index" + extension) for extension in _RESOLVE_EXTENSIONS)
        return candidates

    # ------------------------------------------------------------------
    # Symbol origins

    def resolve_export(
        self,
        path: str,
        name: str,
        depth: Optional[int] = None,
        _seen: Optional[Set[Tuple[str, str]]] = None,
    ) -> Optional[Origin]:
        """Follow re-export chains from ``path`` to the file that declares ``name``."""
        remaining = self.max_hops if depth is None else depth
        seen = _seen if _seen is not None else set()
        if remaining <= 0 or (path, name) in seen:
            return None
        seen.add((path, name))

        contracts = self.contracts_for(path)
        if contracts is None:
            return None

        entry = contracts.exports.get(name)
        if entry is not None:
            if entry.is_reexport:
                target = self.resolve_module(path, entry.source or "")
                if target is None:
                    return None
                if entry.imported_name == "*":
                    target_contracts = self.contracts_for(target)
                    return (target_contracts, "*") if target_contracts is not None else None
                return self.resolve_export(target, entry.imported_name or name, remaining - 1, seen)
            return self._follow_local(contracts, entry.local_name or name, remaining, seen)

        if name == "default":
            return None
        for source in contracts.star_exports:
            target = self.resolve_module(path, source)
            if target is None:
                continue
            origin = self.resolve_export(target, name, remaining - 1, seen)
            if origin is not None:
                return origin
        return None

    def _follow_local(
        self, contracts: FileContracts, local_name: str, depth: int, seen: Set[Tuple[str, str]]
    ) -> Optional[Origin]:
        binding = contracts.imports.get(local_name)
        if binding is not None:
            return self._resolve_binding(binding, depth - 1, seen)
        return contracts, local_name

    def _resolve_binding(
        self, binding: ImportBinding, depth: int, seen: Set[Tuple[str, str]]
    ) -> Optional[Origin]:
        target = self.resolve_module(binding.importer, binding.source)
        if target is None:
            return None
        if binding.imported_name == "*":
            contracts = self.contracts_for(target)
            return (contracts, "*") if contracts is not None else None
        return self.resolve_export(target, binding.imported_name, depth, seen)

    def resolve_binding(self, binding: ImportBinding) -> Optional[Origin]:
        """The declaring file and symbol behind an import binding."""
        self._ensure_open()
        return self._resolve_binding(binding, self.max_hops, set())

    def resolve_reference(self, contracts: FileContracts, name: str) -> Optional[Origin]:
        """Where a (possibly dotted) name used in ``contracts`` is declared."""
        binding_name, _, member = name.partition(".")
        binding = contracts.imports.get(binding_name)
        if binding is not None:
            origin = self.resolve_binding(binding)
            if origin is None:
                return None
            origin_contracts, symbol = origin
            if symbol != "*":
                return origin_contracts, f"{symbol}.{member}" if member else symbol
            if not member:
                return None
            first, _, rest = member.partition(".")
            inner = self.resolve_export(origin_contracts.path, first)
            if inner is None:
                return None
            return inner[0], f"{inner[1]}.{rest}" if rest else inner[1]
        if binding_name in contracts.declared_names or name in contracts.components:
            return contracts, name
        return None

    def type_id_for(self, name: str, contracts: FileContracts) -> Optional[ComponentTypeId]:
        """Identity of ``name`` as seen from ``contracts``, or None when unknown."""
        origin = self.resolve_reference(contracts, name)
        if origin is not None:
            return f"{origin[0].path}:{origin[1]}"
        binding = contracts.imports.get(binding_of(name))
        if binding is not None and not binding.source.startswith("."):
            # Package imports are identified by their module specifier.
            _, _, member = name.partition(".")
            symbol = binding.imported_name if binding.imported_name != "*" else ""
            qualified = ".".join(part for part in (symbol, member) if part)
            return f"{binding.source}:{qualified}"
        return None

    # ------------------------------------------------------------------
    # Contract lookups

    def _annotation_at(self, origin: Origin) -> Optional[ResolvedAnnotation]:
        contracts, symbol = origin
        key = f"{contracts.path}:{symbol}"
        if key in self._annotations:
            return self._annotations[key]
        resolved = None
        declaration = contracts.components.get(symbol)
        if declaration is not None and declaration.annotation is not None:
            entry = ContractMapBuilder(self, self.max_hops).entry_for(declaration.annotation, contracts)
            resolved = ResolvedAnnotation(
                annotation=entry.annotation,
                type_id=key,
                target_type_ids=entry.target_type_ids,
                origin=contracts.path,
            )
        self._annotations[key] = resolved
        return resolved

    def resolve_annotation(self, binding: ImportBinding) -> Optional[ResolvedAnnotation]:
        """The ``@renders`` contract of an imported component, or None."""
        origin = self.resolve_binding(binding)
        if origin is None or origin[1] == "*":
            return None
        return self._annotation_at(origin)

    def resolve_local_annotation(self, contracts: FileContracts, name: str) -> Optional[ResolvedAnnotation]:
        """The contract of ``name`` as visible from ``contracts`` (local or imported)."""
        origin = self.resolve_reference(contracts, name)
        if origin is None:
            return None
        return self._annotation_at(origin)

    def resolve_transparent(self, binding: ImportBinding) -> Optional[FrozenSet[str]]:
        """Pass-through props of an imported ``@transparent`` component, or None."""
        origin = self.resolve_binding(binding)
        if origin is None or origin[1] == "*":
            return None
        contracts, symbol = origin
        key = f"{contracts.path}:{symbol}"
        if key not in self._transparent:
            declaration = contracts.components.get(symbol)
            self._transparent[key] = (
                declaration.transparent.props
                if declaration is not None and declaration.transparent is not None
                else None
            )
        return self._transparent[key]

    def resolve_type_alias(self, contracts: FileContracts, name: str) -> Optional[Tuple[str, ...]]:
        """Members of an imported union type alias used as a contract target."""
        origin = self.resolve_reference(contracts, name)
        if origin is None or origin[0] is contracts:
            return None
        return origin[0].type_aliases.get(origin[1])

    def props_for_type(
        self, contracts: FileContracts, type_name: str
    ) -> Dict[str, Tuple[Annotation, FileContracts]]:
        """Prop contracts of a props type, following an import of the type when needed."""
        local = contracts.props_for_type(type_name)
        if local:
            return {name: (annotation, contracts) for name, annotation in local.items()}
        origin = self.resolve_reference(contracts, type_name)
        if origin is None or origin[0] is contracts:
            return {}
        owner, symbol = origin
        return {name: (annotation, owner) for name, annotation in owner.props_for_type(symbol).items()}

    def resolve_prop_contracts(self, contracts: FileContracts, element_name: str) -> Dict[str, RenderEntry]:
        """Prop contracts of a component declared in another file."""
        origin = self.resolve_reference(contracts, element_name)
        if origin is None or origin[0] is contracts:
            return {}
        owner, symbol = origin
        key = f"{owner.path}:{symbol}"
        if key not in self._props:
            self._props[key] = ContractMapBuilder(self, self.max_hops).prop_contracts(owner, symbol)
        return self._props[key]


__all__ = ["AnalysisSession", "DEFAULT_MAX_HOPS", "SessionClosedError"]
