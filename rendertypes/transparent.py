"""Registry of transparent wrapper components."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional

CHILDREN = "children"

_DEFAULT_PROPS: FrozenSet[str] = frozenset({CHILDREN})

BUILTIN_TRANSPARENT_COMPONENTS = (
    "Fragment",
    "React.Fragment",
    "Suspense",
    "React.Suspense",
    "StrictMode",
    "React.StrictMode",
    "Profiler",
    "React.Profiler",
)


class TransparentRegistry(Mapping[str, FrozenSet[str]]):
    """Maps a component name to the props whose content passes through it."""

    def __init__(
        self,
        entries: Optional[Mapping[str, Iterable[str]]] = None,
        *,
        include_builtins: bool = True,
    ) -> None:
        self._entries: Dict[str, FrozenSet[str]] = {}
        if include_builtins:
            for name in BUILTIN_TRANSPARENT_COMPONENTS:
                self._entries[name] = _DEFAULT_PROPS
        for name, props in (entries or {}).items():
            self._entries[name] = frozenset(props) or _DEFAULT_PROPS

    def __getitem__(self, name: str) -> FrozenSet[str]:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def is_transparent(self, name: Optional[str]) -> bool:
        return name is not None and name in self._entries

    def props_for(self, name: str) -> FrozenSet[str]:
        """Return pass-through props for ``name``; empty when not transparent."""
        return self._entries.get(name, frozenset())

    def extended(self, entries: Mapping[str, Iterable[str]]) -> "TransparentRegistry":
        """Return a copy with ``entries`` added; existing names are kept."""
        merged: Dict[str, FrozenSet[str]] = dict(self._entries)
        for name, props in entries.items():
            merged.setdefault(name, frozenset(props) or _DEFAULT_PROPS)
        return TransparentRegistry(merged, include_builtins=False)

    @classmethod
    def from_settings(cls, items: Iterable[object]) -> "TransparentRegistry":
        """Build a registry from configured entries.

        Bare strings default to ``children``; mappings must carry a non-empty
        ``name`` and a list of non-empty ``props``. Anything else is ignored.
        """
        entries: Dict[str, FrozenSet[str]] = {}
        for item in items:
            if isinstance(item, str) and item:
                entries[item] = _DEFAULT_PROPS
            elif isinstance(item, Mapping):
                name = item.get("name")
                props = item.get("props")
                if not isinstance(name, str) or not name:
                    continue
                if not isinstance(props, (list, tuple)):
                    continue
                if not all(isinstance(prop, str) and prop for prop in props):
                    continue
                entries[name] = frozenset(props)
        return cls(entries)


__all__ = ["BUILTIN_TRANSPARENT_COMPONENTS", "CHILDREN", "TransparentRegistry"]
