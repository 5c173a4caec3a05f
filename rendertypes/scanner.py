"""Source discovery for lint runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .logging import get_logger
from .syntax import language_for_path

_LOGGER = get_logger("scanner")

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    ".next",
    ".turbo",
    ".cache",
    "coverage",
    "dist",
    "build",
}

_DECLARATION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or exclude_paths."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        target = rel_path
        if self.anchored or self.has_slash:
            if fnmatchcase(target, self.pattern):
                return True
            if self.directory_only and target.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in target.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    has_slash = "/" in pattern
    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash=has_slash,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def load_ignore_rules(root: Path, exclude_paths: Iterable[str] = ()) -> List[IgnoreRule]:
    """``.gitignore`` rules of ``root`` followed by the configured excludes."""
    rules = parse_gitignore(root / ".gitignore")
    for pattern in exclude_paths:
        rule = build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def is_source_file(path: Path) -> bool:
    """True for TS/JS sources; declaration files carry no components."""
    name = path.name.lower()
    if name.endswith(_DECLARATION_SUFFIXES):
        return False
    return language_for_path(name) is not None


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)

        filtered_dirs = []
        for name in dirnames:
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            filtered_dirs.append(name)
        dirnames[:] = filtered_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            path = current_dir / filename
            if is_source_file(path):
                yield path


class SourceScanner:
    """Expands lint targets into the TS/JS source files they contain."""

    def __init__(self, exclude_paths: Iterable[str] = ()) -> None:
        self.exclude_paths = list(exclude_paths)

    def scan(self, targets: Sequence[str | Path]) -> List[Path]:
        """Return source files under ``targets`` in a stable order, without duplicates."""
        found: List[Path] = []
        seen = set()
        for target in targets:
            for path in self._expand(Path(target)):
                if path not in seen:
                    seen.add(path)
                    found.append(path)
        _LOGGER.debug("Discovered %d source file(s)", len(found))
        return found

    def _expand(self, target: Path) -> Iterator[Path]:
        target = target.expanduser().resolve()
        if not target.exists():
            raise FileNotFoundError(f"Path not found: {target}")
        if target.is_file():
            # Explicitly named files are linted even when an ignore rule matches.
            if is_source_file(target):
                yield target
            return
        if not target.is_dir():
            raise NotADirectoryError(f"Path is not a file or directory: {target}")
        rules = load_ignore_rules(target, self.exclude_paths)
        yield from _iter_files(target, rules)


__all__ = [
    "IgnoreRule",
    "SourceScanner",
    "build_ignore_rule",
    "is_source_file",
    "load_ignore_rules",
    "parse_gitignore",
]
