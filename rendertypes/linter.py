"""Runs the rule set over a set of source paths."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import RenderTypesConfig
from .logging import get_logger
from .models import Diagnostic
from .rules import FileAnalysis, Rule, RuleContext, discover_rules
from .rules.base import SEVERITIES, sorted_diagnostics
from .scanner import SourceScanner
from .session import AnalysisSession
from .syntax import SourceParser


@dataclass
class LintReport:
    """Diagnostics of one lint run."""

    files: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for item in self.diagnostics if item.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for item in self.diagnostics if item.severity == "warning")

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def by_rule(self) -> Dict[str, int]:
        return dict(Counter(item.rule for item in self.diagnostics))

    def as_dict(self) -> Dict[str, object]:
        return {
            "files": list(self.files),
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "diagnostics": [
                {
                    "rule": item.rule,
                    "messageId": item.message_id,
                    "message": item.message,
                    "path": item.path,
                    "line": item.line,
                    "column": item.column,
                    "severity": item.severity,
                    "data": dict(item.data),
                }
                for item in self.diagnostics
            ],
        }


class Linter:
    """Coordinates discovery, parsing and rules for one run."""

    def __init__(
        self,
        config: RenderTypesConfig,
        *,
        rules: Optional[Sequence[Rule]] = None,
        parser: Optional[SourceParser] = None,
    ) -> None:
        self.config = config
        self.rules = list(rules) if rules is not None else discover_rules()
        self.parser = parser or SourceParser()
        self.logger = get_logger("linter")

    def severity_for(self, rule: Rule) -> str:
        severity = self.config.rules.get(rule.name, rule.default_severity)
        return severity if severity in SEVERITIES else rule.default_severity

    def lint_paths(self, paths: Sequence[str | Path]) -> LintReport:
        """Lint every source file under ``paths``."""
        scanner = SourceScanner(self.config.exclude_paths)
        files = scanner.scan(paths or [self.config.root])
        self.logger.debug("Linting %d file(s) with %d rule(s)", len(files), len(self.rules))
        report = LintReport(files=[str(path) for path in files])

        with self._session() as session:
            for path in files:
                report.diagnostics.extend(self._lint_file(session, path))

        report.diagnostics = sorted_diagnostics(report.diagnostics)
        self.logger.info(
            "Checked %d file(s): %d error(s), %d warning(s)",
            len(files),
            report.error_count,
            report.warning_count,
        )
        return report

    def lint_source(self, path: str | Path, text: str) -> List[Diagnostic]:
        """Lint in-memory ``text`` as if it were stored at ``path``."""
        with self._session() as session:
            session.add_source(path, text)
            return sorted_diagnostics(self._lint_file(session, Path(path)))

    def _session(self) -> AnalysisSession:
        return AnalysisSession(
            parser=self.parser,
            base_paths=self.config.base_paths,
            wrappers=self.config.wrappers(),
            max_hops=self.config.max_depth,
        )

    def _lint_file(self, session: AnalysisSession, path: Path) -> Iterable[Diagnostic]:
        contracts = session.contracts_for(path)
        if contracts is None:
            self.logger.warning("Skipping unreadable file %s", path)
            return []
        analysis = FileAnalysis(
            contracts,
            session,
            transparent=self.config.transparent_registry(),
            max_depth=self.config.max_depth,
        )
        diagnostics: List[Diagnostic] = []
        for rule in self.rules:
            severity = self.severity_for(rule)
            if severity == "off":
                continue
            diagnostics.extend(rule.check(RuleContext(analysis, rule, severity)))
        return diagnostics


__all__ = ["LintReport", "Linter"]
