"""CLI entrypoints for rendertypes commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List

from .config import ConfigError, load_config
from .linter import Linter, LintReport
from .logging import configure_logging
from .rules import discover_rules


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rendertypes",
        description="Verify @renders contracts in React TypeScript/JavaScript sources.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Check files or directories and report contract violations.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    check_parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Files or directories to check (defaults to current directory).",
    )
    check_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .rendertypes.yml or the directory holding it.",
    )
    check_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format for diagnostics.",
    )
    check_parser.add_argument(
        "--rule",
        action="append",
        dest="rules",
        default=None,
        help="Only run the named rule (repeatable).",
    )
    check_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )

    rules_parser = subparsers.add_parser("rules", help="List available rules.")
    _add_verbose_option(rules_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for rendertypes commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=getattr(args, "format", "text") == "json",
        log_file=getattr(args, "log_file", None),
    )

    if args.command == "rules":
        for rule in discover_rules():
            print(f"{rule.name} ({rule.default_severity}): {rule.description}")
        return

    if args.command == "check":
        config_path = args.config if args.config is not None else Path(args.paths[0])
        if config_path.is_file() and config_path.suffix not in {".yml", ".yaml"}:
            config_path = config_path.parent
        try:
            config = load_config(config_path)
            rules = discover_rules(args.rules) if args.rules else None
            report = Linter(config, rules=rules).lint_paths(args.paths)
        except ConfigError as exc:
            parser.exit(2, f"Invalid configuration: {exc}\n")
        except (FileNotFoundError, NotADirectoryError, ValueError) as exc:
            parser.exit(2, f"{exc}\n")
        if args.format == "json":
            print(json.dumps(report.as_dict(), indent=2))
        else:
            print(_format_text(report))
        if report.has_errors:
            parser.exit(1)
        return

    parser.exit(1, "Unknown command\n")  # pragma: no cover - argparse enforces choices


def _format_text(report: LintReport) -> str:
    lines: List[str] = []
    current = None
    for item in report.diagnostics:
        if item.path != current:
            if current is not None:
                lines.append("")
            lines.append(_relativize(Path(item.path)))
            current = item.path
        lines.append(f"  {item.line}:{item.column}  {item.severity:<7}  {item.message}  {item.rule}")
    if lines:
        lines.append("")
    total = len(report.diagnostics)
    lines.append(
        f"{total} problem{'s' if total != 1 else ''} "
        f"({report.error_count} error{'s' if report.error_count != 1 else ''}, "
        f"{report.warning_count} warning{'s' if report.warning_count != 1 else ''})"
    )
    return "\n".join(lines)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
