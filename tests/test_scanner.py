"""Tests for source discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from rendertypes.scanner import SourceScanner, build_ignore_rule, is_source_file, load_ignore_rules


def _relative(paths, root: Path) -> list:
    return [path.relative_to(root.resolve()).as_posix() for path in paths]


def test_scan_collects_sources_in_stable_order(project) -> None:
    project.write(
        {
            "src/App.tsx": "export const App = () => <div />;\n",
            "src/util.js": "export const x = 1;\n",
            "src/types.d.ts": "declare const x: number;\n",
            "src/styles.css": "body {}\n",
            "index.mts": "export {};\n",
            "node_modules/lib/index.js": "module.exports = {};\n",
            "dist/bundle.js": "void 0;\n",
        }
    )

    files = SourceScanner().scan([project.path()])

    assert _relative(files, project.path()) == ["index.mts", "src/App.tsx", "src/util.js"]


def test_scan_honours_gitignore_and_exclude_paths(project) -> None:
    project.write(
        {
            ".gitignore": "generated/\n*.stories.tsx\n!Keep.stories.tsx\n",
            "generated/Api.ts": "export {};\n",
            "legacy/Old.tsx": "export {};\n",
            "src/Button.tsx": "export {};\n",
            "src/Button.stories.tsx": "export {};\n",
            "src/Keep.stories.tsx": "export {};\n",
        }
    )

    files = SourceScanner(exclude_paths=["/legacy"]).scan([project.path()])

    assert _relative(files, project.path()) == ["src/Button.tsx", "src/Keep.stories.tsx"]


def test_explicit_files_are_included_once(project) -> None:
    project.write({"src/Button.tsx": "export {};\n", ".gitignore": "src/\n"})
    target = project.path("src/Button.tsx")

    files = SourceScanner().scan([target, target, project.path()])

    assert files == [target.resolve()]


def test_missing_targets_raise(project) -> None:
    with pytest.raises(FileNotFoundError):
        SourceScanner().scan([project.path("missing")])


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("App.tsx", True),
        ("App.jsx", True),
        ("app.cjs", True),
        ("types.d.ts", False),
        ("README.md", False),
    ],
)
def test_is_source_file(name: str, expected: bool) -> None:
    assert is_source_file(Path(name)) is expected


def test_ignore_rules_anchor_and_directory_matching(tmp_path: Path) -> None:
    rules = load_ignore_rules(tmp_path, ["build-output/", "/root-only.ts"])

    directory_rule, anchored_rule = rules
    assert directory_rule.matches("packages/build-output", is_dir=True)
    assert not directory_rule.matches("build-output", is_dir=False)
    assert anchored_rule.matches("root-only.ts", is_dir=False)
    assert not anchored_rule.matches("nested/root-only.ts", is_dir=False)
    assert build_ignore_rule("   ") is None
