"""Tests for rendertypes.annotations."""

from __future__ import annotations

import pytest

from rendertypes.annotations import (
    binding_of,
    is_component_name,
    is_unchecked_annotation,
    parse_renders_annotation,
    parse_transparent_annotation,
    parse_union,
)
from rendertypes.models import Modifier


def test_parse_required_annotation() -> None:
    annotation = parse_renders_annotation("/** @renders {Header} */")

    assert annotation is not None
    assert annotation.modifier is Modifier.REQUIRED
    assert annotation.targets == ("Header",)
    assert annotation.component_name == "Header"
    assert annotation.raw == "@renders {Header}"


@pytest.mark.parametrize(
    ("comment", "modifier"),
    [
        ("/** @renders? {Header} */", Modifier.OPTIONAL),
        ("/** @renders* {Header} */", Modifier.MANY),
        ("// @renders {Header}", Modifier.REQUIRED),
    ],
)
def test_parse_modifiers(comment: str, modifier: Modifier) -> None:
    annotation = parse_renders_annotation(comment)
    assert annotation is not None
    assert annotation.modifier is modifier


def test_parse_union_and_namespaced_targets() -> None:
    annotation = parse_renders_annotation("/** @renders {Menu.Item | Divider} */")

    assert annotation is not None
    assert annotation.targets == ("Menu.Item", "Divider")
    assert annotation.is_union is True
    assert annotation.display == "Menu.Item | Divider"


def test_parse_dedupes_repeated_union_members() -> None:
    annotation = parse_renders_annotation("/** @renders {Tab | Tab} */")
    assert annotation is not None
    assert annotation.targets == ("Tab",)


def test_parse_annotation_inside_multiline_jsdoc() -> None:
    comment = """/**
     * Primary navigation entry.
     * @renders {NavItem}
     */"""
    annotation = parse_renders_annotation(comment)
    assert annotation is not None
    assert annotation.targets == ("NavItem",)


@pytest.mark.parametrize(
    "comment",
    [
        None,
        "",
        "/** plain comment */",
        "/** @renders Header */",
        "/** @renders {header} */",
        "/** @renders {} */",
        "/** @renders {Header | } */",
        "/** pre@renders {Header} */",
    ],
)
def test_parse_rejects_invalid_annotations(comment) -> None:
    assert parse_renders_annotation(comment) is None


def test_unchecked_marker_still_parses_contract() -> None:
    comment = "/** @renders! {Header} */"

    annotation = parse_renders_annotation(comment)

    assert annotation is not None
    assert annotation.targets == ("Header",)
    assert is_unchecked_annotation(comment) is True
    assert is_unchecked_annotation("/** @renders {Header} */") is False


def test_parse_union_rejects_invalid_members() -> None:
    assert parse_union("A | B.C") == ["A", "B.C"]
    assert parse_union("A | b") is None


def test_allows_nothing_follows_modifier() -> None:
    optional = parse_renders_annotation("/** @renders? {Header} */")
    required = parse_renders_annotation("/** @renders {Header} */")
    assert optional is not None and optional.allows_nothing()
    assert required is not None and not required.allows_nothing()


def test_parse_transparent_defaults_to_children() -> None:
    annotation = parse_transparent_annotation("/** @transparent */")
    assert annotation is not None
    assert annotation.props == frozenset({"children"})


def test_parse_transparent_with_named_props() -> None:
    annotation = parse_transparent_annotation("/** @transparent {header, footer} */")
    assert annotation is not None
    assert annotation.props == frozenset({"header", "footer"})


@pytest.mark.parametrize(
    "comment",
    ["/** nothing here */", "/** @transparent {} */", "/** @transparent {1bad} */", "/** @transparentish */"],
)
def test_parse_transparent_rejects_invalid_forms(comment: str) -> None:
    assert parse_transparent_annotation(comment) is None


def test_component_name_helpers() -> None:
    assert is_component_name("Header") is True
    assert is_component_name("header") is False
    assert is_component_name("") is False
    assert binding_of("Menu.Item") == "Menu"
