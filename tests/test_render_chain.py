"""Tests for rendertypes.render_chain."""

from __future__ import annotations

from rendertypes.annotations import parse_renders_annotation
from rendertypes.models import RenderEntry
from rendertypes.render_chain import (
    can_render_component,
    can_render_component_typed,
    format_render_chain,
    resolve_render_chain,
)


def _map(**annotations: str) -> dict:
    render_map = {}
    for name, comment in annotations.items():
        annotation = parse_renders_annotation(comment)
        assert annotation is not None
        render_map[name] = annotation
    return render_map


def test_direct_match_needs_no_annotations() -> None:
    assert can_render_component("Header", "Header", {}) is True
    assert can_render_component("Footer", "Header", {}) is False


def test_single_hop_and_transitive_chain() -> None:
    render_map = _map(
        MyHeader="@renders {Header}",
        CustomHeader="@renders {MyHeader}",
    )

    assert can_render_component("MyHeader", "Header", render_map) is True
    assert can_render_component("CustomHeader", "Header", render_map) is True
    assert can_render_component("Header", "CustomHeader", render_map) is False
    assert resolve_render_chain("CustomHeader", render_map) == ["MyHeader", "Header"]
    assert format_render_chain("CustomHeader", render_map) == "CustomHeader -> MyHeader -> Header"


def test_expected_union_accepts_any_member() -> None:
    render_map = _map(NavLink="@renders {NavItem}")

    assert can_render_component("NavLink", ["NavGroup", "NavItem"], render_map) is True
    assert can_render_component("NavSection", ["NavGroup", "NavItem"], render_map) is False


def test_union_hops_branch_over_every_member() -> None:
    render_map = _map(
        Slot="@renders {Primary | Secondary}",
        Secondary="@renders {Button}",
    )

    assert can_render_component("Slot", "Button", render_map) is True
    assert resolve_render_chain("Slot", render_map) == ["Primary", "Secondary", "Button"]


def test_cycles_end_without_match() -> None:
    render_map = _map(A="@renders {B}", B="@renders {A}")

    assert can_render_component("A", "C", render_map) is False
    assert resolve_render_chain("A", render_map) == ["B"]


def test_self_reference_is_a_cycle() -> None:
    render_map = _map(Loop="@renders {Loop}")
    assert can_render_component("Loop", "Header", render_map) is False


def test_depth_limit_stops_long_chains() -> None:
    render_map = _map(
        C1="@renders {C2}",
        C2="@renders {C3}",
        C3="@renders {C4}",
        C4="@renders {Target}",
    )

    assert can_render_component("C1", "Target", render_map, max_depth=4) is True
    assert can_render_component("C1", "Target", render_map, max_depth=3) is False
    assert resolve_render_chain("C1", render_map, max_depth=2) == ["C2", "C3"]


def test_render_entries_are_accepted() -> None:
    annotation = parse_renders_annotation("@renders {Header}")
    assert annotation is not None
    render_map = {"MyHeader": RenderEntry(annotation=annotation)}

    assert can_render_component("MyHeader", "Header", render_map) is True


def test_typed_identity_distinguishes_same_named_components() -> None:
    annotation = parse_renders_annotation("@renders {Header}")
    assert annotation is not None
    render_map = {
        "MyHeader": RenderEntry(annotation=annotation, target_type_ids=("/ui/Header.tsx:Header",)),
    }

    assert can_render_component_typed(
        "MyHeader",
        "Header",
        render_map,
        actual_type_id="/app/MyHeader.tsx:MyHeader",
        expected_type_ids=("/ui/Header.tsx:Header",),
    )
    assert not can_render_component_typed(
        "MyHeader",
        "Header",
        render_map,
        actual_type_id="/app/MyHeader.tsx:MyHeader",
        expected_type_ids=("/legacy/Header.tsx:Header",),
    )
    assert not can_render_component_typed(
        "Header",
        "Header",
        {},
        actual_type_id="/legacy/Header.tsx:Header",
        expected_type_ids=("/ui/Header.tsx:Header",),
    )


def test_typed_check_falls_back_to_names_without_identities() -> None:
    render_map = _map(MyHeader="@renders {Header}")

    assert can_render_component_typed("MyHeader", "Header", render_map) is True
    assert can_render_component_typed(
        "Header", "Header", {}, actual_type_id=None, expected_type_ids=(None,)
    ) is True


def test_typed_check_compares_names_when_one_side_is_unknown() -> None:
    assert can_render_component_typed(
        "Header", "Header", {}, actual_type_id="/ui/Header.tsx:Header", expected_type_ids=(None,)
    ) is True
