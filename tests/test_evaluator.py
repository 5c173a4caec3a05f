"""Tests for rendertypes.evaluator."""

from __future__ import annotations

import textwrap

import pytest
from tree_sitter import Node

from rendertypes.evaluator import (
    collect_returns,
    evaluate_expression,
    extract_child_element_names,
    unwrap_element,
)
from rendertypes.syntax import JSX_ELEMENT_TYPES, ParsedSource, SourceParser, iter_nodes, jsx_element_name
from rendertypes.transparent import TransparentRegistry


def _parse(source: str) -> ParsedSource:
    return SourceParser().parse("snippet.tsx", textwrap.dedent(source).lstrip("\n"))


def _value(parsed: ParsedSource, name: str = "value") -> Node:
    for declarator in iter_nodes(parsed.root, ("variable_declarator",)):
        if parsed.text(declarator.child_by_field_name("name")) == name:
            value = declarator.child_by_field_name("value")
            assert value is not None
            return value
    raise AssertionError(f"no declaration named {name}")


def _element(parsed: ParsedSource, name: str) -> Node:
    for node in iter_nodes(parsed.root, tuple(JSX_ELEMENT_TYPES)):
        if jsx_element_name(node, parsed.source) == name:
            return node
    raise AssertionError(f"no element named {name}")


def _evaluate(source: str, max_depth: int = 10) -> list:
    parsed = _parse(source)
    return evaluate_expression(_value(parsed), parsed.source, max_depth)


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("const value = <Header />;", ["Header"]),
        ("const value = <Menu.Item />;", ["Menu.Item"]),
        ("const value = <div className='x' />;", ["div"]),
        ("const value = (<Header></Header>);", ["Header"]),
        ("const value = cond ? <Header /> : <Footer />;", ["Header", "Footer"]),
        ("const value = cond ? <Header /> : null;", ["Header", "null"]),
        ("const value = cond && <Header />;", ["Header"]),
        ("const value = fallback || <Fallback />;", ["Fallback"]),
        ("const value = maybe ?? <Fallback />;", ["Fallback"]),
        ("const value = undefined;", ["undefined"]),
        ("const value = false;", ["false"]),
        ("const value = renderSomething();", []),
        ("const value = props.children;", []),
    ],
)
def test_evaluate_expression_forms(source: str, expected: list) -> None:
    assert _evaluate(source) == expected


def test_evaluate_map_callbacks() -> None:
    assert _evaluate("const value = items.map((item) => <Item key={item} />);") == ["Item"]
    assert _evaluate("const value = items.flatMap((item) => <Item key={item} />);") == ["Item"]
    assert _evaluate(
        """
        const value = items.map(function (item) {
          return <Item key={item.id} />;
        });
        """
    ) == ["Item"]
    assert _evaluate(
        """
        const value = items.flatMap(function (item) {
          return item.open ? <Open /> : null;
        });
        """
    ) == ["Open", "null"]


def test_block_callbacks_only_use_top_level_returns() -> None:
    assert _evaluate(
        """
        const value = items.map((item) => {
          if (item.bad) {
            return <Bad />;
          }
          for (const child of item.children) {
            return <Child />;
          }
          return <NavItem />;
        });
        """
    ) == ["NavItem"]


def test_evaluate_fragments() -> None:
    assert _evaluate("const value = <><Header /><Footer /></>;") == ["Header", "Footer"]
    assert _evaluate("const value = <>{cond ? <A /> : <B />}</>;") == ["A", "B"]
    assert _evaluate("const value = <></>;") == ["Fragment"]


def test_evaluate_dedupes_results() -> None:
    assert _evaluate("const value = cond ? <Tab /> : <Tab />;") == ["Tab"]


def test_depth_limit_drops_deep_branches() -> None:
    source = "const value = a ? (b ? <A /> : <B />) : <C />;"
    assert _evaluate(source) == ["A", "B", "C"]
    assert _evaluate(source, max_depth=2) == ["C"]


def test_collect_returns_skips_nested_functions() -> None:
    parsed = _parse(
        """
        function Outer() {
          const helper = () => {
            return <Inner />;
          };
          if (ready) {
            return <Ready />;
          }
          return <Loading />;
        }
        """
    )
    function = next(iter_nodes(parsed.root, ("function_declaration",)))

    returns = collect_returns(function.child_by_field_name("body"))

    assert [parsed.text(node) for node in returns] == ["return <Ready />;", "return <Loading />;"]


def test_extract_children_looks_through_transparent_wrappers() -> None:
    parsed = _parse(
        """
        const value = (
          <Wrapper>
            <Header />
            <Suspense fallback={<Spinner />}>
              <Footer />
            </Suspense>
            {open && <Panel />}
          </Wrapper>
        );
        """
    )
    registry = TransparentRegistry({"Wrapper": ["children"]})

    names = extract_child_element_names(_element(parsed, "Wrapper"), parsed.source, registry)

    assert names == ["Header", "Footer", "Panel"]


def test_unwrap_element_follows_named_pass_through_props() -> None:
    parsed = _parse(
        """
        const value = <Layout header={<Header />} body={<Body />}><Ignored /></Layout>;
        """
    )
    registry = TransparentRegistry({"Layout": ["header"]})

    assert unwrap_element(_element(parsed, "Layout"), parsed.source, registry) == ["Header"]


def test_unwrap_element_returns_plain_components_unchanged() -> None:
    parsed = _parse("const value = <Header />;")
    assert unwrap_element(_element(parsed, "Header"), parsed.source, TransparentRegistry()) == ["Header"]


def test_wrapper_is_not_unwrapped_twice_on_one_path() -> None:
    parsed = _parse("const value = <Wrapper><Wrapper><Header /></Wrapper></Wrapper>;")
    registry = TransparentRegistry({"Wrapper": ["children"]})

    assert extract_child_element_names(_element(parsed, "Wrapper"), parsed.source, registry) == []


def test_sibling_branches_do_not_share_visited_wrappers() -> None:
    parsed = _parse(
        """
        const value = (
          <Outer>
            <Inner><A /></Inner>
            <Inner><B /></Inner>
          </Outer>
        );
        """
    )
    registry = TransparentRegistry({"Outer": ["children"], "Inner": ["children"]})

    assert extract_child_element_names(_element(parsed, "Outer"), parsed.source, registry) == ["A", "B"]
