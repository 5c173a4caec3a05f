"""Tests for the valid-render-return rule."""

from __future__ import annotations

RULE = ["valid-render-return"]


def _messages(report) -> list:
    return [item.message for item in report.diagnostics]


def test_matching_returns_are_accepted(project) -> None:
    project.write(
        {
            "Header.tsx": """
            /** @renders {Header} */
            export function MyHeader() {
              return <Header />;
            }

            /** @renders {MyHeader} */
            export const CustomHeader = () => <MyHeader />;

            /** @renders? {Header} */
            export function MaybeHeader({ show }) {
              if (!show) {
                return null;
              }
              return show ? <Header /> : undefined;
            }

            /** @renders* {Tab} */
            export function Tabs({ items }) {
              return <>{items.map((item) => <Tab key={item} />)}</>;
            }
            """,
        }
    )

    report = project.lint(rules=RULE)

    assert report.diagnostics == []


def test_mismatched_return_is_reported(project) -> None:
    project.write(
        {
            "Header.tsx": """
            /** @renders {Header} */
            export function MyHeader() {
              return <Footer />;
            }
            """,
        }
    )

    report = project.lint(rules=RULE)

    assert _messages(report) == ["Component annotated with @renders {Header} but returns Footer"]
    diagnostic = report.diagnostics[0]
    assert diagnostic.rule == "valid-render-return"
    assert diagnostic.severity == "error"
    assert diagnostic.line == 3
    assert diagnostic.data["expected"] == "Header"
    assert diagnostic.data["actual"] == "Footer"


def test_each_branch_is_checked(project) -> None:
    project.write(
        {
            "Header.tsx": """
            /** @renders {Header} */
            export const MyHeader = ({ compact }) => (compact ? <Header /> : <Banner />);
            """,
        }
    )

    report = project.lint(rules=RULE)

    assert _messages(report) == ["Component annotated with @renders {Header} but returns Banner"]


def test_required_contract_rejects_nothing(project) -> None:
    project.write(
        {
            "Header.tsx": """
            /** @renders {Header} */
            export function MyHeader({ show }) {
              if (!show) {
                return;
              }
              return <Header />;
            }
            """,
        }
    )

    report = project.lint(rules=RULE)

    assert _messages(report) == ["Component annotated with @renders {Header} but returns null"]


def test_fragment_only_allowed_for_many(project) -> None:
    project.write(
        {
            "List.tsx": """
            /** @renders {Item} */
            export function One() {
              return <></>;
            }

            /** @renders* {Item} */
            export function Many() {
              return <></>;
            }
            """,
        }
    )

    report = project.lint(rules=RULE)

    assert _messages(report) == ["Component annotated with @renders {Item} but returns Fragment"]


def test_union_contract_and_chain_suffix(project) -> None:
    project.write(
        {
            "Nav.tsx": """
            /** @renders {NavLink} */
            export function AppLink() {
              return <NavLink />;
            }

            /** @renders {NavItem | NavGroup} */
            export function Entry({ group }) {
              return group ? <NavGroup /> : <AppLink />;
            }
            """,
        }
    )

    report = project.lint(rules=RULE)

    assert _messages(report) == [
        "Component annotated with @renders {NavItem | NavGroup} but returns AppLink (AppLink -> NavLink)"
    ]


def test_unknown_returns_are_ignored(project) -> None:
    project.write(
        {
            "Dynamic.tsx": """
            /** @renders {Header} */
            export function Dynamic({ render }) {
              return render();
            }
            """,
        }
    )

    assert project.lint(rules=RULE).diagnostics == []


def test_unchecked_contract_skips_return_validation(project) -> None:
    project.write(
        {
            "Trusted.tsx": """
            /** @renders! {Header} */
            export function Trusted() {
              return <Footer />;
            }
            """,
        }
    )

    assert project.lint(rules=RULE).diagnostics == []


def test_returned_transparent_wrapper_is_looked_through(project) -> None:
    project.write(
        {
            "Lazy.tsx": """
            /** @renders {Header} */
            export function LazyHeader() {
              return (
                <Suspense fallback={<Spinner />}>
                  <Header />
                </Suspense>
              );
            }
            """,
        }
    )

    assert project.lint(rules=RULE).diagnostics == []


def test_nested_functions_are_not_treated_as_returns(project) -> None:
    project.write(
        {
            "Header.tsx": """
            /** @renders {Header} */
            export function MyHeader() {
              const renderFooter = () => {
                return <Footer />;
              };
              return <Header />;
            }
            """,
        }
    )

    assert project.lint(rules=RULE).diagnostics == []


def test_cross_file_chain_is_resolved(project) -> None:
    project.write(
        {
            "nav/NavItem.tsx": """
            export function NavItem() {
              return <li />;
            }
            """,
            "nav/NavLink.tsx": """
            import { NavItem } from "./NavItem";

            /** @renders {NavItem} */
            export function NavLink() {
              return <NavItem />;
            }
            """,
            "AppNavLink.tsx": """
            import { NavItem } from "./nav/NavItem";
            import { NavLink } from "./nav/NavLink";

            /** @renders {NavItem} */
            export function AppNavLink() {
              return <NavLink />;
            }

            /** @renders {NavItem} */
            export function Broken() {
              return <div />;
            }
            """,
        }
    )

    report = project.lint("AppNavLink.tsx", rules=RULE)

    assert _messages(report) == ["Component annotated with @renders {NavItem} but returns div"]


def test_same_named_component_from_another_module_is_rejected(project) -> None:
    project.write(
        {
            "ui/Header.tsx": "export function Header() { return <h1 />; }\n",
            "legacy/Header.tsx": "export function Header() { return <h2 />; }\n",
            "Page.tsx": """
            import { Header } from "./legacy/Header";

            /** @renders {Header} */
            export function PageHeader() {
              return <Header />;
            }
            """,
            "Shell.tsx": """
            import { Header } from "./ui/Header";
            import { PageHeader } from "./Page";

            /** @renders {Header} */
            export function ShellHeader() {
              return <PageHeader />;
            }
            """,
        }
    )

    report = project.lint("Shell.tsx", rules=RULE)

    assert _messages(report) == [
        "Component annotated with @renders {Header} but returns PageHeader (PageHeader -> Header)"
    ]
