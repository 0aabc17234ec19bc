"""Tests for the GitHub Actions workflow linter."""

from __future__ import annotations

import pytest

from diff_lantern.workflow_lint import lint_workflow, workflow_finding_label


def _rules(diff_text: str) -> list[str]:
    return [finding.rule for finding in lint_workflow(diff_text)]


@pytest.mark.parametrize(
    "line",
    [
        "+      - uses: actions/checkout@v3",
        "+      - uses: actions/setup-node@main",
        "+      - uses: some-org/dangerous-action@master",
        "+      - uses: github/codeql-action/init@v3",
        "+      - uses: org/action@release-2024",
    ],
)
def test_unpinned_actions_on_added_lines_are_reported(line: str) -> None:
    findings = lint_workflow(line)

    assert [finding.rule for finding in findings] == ["UNPINNED_ACTION"]
    assert findings[0].evidence == line.split("- ", 1)[1]
    assert findings[0].severity == "critical"


def test_sha_pinned_action_is_not_reported() -> None:
    diff_text = "+      - uses: actions/checkout@8ade135a41bc03ea155e62e844d188df1ea18608"
    assert "UNPINNED_ACTION" not in _rules(diff_text)


def test_removed_and_context_lines_are_not_reported() -> None:
    assert _rules("-      - uses: actions/checkout@v3") == []
    assert _rules("       - uses: actions/checkout@v3") == []


def test_write_all_permissions_are_broad() -> None:
    findings = lint_workflow("+permissions: write-all")

    assert [finding.rule for finding in findings] == ["BROAD_PERMISSIONS"]
    assert findings[0].evidence == "permissions: write-all"


def test_removed_write_all_is_not_reported() -> None:
    assert _rules("-permissions: write-all") == []


def test_read_permissions_are_not_broad() -> None:
    assert _rules("+permissions:\n+  contents: read") == []


def test_multiple_write_scopes_are_broad() -> None:
    diff_text = "\n".join(
        [
            "+permissions:",
            "+  contents: write",
            "+  packages: write",
        ]
    )

    findings = lint_workflow(diff_text)

    assert [finding.rule for finding in findings] == ["BROAD_PERMISSIONS"]
    assert findings[0].evidence is None


def test_single_write_scope_is_not_broad() -> None:
    assert _rules("+permissions:\n+  contents: write\n+  issues: read") == []


@pytest.mark.parametrize(
    "permissions",
    ["+permissions: write-all", "+permissions:\n+  contents: write"],
)
def test_pull_request_target_with_write_permissions(permissions: str) -> None:
    diff_text = f"+on:\n+  pull_request_target:\n+    branches: [main]\n+\n{permissions}"

    assert "PR_TARGET_WITH_WRITE" in _rules(diff_text)


def test_pull_request_target_with_read_permissions_is_allowed() -> None:
    diff_text = "+on:\n+  pull_request_target:\n+\n+permissions:\n+  contents: read"
    assert "PR_TARGET_WITH_WRITE" not in _rules(diff_text)


def test_plain_pull_request_with_write_is_not_pr_target() -> None:
    diff_text = "+on:\n+  pull_request:\n+\n+permissions:\n+  contents: write"
    assert "PR_TARGET_WITH_WRITE" not in _rules(diff_text)


def test_existing_write_permissions_count_for_new_pr_target_trigger() -> None:
    diff_text = "\n".join(
        [
            " permissions:",
            "   contents: write",
            "+on: pull_request_target",
        ]
    )

    assert _rules(diff_text) == ["PR_TARGET_WITH_WRITE"]


def test_combined_workflow_reports_every_issue() -> None:
    diff_text = "\n".join(
        [
            "+name: CI Pipeline",
            "+on:",
            "+  pull_request_target:",
            "+    branches: [main]",
            "+permissions: write-all",
            "+jobs:",
            "+  build:",
            "+    runs-on: ubuntu-latest",
            "+    steps:",
            "+      - uses: actions/checkout@v3",
            "+      - uses: actions/setup-node@main",
        ]
    )

    rules = _rules(diff_text)

    assert rules.count("UNPINNED_ACTION") == 2
    assert "BROAD_PERMISSIONS" in rules
    assert "PR_TARGET_WITH_WRITE" in rules


def test_finding_labels() -> None:
    assert workflow_finding_label("UNPINNED_ACTION") == "Unpinned GitHub Action"
    assert workflow_finding_label("BROAD_PERMISSIONS") == "Broad workflow permissions"
    assert (
        workflow_finding_label("PR_TARGET_WITH_WRITE")
        == "pull_request_target with write permissions"
    )
    assert workflow_finding_label("SOMETHING_ELSE") == "SOMETHING_ELSE"


def test_multiple_write_scopes_are_broad_with_crlf_line_endings() -> None:
    diff_text = "+permissions:\r\n+  contents: write\r\n+  packages: write\r\n"

    assert _rules(diff_text) == ["BROAD_PERMISSIONS"]
