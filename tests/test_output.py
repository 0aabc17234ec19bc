"""Tests for human and JSON renderers."""

from __future__ import annotations

import json

import click

from diff_lantern.diff_parser import FileDiff, parse_hunks
from diff_lantern.navigation import walk
from diff_lantern.output import (
    build_json_payload,
    render_findings,
    render_findings_json,
    render_human,
    render_walk,
    render_walk_json,
)
from diff_lantern.scoring import compute_all_risks
from diff_lantern.workflow_lint import lint_workflow


def _files() -> list[FileDiff]:
    login = "src/auth/login.ts"
    return [
        FileDiff(
            path="README.md",
            language="markdown",
            loc_changed=2,
            tests_touched=True,
            hunks=tuple(parse_hunks("@@ -1 +1 @@\n-old\n+new", "README.md")),
        ),
        FileDiff(
            path=login,
            language="typescript",
            loc_changed=120,
            checks_passing=False,
            hunks=tuple(parse_hunks("@@ -1 +1,2 @@\n-a\n+console.log(token)\n+b", login)),
        ),
    ]


def test_render_human_leads_with_riskiest_file() -> None:
    rendered = click.unstyle(render_human(compute_all_risks(_files())))
    lines = rendered.splitlines()

    assert lines[0] == "Riskiest file: src/auth/login.ts 90/100 (CURSED)"
    assert lines[1] == "Per-file risk:"
    assert lines[2] == "- src/auth/login.ts: 90/100 cursed, 1 hunks"
    assert "   +35 CI checks failing [critical]" in lines
    assert "   critical: CI pipeline is failing" in lines
    assert "   note: Sensitive path: src/auth/login.ts" in lines
    assert "- README.md: 0/100 bright, 1 hunks" in lines


def test_render_human_without_files() -> None:
    assert render_human([]) == "No changed files."


def test_json_payload_is_stable_and_complete() -> None:
    payload = build_json_payload(
        compute_all_risks(_files()), input_source="stdin", base=None, head=None
    )

    assert payload["max_score"] == 90
    assert [item["path"] for item in payload["files"]] == ["src/auth/login.ts", "README.md"]
    top = payload["files"][0]
    assert top["risk"]["band"] == "cursed"
    assert [signal["key"] for signal in top["risk"]["signals"]] == [
        "ci_failing",
        "sensitive_path",
        "loc_medium",
        "no_tests",
    ]
    assert top["hunks"][0]["red_flags"] == ["Debug print statement in code"]
    assert payload["meta"]["input_source"] == "stdin"
    assert payload["meta"]["generated_at"].endswith("Z")


def test_render_walk_lists_steps_in_review_order() -> None:
    files = _files()
    rendered = click.unstyle(render_walk(files, list(walk(files))))
    lines = rendered.splitlines()

    assert lines[0].startswith("  1. src/auth/login.ts @@ -1 +1,2 @@ (hunk 2/2, importance")
    assert lines[1] == "       ! Debug print statement in code"
    assert lines[2].startswith("  2. README.md @@ -1 +1 @@ (hunk 1/2, importance")


def test_render_walk_empty_and_json() -> None:
    files = _files()
    assert render_walk(files, []) == "No hunks to review."

    payload = json.loads(render_walk_json(files, list(walk(files))))

    assert payload["total_hunks"] == 2
    assert [step["path"] for step in payload["steps"]] == ["src/auth/login.ts", "README.md"]
    assert payload["steps"][0]["hunk"]["id"] == "src/auth/login.ts-h0"


def test_render_findings() -> None:
    findings = lint_workflow("+permissions: write-all")

    rendered = click.unstyle(render_findings(findings))
    payload = json.loads(render_findings_json(findings))

    assert "1 workflow security issue(s):" in rendered
    assert "- [BROAD_PERMISSIONS] Broad workflow permissions" in rendered
    assert "   evidence: permissions: write-all" in rendered
    assert payload["findings"][0]["label"] == "Broad workflow permissions"
    assert click.unstyle(render_findings([])) == "No workflow security issues found."
