"""CLI tests driven through Typer's test runner."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from diff_lantern import __version__
from diff_lantern.cli import app

runner = CliRunner()

WORKFLOW_DIFF = "\n".join(
    [
        "diff --git a/.github/workflows/ci.yml b/.github/workflows/ci.yml",
        "--- a/.github/workflows/ci.yml",
        "+++ b/.github/workflows/ci.yml",
        "@@ -1,2 +1,3 @@",
        " on: push",
        "-      - uses: actions/checkout@8ade135a41bc03ea155e62e844d188df1ea18608",
        "+      - uses: actions/checkout@v4",
        "+permissions: write-all",
    ]
)


def _write_change(tmp_path: Path) -> Path:
    diff_text = "\n".join(
        [
            _build_replace_diff("docs/guide.md", ["old"], ["new"]),
            WORKFLOW_DIFF,
        ]
    )
    diff_path = tmp_path / "change.diff"
    diff_path.write_text(diff_text + "\n", encoding="utf-8")
    return diff_path


def test_root_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("score", "walk", "lint-workflow", "rules", "config", "config-init"):
        assert command in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_score_human_output(tmp_path: Path) -> None:
    diff_path = _write_change(tmp_path)

    result = runner.invoke(app, ["score", "--diff-file", str(diff_path), "--repo", str(tmp_path)])

    assert result.exit_code == 0
    assert "Riskiest file: .github/workflows/ci.yml 65/100 (DARK)" in result.stdout
    assert "- docs/guide.md: 0/100 bright, 1 hunks" in result.stdout


def test_score_json_and_fail_above(tmp_path: Path) -> None:
    diff_path = _write_change(tmp_path)

    result = runner.invoke(
        app,
        [
            "score",
            "--diff-file",
            str(diff_path),
            "--repo",
            str(tmp_path),
            "--format",
            "json",
            "--fail-above",
            "50",
        ],
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["max_score"] == 65
    assert payload["meta"]["input_source"] == f"diff_file:{diff_path}"
    assert [item["path"] for item in payload["files"]] == [
        ".github/workflows/ci.yml",
        "docs/guide.md",
    ]


def test_score_reads_stdin_and_applies_config(tmp_path: Path) -> None:
    (tmp_path / ".diff-lantern.toml").write_text(
        'format = "json"\nexclude = [".github/**"]\nchecks_passing = false\n',
        encoding="utf-8",
    )
    diff_text = _write_change(tmp_path).read_text(encoding="utf-8")

    result = runner.invoke(app, ["score", "--stdin", "--repo", str(tmp_path)], input=diff_text)

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [item["path"] for item in payload["files"]] == ["docs/guide.md"]
    assert payload["files"][0]["risk"]["score"] == 35


def test_score_with_pull_request_export(tmp_path: Path) -> None:
    export = tmp_path / "pr.json"
    export.write_text(
        json.dumps(
            {
                "files": [{"filename": "src/payments/charge.py", "additions": 5}],
                "check_runs": [{"conclusion": "success"}],
            }
        ),
        encoding="utf-8",
    )

    result = runner.invoke(
        app, ["score", "--pr-json", str(export), "--repo", str(tmp_path), "--format", "json"]
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["files"][0]["risk"]["score"] == 45


def test_score_rejects_conflicting_inputs(tmp_path: Path) -> None:
    diff_path = _write_change(tmp_path)

    result = runner.invoke(
        app, ["score", "--diff-file", str(diff_path), "--stdin", "--repo", str(tmp_path)]
    )

    assert result.exit_code == 2
    assert "Use only one of --diff-file, --stdin." in result.output


def test_walk_visits_riskiest_file_first(tmp_path: Path) -> None:
    diff_path = _write_change(tmp_path)

    result = runner.invoke(app, ["walk", "--diff-file", str(diff_path), "--repo", str(tmp_path)])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0].startswith("  1. .github/workflows/ci.yml @@ -1,2 +1,3 @@ (hunk 2/2")
    assert "       ! CRITICAL: write-all permissions" in lines
    assert lines[-1].startswith("  2. docs/guide.md @@ -1,1 +1,1 @@ (hunk 1/2")


def test_walk_reverse_and_json(tmp_path: Path) -> None:
    diff_path = _write_change(tmp_path)
    base_args = ["walk", "--diff-file", str(diff_path), "--repo", str(tmp_path)]

    reverse = runner.invoke(app, [*base_args, "--reverse", "--format", "json"])
    queue = runner.invoke(app, [*base_args, "--queue", "--format", "json"])

    assert reverse.exit_code == 0
    assert [step["path"] for step in json.loads(reverse.stdout)["steps"]] == [
        "docs/guide.md",
        ".github/workflows/ci.yml",
    ]
    assert queue.exit_code == 0
    assert json.loads(queue.stdout)["total_hunks"] == 2


def test_walk_uses_configured_format(tmp_path: Path) -> None:
    (tmp_path / ".diff-lantern.toml").write_text('format = "json"\n', encoding="utf-8")
    diff_path = _write_change(tmp_path)
    base_args = ["walk", "--diff-file", str(diff_path), "--repo", str(tmp_path)]

    configured = runner.invoke(app, base_args)
    overridden = runner.invoke(app, [*base_args, "--format", "human"])

    assert configured.exit_code == 0
    assert json.loads(configured.stdout)["total_hunks"] == 2
    assert overridden.exit_code == 0
    assert overridden.stdout.startswith("  1. .github/workflows/ci.yml")


def test_walk_rejects_queue_with_reverse(tmp_path: Path) -> None:
    diff_path = _write_change(tmp_path)

    result = runner.invoke(
        app, ["walk", "--diff-file", str(diff_path), "--queue", "--reverse"]
    )

    assert result.exit_code == 2


def test_lint_workflow_exit_codes(tmp_path: Path) -> None:
    flagged = runner.invoke(app, ["lint-workflow", "--stdin"], input=WORKFLOW_DIFF)
    clean = runner.invoke(app, ["lint-workflow", "--stdin"], input="+on: push\n")

    assert flagged.exit_code == 1
    assert "2 workflow security issue(s):" in flagged.stdout
    assert "[UNPINNED_ACTION] Unpinned GitHub Action" in flagged.stdout
    assert clean.exit_code == 0
    assert "No workflow security issues found." in clean.stdout


def test_lint_workflow_requires_input() -> None:
    result = runner.invoke(app, ["lint-workflow"])
    assert result.exit_code == 2


def test_rules_json_lists_eight_rules() -> None:
    result = runner.invoke(app, ["rules", "--format", "json"])

    assert result.exit_code == 0
    rules = json.loads(result.stdout)["rules"]
    assert len(rules) == 8
    assert rules[0]["rule_id"] == "ci_checks"
    assert rules[-1]["signal_keys"] == ["workflow_insecurity"]


def test_config_init_then_show(tmp_path: Path) -> None:
    out = tmp_path / ".diff-lantern.toml"

    created = runner.invoke(app, ["config-init", "--out", str(out)])
    again = runner.invoke(app, ["config-init", "--out", str(out)])
    shown = runner.invoke(app, ["config", "--repo", str(tmp_path), "--format", "json"])

    assert created.exit_code == 0
    assert out.exists()
    assert again.exit_code == 2
    assert json.loads(shown.stdout)["fail_above"] == 80


def test_invalid_config_is_a_usage_error(tmp_path: Path) -> None:
    (tmp_path / ".diff-lantern.toml").write_text("fail_above = 'x'\n", encoding="utf-8")

    result = runner.invoke(app, ["config", "--repo", str(tmp_path)])

    assert result.exit_code == 2
    assert "fail_above must be an integer" in result.output


def _build_replace_diff(path: str, old_lines: list[str], new_lines: list[str]) -> str:
    header = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1,{len(old_lines)} +1,{len(new_lines)} @@",
    ]
    body = [f"-{line}" for line in old_lines] + [f"+{line}" for line in new_lines]
    return "\n".join(header + body)
