"""Output rendering."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import click

from diff_lantern import __version__
from diff_lantern.diff_parser import FileDiff, Hunk
from diff_lantern.navigation import Cursor, current_hunk_number, total_hunks
from diff_lantern.scoring import FileRisk
from diff_lantern.workflow_lint import WorkflowFinding, workflow_finding_label

BAND_COLORS = {
    "bright": "green",
    "dim": "cyan",
    "dark": "yellow",
    "cursed": "red",
}


def render_human(ranked: Sequence[FileRisk]) -> str:
    """Render a compact colorized per-file summary, riskiest first."""
    if not ranked:
        return "No changed files."

    top = ranked[0]
    lines: list[str] = [
        click.style(
            f"Riskiest file: {top.file.path} {top.risk.score}/100 ({top.risk.band.upper()})",
            fg=BAND_COLORS[top.risk.band],
            bold=True,
        ),
        click.style("Per-file risk:", bold=True),
    ]
    for item in ranked:
        risk = item.risk
        lines.append(
            click.style(
                f"- {item.file.path}: {risk.score}/100 {risk.band}, "
                f"{len(item.file.hunks)} hunks",
                fg=BAND_COLORS[risk.band],
            )
        )
        for signal in risk.signals:
            lines.append(f"   +{signal.points} {signal.label} [{signal.severity}]")
        for finding in risk.critical_findings:
            lines.append(click.style(f"   critical: {finding}", fg="red"))
        for note in risk.notes:
            lines.append(f"   note: {note}")
    return "\n".join(lines)


def render_json(
    ranked: Sequence[FileRisk],
    *,
    input_source: str,
    base: str | None,
    head: str | None,
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(ranked, input_source=input_source, base=base, head=head)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    ranked: Sequence[FileRisk],
    *,
    input_source: str,
    base: str | None,
    head: str | None,
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    return {
        "max_score": max((item.risk.score for item in ranked), default=0),
        "files": [_serialize_file_risk(item) for item in ranked],
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "base": base,
            "head": head,
            "input_source": input_source,
            "version": __version__,
        },
    }


def render_walk(files: Sequence[FileDiff], cursors: Sequence[Cursor]) -> str:
    """Render a review path, one hunk per line."""
    if not cursors:
        return "No hunks to review."

    total = total_hunks(files)
    lines: list[str] = []
    for step, cursor in enumerate(cursors, start=1):
        file_diff = files[cursor.file_index]
        hunk = file_diff.hunks[cursor.hunk_index]
        number = current_hunk_number(files, cursor)
        lines.append(
            f"{step:>3}. {file_diff.path} {hunk.header} "
            f"(hunk {number}/{total}, importance {hunk.importance})"
        )
        for flag in hunk.red_flags:
            lines.append(click.style(f"       ! {flag}", fg="yellow"))
    return "\n".join(lines)


def render_walk_json(files: Sequence[FileDiff], cursors: Sequence[Cursor]) -> str:
    payload = {
        "total_hunks": total_hunks(files),
        "steps": [
            {
                "file_index": cursor.file_index,
                "hunk_index": cursor.hunk_index,
                "path": files[cursor.file_index].path,
                "hunk_number": current_hunk_number(files, cursor),
                "hunk": _serialize_hunk(files[cursor.file_index].hunks[cursor.hunk_index]),
            }
            for cursor in cursors
        ],
    }
    return json.dumps(payload, sort_keys=True)


def render_findings(findings: Sequence[WorkflowFinding]) -> str:
    if not findings:
        return click.style("No workflow security issues found.", fg="green")
    lines = [click.style(f"{len(findings)} workflow security issue(s):", fg="red", bold=True)]
    for finding in findings:
        lines.append(f"- [{finding.rule}] {workflow_finding_label(finding.rule)}")
        lines.append(f"   {finding.message}")
        if finding.evidence:
            lines.append(f"   evidence: {finding.evidence}")
    return "\n".join(lines)


def render_findings_json(findings: Sequence[WorkflowFinding]) -> str:
    return json.dumps(
        {
            "findings": [
                {
                    "rule": finding.rule,
                    "label": workflow_finding_label(finding.rule),
                    "severity": finding.severity,
                    "message": finding.message,
                    "evidence": finding.evidence,
                }
                for finding in findings
            ]
        },
        sort_keys=True,
    )


def _serialize_file_risk(item: FileRisk) -> dict[str, Any]:
    return {
        "path": item.file.path,
        "language": item.file.language,
        "loc_changed": item.file.loc_changed,
        "risk": item.risk.to_dict(),
        "hunks": [_serialize_hunk(hunk) for hunk in item.file.hunks],
    }


def _serialize_hunk(hunk: Hunk) -> dict[str, Any]:
    return {
        "id": hunk.id,
        "header": hunk.header,
        "added": hunk.added,
        "removed": hunk.removed,
        "modified": hunk.modified,
        "importance": hunk.importance,
        "red_flags": list(hunk.red_flags),
        "comment_suggestion": hunk.comment_suggestion,
    }
