"""GitHub Actions workflow security linter.

Operates on raw diff text of a workflow file. Detection is a small table of
independent text predicates; the YAML is never parsed.
"""

from __future__ import annotations

from dataclasses import dataclass
from re import IGNORECASE, Pattern, compile
from typing import Literal

WorkflowRule = Literal["UNPINNED_ACTION", "BROAD_PERMISSIONS", "PR_TARGET_WITH_WRITE"]

# Anything after "@" that is not a full 40-character commit SHA.
UNPINNED_ACTION_RE = compile(
    r"uses:\s*[\w.\-]+/[\w.\-]+(?:/[\w.\-]+)*@(?![a-fA-F0-9]{40}\b)[\w.\-]+",
    IGNORECASE,
)
WRITE_ALL_RE = compile(r"permissions:\s*write-all", IGNORECASE)
# A permissions block followed by two or more consecutive "<scope>: write" lines.
# Lines may carry a context or addition marker, never a removal marker.
BROAD_WRITE_RE = compile(
    r"permissions:[ \t]*\r?\n(?:[+ ]?[ \t]+[\w-]+:[ \t]*write[ \t]*\r?(?:\n|$)){2,}",
    IGNORECASE,
)
WRITE_PERMISSION_RES = (
    compile(r"contents:\s*write", IGNORECASE),
    compile(r"packages:\s*write", IGNORECASE),
    compile(r"actions:\s*write", IGNORECASE),
    WRITE_ALL_RE,
)
PR_TARGET_RE = compile(r"pull_request_target", IGNORECASE)

FINDING_LABELS: dict[str, str] = {
    "UNPINNED_ACTION": "Unpinned GitHub Action",
    "BROAD_PERMISSIONS": "Broad workflow permissions",
    "PR_TARGET_WITH_WRITE": "pull_request_target with write permissions",
}


@dataclass(frozen=True, slots=True)
class WorkflowFinding:
    """A supply-chain risk found in a workflow diff."""

    rule: WorkflowRule
    message: str
    evidence: str | None = None
    severity: Literal["critical"] = "critical"


def lint_workflow(diff_text: str) -> list[WorkflowFinding]:
    """Lint workflow diff text for unpinned actions and over-broad permissions."""
    findings: list[WorkflowFinding] = []

    for match in UNPINNED_ACTION_RE.finditer(diff_text):
        if _line_at(diff_text, match.start()).startswith("+"):
            findings.append(
                WorkflowFinding(
                    rule="UNPINNED_ACTION",
                    message="Unpinned GitHub Action detected. Pin to a specific SHA for security.",
                    evidence=match.group(0).strip(),
                )
            )

    if _added_line_matches(diff_text, WRITE_ALL_RE):
        findings.append(
            WorkflowFinding(
                rule="BROAD_PERMISSIONS",
                message="Workflow has write-all permissions. Use minimal required permissions.",
                evidence="permissions: write-all",
            )
        )

    if BROAD_WRITE_RE.search(diff_text):
        findings.append(
            WorkflowFinding(
                rule="BROAD_PERMISSIONS",
                message="Workflow has multiple write permissions. Review if all are necessary.",
            )
        )

    # Resulting configuration state matters here, so context lines count too.
    has_write = any(pattern.search(diff_text) for pattern in WRITE_PERMISSION_RES)
    if PR_TARGET_RE.search(diff_text) and has_write:
        findings.append(
            WorkflowFinding(
                rule="PR_TARGET_WITH_WRITE",
                message=(
                    "pull_request_target with write permissions is dangerous. "
                    "Attacker PRs can execute arbitrary code with write access."
                ),
                evidence="pull_request_target + write permissions",
            )
        )

    return findings


def workflow_finding_label(rule: str) -> str:
    """Short display label for a finding's rule tag."""
    return FINDING_LABELS.get(rule, rule)


def _line_at(text: str, index: int) -> str:
    start = text.rfind("\n", 0, index) + 1
    end = text.find("\n", index)
    return text[start:] if end == -1 else text[start:end]


def _added_line_matches(diff_text: str, pattern: Pattern[str]) -> bool:
    return any(
        line.startswith("+") and pattern.search(line) for line in diff_text.split("\n")
    )
