"""CI workflow security risk rule."""

from __future__ import annotations

from re import compile

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import RISK_WEIGHTS
from diff_lantern.workflow_lint import lint_workflow, workflow_finding_label

WORKFLOW_PATH_RE = compile(r"^\.github/workflows/.+\.ya?ml$")


class WorkflowSecurityRule:
    """Lints GitHub Actions workflow diffs for supply-chain risks."""

    rule_id = "workflow_security"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        if not is_workflow_file(file_diff.path):
            return None

        findings = lint_workflow("\n".join(hunk.diff_text for hunk in file_diff.hunks))
        if not findings:
            return None

        return RuleOutcome(
            signal=RiskSignal(
                key="workflow_insecurity",
                label=f"Workflow security issues ({len(findings)})",
                points=RISK_WEIGHTS["workflow_insecurity"],
                severity="critical",
            ),
            critical_findings=tuple(workflow_finding_label(item.rule) for item in findings),
            notes=tuple(f"Evidence: {item.evidence}" for item in findings if item.evidence),
            workflow_findings=tuple(findings),
        )


def is_workflow_file(path: str) -> bool:
    return WORKFLOW_PATH_RE.search(path) is not None
