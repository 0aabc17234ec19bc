"""Failing CI risk rule."""

from __future__ import annotations

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import RISK_WEIGHTS

CI_FAILING_FINDING = "CI pipeline is failing"


class CiChecksRule:
    """Raises risk when the change set's CI checks are not passing."""

    rule_id = "ci_checks"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        if file_diff.checks_passing:
            return None
        return RuleOutcome(
            signal=RiskSignal(
                key="ci_failing",
                label="CI checks failing",
                points=RISK_WEIGHTS["ci_failing"],
                severity="critical",
            ),
            critical_findings=(CI_FAILING_FINDING,),
        )
