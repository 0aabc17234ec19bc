"""Historical churn risk rule."""

from __future__ import annotations

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import CHURN_THRESHOLD, RISK_WEIGHTS


class ChurnRule:
    """Raises risk for files that change frequently.

    Churn is supplied by the caller, either as a 0-100 score or as a plain
    high-churn flag. Missing data means no churn.
    """

    rule_id = "churn"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        churn = file_diff.churn_score
        if churn is None:
            churn = CHURN_THRESHOLD if file_diff.is_high_churn else 0
        if churn < CHURN_THRESHOLD and not file_diff.is_high_churn:
            return None
        return RuleOutcome(
            signal=RiskSignal(
                key="high_churn",
                label="High churn file",
                points=RISK_WEIGHTS["high_churn"],
                severity="info",
            ),
            notes=("This file changes frequently",),
        )
