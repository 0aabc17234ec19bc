"""Magnitude-based risk rule."""

from __future__ import annotations

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import LOC_LARGE_THRESHOLD, LOC_MEDIUM_THRESHOLD, RISK_WEIGHTS


class MagnitudeRule:
    """Scores risk from the file's changed-line count."""

    rule_id = "magnitude"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        loc = file_diff.loc_changed
        if loc >= LOC_LARGE_THRESHOLD:
            return RuleOutcome(
                signal=RiskSignal(
                    key="loc_large",
                    label=f"Large change ({loc} LOC)",
                    points=RISK_WEIGHTS["loc_large"],
                    severity="warn",
                )
            )
        if loc >= LOC_MEDIUM_THRESHOLD:
            return RuleOutcome(
                signal=RiskSignal(
                    key="loc_medium",
                    label=f"Medium change ({loc} LOC)",
                    points=RISK_WEIGHTS["loc_medium"],
                    severity="info",
                )
            )
        return None
