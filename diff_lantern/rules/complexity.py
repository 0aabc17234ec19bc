"""Control-flow complexity risk rule."""

from __future__ import annotations

from re import compile

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import COMPLEXITY_THRESHOLD, RISK_WEIGHTS

COMPLEXITY_PATTERNS = (
    compile(r"\bif\s*\("),
    compile(r"\belse\s*\{"),
    compile(r"\bfor\s*\("),
    compile(r"\bwhile\s*\("),
    compile(r"\bswitch\s*\("),
    compile(r"\btry\s*\{"),
    compile(r"\bcatch\s*\("),
    compile(r"\?\s*.*\s*:"),  # ternary
)


class ComplexityRule:
    """Estimates added control flow from textual markers in the diff."""

    rule_id = "complexity"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        count = count_complexity_markers("\n".join(hunk.diff_text for hunk in file_diff.hunks))
        if count < COMPLEXITY_THRESHOLD:
            return None
        return RuleOutcome(
            signal=RiskSignal(
                key="high_complexity",
                label=f"High complexity ({count} indicators)",
                points=RISK_WEIGHTS["high_complexity"],
                severity="info",
            )
        )


def count_complexity_markers(text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in COMPLEXITY_PATTERNS)
