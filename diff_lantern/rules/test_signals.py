"""Test-signal risk rule."""

from __future__ import annotations

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import RISK_WEIGHTS

CODE_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".py",
    ".rb",
    ".go",
    ".rs",
    ".java",
    ".kt",
    ".c",
    ".cpp",
    ".h",
    ".hpp",
    ".cs",
    ".swift",
)


class TestSignalsRule:
    """Penalizes source-code changes that arrive without any test changes."""

    rule_id = "test_signals"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        if file_diff.tests_touched or not is_code_path(file_diff.path):
            return None
        return RuleOutcome(
            signal=RiskSignal(
                key="no_tests",
                label="No tests modified",
                points=RISK_WEIGHTS["no_tests"],
                severity="warn",
            )
        )


def is_code_path(path: str) -> bool:
    return path.endswith(CODE_EXTENSIONS)
