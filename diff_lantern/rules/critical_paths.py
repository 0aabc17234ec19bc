"""Sensitive-path risk rule."""

from __future__ import annotations

from re import IGNORECASE, compile

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import RISK_WEIGHTS

SENSITIVE_PATHS = (
    compile(r"^\.github/workflows/"),
    compile(r"auth/", IGNORECASE),
    compile(r"payment", IGNORECASE),
    compile(r"permissions?", IGNORECASE),
    compile(r"security", IGNORECASE),
    compile(r"secrets?", IGNORECASE),
    compile(r"credentials?", IGNORECASE),
    compile(r"\.env"),
    compile(r"config/.*secret", IGNORECASE),
)


class CriticalPathsRule:
    """Raises risk when authentication, payment, secret or CI areas are changed."""

    rule_id = "critical_paths"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        if not is_sensitive_path(file_diff.path):
            return None
        return RuleOutcome(
            signal=RiskSignal(
                key="sensitive_path",
                label="Touches sensitive path",
                points=RISK_WEIGHTS["sensitive_path"],
                severity="warn",
            ),
            notes=(f"Sensitive path: {file_diff.path}",),
        )


def is_sensitive_path(path: str) -> bool:
    return any(pattern.search(path) for pattern in SENSITIVE_PATHS)
