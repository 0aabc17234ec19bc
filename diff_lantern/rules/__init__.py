"""Rules package."""

from collections.abc import Callable
from dataclasses import dataclass

from diff_lantern.rules.base import Rule
from diff_lantern.rules.churn import ChurnRule
from diff_lantern.rules.ci_checks import CiChecksRule
from diff_lantern.rules.complexity import ComplexityRule
from diff_lantern.rules.critical_paths import CriticalPathsRule
from diff_lantern.rules.dependency_changes import DependencyChangesRule
from diff_lantern.rules.magnitude import MagnitudeRule
from diff_lantern.rules.test_signals import TestSignalsRule
from diff_lantern.rules.weights import RISK_WEIGHTS
from diff_lantern.rules.workflow_security import WorkflowSecurityRule


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing."""

    rule_id: str
    name: str
    description: str
    category: str
    signal_keys: tuple[str, ...]

    @property
    def max_points(self) -> int:
        return max(RISK_WEIGHTS[key] for key in self.signal_keys)


@dataclass(frozen=True, slots=True)
class _RuleSpec:
    factory: Callable[[], Rule]
    category: str
    signal_keys: tuple[str, ...]


# Evaluation order is part of the result: signals are reported in this order.
_RULE_SPECS: tuple[_RuleSpec, ...] = (
    _RuleSpec(CiChecksRule, "integration", ("ci_failing",)),
    _RuleSpec(CriticalPathsRule, "security", ("sensitive_path",)),
    _RuleSpec(MagnitudeRule, "integration", ("loc_large", "loc_medium")),
    _RuleSpec(TestSignalsRule, "test_adequacy", ("no_tests",)),
    _RuleSpec(ChurnRule, "quality", ("high_churn",)),
    _RuleSpec(ComplexityRule, "logic", ("high_complexity",)),
    _RuleSpec(DependencyChangesRule, "integration", ("dependency_change",)),
    _RuleSpec(WorkflowSecurityRule, "security", ("workflow_insecurity",)),
)


def default_rules() -> list[Rule]:
    """Return the fixed, ordered rule set."""
    return [spec.factory() for spec in _RULE_SPECS]


def list_rule_info() -> list[RuleInfo]:
    """Return metadata for every rule in evaluation order."""
    info: list[RuleInfo] = []
    for spec in _RULE_SPECS:
        rule = spec.factory()
        info.append(
            RuleInfo(
                rule_id=rule.rule_id,
                name=type(rule).__name__,
                description=(type(rule).__doc__ or "").strip().splitlines()[0],
                category=spec.category,
                signal_keys=spec.signal_keys,
            )
        )
    return info
