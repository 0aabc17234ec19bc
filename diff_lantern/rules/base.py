"""Base rule protocol and signal model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from diff_lantern.diff_parser import FileDiff
from diff_lantern.workflow_lint import WorkflowFinding

Severity = Literal["info", "warn", "critical"]


@dataclass(frozen=True, slots=True)
class RiskSignal:
    """One weighted, named contribution to a file's risk score."""

    key: str
    label: str
    points: int
    severity: Severity


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """Everything a rule contributes when it fires."""

    signal: RiskSignal
    critical_findings: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    workflow_findings: tuple[WorkflowFinding, ...] = ()


class Rule(Protocol):
    """Protocol for deterministic per-file scoring rules."""

    rule_id: str

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        """Return the rule's contribution, or None when it does not apply."""
