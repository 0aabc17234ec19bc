"""Scoring orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules import default_rules
from diff_lantern.rules.base import RiskSignal
from diff_lantern.rules.weights import BRIGHT_MAX, DARK_MAX, DIM_MAX, MAX_SCORE

logger = logging.getLogger(__name__)

Band = Literal["bright", "dim", "dark", "cursed"]
BANDS: tuple[Band, ...] = ("bright", "dim", "dark", "cursed")


@dataclass(frozen=True, slots=True)
class RiskResult:
    """Risk assessment for a single file."""

    score: int
    band: Band
    signals: tuple[RiskSignal, ...] = ()
    critical_findings: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "band": self.band,
            "signals": [
                {
                    "key": signal.key,
                    "label": signal.label,
                    "points": signal.points,
                    "severity": signal.severity,
                }
                for signal in self.signals
            ],
            "critical_findings": list(self.critical_findings),
            "notes": list(self.notes),
        }


@dataclass(frozen=True, slots=True)
class FileRisk:
    """A file paired with its computed risk."""

    file: FileDiff
    risk: RiskResult


def compute_risk(file_diff: FileDiff) -> RiskResult:
    """Score one file with the fixed rule set.

    Rules run in a fixed order and each one that fires adds its signal. The
    raw total is capped at 100 and mapped onto a band; workflow security
    findings always lift the band to at least ``dark``.
    """
    signals: list[RiskSignal] = []
    critical_findings: list[str] = []
    notes: list[str] = []
    has_workflow_findings = False
    total = 0

    for rule in default_rules():
        outcome = rule.evaluate(file_diff)
        if outcome is None:
            continue
        total += outcome.signal.points
        signals.append(outcome.signal)
        critical_findings.extend(outcome.critical_findings)
        notes.extend(outcome.notes)
        if outcome.workflow_findings:
            has_workflow_findings = True

    score = min(total, MAX_SCORE)
    band = band_for_score(score)
    if has_workflow_findings and band in ("bright", "dim"):
        band = "dark"

    return RiskResult(
        score=score,
        band=band,
        signals=tuple(signals),
        critical_findings=tuple(critical_findings),
        notes=tuple(notes),
    )


def compute_all_risks(files: list[FileDiff]) -> list[FileRisk]:
    """Score every file, highest risk first.

    The sort is stable: files with equal scores keep their input order.
    """
    scored = [FileRisk(file=file_diff, risk=compute_risk(file_diff)) for file_diff in files]
    ranked = sorted(scored, key=lambda item: item.risk.score, reverse=True)
    logger.debug(
        "scored %d files; top=%s",
        len(ranked),
        f"{ranked[0].file.path} ({ranked[0].risk.score})" if ranked else "none",
    )
    return ranked


def band_for_score(score: int) -> Band:
    if score <= BRIGHT_MAX:
        return "bright"
    if score <= DIM_MAX:
        return "dim"
    if score <= DARK_MAX:
        return "dark"
    return "cursed"
