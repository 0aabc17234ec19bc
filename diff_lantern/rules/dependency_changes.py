"""Dependency change risk rule."""

from __future__ import annotations

from pathlib import PurePosixPath

from diff_lantern.diff_parser import FileDiff
from diff_lantern.rules.base import RiskSignal, RuleOutcome
from diff_lantern.rules.weights import RISK_WEIGHTS

MANIFEST_FILES = {
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "pipfile",
    "gemfile",
    "pom.xml",
    "build.gradle",
    "cargo.toml",
    "go.mod",
    "composer.json",
}

LOCK_FILES = {
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "gemfile.lock",
    "cargo.lock",
    "go.sum",
    "poetry.lock",
    "pdm.lock",
    "pipfile.lock",
    "composer.lock",
}


class DependencyChangesRule:
    """Raises risk when dependency manifests or lock files are modified."""

    rule_id = "dependency_changes"

    def evaluate(self, file_diff: FileDiff) -> RuleOutcome | None:
        if not is_dependency_file(file_diff.path):
            return None
        return RuleOutcome(
            signal=RiskSignal(
                key="dependency_change",
                label="Dependency file changed",
                points=RISK_WEIGHTS["dependency_change"],
                severity="warn",
            ),
            notes=("Review dependency changes carefully",),
        )


def is_dependency_file(path: str) -> bool:
    filename = PurePosixPath(path).name.lower()
    return filename in MANIFEST_FILES or filename in LOCK_FILES
