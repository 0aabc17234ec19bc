"""Change-set providers.

Exactly one provider is selected when the application starts; the rest of
the code only sees the resulting ``ChangeSet``.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from diff_lantern.adapter import aggregate_checks, files_from_diff_text, map_pull_files
from diff_lantern.diff_parser import FileDiff
from diff_lantern.git import get_diff_between, get_working_tree_diff

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChangeSet:
    """Files of one change set plus where they came from."""

    files: list[FileDiff]
    input_source: str
    base: str | None = None
    head: str | None = None


class ChangeProvider(Protocol):
    """Source of a change set."""

    def load(self) -> ChangeSet:
        """Read and map the change set."""


@dataclass(slots=True)
class DiffFileProvider:
    """Unified diff read from a file, or from stdin when ``path`` is None.

    Local diffs carry no CI results, so ``checks_passing`` comes from config.
    """

    path: Path | None
    checks_passing: bool = True
    churn: dict[str, int] = field(default_factory=dict)

    def load(self) -> ChangeSet:
        if self.path is None:
            diff_text = sys.stdin.read()
            source = "stdin"
        else:
            diff_text = self.path.read_text(encoding="utf-8")
            source = f"diff_file:{self.path}"
        files = files_from_diff_text(
            diff_text, checks_passing=self.checks_passing, churn=self.churn
        )
        logger.debug("loaded %d files from %s", len(files), source)
        return ChangeSet(files=files, input_source=source)


@dataclass(slots=True)
class GitDiffProvider:
    """Diff of a local repository: working tree, or ``base..head``."""

    repo: Path
    base: str | None = None
    head: str | None = None
    checks_passing: bool = True
    churn: dict[str, int] = field(default_factory=dict)

    def load(self) -> ChangeSet:
        if self.base is not None and self.head is not None:
            diff_text = get_diff_between(self.repo, self.base, self.head)
            source = "git_range"
        else:
            diff_text = get_working_tree_diff(self.repo)
            source = "git_working_tree"
        files = files_from_diff_text(
            diff_text, checks_passing=self.checks_passing, churn=self.churn
        )
        logger.debug("loaded %d files from %s", len(files), source)
        return ChangeSet(files=files, input_source=source, base=self.base, head=self.head)


@dataclass(slots=True)
class PullFilesProvider:
    """Pull request export: a JSON list of file records, or an object with
    ``files`` and optional ``check_runs``.
    """

    path: Path
    churn: dict[str, int] = field(default_factory=dict)

    def load(self) -> ChangeSet:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {self.path}: {exc}") from exc

        records, check_runs = _split_pull_payload(payload)
        passing = aggregate_checks(check_runs)
        files = map_pull_files(records, checks_passing=passing, churn=self.churn)
        logger.debug(
            "loaded %d files and %d check runs from %s", len(files), len(check_runs), self.path
        )
        return ChangeSet(files=files, input_source=f"pr_json:{self.path}")


def select_provider(
    *,
    diff_file: Path | None,
    stdin: bool,
    pr_json: Path | None,
    repo: Path,
    base: str | None,
    head: str | None,
    checks_passing: bool = True,
    churn: dict[str, int] | None = None,
) -> ChangeProvider:
    """Pick the single provider matching the requested input options."""
    options = (("--diff-file", diff_file), ("--stdin", stdin), ("--pr-json", pr_json))
    explicit = [name for name, value in options if value]
    if len(explicit) > 1:
        raise ValueError(f"Use only one of {', '.join(explicit)}.")
    if (base is None) ^ (head is None):
        raise ValueError("Provide both --base and --head together.")

    churn_map = dict(churn or {})
    if pr_json is not None:
        return PullFilesProvider(path=pr_json, churn=churn_map)
    if diff_file is not None or stdin:
        return DiffFileProvider(path=diff_file, checks_passing=checks_passing, churn=churn_map)
    return GitDiffProvider(
        repo=repo, base=base, head=head, checks_passing=checks_passing, churn=churn_map
    )


def _split_pull_payload(payload: Any) -> tuple[list[Any], list[Any]]:
    if isinstance(payload, list):
        return (payload, [])
    if not isinstance(payload, dict):
        raise ValueError("PR export must be a list of files or an object with 'files'")

    records = payload.get("files")
    if not isinstance(records, list):
        raise ValueError("PR export 'files' must be a list")
    check_runs = payload.get("check_runs", [])
    if not isinstance(check_runs, list) or not all(isinstance(run, dict) for run in check_runs):
        raise ValueError("PR export 'check_runs' must be a list of objects")
    return (records, check_runs)
