"""Upstream adapter: changed-file records to ``FileDiff`` models.

Records follow the shape of the GitHub pull request files API
(``filename``, ``status``, ``additions``, ``deletions``, ``changes``,
optional ``patch``). Validation of those records happens here; the scoring
core assumes well-formed input.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import Any

from diff_lantern.diff_parser import FileDiff, PatchFile, parse_hunks, split_unified_diff

logger = logging.getLogger(__name__)

LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "tsx",
    "js": "javascript",
    "jsx": "jsx",
    "py": "python",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "java": "java",
    "kt": "kotlin",
    "swift": "swift",
    "css": "css",
    "scss": "scss",
    "html": "html",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "md": "markdown",
    "sql": "sql",
    "sh": "bash",
}

PASSING_CONCLUSIONS = {"success", "skipped"}

JS_TEST_FILE_RE = re.compile(r"\.(test|spec)\.(ts|tsx|js|jsx)$")


def language_for_path(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    return LANGUAGES.get(suffix, "text")


def is_test_path(path: str) -> bool:
    lowered = path.lower()
    name = PurePosixPath(lowered).name
    return (
        JS_TEST_FILE_RE.search(lowered) is not None
        or "__tests__" in lowered
        or lowered.startswith("tests/")
        or "/tests/" in lowered
        or (name.startswith("test_") and name.endswith(".py"))
        or name.endswith("_test.py")
    )


def aggregate_checks(check_runs: list[Mapping[str, Any]]) -> bool:
    """Aggregate check runs: passing when there are none or all succeeded/skipped.

    Runs that have not concluded yet count as not passing.
    """
    return all(run.get("conclusion") in PASSING_CONCLUSIONS for run in check_runs)


def churn_for_path(path: str, churn: Mapping[str, int] | None) -> int | None:
    """Highest churn score among globs matching ``path``, or None."""
    if not churn:
        return None
    matches = [score for pattern, score in churn.items() if fnmatch.fnmatch(path, pattern)]
    return max(matches) if matches else None


def map_pull_files(
    records: list[Mapping[str, Any]],
    *,
    checks_passing: bool,
    churn: Mapping[str, int] | None = None,
) -> list[FileDiff]:
    """Convert changed-file records into ``FileDiff`` models, keeping input order.

    ``tests_touched`` is true for every file when any test file is part of the
    change set.
    """
    validated = [_validate_record(record, index) for index, record in enumerate(records)]
    has_test_changes = any(is_test_path(record["filename"]) for record in validated)

    files: list[FileDiff] = []
    for record in validated:
        path = record["filename"]
        files.append(
            FileDiff(
                path=path,
                language=language_for_path(path),
                risk=record["risk"],
                loc_changed=record["changes"],
                tests_touched=has_test_changes,
                checks_passing=checks_passing,
                hunks=tuple(parse_hunks(record["patch"], path)),
                churn_score=churn_for_path(path, churn),
            )
        )
    logger.debug("mapped %d changed files (tests touched: %s)", len(files), has_test_changes)
    return files


def files_from_diff_text(
    diff_text: str,
    *,
    checks_passing: bool = True,
    churn: Mapping[str, int] | None = None,
) -> list[FileDiff]:
    """Build ``FileDiff`` models from multi-file unified diff text."""
    records = [_patch_file_record(patch_file) for patch_file in split_unified_diff(diff_text)]
    return map_pull_files(records, checks_passing=checks_passing, churn=churn)


def _patch_file_record(patch_file: PatchFile) -> dict[str, Any]:
    return {
        "filename": patch_file.path,
        "status": patch_file.status,
        "additions": patch_file.additions,
        "deletions": patch_file.deletions,
        "changes": patch_file.additions + patch_file.deletions,
        "patch": patch_file.patch,
    }


def _validate_record(record: Any, index: int) -> dict[str, Any]:
    field_prefix = f"files[{index}]"
    if not isinstance(record, Mapping):
        raise ValueError(f"{field_prefix} must be an object")

    filename = record.get("filename")
    if not isinstance(filename, str) or not filename:
        raise ValueError(f"{field_prefix}.filename must be a non-empty string")

    additions = _as_count(record.get("additions", 0), f"{field_prefix}.additions")
    deletions = _as_count(record.get("deletions", 0), f"{field_prefix}.deletions")
    changes = _as_count(record.get("changes", additions + deletions), f"{field_prefix}.changes")
    risk = _as_count(record.get("risk", 0), f"{field_prefix}.risk")

    patch = record.get("patch")
    if patch is not None and not isinstance(patch, str):
        raise ValueError(f"{field_prefix}.patch must be a string")

    return {
        "filename": filename,
        "additions": additions,
        "deletions": deletions,
        "changes": changes,
        "risk": risk,
        "patch": patch,
    }


def _as_count(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    if raw < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return raw
