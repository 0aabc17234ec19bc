"""Unified diff parser primitives."""

from __future__ import annotations

from dataclasses import dataclass, field
from math import floor
from re import IGNORECASE, MULTILINE, Pattern, compile

HUNK_HEADER_RE = compile(
    r"^@@\s+-(?P<old_start>\d+)(?:,(?P<old_count>\d+))?\s+"
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))?\s+@@(?P<section>.*)$"
)

WORKFLOW_DIR = ".github/workflows"
IMPORTANT_PATH_RE = compile(r"auth|payment|crypto|secret|security", IGNORECASE)

NO_FLAGS_COMMENT = "No red flags detected in this change."
GENERIC_FLAGS_COMMENT = "Review the flagged issues carefully."
PATCH_PREVIEW_MAX_LINES = 20


@dataclass(frozen=True, slots=True)
class RedFlag:
    """A textual red-flag predicate with its canned remediation payloads."""

    category: str
    label: str
    patterns: tuple[Pattern[str], ...]
    comment: str = ""
    fix: str = ""
    test: str = ""
    workflow_only: bool = False

    def matches(self, text: str) -> bool:
        return all(pattern.search(text) for pattern in self.patterns)


RED_FLAGS: tuple[RedFlag, ...] = (
    RedFlag(
        category="hardcoded_secret",
        label="Potential hardcoded secret",
        patterns=(
            compile(r"password|secret|api[_-]?key|token", IGNORECASE),
            compile(r"=\s*['\"][^'\"]+['\"]"),
        ),
        comment="Consider using environment variables for sensitive values.",
        fix='api_key = os.environ["API_KEY"]',
        test="Assert the value is read from the environment and never logged.",
    ),
    RedFlag(
        category="dynamic_execution",
        label="Dynamic code execution detected",
        patterns=(compile(r"eval\(|exec\(|Function\(", IGNORECASE),),
        comment="Dynamic execution can run attacker-controlled input; prefer explicit dispatch.",
        fix="handler = HANDLERS[name]\nresult = handler(payload)",
        test="Feed untrusted input and assert it is rejected rather than executed.",
    ),
    RedFlag(
        category="html_injection",
        label="innerHTML assignment (XSS risk)",
        patterns=(compile(r"innerHTML\s*=", IGNORECASE),),
        comment="Assigning innerHTML renders markup unescaped; use textContent or a sanitizer.",
        fix="element.textContent = value;",
        test="Render a value containing <script> and assert it is displayed as text.",
    ),
    RedFlag(
        category="todo_marker",
        label="TODO/FIXME comment found",
        patterns=(compile(r"TODO|FIXME|HACK|XXX", IGNORECASE),),
        comment="This TODO may haunt future maintainers.",
    ),
    RedFlag(
        category="debug_print",
        label="Debug print statement in code",
        patterns=(
            compile(
                r"console\.(log|debug|info)|\bbreakpoint\(\)|pdb\.set_trace\(",
                IGNORECASE,
            ),
        ),
        comment="Remove debug output before merging or route it through the logger.",
        fix='logger.debug("value=%s", value)',
    ),
    RedFlag(
        category="empty_handler",
        label="Empty exception handler",
        patterns=(
            compile(
                r"catch\s*\([^)]*\)\s*\{\s*\}|\bexcept\b[^\n:]*:\s*(?:\n[+\- ]?\s*)?pass\b",
                IGNORECASE,
            ),
        ),
        comment="Swallowed errors hide failures; handle or re-raise with context.",
        fix='except ValueError as exc:\n    logger.warning("parse failed: %s", exc)\n    raise',
        test="Trigger the failure path and assert the error is surfaced.",
    ),
    RedFlag(
        category="pr_target_trigger",
        label="CRITICAL: pull_request_target trigger",
        patterns=(compile(r"pull_request_target", IGNORECASE),),
        comment="This workflow trigger allows arbitrary code execution with write access.",
        fix="on:\n  pull_request:\n    branches: [main]",
        test="Open a pull request from a fork and confirm no secrets are exposed.",
        workflow_only=True,
    ),
    RedFlag(
        category="write_all_permissions",
        label="CRITICAL: write-all permissions",
        patterns=(compile(r"permissions:\s*write-all", IGNORECASE),),
        comment="Grant only the permissions each job needs.",
        fix="permissions:\n  contents: read",
        workflow_only=True,
    ),
    RedFlag(
        category="unpinned_action",
        label="Unpinned GitHub Action",
        patterns=(compile(r"@(v\d+|main|master)\s*$", MULTILINE),),
        comment="Pin actions to full SHA for supply chain security.",
        fix="uses: actions/checkout@<40-character commit sha>",
        workflow_only=True,
    ),
)


@dataclass(frozen=True, slots=True)
class Hunk:
    """A diff hunk with its counts, red flags and pre-rendered suggestions."""

    id: str
    header: str
    added: int
    removed: int
    modified: int
    importance: int
    diff_text: str
    red_flags: tuple[str, ...] = ()
    comment_suggestion: str = ""
    fix_snippet: str = ""
    test_suggestion: str = ""
    patch_preview: str = ""


@dataclass(frozen=True, slots=True)
class FileDiff:
    """A changed file as supplied by the upstream adapter.

    ``risk`` is the legacy author-supplied number; the risk engine never reads it.
    """

    path: str
    language: str = "text"
    risk: int = 0
    loc_changed: int = 0
    tests_touched: bool = False
    checks_passing: bool = True
    hunks: tuple[Hunk, ...] = ()
    churn_score: int | None = None
    is_high_churn: bool | None = None


@dataclass(slots=True)
class PatchFile:
    """One file section of a multi-file unified diff."""

    old_path: str | None
    new_path: str | None
    patch_lines: list[str] = field(default_factory=list)
    additions: int = 0
    deletions: int = 0

    @property
    def path(self) -> str:
        """Best-effort canonical path for reporting."""
        if self.new_path and self.new_path != "/dev/null":
            return self.new_path
        if self.old_path and self.old_path != "/dev/null":
            return self.old_path
        return "<unknown>"

    @property
    def status(self) -> str:
        if self.old_path == "/dev/null":
            return "added"
        if self.new_path == "/dev/null":
            return "removed"
        if self.old_path and self.new_path and self.old_path != self.new_path:
            return "renamed"
        return "modified"

    @property
    def patch(self) -> str | None:
        if not self.patch_lines:
            return None
        return "\n".join(self.patch_lines)


def parse_hunks(patch: str | None, path: str) -> list[Hunk]:
    """Split one file's patch text into hunks.

    Lines before the first hunk header are ignored. Never raises; text that
    does not look like a diff simply yields fewer hunks.
    """
    if not patch:
        return []

    hunks: list[Hunk] = []
    header: str | None = None
    body: list[str] = []

    for line in patch.split("\n"):
        if HUNK_HEADER_RE.match(line):
            if header is not None:
                hunks.append(_build_hunk(header, body, path, len(hunks)))
            header = line
            body = []
        elif header is not None:
            body.append(line)

    if header is not None:
        hunks.append(_build_hunk(header, body, path, len(hunks)))
    return hunks


def detect_red_flags(text: str, path: str) -> list[str]:
    """Return red-flag labels matched anywhere in a hunk's text."""
    return [flag.label for flag in _matching_flags(text, path)]


def is_workflow_path(path: str) -> bool:
    return WORKFLOW_DIR in path


def hunk_importance(added: int, removed: int, flag_count: int, path: str) -> int:
    importance = 30.0
    importance += min((added + removed) * 0.5, 30)
    importance += flag_count * 15
    if IMPORTANT_PATH_RE.search(path):
        importance += 20
    if is_workflow_path(path):
        importance += 25
    # half rounds up, never to even
    return _clamp(floor(importance + 0.5))


def split_unified_diff(diff_text: str) -> list[PatchFile]:
    """Split a multi-file unified diff into per-file patch sections."""
    files: list[PatchFile] = []
    current: PatchFile | None = None
    in_hunk = False

    def flush_file() -> None:
        nonlocal current, in_hunk
        if current is not None:
            files.append(current)
        current = None
        in_hunk = False

    lines = diff_text.splitlines()
    has_git_headers = any(line.startswith("diff --git ") for line in lines)

    for index, raw_line in enumerate(lines):
        if raw_line.startswith("diff --git "):
            flush_file()
            current = _start_file_from_diff_header(raw_line)
            continue

        if not in_hunk and raw_line.startswith("--- "):
            if current is None:
                current = PatchFile(old_path=None, new_path=None)
            current.old_path = _parse_path(raw_line[4:])
            continue

        if not in_hunk and raw_line.startswith("+++ "):
            if current is None:
                current = PatchFile(old_path=None, new_path=None)
            current.new_path = _parse_path(raw_line[4:])
            continue

        if HUNK_HEADER_RE.match(raw_line):
            if current is None:
                current = PatchFile(old_path=None, new_path=None)
            in_hunk = True
            current.patch_lines.append(raw_line)
            continue

        if current is None or not in_hunk:
            continue

        if not has_git_headers and _starts_plain_file_header(lines, index):
            # concatenated diffs without a "diff --git" separator
            flush_file()
            current = PatchFile(old_path=_parse_path(raw_line[4:]), new_path=None)
            continue

        current.patch_lines.append(raw_line)
        if raw_line.startswith("+"):
            current.additions += 1
        elif raw_line.startswith("-"):
            current.deletions += 1

    flush_file()
    return files


def _build_hunk(header: str, lines: list[str], path: str, index: int) -> Hunk:
    added = sum(1 for line in lines if line.startswith("+"))
    removed = sum(1 for line in lines if line.startswith("-"))
    diff_text = "\n".join(lines)
    flags = _matching_flags(diff_text, path)

    return Hunk(
        id=f"{path}-h{index}",
        header=header,
        added=added,
        removed=removed,
        modified=min(added, removed),
        importance=hunk_importance(added, removed, len(flags), path),
        diff_text=diff_text,
        red_flags=tuple(flag.label for flag in flags),
        comment_suggestion=suggest_comment(flags),
        fix_snippet="\n\n".join(flag.fix for flag in flags if flag.fix),
        test_suggestion=" ".join(flag.test for flag in flags if flag.test),
        patch_preview=_patch_preview(lines),
    )


def _matching_flags(text: str, path: str) -> list[RedFlag]:
    workflow = is_workflow_path(path)
    matched: list[RedFlag] = []
    seen: set[str] = set()
    for flag in RED_FLAGS:
        if flag.workflow_only and not workflow:
            continue
        if flag.category in seen or not flag.matches(text):
            continue
        seen.add(flag.category)
        matched.append(flag)
    return matched


def suggest_comment(flags: list[RedFlag]) -> str:
    """Review comment for matched flags, one canned sentence per flag."""
    if not flags:
        return NO_FLAGS_COMMENT
    comments = [flag.comment for flag in flags if flag.comment]
    if not comments:
        return GENERIC_FLAGS_COMMENT
    return " ".join(comments)


def _patch_preview(lines: list[str]) -> str:
    added = [line[1:] for line in lines if line.startswith("+")]
    if len(added) > PATCH_PREVIEW_MAX_LINES:
        hidden = len(added) - PATCH_PREVIEW_MAX_LINES
        added = added[:PATCH_PREVIEW_MAX_LINES] + [f"... ({hidden} more lines)"]
    return "\n".join(added)


def _starts_plain_file_header(lines: list[str], index: int) -> bool:
    if not lines[index].startswith(("--- a/", "--- /dev/null")):
        return False
    return index + 1 < len(lines) and lines[index + 1].startswith("+++ ")


def _start_file_from_diff_header(line: str) -> PatchFile:
    parts = line.split(maxsplit=3)
    old_path = _strip_ab_prefix(parts[2]) if len(parts) > 2 else None
    new_path = _strip_ab_prefix(parts[3]) if len(parts) > 3 else None
    return PatchFile(old_path=old_path, new_path=new_path)


def _parse_path(value: str) -> str:
    token = value.strip().split("\t", 1)[0]
    return _strip_ab_prefix(token)


def _strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _clamp(value: int, lower: int = 0, upper: int = 100) -> int:
    return max(lower, min(upper, value))
