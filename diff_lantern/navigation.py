"""Risk-ordered review traversal over (file, hunk) positions.

A ``Cursor`` always holds indices into the caller's original file list and
each file's original hunk list. Risk order is only used to decide which file
comes next; it is never what a cursor indexes into.

Files are visited in descending risk order and hunks within a file in their
original order. Files without hunks are skipped so every returned cursor
resolves to an existing hunk.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from diff_lantern.diff_parser import FileDiff
from diff_lantern.scoring import compute_risk


@dataclass(frozen=True, slots=True)
class Cursor:
    """A position in the review: original file index and hunk index."""

    file_index: int
    hunk_index: int


def risk_order(files: Sequence[FileDiff]) -> list[int]:
    """Original file indices sorted by descending computed risk (stable)."""
    scores = [compute_risk(file_diff).score for file_diff in files]
    return sorted(range(len(files)), key=lambda index: scores[index], reverse=True)


def first_cursor(
    files: Sequence[FileDiff], order: Sequence[int] | None = None
) -> Cursor | None:
    """Starting point of a review: the first hunk of the riskiest file with hunks."""
    ordering = order if order is not None else risk_order(files)
    for file_index in ordering:
        if _has_hunks(files, file_index):
            return Cursor(file_index, 0)
    return None


def next_cursor(
    files: Sequence[FileDiff], cursor: Cursor, order: Sequence[int] | None = None
) -> Cursor | None:
    """Next position, or None when the review is complete.

    ``order`` lets callers reuse a precomputed ``risk_order``.
    """
    if not is_valid_cursor(files, cursor):
        return None

    if cursor.hunk_index < len(files[cursor.file_index].hunks) - 1:
        return Cursor(cursor.file_index, cursor.hunk_index + 1)

    ordering = list(order) if order is not None else risk_order(files)
    if cursor.file_index not in ordering:
        return None
    position = ordering.index(cursor.file_index)
    for file_index in ordering[position + 1 :]:
        if _has_hunks(files, file_index):
            return Cursor(file_index, 0)
    return None


def prev_cursor(
    files: Sequence[FileDiff], cursor: Cursor, order: Sequence[int] | None = None
) -> Cursor | None:
    """Previous position, or None at the start of the review."""
    if not is_valid_cursor(files, cursor):
        return None

    if cursor.hunk_index > 0:
        return Cursor(cursor.file_index, cursor.hunk_index - 1)

    ordering = list(order) if order is not None else risk_order(files)
    if cursor.file_index not in ordering:
        return None
    position = ordering.index(cursor.file_index)
    for file_index in reversed(ordering[:position]):
        if _has_hunks(files, file_index):
            return Cursor(file_index, len(files[file_index].hunks) - 1)
    return None


def walk(
    files: Sequence[FileDiff],
    start: Cursor | None = None,
    order: Sequence[int] | None = None,
) -> Iterator[Cursor]:
    """Yield every cursor from ``start`` (default: ``first_cursor``) to the end."""
    ordering = list(order) if order is not None else risk_order(files)
    cursor = start if start is not None else first_cursor(files, ordering)
    if cursor is not None and not is_valid_cursor(files, cursor):
        return
    while cursor is not None:
        yield cursor
        cursor = next_cursor(files, cursor, ordering)


def importance_queue(
    files: Sequence[FileDiff], order: Sequence[int] | None = None
) -> list[Cursor]:
    """Every hunk as one flat list: riskiest file first, then by hunk importance.

    This is a listing for triage views. It is deliberately not the order
    ``next_cursor`` follows, which keeps each file's original hunk order.
    """
    ordering = order if order is not None else risk_order(files)
    queue: list[Cursor] = []
    for file_index in ordering:
        if not _has_hunks(files, file_index):
            continue
        hunks = files[file_index].hunks
        ranked = sorted(range(len(hunks)), key=lambda index: hunks[index].importance, reverse=True)
        queue.extend(Cursor(file_index, hunk_index) for hunk_index in ranked)
    return queue


def total_hunks(files: Sequence[FileDiff]) -> int:
    return sum(len(file_diff.hunks) for file_diff in files)


def current_hunk_number(files: Sequence[FileDiff], cursor: Cursor) -> int:
    """1-based position of ``cursor`` counting hunks in original file order.

    This numbering is independent of the risk-ordered traversal. Returns 0
    when the cursor does not resolve.
    """
    if not is_valid_cursor(files, cursor):
        return 0
    return sum(len(files[index].hunks) for index in range(cursor.file_index)) + (
        cursor.hunk_index + 1
    )


def is_valid_cursor(files: Sequence[FileDiff], cursor: Cursor) -> bool:
    if not 0 <= cursor.file_index < len(files):
        return False
    return 0 <= cursor.hunk_index < len(files[cursor.file_index].hunks)


def _has_hunks(files: Sequence[FileDiff], file_index: int) -> bool:
    return 0 <= file_index < len(files) and bool(files[file_index].hunks)
