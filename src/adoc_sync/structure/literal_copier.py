"""Verbatim copy of source and literal block lines.

Both documents are walked in lock-step, each with its own
``RegionTracker``. A line's own delimiter toggle is applied before the
check, so an opening delimiter counts as inside and a closing one as
outside. Wherever both documents are inside a region (of any kind) at
the same index, the secondary line is replaced by the primary line.

Indices where only one side is inside are left untouched; the
validator reports those as block mismatches.
"""

from __future__ import annotations

from .common import AlignmentResult, join_lines, split_lines
from .tokens import RegionTracker


def copy_literal_blocks(primary: str, secondary: str) -> AlignmentResult:
    """Copy code/literal block content from *primary* onto *secondary*.

    Args:
        primary: Authoritative document content.
        secondary: Counterpart document content.

    Returns:
        ``AlignmentResult`` whose ``changed_lines`` are the overwritten
        indices that actually differed.
    """
    primary_lines = split_lines(primary)
    secondary_lines = split_lines(secondary)
    walked = min(len(primary_lines), len(secondary_lines))

    primary_regions = RegionTracker()
    secondary_regions = RegionTracker()
    result_lines = list(secondary_lines)
    changed: list[int] = []

    for i in range(walked):
        primary_regions.feed(primary_lines[i])
        secondary_regions.feed(secondary_lines[i])

        if primary_regions.inside and secondary_regions.inside:
            if result_lines[i] != primary_lines[i]:
                changed.append(i)
            result_lines[i] = primary_lines[i]

    result = AlignmentResult(
        text=join_lines(result_lines),
        changed_lines=changed,
        walked=walked,
        primary_length=len(primary_lines),
        secondary_length=len(secondary_lines),
    )
    if result.truncated:
        result.warnings.append(
            f"line counts differ (primary={result.primary_length}, "
            f"secondary={result.secondary_length}); "
            f"copied within first {walked} lines only"
        )
    return result
