"""Positional heading/list marker alignment.

Walks a primary and a secondary document line by line up to the shorter
length. Where both lines are headings, the secondary takes the primary's
sigil run; where both are list items, it takes the primary's marker run.
The secondary keeps its own indentation, gap and text. Lines inside
delimited regions are never treated as headings or list items.

Lines that do not correspond (a heading on one side only, for example)
are left alone. This is best-effort alignment, not a structural rebuild.
"""

from __future__ import annotations

import logging

from .common import (
    AlignmentResult,
    join_lines,
    match_heading,
    match_list_item,
    split_lines,
)
from .tokens import TokenKind, tokenize

logger = logging.getLogger(__name__)


def align_structure(primary: str, secondary: str) -> AlignmentResult:
    """Copy structural prefixes from *primary* onto *secondary*.

    Args:
        primary: Authoritative document content.
        secondary: Counterpart document content.

    Returns:
        ``AlignmentResult`` whose ``text`` is the full new secondary content.
    """
    primary_lines = split_lines(primary)
    secondary_lines = split_lines(secondary)
    primary_tokens = tokenize(primary_lines)
    secondary_tokens = tokenize(secondary_lines)

    walked = min(len(primary_lines), len(secondary_lines))
    result_lines = list(secondary_lines)
    changed: list[int] = []

    for i in range(walked):
        p_kind = primary_tokens[i].kind
        s_kind = secondary_tokens[i].kind
        if p_kind != s_kind:
            continue

        if p_kind == TokenKind.HEADING:
            p_match = match_heading(primary_lines[i])
            s_match = match_heading(secondary_lines[i])
        elif p_kind == TokenKind.LIST_ITEM:
            p_match = match_list_item(primary_lines[i])
            s_match = match_list_item(secondary_lines[i])
        else:
            continue

        if p_match is None or s_match is None:
            continue
        if p_match.marks == s_match.marks:
            continue

        result_lines[i] = s_match.with_marks(p_match.marks)
        changed.append(i)
        logger.debug(
            "Line %d: %r -> %r", i + 1, s_match.marks, p_match.marks
        )

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
            f"aligned first {walked} lines only"
        )
    return result
