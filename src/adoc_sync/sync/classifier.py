"""Classify an edit to a primary page.

Given the staged content of a page and the unified diff against its last
committed version, ``classify_change`` returns one ``Verdict``:

1. **Code-only pre-check** (opt-in): if every changed line sits inside a
   source/literal region of the staged file, the verdict is ``CODE_ONLY``.
2. **Normalization**: each changed line loses its structural prefix
   (heading sigils, list markers, attribute name, leading ``[...]`` block
   attributes); comment lines and lines without any letter are dropped.
   The surviving added and removed texts are deduplicated and sorted
   with an accent-insensitive collation.
3. **Fail-safe**: a non-empty diff that normalizes to nothing on both
   sides is ``TEXT_AND_STRUCTURE``, never ``NO_CHANGES``.
4. Both sides empty: ``NO_CHANGES``.
5. Equal sides: ``STRUCTURAL_ONLY``; otherwise ``TEXT_AND_STRUCTURE``.

The classifier is pure: identical inputs always give the identical verdict.
"""

from __future__ import annotations

import logging
import re
import unicodedata

from adoc_sync.structure.common import split_lines
from adoc_sync.structure.tokens import delimiter_kind, region_open_after, tokenize

from .diffparse import LineDiffRecord, parse_unified_diff
from .models import Verdict

logger = logging.getLogger(__name__)

_HEADING_PREFIX = re.compile(r"^=+\s+")
_MARKER_PREFIX = re.compile(r"^[=*.+0-9#-]+\s*")
_ATTRIBUTE_PREFIX = re.compile(r"^:[^:]+:\s*")
_BLOCK_ATTRIBUTES = re.compile(r"^\[[^\]]*\]\s*")


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_line(line: str) -> str | None:
    """Reduce one changed line to its human-readable text.

    Returns:
        The remaining text, or ``None`` when nothing readable is left.

    Examples:
        >>> normalize_line("=== Getting Started")
        'Getting Started'
        >>> normalize_line("** Install the package.")
        'Install the package.'
        >>> normalize_line("[source,java]") is None
        True
    """
    text = line.lstrip()
    if text.startswith("//"):
        return None

    text = _ATTRIBUTE_PREFIX.sub("", text, count=1)
    text = _BLOCK_ATTRIBUTES.sub("", text, count=1)

    if _HEADING_PREFIX.match(text):
        text = _HEADING_PREFIX.sub("", text, count=1)
    else:
        text = _MARKER_PREFIX.sub("", text, count=1)
    text = text.rstrip()

    if not any(ch.isalpha() for ch in text):
        return None
    return text


def collation_key(text: str) -> tuple[str, str]:
    """Accent- and case-insensitive sort key with a stable tie-break."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text)


def normalize_lines(lines: list[str]) -> list[str]:
    """Normalize, deduplicate and sort changed lines."""
    kept = {n for n in (normalize_line(line) for line in lines) if n}
    return sorted(kept, key=collation_key)


# ---------------------------------------------------------------------------
# Code-only detection
# ---------------------------------------------------------------------------


def _all_inside_regions(
    records: list[LineDiffRecord], staged_lines: list[str]
) -> bool:
    """True when every record sits inside a delimited region of the staged file.

    Added lines are looked up at their own staged line. Removals are
    placed between the staged lines around the removal point. Any
    delimiter line added or removed counts as a change outside regions.
    """
    tokens = tokenize(staged_lines)
    open_after = region_open_after(staged_lines)

    for record in records:
        if delimiter_kind(record.text) is not None:
            return False

        if record.kind == "added":
            index = record.line_number - 1
            if not 0 <= index < len(tokens):
                return False
            if not tokens[index].inside_region:
                return False
        else:
            before = record.new_position - 2
            if before < 0 or before >= len(open_after):
                return False
            if not open_after[before]:
                return False
    return True


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_records(
    records: list[LineDiffRecord],
    staged_content: str,
    *,
    detect_code_only: bool = False,
) -> Verdict:
    """Classify pre-parsed diff records.

    Args:
        records: Added/removed line records of one page.
        staged_content: Full staged content of the page.
        detect_code_only: Enable the ``CODE_ONLY`` pre-check.

    Returns:
        The verdict for this change.
    """
    if not records:
        return Verdict.NO_CHANGES

    if detect_code_only and _all_inside_regions(
        records, split_lines(staged_content)
    ):
        return Verdict.CODE_ONLY

    added = normalize_lines([r.text for r in records if r.kind == "added"])
    removed = normalize_lines(
        [r.text for r in records if r.kind == "removed"]
    )

    if not added and not removed:
        logger.debug(
            "Diff with %d changed lines normalized to nothing; "
            "treating as text change",
            len(records),
        )
        return Verdict.TEXT_AND_STRUCTURE

    if "\n".join(added) == "\n".join(removed):
        return Verdict.STRUCTURAL_ONLY
    return Verdict.TEXT_AND_STRUCTURE


def classify_change(
    staged_content: str,
    diff_text: str,
    *,
    detect_code_only: bool = False,
) -> Verdict:
    """Classify the edit described by *diff_text*.

    Args:
        staged_content: Full staged content of the primary page.
        diff_text: Unified diff from the last committed version to
            *staged_content* (``git diff --cached -U0`` output).
        detect_code_only: Enable the ``CODE_ONLY`` pre-check.

    Returns:
        The verdict. A diff that cannot be read classifies as
        ``TEXT_AND_STRUCTURE``.
    """
    if not diff_text.strip():
        return Verdict.NO_CHANGES

    try:
        records = parse_unified_diff(diff_text)
    except ValueError as exc:
        logger.warning("Unreadable diff, assuming text change: %s", exc)
        return Verdict.TEXT_AND_STRUCTURE

    if not records:
        # Non-empty diff text without change lines (mode change, rename)
        return Verdict.NO_CHANGES

    return classify_records(
        records, staged_content, detect_code_only=detect_code_only
    )
