"""Unified diff reading for change classification.

Reads the output of ``git diff -U0`` (or any unified diff) into
``LineDiffRecord`` values. Line counters come from the hunk headers and
restart at every hunk; each record belongs to exactly one ``DiffHunk``.

Numbering:

- removed lines carry their line number in the old file;
- added lines carry their line number in the staged file;
- every record also carries ``new_position``: the staged line the change
  sits at. For a removal this is the staged line that follows the
  removal point.

A side with a zero count (``+12,0``) names the line *after which* the
change sits, so its counter starts one line later.

``unified_diff`` produces a zero-context diff between two texts for
callers that have no version control at hand.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field
from typing import Literal

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

ChangeKind = Literal["added", "removed"]


@dataclass(frozen=True)
class LineDiffRecord:
    """One added or removed line.

    Attributes:
        kind: ``"added"`` or ``"removed"``.
        line_number: Old-file line for removals, staged-file line for additions.
        text: Line content without the ``+``/``-`` prefix.
        hunk: 0-based index of the owning hunk.
        new_position: Staged-file line the change sits at (1-based).
    """

    kind: ChangeKind
    line_number: int
    text: str
    hunk: int = 0
    new_position: int = 0


@dataclass(frozen=True)
class DiffHunk:
    index: int
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    records: tuple[LineDiffRecord, ...] = field(default_factory=tuple)

    @property
    def added(self) -> list[LineDiffRecord]:
        return [r for r in self.records if r.kind == "added"]

    @property
    def removed(self) -> list[LineDiffRecord]:
        return [r for r in self.records if r.kind == "removed"]


class _HunkReader:
    """Accumulates the body of one hunk until both side counts are used up."""

    def __init__(self, index: int, header: re.Match) -> None:
        self.index = index
        self.old_start = int(header.group(1))
        self.old_count = int(header.group(2) or "1")
        self.new_start = int(header.group(3))
        self.new_count = int(header.group(4) or "1")

        self.old_line = self.old_start + (1 if self.old_count == 0 else 0)
        self.new_line = self.new_start + (1 if self.new_count == 0 else 0)
        self.old_left = self.old_count
        self.new_left = self.new_count
        self.records: list[LineDiffRecord] = []

    @property
    def done(self) -> bool:
        return self.old_left <= 0 and self.new_left <= 0

    def feed(self, line: str) -> None:
        if line.startswith("\\"):
            # "\ No newline at end of file"
            return

        prefix, text = line[:1], line[1:]
        if prefix == "-":
            self.records.append(
                LineDiffRecord(
                    "removed",
                    self.old_line,
                    text,
                    self.index,
                    self.new_line,
                )
            )
            self.old_line += 1
            self.old_left -= 1
        elif prefix == "+":
            self.records.append(
                LineDiffRecord(
                    "added",
                    self.new_line,
                    text,
                    self.index,
                    self.new_line,
                )
            )
            self.new_line += 1
            self.new_left -= 1
        elif prefix in (" ", ""):
            # Context line; some tools strip the space of empty context lines
            self.old_line += 1
            self.new_line += 1
            self.old_left -= 1
            self.new_left -= 1
        else:
            raise ValueError(
                f"Malformed line in hunk {self.index + 1}: {line!r}"
            )

    def build(self) -> DiffHunk:
        return DiffHunk(
            index=self.index,
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            records=tuple(self.records),
        )


def parse_hunks(diff_text: str) -> list[DiffHunk]:
    """Split a unified diff into hunks.

    File headers (``diff --git``, ``---``, ``+++``, ``index ...``) and
    anything before the first hunk are skipped. Hunk bodies are consumed by
    count, so a removed line that itself starts with ``--`` is never
    mistaken for a header.

    Raises:
        ValueError: If a hunk body contains a line with an unknown prefix.
    """
    hunks: list[DiffHunk] = []
    current: _HunkReader | None = None

    for line in diff_text.split("\n"):
        header = HUNK_HEADER.match(line)
        if header:
            if current is not None:
                hunks.append(current.build())
            current = _HunkReader(len(hunks), header)
            continue

        if current is None:
            continue
        if current.done:
            if not line.startswith("\\"):
                hunks.append(current.build())
                current = None
            continue
        current.feed(line)

    if current is not None:
        hunks.append(current.build())
    return hunks


def parse_unified_diff(diff_text: str) -> list[LineDiffRecord]:
    """Return every added/removed line record of *diff_text*, in diff order."""
    return [r for h in parse_hunks(diff_text) for r in h.records]


def unified_diff(
    old: str,
    new: str,
    from_label: str = "a",
    to_label: str = "b",
    context: int = 0,
) -> str:
    """Return a unified diff of *old* against *new*; empty string if identical.

    Lines are split on ``\\n`` so numbering matches the rest of the
    package. The default of zero context lines mirrors ``git diff -U0``.
    """
    lines = difflib.unified_diff(
        old.split("\n"),
        new.split("\n"),
        fromfile=from_label,
        tofile=to_label,
        n=context,
        lineterm="",
    )
    return "\n".join(lines)
