"""Structural equivalence check between a primary page and its counterpart.

Four independent checks, each reporting every violation it finds:

- **Headings** -- per line index up to the shorter length, heading
  presence and sigil count must match.
- **Blocks** -- source/literal regions must match in number; paired
  regions must match in type, line count and byte content.
- **Macros** -- ``xref:``, ``include::`` and ``image::`` counts must match
  over the whole document.
- **Attributes** -- the sets of attribute entry names must be equal.

An empty ``ValidationReport`` means the pair passed.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from .common import count_macros, split_lines
from .tokens import TokenKind, collect_regions, tokenize

Side = Literal["primary", "secondary"]


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class HeadingMismatch(BaseModel):
    """Heading presence or depth differs at one line.

    Attributes:
        line: 1-based line number.
        primary_marks: Sigil run in the primary, ``None`` if not a heading.
        secondary_marks: Sigil run in the secondary, ``None`` if not a heading.
    """

    line: int
    primary_marks: str | None = None
    secondary_marks: str | None = None
    primary_line: str
    secondary_line: str

    model_config = {"frozen": True}


class BlockCountMismatch(BaseModel):
    primary_count: int
    secondary_count: int

    model_config = {"frozen": True}


class BlockContentMismatch(BaseModel):
    """A paired region differs.

    Attributes:
        block_index: 1-based index of the region pair.
        problem: ``type``, ``line_count`` or ``content``.
        line: 1-based global line (primary numbering) for content problems.
        primary: Primary value (type, line count or line text).
        secondary: Secondary value.
    """

    block_index: int
    problem: Literal["type", "line_count", "content"]
    line: int | None = None
    primary: str
    secondary: str

    model_config = {"frozen": True}


class MacroCountMismatch(BaseModel):
    macro: str
    primary_count: int
    secondary_count: int

    model_config = {"frozen": True}


class AttributeNameMismatch(BaseModel):
    name: str
    present_in: Side

    model_config = {"frozen": True}


class ValidationReport(BaseModel):
    """Full result of ``validate_structure``; empty on every field means pass."""

    heading_mismatches: list[HeadingMismatch] = []
    block_count_mismatch: BlockCountMismatch | None = None
    block_content_mismatches: list[BlockContentMismatch] = []
    macro_count_mismatches: list[MacroCountMismatch] = []
    attribute_name_mismatches: list[AttributeNameMismatch] = []

    model_config = {"frozen": True}

    @property
    def passed(self) -> bool:
        return self.problem_count == 0

    @property
    def problem_count(self) -> int:
        return (
            len(self.heading_mismatches)
            + (1 if self.block_count_mismatch is not None else 0)
            + len(self.block_content_mismatches)
            + len(self.macro_count_mismatches)
            + len(self.attribute_name_mismatches)
        )

    def describe(self) -> list[str]:
        """One human-readable line per problem."""
        out: list[str] = []
        for h in self.heading_mismatches:
            if h.primary_marks and h.secondary_marks:
                out.append(
                    f"Heading level mismatch at line {h.line}: "
                    f'primary="{h.primary_marks}" secondary="{h.secondary_marks}"'
                )
            elif h.primary_marks:
                out.append(
                    f"Primary has a heading at line {h.line}, "
                    f'secondary does not: "{h.primary_line}"'
                )
            else:
                out.append(
                    f"Secondary has a heading at line {h.line}, "
                    f'primary does not: "{h.secondary_line}"'
                )

        if self.block_count_mismatch is not None:
            b = self.block_count_mismatch
            out.append(
                "Number of code/literal blocks differs: "
                f"primary={b.primary_count}, secondary={b.secondary_count}"
            )

        for c in self.block_content_mismatches:
            if c.problem == "type":
                out.append(
                    f"Block #{c.block_index} type mismatch: "
                    f"primary={c.primary}, secondary={c.secondary}"
                )
            elif c.problem == "line_count":
                out.append(
                    f"Block #{c.block_index} line count differs: "
                    f"primary={c.primary}, secondary={c.secondary}"
                )
            else:
                out.append(
                    f"Block #{c.block_index} differs at line {c.line}: "
                    f'primary="{c.primary}" secondary="{c.secondary}"'
                )

        for m in self.macro_count_mismatches:
            out.append(
                f'Macro count mismatch for "{m.macro}": '
                f"primary={m.primary_count}, secondary={m.secondary_count}"
            )

        for side in ("primary", "secondary"):
            names = [
                a.name
                for a in self.attribute_name_mismatches
                if a.present_in == side
            ]
            if names:
                out.append(
                    f"Attributes present only in {side}: {', '.join(names)}"
                )
        return out


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def _check_headings(
    primary_lines: list[str], secondary_lines: list[str]
) -> list[HeadingMismatch]:
    primary_tokens = tokenize(primary_lines)
    secondary_tokens = tokenize(secondary_lines)
    mismatches: list[HeadingMismatch] = []

    for i in range(min(len(primary_lines), len(secondary_lines))):
        p, s = primary_tokens[i], secondary_tokens[i]
        p_marks = "=" * p.depth if p.kind == TokenKind.HEADING else None
        s_marks = "=" * s.depth if s.kind == TokenKind.HEADING else None
        if p_marks == s_marks:
            continue
        mismatches.append(
            HeadingMismatch(
                line=i + 1,
                primary_marks=p_marks,
                secondary_marks=s_marks,
                primary_line=primary_lines[i],
                secondary_line=secondary_lines[i],
            )
        )
    return mismatches


def _check_blocks(
    primary_lines: list[str], secondary_lines: list[str]
) -> tuple[BlockCountMismatch | None, list[BlockContentMismatch]]:
    primary_regions = collect_regions(primary_lines)
    secondary_regions = collect_regions(secondary_lines)

    if len(primary_regions) != len(secondary_regions):
        # Pairing is meaningless once the counts differ
        return (
            BlockCountMismatch(
                primary_count=len(primary_regions),
                secondary_count=len(secondary_regions),
            ),
            [],
        )

    problems: list[BlockContentMismatch] = []
    for n, (pr, sr) in enumerate(
        zip(primary_regions, secondary_regions), start=1
    ):
        if pr.kind != sr.kind:
            problems.append(
                BlockContentMismatch(
                    block_index=n,
                    problem="type",
                    primary=pr.kind.value,
                    secondary=sr.kind.value,
                )
            )
            continue

        p_block = primary_lines[pr.start : pr.end + 1]
        s_block = secondary_lines[sr.start : sr.end + 1]
        if len(p_block) != len(s_block):
            problems.append(
                BlockContentMismatch(
                    block_index=n,
                    problem="line_count",
                    primary=str(len(p_block)),
                    secondary=str(len(s_block)),
                )
            )
            continue

        for offset, (p_line, s_line) in enumerate(zip(p_block, s_block)):
            if p_line != s_line:
                problems.append(
                    BlockContentMismatch(
                        block_index=n,
                        problem="content",
                        line=pr.start + offset + 1,
                        primary=p_line,
                        secondary=s_line,
                    )
                )
    return None, problems


def _check_macros(primary: str, secondary: str) -> list[MacroCountMismatch]:
    p_counts = count_macros(primary)
    s_counts = count_macros(secondary)
    return [
        MacroCountMismatch(
            macro=family,
            primary_count=p_counts[family],
            secondary_count=s_counts[family],
        )
        for family in p_counts
        if p_counts[family] != s_counts[family]
    ]


def _attribute_names(lines: list[str]) -> set[str]:
    return {
        t.name
        for t in tokenize(lines)
        if t.kind == TokenKind.ATTRIBUTE and t.name is not None
    }


def _check_attributes(
    primary_lines: list[str], secondary_lines: list[str]
) -> list[AttributeNameMismatch]:
    p_names = _attribute_names(primary_lines)
    s_names = _attribute_names(secondary_lines)
    return [
        AttributeNameMismatch(name=name, present_in="primary")
        for name in sorted(p_names - s_names)
    ] + [
        AttributeNameMismatch(name=name, present_in="secondary")
        for name in sorted(s_names - p_names)
    ]


def validate_structure(primary: str, secondary: str) -> ValidationReport:
    """Run all four structural checks.

    Args:
        primary: Authoritative document content.
        secondary: Counterpart document content.

    Returns:
        ``ValidationReport`` listing every violation found.
    """
    primary_lines = split_lines(primary)
    secondary_lines = split_lines(secondary)
    block_count, block_content = _check_blocks(
        primary_lines, secondary_lines
    )
    return ValidationReport(
        heading_mismatches=_check_headings(primary_lines, secondary_lines),
        block_count_mismatch=block_count,
        block_content_mismatches=block_content,
        macro_count_mismatches=_check_macros(primary, secondary),
        attribute_name_mismatches=_check_attributes(
            primary_lines, secondary_lines
        ),
    )


__all__ = [
    "AttributeNameMismatch",
    "BlockContentMismatch",
    "BlockCountMismatch",
    "HeadingMismatch",
    "MacroCountMismatch",
    "ValidationReport",
    "validate_structure",
]
