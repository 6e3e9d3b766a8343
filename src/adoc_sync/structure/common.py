"""Common AsciiDoc syntax and result types for the structure passes."""

import re
from dataclasses import dataclass, field
from typing import NamedTuple

# =============================================================================
# Line-level AsciiDoc syntax
# =============================================================================
#
# Only the subset needed to align two language variants of one page is
# recognised. Everything is matched per line; there is no document model.
#
#   == Section title          heading, depth = number of '=' sigils
#   ** nested item            list item, marker run from [*.+0-9#-]
#   :page-title: Overview     attribute entry, name = "page-title"
#   ----  /  ....             source / literal block delimiters
# =============================================================================

HEADING_SIGIL = "="
SOURCE_DELIMITER = "----"
LITERAL_DELIMITER = "...."
PRIMARY_LANG_ATTRIBUTE = "primary-lang"

HEADING_PATTERN = re.compile(r"^(\s*)(=+)(\s+)(.+)$")
LIST_ITEM_PATTERN = re.compile(r"^(\s*)([*.+0-9#-]+)(\s+)(.+)$")
ATTRIBUTE_PATTERN = re.compile(r"^:([^:]+):")

# Macro family name -> substring counted in the whole document
MACRO_FAMILIES: dict[str, str] = {
    "xref": "xref:",
    "include": "include::",
    "image": "image::",
}


class PrefixMatch(NamedTuple):
    """A heading or list line split into indent, marker run, gap and text."""

    indent: str
    marks: str
    space: str
    text: str

    def with_marks(self, marks: str) -> str:
        """Rebuild the line with a different marker run."""
        return f"{self.indent}{marks}{self.space}{self.text}"


def match_heading(line: str) -> PrefixMatch | None:
    """Match a section heading line.

    Examples:
        >>> match_heading("== Getting Started").marks
        '=='
        >>> match_heading("==") is None
        True
    """
    m = HEADING_PATTERN.match(line)
    return PrefixMatch(*m.groups()) if m else None


def match_list_item(line: str) -> PrefixMatch | None:
    """Match a list item line (``*``, ``..``, ``1.``, ``#``, ``-`` markers)."""
    m = LIST_ITEM_PATTERN.match(line)
    return PrefixMatch(*m.groups()) if m else None


def attribute_name(line: str) -> str | None:
    """Return the attribute name declared on *line*, or ``None``.

    Examples:
        >>> attribute_name(":page-title: Overview")
        'page-title'
        >>> attribute_name("text :not-an-attr:") is None
        True
    """
    m = ATTRIBUTE_PATTERN.match(line)
    if not m:
        return None
    name = m.group(1).strip()
    return name or None


def count_macros(text: str) -> dict[str, int]:
    """Count each macro family in *text* (position-insensitive)."""
    return {
        family: text.count(token)
        for family, token in MACRO_FAMILIES.items()
    }


def split_lines(content: str) -> list[str]:
    """Split on ``\\n`` only, so that ``join_lines`` restores *content* exactly."""
    return content.split("\n")


def join_lines(lines: list[str]) -> str:
    return "\n".join(lines)


@dataclass
class AlignmentResult:
    """Result of a deterministic pass over a primary/secondary pair.

    Attributes:
        text: Full rewritten secondary content.
        changed_lines: 0-based indices of secondary lines that were rewritten.
        walked: Number of line indices visited (the shorter length).
        primary_length: Line count of the primary document.
        secondary_length: Line count of the secondary document.
        warnings: Notes about partial coverage.
    """

    text: str
    changed_lines: list[int] = field(default_factory=list)
    walked: int = 0
    primary_length: int = 0
    secondary_length: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changed_lines)

    @property
    def truncated(self) -> bool:
        """True when the documents differ in length and the walk stopped early."""
        return self.primary_length != self.secondary_length
