"""Line tokenizer with delimited-region tracking.

Each line of a document is classified as one of the ``TokenKind`` values.
Source (``----``) and literal (``....``) regions are tracked by two
independent toggles; being inside either one counts as "inside a region".

Per-line precedence:

1. block delimiter (toggles the region state, reported as outside)
2. attribute entry (recognised everywhere)
3. inside a region: blank or text only
4. heading
5. list item
6. blank
7. text

All functions are pure; tokens are recomputed on every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .common import (
    LITERAL_DELIMITER,
    SOURCE_DELIMITER,
    attribute_name,
    count_macros,
    match_heading,
    match_list_item,
)

__all__ = [
    "Region",
    "RegionKind",
    "RegionTracker",
    "StructuralToken",
    "TokenKind",
    "attribute_name",
    "classify_line",
    "collect_regions",
    "count_macros",
    "delimiter_kind",
    "is_inside_region",
    "match_heading",
    "match_list_item",
    "region_open_after",
    "token_at",
    "tokenize",
]


class TokenKind(str, Enum):
    HEADING = "heading"
    LIST_ITEM = "list_item"
    ATTRIBUTE = "attribute"
    BLOCK_DELIMITER = "block_delimiter"
    BLANK = "blank"
    TEXT = "text"


class RegionKind(str, Enum):
    SOURCE = "source"
    LITERAL = "literal"


_DELIMITER_KINDS: dict[str, RegionKind] = {
    SOURCE_DELIMITER: RegionKind.SOURCE,
    LITERAL_DELIMITER: RegionKind.LITERAL,
}


def delimiter_kind(line: str) -> RegionKind | None:
    """Return the region kind a delimiter line toggles, or ``None``."""
    return _DELIMITER_KINDS.get(line.strip())


@dataclass(frozen=True)
class StructuralToken:
    """Classification of one line.

    Attributes:
        kind: Token kind.
        inside_region: Whether the line sits inside a delimited region.
        depth: Sigil count for headings, marker length for list items.
        name: Attribute name for attribute entries.
        region: Region kind for block delimiters.
    """

    kind: TokenKind
    inside_region: bool = False
    depth: int = 0
    name: str | None = None
    region: RegionKind | None = None


class RegionTracker:
    """Independent open/closed toggles for source and literal regions."""

    def __init__(self) -> None:
        self._open: dict[RegionKind, bool] = {
            kind: False for kind in RegionKind
        }

    def feed(self, line: str) -> RegionKind | None:
        """Advance over *line*; toggle and return its region kind if it is a delimiter."""
        kind = delimiter_kind(line)
        if kind is not None:
            self._open[kind] = not self._open[kind]
        return kind

    def is_open(self, kind: RegionKind) -> bool:
        return self._open[kind]

    @property
    def inside(self) -> bool:
        return any(self._open.values())


def classify_line(line: str, inside_region: bool) -> StructuralToken:
    """Classify a non-delimiter line given the current region state."""
    name = attribute_name(line)
    if name is not None:
        return StructuralToken(
            TokenKind.ATTRIBUTE, inside_region=inside_region, name=name
        )

    if inside_region:
        kind = TokenKind.BLANK if not line.strip() else TokenKind.TEXT
        return StructuralToken(kind, inside_region=True)

    heading = match_heading(line)
    if heading is not None:
        return StructuralToken(TokenKind.HEADING, depth=len(heading.marks))

    item = match_list_item(line)
    if item is not None:
        return StructuralToken(TokenKind.LIST_ITEM, depth=len(item.marks))

    if not line.strip():
        return StructuralToken(TokenKind.BLANK)
    return StructuralToken(TokenKind.TEXT)


def tokenize(lines: list[str]) -> list[StructuralToken]:
    """Classify every line of a document."""
    tracker = RegionTracker()
    tokens: list[StructuralToken] = []
    for line in lines:
        kind = tracker.feed(line)
        if kind is not None:
            tokens.append(
                StructuralToken(TokenKind.BLOCK_DELIMITER, region=kind)
            )
            continue
        tokens.append(classify_line(line, tracker.inside))
    return tokens


def token_at(lines: list[str], index: int) -> StructuralToken:
    """Return the token for the line at 0-based *index*.

    Raises:
        IndexError: If *index* is outside the document.
    """
    if not 0 <= index < len(lines):
        raise IndexError(f"line index {index} out of range")
    return tokenize(lines[: index + 1])[-1]


def is_inside_region(lines: list[str], index: int) -> bool:
    """Whether the line at 0-based *index* is inside a delimited region.

    Delimiter lines themselves are never inside.
    """
    return token_at(lines, index).inside_region


def region_open_after(lines: list[str]) -> list[bool]:
    """Region state after each line has been consumed.

    ``result[i]`` is true when a region is open between line ``i`` and
    line ``i + 1``. Used to place removals that fall between two lines.
    """
    tracker = RegionTracker()
    states: list[bool] = []
    for line in lines:
        tracker.feed(line)
        states.append(tracker.inside)
    return states


@dataclass(frozen=True)
class Region:
    """A delimited region, delimiter lines included.

    ``end`` is the closing delimiter index, or the last line of the
    document when the region is never closed.
    """

    kind: RegionKind
    start: int
    end: int
    closed: bool = True

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def collect_regions(lines: list[str]) -> list[Region]:
    """Collect delimited regions ordered by their opening line."""
    regions: list[Region] = []
    open_at: dict[RegionKind, int] = {}
    for index, line in enumerate(lines):
        kind = delimiter_kind(line)
        if kind is None:
            continue
        if kind in open_at:
            regions.append(Region(kind, open_at.pop(kind), index))
        else:
            open_at[kind] = index

    last = len(lines) - 1
    for kind, start in open_at.items():
        regions.append(Region(kind, start, last, closed=False))

    regions.sort(key=lambda r: (r.start, r.end))
    return regions
