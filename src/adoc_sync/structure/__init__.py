"""Line-level AsciiDoc structure passes.

- ``tokens``         -- per-line classification and delimited-region tracking.
- ``aligner``        -- copy heading/list marker runs onto the counterpart.
- ``literal_copier`` -- copy source/literal block lines verbatim.
- ``validator``      -- post-hoc structural equivalence report.

All passes are pure functions over full document text.
"""

from .aligner import align_structure
from .common import AlignmentResult
from .literal_copier import copy_literal_blocks
from .tokens import (
    Region,
    RegionKind,
    StructuralToken,
    TokenKind,
    collect_regions,
    tokenize,
)
from .validator import ValidationReport, validate_structure

__all__ = [
    "AlignmentResult",
    "Region",
    "RegionKind",
    "StructuralToken",
    "TokenKind",
    "ValidationReport",
    "align_structure",
    "collect_regions",
    "copy_literal_blocks",
    "tokenize",
    "validate_structure",
]
