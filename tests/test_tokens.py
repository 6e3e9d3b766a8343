"""Tests for adoc_sync.structure.tokens -- line classification and regions."""

import pytest

from adoc_sync.structure.common import (
    attribute_name,
    count_macros,
    match_heading,
    match_list_item,
)
from adoc_sync.structure.tokens import (
    Region,
    RegionKind,
    TokenKind,
    collect_regions,
    delimiter_kind,
    is_inside_region,
    region_open_after,
    token_at,
    tokenize,
)


class TestPrefixMatching:
    def test_heading_marks(self):
        m = match_heading("=== Getting Started")
        assert m.marks == "==="
        assert m.text == "Getting Started"

    def test_heading_needs_text(self):
        assert match_heading("==") is None
        assert match_heading("==Title") is None

    def test_indented_heading_keeps_indent(self):
        m = match_heading("  == Title")
        assert m.indent == "  "
        assert m.with_marks("=") == "  = Title"

    @pytest.mark.parametrize(
        "line,marks",
        [
            ("* item", "*"),
            ("** nested", "**"),
            (". ordered", "."),
            ("1. first", "1."),
            ("- dash", "-"),
        ],
    )
    def test_list_markers(self, line, marks):
        assert match_list_item(line).marks == marks

    def test_plain_text_is_not_list(self):
        assert match_list_item("Plain sentence.") is None

    def test_attribute_name(self):
        assert attribute_name(":page-title: Overview") == "page-title"
        assert attribute_name(":primary-lang: en") == "primary-lang"
        assert attribute_name("text :not-an-attr:") is None

    def test_count_macros(self):
        text = "xref:a.adoc[] and xref:b.adoc[]\ninclude::part.adoc[]\nimage::x.png[]"
        assert count_macros(text) == {"xref": 2, "include": 1, "image": 1}

    def test_inline_image_not_counted(self):
        assert count_macros("see image:icon.png[]")["image"] == 0


class TestTokenize:
    def test_kinds(self):
        lines = [
            ":page-title: X",
            "= Title",
            "",
            "* item",
            "Some text.",
            "----",
        ]
        kinds = [t.kind for t in tokenize(lines)]
        assert kinds == [
            TokenKind.ATTRIBUTE,
            TokenKind.HEADING,
            TokenKind.BLANK,
            TokenKind.LIST_ITEM,
            TokenKind.TEXT,
            TokenKind.BLOCK_DELIMITER,
        ]

    def test_heading_depth(self):
        tokens = tokenize(["== Two", "==== Four"])
        assert [t.depth for t in tokens] == [2, 4]

    def test_lines_inside_region_are_text(self):
        lines = ["----", "== not a heading", "* not a list", "", "----"]
        tokens = tokenize(lines)
        assert tokens[1].kind == TokenKind.TEXT
        assert tokens[1].inside_region
        assert tokens[2].kind == TokenKind.TEXT
        assert tokens[3].kind == TokenKind.BLANK
        assert tokens[3].inside_region

    def test_delimiters_are_outside(self):
        tokens = tokenize(["----", "code", "----"])
        assert tokens[0].kind == TokenKind.BLOCK_DELIMITER
        assert not tokens[0].inside_region
        assert not tokens[2].inside_region
        assert tokens[0].region == RegionKind.SOURCE

    def test_attribute_recognised_inside_region(self):
        tokens = tokenize(["....", ":name: value", "...."])
        assert tokens[1].kind == TokenKind.ATTRIBUTE
        assert tokens[1].name == "name"
        assert tokens[1].inside_region

    def test_source_and_literal_toggle_independently(self):
        lines = ["----", "....", "x", "----", "y", "....", "z"]
        tokens = tokenize(lines)
        assert tokens[2].inside_region
        # source closed, literal still open
        assert tokens[4].inside_region
        assert not tokens[6].inside_region

    def test_delimiter_with_trailing_whitespace(self):
        assert delimiter_kind("----  ") == RegionKind.SOURCE
        assert delimiter_kind("-----") is None

    def test_token_at_matches_full_tokenize(self):
        lines = ["= T", "----", "== x", "----", "== y"]
        full = tokenize(lines)
        for i in range(len(lines)):
            assert token_at(lines, i) == full[i]

    def test_token_at_out_of_range(self):
        with pytest.raises(IndexError):
            token_at(["a"], 3)

    def test_is_inside_region(self):
        lines = ["text", "----", "code", "----"]
        assert not is_inside_region(lines, 0)
        assert not is_inside_region(lines, 1)
        assert is_inside_region(lines, 2)


class TestRegions:
    def test_region_open_after(self):
        lines = ["a", "----", "b", "----", "c"]
        assert region_open_after(lines) == [False, True, True, False, False]

    def test_collect_closed_regions(self):
        lines = ["a", "----", "b", "----", "....", "c", "...."]
        assert collect_regions(lines) == [
            Region(RegionKind.SOURCE, 1, 3),
            Region(RegionKind.LITERAL, 4, 6),
        ]

    def test_unclosed_region_runs_to_end(self):
        lines = ["a", "----", "b", "c"]
        regions = collect_regions(lines)
        assert regions == [Region(RegionKind.SOURCE, 1, 3, closed=False)]
        assert regions[0].length == 3

    def test_nested_kinds_ordered_by_start(self):
        lines = ["....", "----", "x", "----", "...."]
        regions = collect_regions(lines)
        assert [r.kind for r in regions] == [
            RegionKind.LITERAL,
            RegionKind.SOURCE,
        ]
