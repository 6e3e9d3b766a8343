"""Tests for adoc_sync.pages -- page pairing and preflight checks."""

import pytest

from adoc_sync.config_schema import PreflightConfig
from adoc_sync.errors import PreflightError
from adoc_sync.pages import (
    PageMapper,
    check_filenames,
    check_manual_secondary_edits,
    check_marker_consistency,
    ensure_primary_lang,
    read_primary_lang,
    run_preflight,
)
from adoc_sync.translation.prompts import Direction

PAGE = "modules/ROOT/pages/index.adoc"


class TestReadPrimaryLang:
    @pytest.mark.parametrize(
        "content,expected",
        [
            (":primary-lang: en\n= T", "en"),
            (":primary-lang: en-US\n", "en"),
            (":Primary-Lang:   sr-Latn  \n", "sr"),
            ("= T\n:primary-lang: DE\n", "de"),
            ("= T\n", None),
        ],
    )
    def test_values(self, content, expected):
        assert read_primary_lang(content) == expected


class TestPageMapper:
    def test_requires_two_trees(self, tmp_path, trees):
        with pytest.raises(ValueError, match="exactly two"):
            PageMapper(tmp_path, trees[:1])

    def test_locate(self, mapper, tmp_path):
        tree, key = mapper.locate(f"docs-sr/{PAGE}")
        assert tree.lang == "sr"
        assert key == PAGE
        assert mapper.locate(tmp_path / "docs-en" / PAGE)[1] == PAGE
        assert mapper.locate("README.adoc") is None

    def test_is_page(self, mapper):
        assert mapper.is_page(PAGE)
        assert mapper.is_page("modules/ROOT/index.adoc")
        assert not mapper.is_page("modules/ROOT/nav.adoc")
        assert not mapper.is_page("modules/ROOT/pages/image.png")
        assert not mapper.is_page("antora.yml")

    def test_pair_from_english_tree(self, mapper, tmp_path):
        pair = mapper.pair_for(f"docs-en/{PAGE}")
        assert pair.key == PAGE
        assert pair.primary_path == (tmp_path / "docs-en" / PAGE).resolve()
        assert pair.secondary_path == (tmp_path / "docs-sr" / PAGE).resolve()
        assert pair.direction == Direction("en", "sr")

    def test_pair_from_serbian_tree(self, mapper):
        pair = mapper.pair_for(f"docs-sr/{PAGE}")
        assert str(pair.direction) == "sr-en"

    def test_pair_for_non_page(self, mapper):
        assert mapper.pair_for("docs-en/modules/ROOT/nav.adoc") is None
        assert mapper.pair_for("src/main.py") is None

    def test_discover(self, mapper, repo):
        repo(
            {
                f"docs-en/{PAGE}": "= A\n",
                "docs-en/modules/ROOT/pages/b.adoc": "= B\n",
                "docs-en/modules/ROOT/nav.adoc": "* x\n",
            }
        )
        tree = mapper.tree_for_lang("en")
        assert mapper.discover(tree) == [
            "modules/ROOT/pages/b.adoc",
            PAGE,
        ]
        assert mapper.discover(mapper.tree_for_lang("sr")) == []

    def test_from_config(self, tmp_path):
        from adoc_sync.config_schema import build_config

        config = build_config({"pages": ["**/*.adoc"], "exclude": []})
        mapper = PageMapper.from_config(tmp_path, config)
        assert mapper.is_page("modules/ROOT/nav.adoc")


# ---------------------------------------------------------------------------
# Preflight
# ---------------------------------------------------------------------------


class TestEnsurePrimaryLang:
    def test_marker_added_per_tree(self, mapper, repo, tmp_path):
        repo({f"docs-en/{PAGE}": "= Guide\n", f"docs-sr/{PAGE}": "= Vodič\n"})

        marked = ensure_primary_lang(mapper, [f"docs-en/{PAGE}", f"docs-sr/{PAGE}"])

        assert marked == [f"docs-en/{PAGE}", f"docs-sr/{PAGE}"]
        en = (tmp_path / "docs-en" / PAGE).read_text(encoding="utf-8")
        sr = (tmp_path / "docs-sr" / PAGE).read_text(encoding="utf-8")
        assert en == ":primary-lang: en\n\n= Guide\n"
        assert sr == ":primary-lang: sr\n\n= Vodič\n"

    def test_existing_marker_kept(self, mapper, repo, tmp_path):
        content = "= Guide\n:Primary-Lang: sr\n"
        repo({f"docs-en/{PAGE}": content})
        assert ensure_primary_lang(mapper, [f"docs-en/{PAGE}"]) == []
        assert (tmp_path / "docs-en" / PAGE).read_text(encoding="utf-8") == content

    def test_skipped_files(self, mapper, repo, tmp_path):
        repo(
            {
                "docs-en/modules/ROOT/nav.adoc": "* xref:index.adoc[]\n",
                "docs-en/antora.yml": "name: docs\n",
                "README.adoc": "= Readme\n",
            }
        )
        staged = [
            "docs-en/modules/ROOT/nav.adoc",
            "docs-en/antora.yml",
            "README.adoc",
            f"docs-en/{PAGE}",
        ]
        assert ensure_primary_lang(mapper, staged) == []
        nav = tmp_path / "docs-en" / "modules" / "ROOT" / "nav.adoc"
        assert nav.read_text(encoding="utf-8") == "* xref:index.adoc[]\n"

    def test_marker_enables_manual_edit_check(self, mapper, repo):
        # an unmarked counterpart gives no signal until it is marked
        repo({f"docs-en/{PAGE}": "= Guide\n", f"docs-sr/{PAGE}": "= Vodič\n"})
        assert check_manual_secondary_edits(mapper, [f"docs-sr/{PAGE}"]) == []
        ensure_primary_lang(mapper, [f"docs-en/{PAGE}"])
        assert len(check_manual_secondary_edits(mapper, [f"docs-sr/{PAGE}"])) == 1


class TestCheckFilenames:
    def test_valid(self):
        assert check_filenames([f"docs-en/{PAGE}", "docs-en/x/getting_started-2.adoc"]) == []

    def test_reasons(self):
        problems = check_filenames(
            [
                "docs-en/modules/ROOT/pages/my page.adoc",
                "docs-sr/modules/ROOT/pages/uputstvo-č.adoc",
                "docs-en/modules/ROOT/pages/Index.adoc",
            ]
        )
        assert len(problems) == 3
        assert "contains spaces" in problems[0]
        assert "non-ASCII" in problems[1]
        assert "invalid characters" in problems[2]

    def test_non_adoc_ignored(self):
        assert check_filenames(["docs-en/My Image.PNG"]) == []


class TestMarkerConsistency:
    def test_matching_marker(self, mapper, repo):
        repo({f"docs-en/{PAGE}": ":primary-lang: en\n= A\n"})
        assert check_marker_consistency(mapper, [f"docs-en/{PAGE}"]) == []

    def test_no_marker(self, mapper, repo):
        repo({f"docs-en/{PAGE}": "= A\n"})
        assert check_marker_consistency(mapper, [f"docs-en/{PAGE}"]) == []

    def test_wrong_marker(self, mapper, repo):
        repo({f"docs-sr/{PAGE}": ":primary-lang: en\n= A\n"})
        assert check_marker_consistency(mapper, [f"docs-sr/{PAGE}"]) == [
            f"docs-sr/{PAGE} (folder=docs-sr, :primary-lang: en)"
        ]


class TestManualSecondaryEdits:
    def test_generated_page_edited_alone(self, mapper, repo):
        repo(
            {
                f"docs-en/{PAGE}": ":primary-lang: en\n= A\n",
                f"docs-sr/{PAGE}": ":primary-lang: en\n= A\n",
            }
        )
        assert check_manual_secondary_edits(mapper, [f"docs-sr/{PAGE}"]) == [
            f"docs-sr/{PAGE} (generated from docs-en/{PAGE})"
        ]

    def test_primary_staged_too(self, mapper, repo):
        repo(
            {
                f"docs-en/{PAGE}": ":primary-lang: en\n= A\n",
                f"docs-sr/{PAGE}": ":primary-lang: en\n= A\n",
            }
        )
        staged = [f"docs-en/{PAGE}", f"docs-sr/{PAGE}"]
        assert check_manual_secondary_edits(mapper, staged) == []

    def test_counterpart_without_marker(self, mapper, repo):
        repo({f"docs-en/{PAGE}": "= A\n", f"docs-sr/{PAGE}": "= A\n"})
        assert check_manual_secondary_edits(mapper, [f"docs-sr/{PAGE}"]) == []

    def test_serbian_primary(self, mapper, repo):
        repo(
            {
                f"docs-sr/{PAGE}": ":primary-lang: sr\n= A\n",
                f"docs-en/{PAGE}": ":primary-lang: sr\n= A\n",
            }
        )
        assert check_manual_secondary_edits(mapper, [f"docs-sr/{PAGE}"]) == []
        assert len(check_manual_secondary_edits(mapper, [f"docs-en/{PAGE}"])) == 1


class TestRunPreflight:
    def test_passes(self, mapper, repo):
        repo({f"docs-en/{PAGE}": ":primary-lang: en\n= A\n"})
        run_preflight(mapper, [f"docs-en/{PAGE}", "README.md"])

    def test_non_pages_not_checked(self, mapper):
        run_preflight(mapper, ["scripts/Bad Name.adoc"])

    def test_first_failing_check_raises(self, mapper, repo):
        repo({"docs-en/modules/ROOT/pages/Bad Name.adoc": "= A\n"})
        with pytest.raises(PreflightError) as exc_info:
            run_preflight(mapper, ["docs-en/modules/ROOT/pages/Bad Name.adoc"])
        assert str(exc_info.value) == "Preflight failed: invalid page file name(s)"
        assert len(exc_info.value.problems) == 1

    def test_marker_failure(self, mapper, repo):
        repo({f"docs-sr/{PAGE}": ":primary-lang: en\n= A\n"})
        with pytest.raises(PreflightError, match="inconsistent :primary-lang:"):
            run_preflight(mapper, [f"docs-sr/{PAGE}"])

    def test_checks_can_be_disabled(self, mapper, repo):
        repo({f"docs-sr/{PAGE}": ":primary-lang: en\n= A\n"})
        settings = PreflightConfig(marker_consistency=False)
        run_preflight(mapper, [f"docs-sr/{PAGE}"], settings)
