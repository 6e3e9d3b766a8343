"""Tests for sync reporter formatting functions."""

from __future__ import annotations

from typing import Any

from adoc_sync.structure.validator import validate_structure
from adoc_sync.sync.models import (
    PipelineState,
    RunReport,
    Strategy,
    SyncDecision,
    Verdict,
)
from adoc_sync.sync.reporter import (
    format_dry_run_preview,
    format_run_report,
    format_usage,
    format_usage_breakdown,
    format_validation_report,
    report_to_json,
)
from adoc_sync.translation.ledger import UsageTotals
from adoc_sync.translation.prompts import TranslationMode


def _decision(**overrides: Any) -> SyncDecision:
    defaults: dict[str, Any] = {
        "page_key": "modules/ROOT/pages/index.adoc",
        "primary_path": "docs-en/modules/ROOT/pages/index.adoc",
        "secondary_path": "docs-sr/modules/ROOT/pages/index.adoc",
        "direction": "en-sr",
        "verdict": Verdict.TEXT_AND_STRUCTURE,
        "strategy": Strategy.TRANSLATE,
        "state": PipelineState.ACCEPTED,
    }
    defaults.update(overrides)
    return SyncDecision(**defaults)


def _report(decisions, **overrides: Any) -> RunReport:
    return RunReport(
        decisions=decisions,
        started_at="2026-01-01T00:00:00+00:00",
        completed_at="2026-01-01T00:00:05+00:00",
        **overrides,
    )


BAD_REPORT = validate_structure("== A\n", "=== A\n")


class TestFormatValidationReport:
    def test_ok(self):
        assert format_validation_report(validate_structure("x", "x")) == "Validation: OK"

    def test_problems(self):
        text = format_validation_report(BAD_REPORT, "page.adoc")
        assert text.splitlines() == [
            "page.adoc: 1 problem(s)",
            '  - Heading level mismatch at line 1: primary="==" secondary="==="',
        ]


class TestFormatRunReport:
    def test_summary_counts(self):
        report = _report(
            [
                _decision(),
                _decision(
                    page_key="a.adoc",
                    verdict=Verdict.NO_CHANGES,
                    strategy=Strategy.NONE,
                    state=PipelineState.NO_OP,
                ),
            ]
        )
        text = format_run_report(report)
        assert "TEXT_AND_STRUCTURE: 1" in text
        assert "NO_CHANGES:         1" in text
        assert "Total:              2" in text
        assert "Started: 2026-01-01T00:00:00+00:00" in text

    def test_no_op_distinct_from_accepted(self):
        report = _report(
            [
                _decision(
                    modes=[TranslationMode.NORMAL, TranslationMode.STRICT],
                    retried=True,
                    written=True,
                ),
                _decision(
                    page_key="a.adoc",
                    verdict=Verdict.NO_CHANGES,
                    strategy=Strategy.NONE,
                    state=PipelineState.NO_OP,
                ),
            ]
        )
        text = format_run_report(report)
        assert (
            "  [ACCEPTED] modules/ROOT/pages/index.adoc (en-sr): "
            "TEXT_AND_STRUCTURE, translate, normal -> strict, written"
        ) in text
        assert "  [NO-OP] a.adoc (en-sr): NO_CHANGES, none" in text
        assert "RETRY_STRICTER:     1" in text

    def test_aborted_page_lists_every_report(self):
        report = _report(
            [
                _decision(
                    state=PipelineState.ABORTED,
                    error_kind="ValidationFailed",
                    error="Translated output failed validation in strict mode",
                    reports=[BAD_REPORT, BAD_REPORT],
                )
            ],
            pending=["b.adoc"],
        )
        text = format_run_report(report)
        assert "Aborted: modules/ROOT/pages/index.adoc" in text
        assert "  ValidationFailed: Translated output failed validation" in text
        assert "  Validation report 1: 1 problem(s)" in text
        assert "  Validation report 2: 1 problem(s)" in text
        assert "Fix docs-sr/modules/ROOT/pages/index.adoc manually and retry." in text
        assert text.endswith("Not processed:\n  b.adoc")

    def test_warnings_listed(self):
        report = _report(
            [_decision(strategy=Strategy.STRUCTURE_ALIGN, warnings=["line counts differ"])]
        )
        assert "      warning: line counts differ" in format_run_report(report)

    def test_unfinished_page_is_planned(self):
        report = _report(
            [_decision(state=PipelineState.EXTERNAL_TRANSLATE)], dry_run=True
        )
        assert "  [PLANNED] modules/ROOT/pages/index.adoc" in format_run_report(report)


class TestFormatDryRunPreview:
    def test_grouped_by_strategy(self):
        report = _report(
            [
                _decision(state=PipelineState.CLASSIFYING),
                _decision(
                    page_key="s.adoc",
                    verdict=Verdict.STRUCTURAL_ONLY,
                    strategy=Strategy.STRUCTURE_ALIGN,
                    state=PipelineState.CLASSIFYING,
                ),
                _decision(
                    page_key="n.adoc",
                    verdict=Verdict.NO_CHANGES,
                    strategy=Strategy.NONE,
                    state=PipelineState.NO_OP,
                ),
            ],
            dry_run=True,
        )
        text = format_dry_run_preview(report)
        lines = text.splitlines()
        assert lines[0] == "DRY RUN -- No changes will be made"
        assert lines.index("[STRUCTURE ALIGN]") < lines.index("[TRANSLATE]")
        assert "  s.adoc (en-sr, STRUCTURAL_ONLY)" in lines
        assert "Unchanged: 1 page(s)" in lines
        assert "No changes needed." not in text

    def test_nothing_to_do(self):
        report = _report(
            [
                _decision(
                    verdict=Verdict.NO_CHANGES,
                    strategy=Strategy.NONE,
                    state=PipelineState.NO_OP,
                )
            ],
            dry_run=True,
        )
        assert format_dry_run_preview(report).endswith("No changes needed.")


class TestUsageFormatting:
    def test_no_calls(self):
        text = format_usage(UsageTotals(), "Token usage (this run)")
        assert text.splitlines()[:2] == ["Token usage (this run):", "  (no remote calls)"]

    def test_thousands_separator(self):
        totals = UsageTotals(
            requests=2, prompt_tokens=1200, completion_tokens=900, total_tokens=2100
        )
        text = format_usage(totals, "Cumulative")
        assert "  TOTAL_TOKENS:      2,100" in text
        assert "(no remote calls)" not in text

    def test_breakdown(self):
        text = format_usage_breakdown(
            {"pipeline": UsageTotals(requests=1, total_tokens=1500)}, "By script"
        )
        assert "  pipeline: 1 request(s), prompt=0 completion=0 total=1,500" in text

    def test_empty_breakdown(self):
        assert "(empty ledger)" in format_usage_breakdown({}, "By model")


class TestReportToJson:
    def test_structure(self):
        report = _report(
            [
                _decision(written=True),
                _decision(
                    page_key="x.adoc",
                    state=PipelineState.ABORTED,
                    error_kind="DeterministicSyncDefect",
                    error="failed",
                    reports=[BAD_REPORT],
                    history=[PipelineState.CLASSIFYING, PipelineState.ABORTED],
                ),
            ],
            pending=["y.adoc"],
        )
        data = report_to_json(report)
        assert data["passed"] is False
        assert data["pending"] == ["y.adoc"]
        assert data["counts"]["TEXT_AND_STRUCTURE"] == 2
        first, second = data["pages"]
        assert first["written"] is True
        assert "error" not in first
        assert second["error_kind"] == "DeterministicSyncDefect"
        assert second["history"] == ["classifying", "aborted"]
        assert second["reports"] == [BAD_REPORT.describe()]
