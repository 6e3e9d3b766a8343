"""Run report formatting functions.

Provides human-readable and machine-readable output for sync runs:

- ``format_run_report`` -- full post-run summary.
- ``format_dry_run_preview`` -- dry-run preview grouped by strategy.
- ``format_validation_report`` -- one validator report, line by line.
- ``format_usage`` / ``format_usage_breakdown`` -- token ledger totals.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from .models import PipelineState, Strategy

if TYPE_CHECKING:
    from adoc_sync.structure.validator import ValidationReport
    from adoc_sync.translation.ledger import UsageTotals

    from .models import RunReport, SyncDecision

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_validation_report(
    report: ValidationReport, title: str = "Validation"
) -> str:
    """Format a validator report.

    Args:
        report: The report to format.
        title: Heading for the block.

    Returns:
        ``"<title>: OK"`` for a passing report, otherwise the title
        followed by one indented line per problem.
    """
    if report.passed:
        return f"{title}: OK"
    lines = [f"{title}: {report.problem_count} problem(s)"]
    lines.extend(f"  - {line}" for line in report.describe())
    return "\n".join(lines)


def _outcome(decision: SyncDecision) -> str:
    if not decision.finished:
        return "PLANNED"
    if decision.no_op:
        return "NO-OP"
    return decision.state.value.upper()


def _details(decision: SyncDecision) -> str:
    parts = [decision.verdict.value, decision.strategy.value]
    if decision.modes:
        parts.append(" -> ".join(m.value for m in decision.modes))
    if decision.accepted:
        parts.append("written" if decision.written else "unchanged")
    return ", ".join(parts)


def format_run_report(report: RunReport) -> str:
    """Format a complete run report as human-readable text.

    Every page gets one outcome line, so a page that needed no work
    (``NO-OP``) is distinguishable from one that was translated and
    accepted. Aborted pages list every validation report in full.

    Args:
        report: The completed run report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = [report.summary()]
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    if report.decisions:
        lines.append("Pages:")
        for d in report.decisions:
            lines.append(
                f"  [{_outcome(d)}] {d.page_key} ({d.direction}): {_details(d)}"
            )
            for warning in d.warnings:
                lines.append(f"      warning: {warning}")
        lines.append("")

    for d in report.aborted:
        lines.append(f"Aborted: {d.page_key}")
        lines.append(f"  {d.error_kind}: {d.error}")
        for attempt, r in enumerate(d.reports, start=1):
            block = format_validation_report(r, f"Validation report {attempt}")
            lines.extend(f"  {line}" for line in block.splitlines())
        lines.append(
            f"  Fix {d.secondary_path} manually and retry."
        )
        lines.append("")

    if report.pending:
        lines.append("Not processed:")
        for key in report.pending:
            lines.append(f"  {key}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: RunReport) -> str:
    """Format a dry-run preview grouped by planned strategy.

    Args:
        report: A dry-run report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = ["DRY RUN -- No changes will be made", ""]

    groups: dict[Strategy, list[SyncDecision]] = defaultdict(list)
    for d in report.decisions:
        groups[d.strategy].append(d)

    display_order = [
        Strategy.STRUCTURE_ALIGN,
        Strategy.LITERAL_COPY,
        Strategy.TRANSLATE,
    ]
    for strategy in display_order:
        if strategy not in groups:
            continue
        label = strategy.value.upper().replace("_", " ")
        lines.append(f"[{label}]")
        for d in groups[strategy]:
            lines.append(
                f"  {d.page_key} ({d.direction}, {d.verdict.value})"
            )
        lines.append("")

    unchanged = len(groups.get(Strategy.NONE, []))
    if unchanged:
        lines.append(f"Unchanged: {unchanged} page(s)")
        lines.append("")

    if not any(s != Strategy.NONE for s in groups):
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Token usage
# ------------------------------------------------------------------


def format_usage(totals: UsageTotals, title: str) -> str:
    """Format ledger totals with thousands separators."""
    lines = [f"{title}:"]
    if totals.requests == 0 and totals.total_tokens == 0:
        lines.append("  (no remote calls)")
    lines.extend(
        [
            f"  REQUESTS:          {totals.requests:,}",
            f"  PROMPT_TOKENS:     {totals.prompt_tokens:,}",
            f"  COMPLETION_TOKENS: {totals.completion_tokens:,}",
            f"  TOTAL_TOKENS:      {totals.total_tokens:,}",
        ]
    )
    return "\n".join(lines)


def format_usage_breakdown(
    breakdown: dict[str, UsageTotals], title: str
) -> str:
    """One line per group: requests and token counts."""
    lines = [f"{title}:"]
    if not breakdown:
        lines.append("  (empty ledger)")
    for key, totals in breakdown.items():
        lines.append(
            f"  {key}: {totals.requests:,} request(s), "
            f"prompt={totals.prompt_tokens:,} "
            f"completion={totals.completion_tokens:,} "
            f"total={totals.total_tokens:,}"
        )
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: RunReport) -> dict:
    """Convert a run report to a structured dict for JSON serialisation.

    Args:
        report: The run report.

    Returns:
        Dict with counts, pass/fail and per-page details.
    """
    pages = []
    for d in report.decisions:
        entry: dict = {
            "page": d.page_key,
            "direction": d.direction,
            "verdict": d.verdict.value,
            "strategy": d.strategy.value,
            "state": d.state.value,
            "history": [s.value for s in d.history],
            "retried": d.retried,
            "written": d.written,
        }
        if d.state == PipelineState.ABORTED:
            entry["error_kind"] = d.error_kind
            entry["error"] = d.error
            entry["reports"] = [r.describe() for r in d.reports]
        if d.warnings:
            entry["warnings"] = list(d.warnings)
        pages.append(entry)

    return {
        "dry_run": report.dry_run,
        "passed": report.passed,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": report.counts,
        "pages": pages,
        "pending": list(report.pending),
    }
