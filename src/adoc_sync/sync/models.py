"""Pydantic models for the synchronization pipeline.

Defines the data contracts shared by the classifier, the orchestrator and
the reporter:

- ``Verdict``: classifier output, ordered by propagation cost.
- ``PipelineState``: states of the per-page pipeline.
- ``Strategy``: propagation strategy chosen for a page.
- ``SyncDecision``: everything that happened to one page in one run.
- ``RunReport``: aggregate results for a full run.

All models are frozen.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from adoc_sync.structure.validator import ValidationReport
from adoc_sync.translation.prompts import TranslationMode


class Verdict(str, Enum):
    """Nature of an edit to a primary page, cheapest first."""

    NO_CHANGES = "NO_CHANGES"
    STRUCTURAL_ONLY = "STRUCTURAL_ONLY"
    CODE_ONLY = "CODE_ONLY"
    TEXT_AND_STRUCTURE = "TEXT_AND_STRUCTURE"

    @property
    def rank(self) -> int:
        """Position in the propagation-cost order (0 is cheapest)."""
        return list(Verdict).index(self)


class PipelineState(str, Enum):
    CLASSIFYING = "classifying"
    NO_OP = "no_op"
    DETERMINISTIC_SYNC = "deterministic_sync"
    EXTERNAL_TRANSLATE = "external_translate"
    VALIDATING = "validating"
    RETRY_STRICTER = "retry_stricter"
    ACCEPTED = "accepted"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset(
    {PipelineState.NO_OP, PipelineState.ACCEPTED, PipelineState.ABORTED}
)


class Strategy(str, Enum):
    NONE = "none"
    STRUCTURE_ALIGN = "structure_align"
    LITERAL_COPY = "literal_copy"
    TRANSLATE = "translate"


class SyncDecision(BaseModel):
    """Outcome of the pipeline for one page.

    Attributes:
        page_key: Page path relative to its language tree.
        primary_path: Path of the primary document.
        secondary_path: Path of the counterpart document.
        direction: Translation direction, e.g. ``"en-sr"``.
        verdict: Classifier verdict.
        strategy: Strategy that was (or, in a dry run, would be) used.
        state: Final pipeline state.
        history: Every state entered, in order.
        reports: One validation report per validating attempt.
        retried: Whether the stricter retry ran.
        modes: Translation modes attempted, in order.
        error_kind: Exception class name when the page failed.
        error: Error message when the page failed.
        written: Whether the secondary file was rewritten.
        warnings: Non-fatal notes (e.g. length mismatch during alignment).
    """

    page_key: str
    primary_path: str
    secondary_path: str
    direction: str
    verdict: Verdict
    strategy: Strategy = Strategy.NONE
    state: PipelineState = PipelineState.CLASSIFYING
    history: list[PipelineState] = []
    reports: list[ValidationReport] = []
    retried: bool = False
    modes: list[TranslationMode] = []
    error_kind: str | None = None
    error: str | None = None
    written: bool = False
    warnings: list[str] = []

    model_config = {"frozen": True}

    @property
    def accepted(self) -> bool:
        return self.state == PipelineState.ACCEPTED

    @property
    def aborted(self) -> bool:
        return self.state == PipelineState.ABORTED

    @property
    def no_op(self) -> bool:
        return self.state == PipelineState.NO_OP

    @property
    def finished(self) -> bool:
        """True once the page reached a terminal state."""
        return self.state in TERMINAL_STATES

    @property
    def last_report(self) -> ValidationReport | None:
        return self.reports[-1] if self.reports else None


class RunReport(BaseModel):
    """Aggregate report for a full run.

    Attributes:
        decisions: Per-page decisions in processing order.
        pending: Page keys not processed because the run stopped early.
        dry_run: Whether this was a dry run (classification only).
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    decisions: list[SyncDecision] = []
    pending: list[str] = []
    dry_run: bool = False
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def by_verdict(self, verdict: Verdict) -> list[SyncDecision]:
        return [d for d in self.decisions if d.verdict == verdict]

    @property
    def retried(self) -> list[SyncDecision]:
        """Decisions where the stricter retry ran."""
        return [d for d in self.decisions if d.retried]

    @property
    def accepted(self) -> list[SyncDecision]:
        return [d for d in self.decisions if d.accepted]

    @property
    def no_ops(self) -> list[SyncDecision]:
        return [d for d in self.decisions if d.no_op]

    @property
    def aborted(self) -> list[SyncDecision]:
        return [d for d in self.decisions if d.aborted]

    @property
    def written(self) -> list[SyncDecision]:
        return [d for d in self.decisions if d.written]

    @property
    def counts(self) -> dict[str, int]:
        """Verdict counts plus the ``RETRY_STRICTER`` count."""
        result = {v.value: len(self.by_verdict(v)) for v in Verdict}
        result["RETRY_STRICTER"] = len(self.retried)
        return result

    @property
    def passed(self) -> bool:
        """True when no page was aborted."""
        return not self.aborted

    def summary(self) -> str:
        """Format a compact verdict summary.

        Returns:
            Multi-line summary string with counts by verdict.
        """
        counts = self.counts
        lines = [
            "Translation summary" + (" (dry run)" if self.dry_run else ""),
            f"  NO_CHANGES:         {counts['NO_CHANGES']}",
            f"  STRUCTURAL_ONLY:    {counts['STRUCTURAL_ONLY']}",
            f"  CODE_ONLY:          {counts['CODE_ONLY']}",
            f"  TEXT_AND_STRUCTURE: {counts['TEXT_AND_STRUCTURE']}",
            f"  RETRY_STRICTER:     {counts['RETRY_STRICTER']}",
            f"  Aborted:            {len(self.aborted)}",
            f"  Total:              {len(self.decisions)}",
        ]
        return "\n".join(lines)
