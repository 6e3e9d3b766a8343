"""Per-page synchronization pipeline.

The ``SyncOrchestrator`` drives every changed primary page through::

    CLASSIFYING -> NO_OP
                -> DETERMINISTIC_SYNC -> VALIDATING -> ACCEPTED | ABORTED
                -> EXTERNAL_TRANSLATE -> VALIDATING -> ACCEPTED
                                                    -> RETRY_STRICTER -> ...
                                                    -> ABORTED

Every page is classified first, so unreadable changes and missing
translator configuration stop the run before anything is written. Pages
are then processed sequentially, one to completion before the next.
The first ABORTED page stops the run; pages after it are reported as
pending. Pages accepted earlier in the run keep their written output.

The strategies themselves are pure; this module owns all reads and writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from adoc_sync.config_schema import UnifiedConfig
from adoc_sync.errors import (
    AdocSyncError,
    DeterministicSyncDefect,
    TranslationServiceError,
    ValidationFailed,
)
from adoc_sync.file_handler import read_page, write_file
from adoc_sync.pages import PagePair
from adoc_sync.structure import (
    ValidationReport,
    align_structure,
    copy_literal_blocks,
    validate_structure,
)
from adoc_sync.translation.client import Translator
from adoc_sync.translation.prompts import TranslationMode

from .classifier import classify_change
from .models import (
    PipelineState,
    RunReport,
    Strategy,
    SyncDecision,
    Verdict,
)
from .vcs import ChangeSource

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorSettings:
    """Pipeline policy.

    Attributes:
        policy: ``normal`` (normal then strict), ``strict`` (strict only)
            or ``off`` (nothing is processed).
        detect_code_only: Enable the ``CODE_ONLY`` verdict.
        structural_sync: Propagate ``STRUCTURAL_ONLY`` without translation.
        post_translation_validation: Validate translated output.
    """

    policy: str = "normal"
    detect_code_only: bool = False
    structural_sync: bool = True
    post_translation_validation: bool = True

    @classmethod
    def from_config(
        cls, config: UnifiedConfig, policy: str = "normal"
    ) -> OrchestratorSettings:
        return cls(
            policy=policy,
            detect_code_only=config.features.detect_code_only,
            structural_sync=config.features.structural_sync,
            post_translation_validation=config.features.post_translation_validation,
        )

    @property
    def translation_modes(self) -> list[TranslationMode]:
        if self.policy == "strict":
            return [TranslationMode.STRICT]
        return [TranslationMode.NORMAL, TranslationMode.STRICT]


class _Trace:
    """Mutable bookkeeping for one page while it moves through the pipeline."""

    def __init__(
        self,
        pair: PagePair,
        primary: str,
        verdict: Verdict,
        secondary_exists: bool,
    ) -> None:
        self.pair = pair
        self.primary = primary
        self.verdict = verdict
        self.secondary_exists = secondary_exists
        self.history: list[PipelineState] = [PipelineState.CLASSIFYING]
        self.reports: list[ValidationReport] = []
        self.modes: list[TranslationMode] = []
        self.warnings: list[str] = []
        self.retried = False
        self.written = False
        self.strategy = Strategy.NONE

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    def enter(self, state: PipelineState) -> None:
        logger.debug("%s: %s -> %s", self.pair.key, self.state.value, state.value)
        self.history.append(state)

    def decision(self, error: Exception | None = None) -> SyncDecision:
        return SyncDecision(
            page_key=self.pair.key,
            primary_path=str(self.pair.primary_path),
            secondary_path=str(self.pair.secondary_path),
            direction=str(self.pair.direction),
            verdict=self.verdict,
            strategy=self.strategy,
            state=self.state,
            history=list(self.history),
            reports=list(self.reports),
            retried=self.retried,
            modes=list(self.modes),
            error_kind=type(error).__name__ if error else None,
            error=str(error) if error else None,
            written=self.written,
            warnings=list(self.warnings),
        )


class SyncOrchestrator:
    """Classify, propagate and validate changed primary pages.

    Args:
        translator: External translation collaborator.
        change_source: Supplies staged content and diffs of primary pages.
        settings: Pipeline policy (defaults apply when omitted).
    """

    def __init__(
        self,
        translator: Translator,
        change_source: ChangeSource,
        settings: OrchestratorSettings | None = None,
    ) -> None:
        self.translator = translator
        self.change_source = change_source
        self.settings = settings or OrchestratorSettings()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, pairs: list[PagePair], dry_run: bool = False) -> RunReport:
        """Process *pairs* in order.

        Every page is classified before any page is written, and the
        translator configuration is checked when any page needs
        translation. Errors from either step leave the trees untouched.

        Args:
            pairs: Changed primary pages with their counterparts.
            dry_run: Classify and plan only; nothing is translated or written.

        Returns:
            A ``RunReport`` with one decision per processed page.

        Raises:
            ConfigurationMissing: Translation is needed but not configured.
            ChangeDetectionError: The staged diff or content is unreadable.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        decisions: list[SyncDecision] = []
        pending: list[str] = []

        if self.settings.policy == "off":
            logger.info("Translation policy is 'off'; skipping %d page(s)", len(pairs))
            pairs = []

        traces = [self.classify(pair) for pair in pairs]
        if not dry_run and any(t.strategy == Strategy.TRANSLATE for t in traces):
            self.translator.ensure_configured()

        for index, trace in enumerate(traces):
            decision = self._execute(trace, dry_run=dry_run)
            decisions.append(decision)
            if decision.aborted:
                pending = [t.pair.key for t in traces[index + 1 :]]
                if pending:
                    logger.error(
                        "Stopping after abort of %s; %d page(s) not processed",
                        trace.pair.key,
                        len(pending),
                    )
                break

        return RunReport(
            decisions=decisions,
            pending=pending,
            dry_run=dry_run,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Per-page pipeline
    # ------------------------------------------------------------------

    def plan(self, verdict: Verdict, secondary_exists: bool) -> Strategy:
        """Pick the propagation strategy for *verdict*."""
        if not secondary_exists:
            return Strategy.TRANSLATE
        if verdict == Verdict.NO_CHANGES:
            return Strategy.NONE
        if verdict == Verdict.STRUCTURAL_ONLY:
            if self.settings.structural_sync:
                return Strategy.STRUCTURE_ALIGN
            return Strategy.TRANSLATE
        if verdict == Verdict.CODE_ONLY:
            return Strategy.LITERAL_COPY
        return Strategy.TRANSLATE

    def classify(self, pair: PagePair) -> _Trace:
        """Read, classify and plan one page; nothing is written."""
        primary = self.change_source.content(pair.primary_path)
        diff = self.change_source.diff(pair.primary_path)
        verdict = classify_change(
            primary, diff, detect_code_only=self.settings.detect_code_only
        )
        secondary_exists = pair.secondary_path.is_file()
        trace = _Trace(pair, primary, verdict, secondary_exists)
        trace.strategy = self.plan(verdict, secondary_exists)
        logger.info(
            "%s: %s (%s) -> %s",
            pair.key,
            verdict.value,
            pair.direction,
            trace.strategy.value,
        )
        if not secondary_exists:
            logger.info("%s: no counterpart at %s", pair.key, pair.secondary_path)
        return trace

    def process(self, pair: PagePair, dry_run: bool = False) -> SyncDecision:
        """Run one page to a terminal state (or to its plan, in a dry run).

        Raises:
            ConfigurationMissing: The page needs translation that is not
                configured.
            ChangeDetectionError: The staged diff or content is unreadable.
        """
        trace = self.classify(pair)
        if not dry_run and trace.strategy == Strategy.TRANSLATE:
            self.translator.ensure_configured()
        return self._execute(trace, dry_run=dry_run)

    def _execute(self, trace: _Trace, dry_run: bool = False) -> SyncDecision:
        pair = trace.pair
        if trace.strategy == Strategy.NONE:
            trace.enter(PipelineState.NO_OP)
            return trace.decision()

        if dry_run:
            return trace.decision()

        try:
            if trace.strategy == Strategy.TRANSLATE:
                text = self._translate(trace)
            else:
                text = self._deterministic(trace, read_page(pair.secondary_path))
            self._write(trace, text)
        except (AdocSyncError, OSError) as exc:
            trace.enter(PipelineState.ABORTED)
            logger.error("%s: aborted (%s): %s", pair.key, type(exc).__name__, exc)
            return trace.decision(error=exc)

        trace.enter(PipelineState.ACCEPTED)
        return trace.decision()

    def _write(self, trace: _Trace, text: str) -> None:
        pair = trace.pair
        current = read_page(pair.secondary_path) if trace.secondary_exists else None
        if text == current:
            return
        write_file(pair.secondary_path, text)
        trace.written = True
        logger.info("%s: wrote %s", pair.key, pair.secondary_path)

    def _deterministic(self, trace: _Trace, secondary: str) -> str:
        primary = trace.primary
        trace.enter(PipelineState.DETERMINISTIC_SYNC)
        if trace.strategy == Strategy.STRUCTURE_ALIGN:
            result = align_structure(primary, secondary)
        else:
            result = copy_literal_blocks(primary, secondary)
        for warning in result.warnings:
            logger.warning("%s: %s", trace.pair.key, warning)
            trace.warnings.append(warning)

        trace.enter(PipelineState.VALIDATING)
        report = validate_structure(primary, result.text)
        trace.reports.append(report)
        if not report.passed:
            raise DeterministicSyncDefect(
                f"{trace.strategy.value} output failed validation "
                f"with {report.problem_count} problem(s)",
                report,
            )
        return result.text

    def _translate(self, trace: _Trace) -> str:
        primary = trace.primary
        last_error: AdocSyncError = TranslationServiceError(
            "No translation attempt was made"
        )
        for attempt, mode in enumerate(self.settings.translation_modes):
            if attempt:
                trace.enter(PipelineState.RETRY_STRICTER)
                trace.retried = True
                logger.warning(
                    "%s: retrying in %s mode", trace.pair.key, mode.value
                )

            trace.enter(PipelineState.EXTERNAL_TRANSLATE)
            trace.modes.append(mode)
            try:
                text = self.translator.translate(primary, mode, trace.pair.direction)
            except TranslationServiceError as exc:
                logger.warning(
                    "%s: translation failed in %s mode: %s",
                    trace.pair.key,
                    mode.value,
                    exc,
                )
                last_error = exc
                continue

            if not self.settings.post_translation_validation:
                return text

            trace.enter(PipelineState.VALIDATING)
            report = validate_structure(primary, text)
            trace.reports.append(report)
            if report.passed:
                return text

            logger.warning(
                "%s: validation failed in %s mode (%d problem(s))",
                trace.pair.key,
                mode.value,
                report.problem_count,
            )
            last_error = ValidationFailed(
                f"Translated output failed validation in {mode.value} mode",
                report,
            )

        raise last_error
