"""Error taxonomy for adoc_sync.

Document-level failures are collected by the orchestrator into
``SyncDecision`` records; only configuration and change-detection
problems escape a run.

``ClassificationAmbiguous`` is never raised: the classifier falls back to
the most conservative verdict instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .structure.validator import ValidationReport


class AdocSyncError(Exception):
    """Base class for all adoc_sync errors."""


class ConfigurationMissing(AdocSyncError, ValueError):
    """Required credentials or model selection are absent."""


class TranslationServiceError(AdocSyncError):
    """The remote translation call failed (transport, status or payload)."""


class ClassificationAmbiguous(AdocSyncError):
    """Reserved; the classifier never raises it."""


class ChangeDetectionError(AdocSyncError):
    """The version-control diff or staged content could not be read."""


class _ReportError(AdocSyncError):
    def __init__(self, message: str, report: ValidationReport) -> None:
        super().__init__(message)
        self.report = report


class ValidationFailed(_ReportError):
    """Structural drift detected in translated output."""


class DeterministicSyncDefect(_ReportError):
    """A deterministic copy produced output that fails validation."""


class PreflightError(AdocSyncError):
    """Repository checks failed before classification started.

    Attributes:
        problems: One human-readable line per offending file.
    """

    def __init__(self, message: str, problems: list[str]) -> None:
        super().__init__(message)
        self.problems = problems
