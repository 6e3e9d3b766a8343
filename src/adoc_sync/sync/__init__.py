"""Change classification and the per-page synchronization pipeline.

Modules:

- ``diffparse``    -- unified-diff hunk parser and a difflib diff helper.
- ``classifier``   -- ``classify_change``: verdict for one primary edit.
- ``models``       -- ``Verdict``, ``PipelineState``, ``Strategy``,
  ``SyncDecision``, ``RunReport``: core data contracts.
- ``vcs``          -- ``GitChangeSource`` and ``FileChangeSource``.
- ``orchestrator`` -- ``SyncOrchestrator``: runs pages to a terminal state.
- ``reporter``     -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from adoc_sync.pages import PageMapper
    from adoc_sync.sync import (
        GitChangeSource, SyncOrchestrator, format_dry_run_preview,
    )

    source = GitChangeSource(Path("."))
    mapper = PageMapper(Path("."), unified.trees)
    pairs = [mapper.pair_for(p) for p in source.staged_files(["docs-en"])]

    orchestrator = SyncOrchestrator(translator, source)

    # Dry-run first to preview the plan
    preview = orchestrator.run([p for p in pairs if p], dry_run=True)
    print(format_dry_run_preview(preview))
"""

from .classifier import classify_change, classify_records
from .diffparse import LineDiffRecord, parse_unified_diff, unified_diff
from .models import (
    PipelineState,
    RunReport,
    Strategy,
    SyncDecision,
    Verdict,
)
from .orchestrator import OrchestratorSettings, SyncOrchestrator
from .reporter import (
    format_dry_run_preview,
    format_run_report,
    format_validation_report,
    report_to_json,
)
from .vcs import ChangeSource, FileChangeSource, GitChangeSource

__all__ = [
    "ChangeSource",
    "FileChangeSource",
    "GitChangeSource",
    "LineDiffRecord",
    "OrchestratorSettings",
    "PipelineState",
    "RunReport",
    "Strategy",
    "SyncDecision",
    "SyncOrchestrator",
    "Verdict",
    "classify_change",
    "classify_records",
    "format_dry_run_preview",
    "format_run_report",
    "format_validation_report",
    "parse_unified_diff",
    "report_to_json",
    "unified_diff",
]
