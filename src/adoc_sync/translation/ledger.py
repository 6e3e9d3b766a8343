"""Append-only token usage ledger.

Every successful remote translation call appends one JSON object per line
to ``.translation-usage.jsonl`` at the repository root::

    {"timestamp": "...", "script": "pipeline", "model": "gpt-4.1-mini",
     "direction": "en-sr", "mode": "normal", "promptTokens": 812,
     "completionTokens": 790, "totalTokens": 1602}

Synchronization only appends. Reading back (``totals``, ``breakdown``)
is for reporting and for the per-run delta printed by the CLI.

A ledger is an explicit object built once per run from configuration and
handed to the translator.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_NAME = ".translation-usage.jsonl"


def default_ledger_path(repo_root: Path) -> Path:
    return repo_root / DEFAULT_LEDGER_NAME


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UsageEntry(BaseModel):
    """One remote call.

    Serialised with camelCase keys. Older entries written with ``ts``,
    ``prompt``, ``completion`` and ``total`` keys are still readable.
    """

    timestamp: str = Field(
        default_factory=_now,
        validation_alias=AliasChoices("timestamp", "ts"),
    )
    script: str = "unknown"
    model: str = "unknown"
    direction: str | None = None
    mode: str | None = None
    prompt_tokens: int = Field(
        default=0,
        validation_alias=AliasChoices("promptTokens", "prompt", "prompt_tokens"),
        serialization_alias="promptTokens",
    )
    completion_tokens: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "completionTokens", "completion", "completion_tokens"
        ),
        serialization_alias="completionTokens",
    )
    total_tokens: int = Field(
        default=0,
        validation_alias=AliasChoices("totalTokens", "total", "total_tokens"),
        serialization_alias="totalTokens",
    )

    model_config = {"frozen": True}

    def to_json_line(self) -> str:
        return json.dumps(
            self.model_dump(by_alias=True), ensure_ascii=False
        )


class UsageTotals(BaseModel):
    """Summed usage over a set of ledger entries."""

    requests: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    model_config = {"frozen": True}

    def add(self, entry: UsageEntry) -> UsageTotals:
        return UsageTotals(
            requests=self.requests + 1,
            prompt_tokens=self.prompt_tokens + entry.prompt_tokens,
            completion_tokens=self.completion_tokens
            + entry.completion_tokens,
            total_tokens=self.total_tokens + entry.total_tokens,
        )

    def __sub__(self, other: UsageTotals) -> UsageTotals:
        return UsageTotals(
            requests=self.requests - other.requests,
            prompt_tokens=self.prompt_tokens - other.prompt_tokens,
            completion_tokens=self.completion_tokens
            - other.completion_tokens,
            total_tokens=self.total_tokens - other.total_tokens,
        )


class UsageLedger:
    """JSONL usage ledger at *path*.

    Args:
        path: Ledger file; created with its parent directories on first append.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def append(self, entry: UsageEntry) -> bool:
        """Append *entry*; failures are logged and never raised.

        Returns:
            ``True`` if the entry was written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(entry.to_json_line() + "\n")
        except OSError as exc:
            logger.warning(
                "Could not append usage entry to %s: %s", self.path, exc
            )
            return False
        return True

    def entries(self) -> Iterator[UsageEntry]:
        """Yield readable entries; corrupt lines are skipped."""
        if not self.path.exists():
            return
        with open(self.path, encoding="utf-8") as fh:
            for number, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield UsageEntry.model_validate_json(line)
                except ValidationError:
                    logger.debug(
                        "Skipping corrupt ledger line %d in %s",
                        number,
                        self.path,
                    )

    def totals(self) -> UsageTotals:
        totals = UsageTotals()
        for entry in self.entries():
            totals = totals.add(entry)
        return totals

    def breakdown(
        self, by: Literal["script", "model"] = "script"
    ) -> dict[str, UsageTotals]:
        """Totals grouped by ``script`` or ``model``, sorted by key."""
        groups: dict[str, UsageTotals] = {}
        for entry in self.entries():
            key = getattr(entry, by) or "unknown"
            groups[key] = groups.get(key, UsageTotals()).add(entry)
        return dict(sorted(groups.items()))
