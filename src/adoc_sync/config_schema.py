"""Unified configuration schema for adoc_sync.

Defines Pydantic models for the unified config structure with dedicated
sections for the translation service, pipeline features, the two
language trees, preflight checks, the usage ledger and logging.

Usage:
    from adoc_sync.config_schema import (
        UnifiedConfig, build_config, translation_fallbacks,
    )

    _, raw = load_config_file()
    unified = build_config(raw)
    translator = load_translator_config(
        yaml_fallbacks=translation_fallbacks(unified)
    )
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_PAGE_GLOBS = ["modules/ROOT/pages/*.adoc", "modules/ROOT/*.adoc"]
DEFAULT_EXCLUDES = ["**/nav.adoc"]


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class TranslationSection(BaseModel):
    """Translation service settings.

    All fields are optional: environment variables and CLI args can supply
    them at runtime instead.
    """

    policy: Literal["normal", "strict", "off"] | None = Field(
        default=None,
        description="normal (retry strict), strict (single strict attempt), off",
    )
    model: str | None = Field(default=None, description="Model name")
    base_url: str | None = Field(
        default=None, description="OpenAI-compatible endpoint base URL"
    )
    api_key: str | None = Field(default=None, description="API key")
    connect_timeout: float | None = Field(default=None, gt=0)
    read_timeout: float | None = Field(default=None, gt=0)

    model_config = {"frozen": True}


class FeaturesConfig(BaseModel):
    """Pipeline feature toggles."""

    detect_code_only: bool = Field(
        default=False,
        description="Classify edits confined to code blocks as CODE_ONLY",
    )
    structural_sync: bool = Field(
        default=True,
        description="Propagate STRUCTURAL_ONLY edits without translation",
    )
    post_translation_validation: bool = Field(
        default=True,
        description="Validate translated output before accepting it",
    )

    model_config = {"frozen": True}


class TreeConfig(BaseModel):
    """One language tree: its language tag and root directory."""

    lang: str
    root: str

    model_config = {"frozen": True}


def _default_trees() -> list[TreeConfig]:
    return [
        TreeConfig(lang="en", root="docs-en"),
        TreeConfig(lang="sr", root="docs-sr"),
    ]


class PreflightConfig(BaseModel):
    """Checks run on staged files before any page is classified."""

    add_missing_markers: bool = Field(
        default=True,
        description="Prepend :primary-lang: <tree lang> to staged pages without one",
    )
    filename_policy: bool = True
    marker_consistency: bool = True
    manual_secondary_edits: bool = True

    model_config = {"frozen": True}


class LedgerConfig(BaseModel):
    """Usage ledger location, relative to the repository root."""

    path: str = Field(default=".translation-usage.jsonl")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or single-line ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(default="text")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    translation: TranslationSection = Field(
        default_factory=TranslationSection
    )
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    trees: list[TreeConfig] = Field(default_factory=_default_trees)
    pages: list[str] = Field(default_factory=lambda: list(DEFAULT_PAGE_GLOBS))
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    preflight: PreflightConfig = Field(default_factory=PreflightConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _two_distinct_trees(self) -> UnifiedConfig:
        if len(self.trees) != 2:
            raise ValueError(
                f"Exactly two language trees are required, got {len(self.trees)}"
            )
        if self.trees[0].lang == self.trees[1].lang:
            raise ValueError(
                f"Language trees must differ, both are '{self.trees[0].lang}'"
            )
        return self


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_config_file()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Parsed configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> load_translator_config fallbacks
# ---------------------------------------------------------------------------


def translation_fallbacks(unified: UnifiedConfig) -> dict:
    """Return the ``translation`` section as ``load_translator_config``
    YAML fallbacks, dropping unset values.
    """
    return unified.translation.model_dump(exclude_none=True)
