"""Startup for a CLI run: environment, config files and collaborators."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import TranslatorConfig, load_translator_config
from .config_loader import load_config_file
from .config_schema import UnifiedConfig, build_config, translation_fallbacks
from .pages import PageMapper
from .translation.client import OpenAITranslator
from .translation.ledger import UsageLedger

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Everything a command needs, built once per invocation."""

    repo_root: Path
    config: UnifiedConfig
    translator_config: TranslatorConfig
    sources: list[str] = field(default_factory=list)

    @property
    def ledger(self) -> UsageLedger:
        path = Path(self.config.ledger.path)
        if not path.is_absolute():
            path = self.repo_root / path
        return UsageLedger(path)

    def mapper(self) -> PageMapper:
        return PageMapper.from_config(self.repo_root, self.config)

    def translator(self, script: str = "pipeline") -> OpenAITranslator:
        return OpenAITranslator(
            self.translator_config, ledger=self.ledger, script=script
        )


def load_context(
    repo_root: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> RunContext:
    """Load configuration with unified precedence.

    Order of work:

    - Load ``.env`` (so values are visible to env lookups and to ``${VAR}``
      interpolation in YAML files).
    - Load and merge YAML config files, if any.
    - Resolve translator settings: CLI > env vars > .env > YAML > defaults.

    Credentials are not checked here; commands that never translate run
    without them.

    Args:
        repo_root: Repository root (default: current directory).
        overrides: CLI values: ``model``, ``base_url``, ``policy``.

    Returns:
        A populated ``RunContext``.

    Raises:
        ValueError: If a config file or setting is invalid.
    """
    root = (repo_root or Path.cwd()).resolve()
    overrides = overrides or {}

    env_file = root / ".env"
    if env_file.is_file():
        load_dotenv(env_file)
    else:
        load_dotenv()
        logger.debug(".env not found in %s", root)

    sources: list[str] = []
    config_path, raw = load_config_file(root)
    unified = build_config(raw)
    if config_path is not None:
        sources.append(f"config file: {config_path}")

    translator_config = load_translator_config(
        model=overrides.get("model"),
        base_url=overrides.get("base_url"),
        policy=overrides.get("policy"),
        yaml_fallbacks=translation_fallbacks(unified),
    )

    if any(v is not None for v in overrides.values()):
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))

    return RunContext(
        repo_root=root,
        config=unified,
        translator_config=translator_config,
        sources=sources,
    )
