"""
YAML config file loading for adoc_sync.

One config file is used per run: the first of ``$ADOC_SYNC_CONFIG``,
``.adoc_sync/config.yml``, ``.adoc_sync/config.yaml`` and
``~/.config/adoc_sync/config.yml`` that exists. Files may pull sections
from other files with ``!include`` and refer to the environment with
``${VAR}`` or ``${VAR:-default}``.

Usage:
    from adoc_sync.config_loader import load_config_file

    path, raw = load_config_file(repo_root)
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ADOC_SYNC_CONFIG"
PROJECT_CONFIG_DIR = ".adoc_sync"

# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------

_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    no default is given. A ``${`` without a closing brace is kept as-is.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1)) or m.group(2) or "", value
    )


def _expand(node: Any) -> Any:
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, list):
        return [_expand(item) for item in node]
    if isinstance(node, dict):
        return {key: _expand(item) for key, item in node.items()}
    return node


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include <path>``.

    Each loader remembers the files above it so an include cycle is
    reported instead of recursing forever.
    """

    chain: tuple[Path, ...] = ()


def _include(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    including = Path(loader.name).resolve()
    target = (including.parent / loader.construct_scalar(node)).resolve()
    if target in loader.chain:
        trail = " -> ".join(str(p) for p in (*loader.chain, target))
        raise ValueError(f"Circular include detected: {trail}")
    if not target.is_file():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {including})"
        )
    return read_yaml(target, chain=(*loader.chain, target))


ConfigLoader.add_constructor("!include", _include)


def read_yaml(path: Path, chain: tuple[Path, ...] = ()) -> Any:
    """Parse *path*, following ``!include`` relative to the including file."""
    path = path.resolve()
    with path.open(encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader.chain = chain or (path,)
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def _default_path(base_dir: Path | None) -> Path:
    return (base_dir or Path.cwd()) / PROJECT_CONFIG_DIR / "config.yml"


def find_config_file(base_dir: Path | None = None) -> Path | None:
    """Return the config file in effect for *base_dir*, if any."""
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    candidates += [
        _default_path(base_dir),
        _default_path(base_dir).with_suffix(".yaml"),
        Path.home() / ".config" / "adoc_sync" / "config.yml",
    ]
    return next((p for p in candidates if p.is_file()), None)


def load_config_file(base_dir: Path | None = None) -> tuple[Path | None, dict[str, Any]]:
    """Read the config file in effect for *base_dir*.

    Returns:
        ``(path, data)`` with environment references expanded, or
        ``(None, {})`` when there is no config file.

    Raises:
        OSError: The file or an include could not be read.
        ValueError: The YAML is malformed, an include is circular, or
            the root is not a mapping.
    """
    path = find_config_file(base_dir)
    if path is None:
        logger.debug("No config file found, using defaults")
        return None, {}

    logger.debug("Loading config: %s", path)
    try:
        data = read_yaml(path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return path, {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {path} must contain a mapping, not {type(data).__name__}"
        )
    return path, _expand(data)


# ---------------------------------------------------------------------------
# Starter file
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# adoc-sync configuration
#
# Translation credentials are read from the environment (or .env):
#   OPENAI_API_KEY, OPENAI_MODEL_TRANSLATE, OPENAI_MODEL_DEFAULT,
#   OPENAI_BASE_URL, TRANSLATION_MODE
#
# translation:
#   policy: normal            # normal | strict | off
#   model: gpt-4.1-mini
#   base_url: https://api.openai.com/v1
#   connect_timeout: 10
#   read_timeout: 120
#
# features:
#   detect_code_only: false
#   structural_sync: true
#   post_translation_validation: true
#
# trees:
#   - lang: en
#     root: docs-en
#   - lang: sr
#     root: docs-sr
#
# pages:
#   - "modules/ROOT/pages/*.adoc"
#   - "modules/ROOT/*.adoc"
# exclude:
#   - "**/nav.adoc"
#
# preflight:
#   add_missing_markers: true
#   filename_policy: true
#   marker_consistency: true
#   manual_secondary_edits: true
#
# ledger:
#   path: .translation-usage.jsonl
#
# logging:
#   level: INFO
#   file: null
#   format: text              # text | json
"""


def ensure_config(
    target: Path | None = None, base_dir: Path | None = None
) -> tuple[Path, bool]:
    """Write a commented starter config unless one is already in effect.

    Args:
        target: Where to write; an existing file there is never replaced.
            Without it, any discovered config counts as existing and the
            starter goes to ``.adoc_sync/config.yml``.
        base_dir: Project directory (default: current directory).

    Returns:
        ``(path, created)``.
    """
    path = target or find_config_file(base_dir) or _default_path(base_dir)
    if path.exists():
        logger.debug("Config file already exists: %s", path)
        return path, False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path, True
