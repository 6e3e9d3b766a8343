"""Translation service configuration.

Reads the translation endpoint settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    OPENAI_API_KEY: API key for the translation endpoint
    OPENAI_MODEL_TRANSLATE: Model used for translation (optional)
    OPENAI_MODEL_DEFAULT: Fallback model when OPENAI_MODEL_TRANSLATE is unset
    OPENAI_BASE_URL: Endpoint base URL (optional, default: https://api.openai.com/v1)
    OPENAI_TIMEOUT: Read timeout in seconds (optional, default: 120)
    OPENAI_CONNECT_TIMEOUT: Connect timeout in seconds (optional, default: 10)
    OPENAI_LOG_MODEL: "1" to log the selected model on every call (optional)
    TRANSLATION_MODE: normal | strict | off (optional, default: normal)

Credentials are not required at load time. They are checked by the
translator right before the first remote call, so runs that never need
translation work without them.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
TRANSLATION_POLICIES = ("normal", "strict", "off")


@dataclass
class TranslatorConfig:
    api_key: str | None = None
    model: str | None = None
    base_url: str = DEFAULT_BASE_URL
    policy: str = "normal"
    connect_timeout: float = 10.0
    read_timeout: float = 120.0
    log_model: bool = False


def validate_config(config: TranslatorConfig) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: TranslatorConfig instance to validate.

    Raises:
        ValueError: If the URL, policy or timeouts are invalid.
    """
    # Normalize URL: strip whitespace
    config.base_url = config.base_url.strip()

    if not config.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid base URL '{config.base_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.base_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid base URL '{config.base_url}': URL must include a hostname"
        )

    config.base_url = config.base_url.removesuffix("/")

    config.policy = config.policy.strip().lower()
    if config.policy not in TRANSLATION_POLICIES:
        raise ValueError(
            f"Invalid TRANSLATION_MODE '{config.policy}': "
            f"must be one of {', '.join(TRANSLATION_POLICIES)}"
        )

    if config.connect_timeout <= 0 or config.read_timeout <= 0:
        raise ValueError("Timeouts must be positive numbers of seconds")

    if config.base_url.startswith("http://"):
        logger.warning(
            "WARNING: translation endpoint %s is not using TLS.",
            config.base_url,
        )


def _first(*values: str | None) -> str | None:
    """Return the first non-empty, stripped value."""
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _float_setting(
    env_key: str, fallback: object, default: float
) -> float:
    raw = os.getenv(env_key)
    source = env_key
    if raw is None and fallback is not None:
        raw, source = str(fallback), "config file"
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {source} value '{raw}': must be a number of seconds"
        ) from None


def load_translator_config(
    api_key: str | None = None,
    model: str | None = None,
    base_url: str | None = None,
    policy: str | None = None,
    yaml_fallbacks: dict | None = None,
) -> TranslatorConfig:
    """Load translation configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        api_key: Override API key.
        model: Override model name.
        base_url: Override endpoint base URL.
        policy: Override translation policy (normal, strict, off).
        yaml_fallbacks: Dict of values from the YAML ``translation`` section.

    Returns:
        Validated TranslatorConfig instance.

    Raises:
        ValueError: If a value is present but invalid.
    """
    fb = yaml_fallbacks or {}

    final_key = _first(api_key, os.getenv("OPENAI_API_KEY"), fb.get("api_key"))
    final_model = _first(
        model,
        os.getenv("OPENAI_MODEL_TRANSLATE"),
        os.getenv("OPENAI_MODEL_DEFAULT"),
        fb.get("model"),
    )
    final_url = (
        _first(base_url, os.getenv("OPENAI_BASE_URL"), fb.get("base_url"))
        or DEFAULT_BASE_URL
    )
    final_policy = (
        _first(policy, os.getenv("TRANSLATION_MODE"), fb.get("policy"))
        or "normal"
    )

    config = TranslatorConfig(
        api_key=final_key,
        model=final_model,
        base_url=final_url,
        policy=final_policy,
        connect_timeout=_float_setting(
            "OPENAI_CONNECT_TIMEOUT", fb.get("connect_timeout"), 10.0
        ),
        read_timeout=_float_setting(
            "OPENAI_TIMEOUT", fb.get("read_timeout"), 120.0
        ),
        log_model=(os.getenv("OPENAI_LOG_MODEL") or "").strip() == "1",
    )

    validate_config(config)

    return config
