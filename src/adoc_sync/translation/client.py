"""HTTP client for an OpenAI-compatible Responses endpoint.

``OpenAITranslator`` sends one request per page::

    POST {base_url}/responses
    {"model": ..., "instructions": <profile>, "input": <page text>}

and reads the first ``output_text`` part of the first message in the
response. The raw payload is validated into a tagged union
(``ResponseOk`` or ``ResponseParseError``) before anything is trusted.

Failure modes:

- missing API key or model -> ``ConfigurationMissing``, before any request;
- transport error, non-2xx status, unreadable body -> ``TranslationServiceError``.

A structurally wrong but well-formed translation is *not* an error here;
the validator catches it.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Protocol

import requests
from pydantic import BaseModel, Field, TypeAdapter

from adoc_sync.config import TranslatorConfig
from adoc_sync.errors import ConfigurationMissing, TranslationServiceError

from .ledger import UsageEntry, UsageLedger
from .prompts import Direction, TranslationMode, build_instructions

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class Translator(Protocol):
    """Protocol that all translation collaborators must satisfy."""

    def ensure_configured(self) -> None:
        """Raise ``ConfigurationMissing`` if a call could not be made."""
        ...  # pragma: no cover

    def translate(
        self, text: str, mode: TranslationMode, direction: Direction
    ) -> str:
        """Translate a whole page.

        Args:
            text: Full page content.
            mode: ``normal`` or the stricter ``strict`` profile.
            direction: Source and target languages.

        Returns:
            The translated page.

        Raises:
            ConfigurationMissing: Credentials or model are not configured.
            TranslationServiceError: The remote call failed.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, usage: Any) -> TokenUsage:
        """Read either the ``input/output`` or ``prompt/completion`` spelling."""
        if not isinstance(usage, dict):
            return cls()

        def pick(*keys: str) -> int:
            for key in keys:
                value = usage.get(key)
                if isinstance(value, int) and not isinstance(value, bool):
                    return value
            return 0

        prompt = pick("input_tokens", "prompt_tokens")
        completion = pick("output_tokens", "completion_tokens")
        total = pick("total_tokens") or prompt + completion
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=total,
        )


class ResponseOk(BaseModel):
    status: Literal["ok"] = "ok"
    text: str
    model: str | None = None
    usage: TokenUsage = TokenUsage()

    model_config = {"frozen": True}


class ResponseParseError(BaseModel):
    status: Literal["parse_error"] = "parse_error"
    message: str

    model_config = {"frozen": True}


TranslationResponse = Annotated[
    ResponseOk | ResponseParseError, Field(discriminator="status")
]
_RESPONSE_ADAPTER: TypeAdapter[ResponseOk | ResponseParseError] = (
    TypeAdapter(TranslationResponse)
)


def _output_text(payload: dict) -> str | None:
    output = payload.get("output")
    if not isinstance(output, list):
        return None
    for item in output:
        if not isinstance(item, dict):
            continue
        if item.get("type", "message") != "message":
            # reasoning items and tool calls carry no page text
            continue
        for part in item.get("content") or []:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                return part["text"]
    return None


def parse_response(payload: Any) -> ResponseOk | ResponseParseError:
    """Validate a raw Responses API payload.

    Args:
        payload: Decoded JSON body.

    Returns:
        ``ResponseOk`` with the translated text and usage, or
        ``ResponseParseError`` describing what was missing.
    """
    if not isinstance(payload, dict):
        return _RESPONSE_ADAPTER.validate_python(
            {
                "status": "parse_error",
                "message": f"expected a JSON object, got {type(payload).__name__}",
            }
        )

    text = _output_text(payload)
    if not text:
        return _RESPONSE_ADAPTER.validate_python(
            {
                "status": "parse_error",
                "message": "missing translated text in response output",
            }
        )

    return _RESPONSE_ADAPTER.validate_python(
        {
            "status": "ok",
            "text": text,
            "model": payload.get("model")
            if isinstance(payload.get("model"), str)
            else None,
            "usage": TokenUsage.from_payload(payload.get("usage")),
        }
    )


def match_trailing_newline(source: str, translated: str) -> str:
    """Give *translated* the same trailing-newline convention as *source*."""
    body = translated.rstrip("\n")
    if source.endswith("\n"):
        return body + "\n"
    return body


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class OpenAITranslator:
    """Translate pages through an OpenAI-compatible Responses endpoint.

    Args:
        config: Endpoint, credentials and timeouts.
        ledger: Usage ledger; one entry is appended per successful call.
        session: Optional ``requests.Session`` (a new one is created otherwise).
        script: Name recorded in ledger entries.
    """

    def __init__(
        self,
        config: TranslatorConfig,
        ledger: UsageLedger | None = None,
        session: requests.Session | None = None,
        script: str = "pipeline",
    ) -> None:
        self.config = config
        self.ledger = ledger
        self.session = session or requests.Session()
        self.script = script

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/responses"

    def ensure_configured(self) -> None:
        """Raise ``ConfigurationMissing`` unless key and model are set."""
        if not self.config.api_key:
            raise ConfigurationMissing(
                "OpenAI API key not found. Set OPENAI_API_KEY environment "
                "variable or add 'api_key' to the translation config section."
            )
        if not self.config.model:
            raise ConfigurationMissing(
                "Missing OpenAI model configuration. Set OPENAI_MODEL_DEFAULT "
                "(and optionally OPENAI_MODEL_TRANSLATE) in .env"
            )

    def translate(
        self, text: str, mode: TranslationMode, direction: Direction
    ) -> str:
        """Translate *text*; see ``Translator.translate``."""
        self.ensure_configured()
        model = self.config.model

        if self.config.log_model:
            logger.info("Using translation model: %s", model)
        logger.debug(
            "Translating %d chars (%s, %s)", len(text), direction, mode.value
        )

        payload = {
            "model": model,
            "instructions": build_instructions(mode, direction),
            "input": text,
        }
        try:
            response = self.session.post(
                self.endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                timeout=(self.config.connect_timeout, self.config.read_timeout),
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TranslationServiceError(
                f"Translation request failed: {exc}"
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise TranslationServiceError(
                "Translation response is not valid JSON"
            ) from exc

        result = parse_response(body)
        if isinstance(result, ResponseParseError):
            raise TranslationServiceError(
                f"Unexpected translation response format: {result.message}"
            )

        if self.ledger is not None:
            self.ledger.append(
                UsageEntry(
                    script=self.script,
                    model=model or "unknown",
                    direction=str(direction),
                    mode=mode.value,
                    prompt_tokens=result.usage.prompt_tokens,
                    completion_tokens=result.usage.completion_tokens,
                    total_tokens=result.usage.total_tokens,
                )
            )

        return match_trailing_newline(text, result.text)
