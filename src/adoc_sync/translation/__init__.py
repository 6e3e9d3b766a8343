"""External translation collaborator.

- ``prompts`` -- ``TranslationMode``, ``Direction`` and instruction profiles.
- ``client``  -- ``Translator`` protocol and ``OpenAITranslator``.
- ``ledger``  -- append-only JSONL usage ledger.
"""

from .client import (
    OpenAITranslator,
    ResponseOk,
    ResponseParseError,
    Translator,
    parse_response,
)
from .ledger import UsageEntry, UsageLedger, UsageTotals
from .prompts import Direction, TranslationMode, build_instructions

__all__ = [
    "Direction",
    "OpenAITranslator",
    "ResponseOk",
    "ResponseParseError",
    "TranslationMode",
    "Translator",
    "UsageEntry",
    "UsageLedger",
    "UsageTotals",
    "build_instructions",
    "parse_response",
]
