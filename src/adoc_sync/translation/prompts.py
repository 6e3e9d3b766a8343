"""Instruction profiles for AsciiDoc page translation.

Two profiles exist per direction:

- ``normal``: translate human-readable text, keep all markup.
- ``strict``: "SAFE MODE"; structure wins over fluency, line count and
  code/literal blocks must be identical to the input.

Language names are resolved from tags; an unknown tag is used as-is.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple


class TranslationMode(str, Enum):
    NORMAL = "normal"
    STRICT = "strict"


LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "sr": "Serbian (latin alphabet)",
}


def language_name(tag: str) -> str:
    return LANGUAGE_NAMES.get(tag.lower(), tag)


class Direction(NamedTuple):
    """Source and target language tags, written ``"en-sr"``."""

    source: str
    target: str

    @classmethod
    def parse(cls, value: str) -> Direction:
        """Parse ``"en-sr"`` (or ``"en->sr"``) into a ``Direction``.

        Raises:
            ValueError: If *value* does not name two different languages.
        """
        normalized = value.strip().lower().replace("->", "-")
        parts = [p for p in normalized.split("-") if p]
        if len(parts) != 2 or parts[0] == parts[1]:
            raise ValueError(
                f"Invalid translation direction '{value}': expected e.g. 'en-sr'"
            )
        return cls(parts[0], parts[1])

    def reversed(self) -> Direction:
        return Direction(self.target, self.source)

    def __str__(self) -> str:
        return f"{self.source}-{self.target}"


_NORMAL_TEMPLATE = """\
You are a professional technical translator from {source} to {target}.

You are given an AsciiDoc (.adoc) document used in Antora documentation.

IMPORTANT RULES (MUST FOLLOW):
- Do NOT change any AsciiDoc syntax or structure.
- Do NOT change heading markup (=, ==, ===, etc.), only translate the text after them.
- Do NOT change roles, attributes, IDs, anchors, xrefs, include directives or macros.
- Do NOT change anything inside source/code blocks (----, ...., ```, [source,java], etc.).
- Do NOT change URLs, xrefs, file paths or attribute names.
- Do NOT add or remove lines.
- Keep inline formatting markers (*bold*, _italic_, `monospace`) as they are, only translate the human-readable text.
- Keep lists (-, *, .) and their structure unchanged, only translate the text.
- Keep table structure unchanged, only translate the cell text.
- Do NOT add explanations or comments.
- Do NOT change the :primary-lang: attribute or its value if present.

Return ONLY the translated AsciiDoc document, same structure, with {target} text where appropriate."""

_STRICT_TEMPLATE = """\
You are a professional technical translator from {source} to {target} in SAFE MODE.

You are given an AsciiDoc (.adoc) document used in Antora documentation.

You MUST obey ALL of the following rules:

STRUCTURE PRESERVATION (CRITICAL):
- Do NOT change any AsciiDoc syntax or structure.
- Do NOT change heading markup (=, ==, ===, etc.) at all.
- Do NOT change roles, attributes, IDs, anchors, xrefs, include directives or macros.
- Do NOT change or remove any AsciiDoc macros: xref:, include::, image::, etc.
- Do NOT change attribute line names (:page-...:). Do NOT change the :primary-lang: attribute or its value.
- Do NOT change URLs, xref targets, file paths or attribute names.
- Do NOT add, remove or reorder lines.

CODE & LITERAL BLOCKS (CRITICAL):
- Do NOT change anything inside source/code/literal blocks:
  - blocks delimited by ----, ...., ``` or similar
  - blocks with [source,java], [source,xml], etc.
- Copy code and literal blocks EXACTLY as in the input.

TRANSLATION SCOPE:
- Translate ONLY human-readable natural language text outside of code/literal blocks.
- If translating a sentence would require modifying any structure, macro, attribute name, code or delimiter, LEAVE THAT PART EXACTLY AS IN THE ORIGINAL {source_upper}.

OUTPUT:
- Return ONLY the translated AsciiDoc document.
- The output MUST have the same number of lines and the same AsciiDoc structure as the input."""


def build_instructions(mode: TranslationMode, direction: Direction) -> str:
    """Return the system instructions for *mode* and *direction*."""
    source = language_name(direction.source)
    target = language_name(direction.target)
    template = (
        _STRICT_TEMPLATE
        if mode == TranslationMode.STRICT
        else _NORMAL_TEMPLATE
    )
    return template.format(
        source=source,
        target=target,
        source_upper=source.split(" (")[0].upper(),
    )
