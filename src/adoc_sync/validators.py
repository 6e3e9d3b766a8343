"""
Input validation functions for adoc-sync.

Provides validation for page file names and content before any page is
classified, translated or written.
"""

import re
from pathlib import PurePosixPath

_PAGE_STEM = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Page file name")
        reason: Description of validation failure (e.g., "contains spaces")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_page_filename(path: str) -> tuple[bool, str]:
    """
    Validate the file name of a documentation page.

    Page file names double as identifiers in xrefs and navigation, so
    only a conservative character set is accepted.

    Args:
        path: Path of the page; only the last component is checked

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Files not ending in ``.adoc`` are always accepted
        - No spaces
        - ASCII characters only (no diacritics)
        - Stem matches ^[a-z0-9][a-z0-9_-]*$
    """
    base = PurePosixPath(path.replace("\\", "/")).name
    if not base.endswith(".adoc"):
        return (True, "")

    if " " in base:
        return (
            False,
            format_validation_error("Page file name", "contains spaces"),
        )

    if not base.isascii():
        return (
            False,
            format_validation_error(
                "Page file name",
                "contains non-ASCII characters (e.g. diacritics)",
            ),
        )

    stem = base[: -len(".adoc")]
    if not _PAGE_STEM.match(stem):
        return (
            False,
            format_validation_error(
                "Page file name",
                "contains invalid characters (allowed: a-z, 0-9, '_' and '-')",
            ),
        )

    return (True, "")


def validate_content(
    content: str, max_size: int = 5_000_000
) -> tuple[bool, str]:
    """
    Validate page content before it is sent for translation.

    Args:
        content: The content to validate
        max_size: Maximum size in bytes (default: 5,000,000)

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.
    """
    content_bytes = len(content.encode("utf-8"))
    if content_bytes > max_size:
        return (
            False,
            format_validation_error(
                "Content", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")
