"""File handler module: page key resolution and encoding-aware read/write.

Pages are addressed by a relative key (``modules/ROOT/pages/index.adoc``)
under a language tree root. Reads detect the encoding; writes always
replace the whole file.
"""

from pathlib import Path, PurePosixPath

from charset_normalizer import from_bytes

# =============================================================================
# Path Validation
# =============================================================================


def resolve_page_path(root: Path, page_key: str) -> Path:
    """Resolve a page key against a tree root.

    Args:
        root: Language tree root directory.
        page_key: POSIX-style path relative to *root*.

    Returns:
        Absolute path of the page inside *root*.

    Raises:
        ValueError: If the key is empty, absolute, or escapes *root*.
    """
    if not page_key or not page_key.strip():
        raise ValueError("Page key cannot be empty")
    key = PurePosixPath(page_key.replace("\\", "/"))
    if key.is_absolute():
        raise ValueError(f"Page key must be relative: {page_key}")
    if ".." in key.parts:
        raise ValueError(f"Page key cannot contain '..': {page_key}")

    root_resolved = root.resolve()
    resolved = (root_resolved / Path(*key.parts)).resolve()
    if not resolved.is_relative_to(root_resolved):
        raise ValueError(
            f"Page path is outside tree root: {resolved} not under {root_resolved}"
        )
    return resolved


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    try:
        # Valid UTF-8 is taken as-is; detection only for other encodings
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def read_page(path: Path) -> str:
    """Return the decoded content of *path*."""
    content, _ = read_file_with_encoding(path)
    return content


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)
