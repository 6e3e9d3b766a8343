"""Tests for file_handler module: page key resolution and encoding-aware read/write."""

import pytest

from adoc_sync.file_handler import (
    read_file_with_encoding,
    read_page,
    resolve_page_path,
    write_file,
)

# =============================================================================
# resolve_page_path
# =============================================================================


class TestResolvePagePath:
    def test_key_under_root(self, tmp_path):
        result = resolve_page_path(tmp_path, "modules/ROOT/pages/index.adoc")
        assert result == (tmp_path / "modules/ROOT/pages/index.adoc").resolve()

    def test_backslashes_accepted(self, tmp_path):
        result = resolve_page_path(tmp_path, "modules\\ROOT\\index.adoc")
        assert result == (tmp_path / "modules" / "ROOT" / "index.adoc").resolve()

    @pytest.mark.parametrize("key", ["", "   "])
    def test_empty_key(self, tmp_path, key):
        with pytest.raises(ValueError, match="cannot be empty"):
            resolve_page_path(tmp_path, key)

    def test_absolute_key(self, tmp_path):
        with pytest.raises(ValueError, match="must be relative"):
            resolve_page_path(tmp_path, "/etc/passwd")

    def test_parent_traversal(self, tmp_path):
        with pytest.raises(ValueError, match=r"cannot contain '\.\.'"):
            resolve_page_path(tmp_path, "pages/../../secret.adoc")

    def test_symlink_escape(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        root = tmp_path / "root"
        root.mkdir()
        (root / "link").symlink_to(outside)
        with pytest.raises(ValueError, match="outside tree root"):
            resolve_page_path(root, "link/page.adoc")


# =============================================================================
# Read / write
# =============================================================================


class TestReadFileWithEncoding:
    def test_utf8(self, tmp_path):
        f = tmp_path / "page.adoc"
        f.write_bytes("= Vodič\n".encode("utf-8"))
        assert read_file_with_encoding(f) == ("= Vodič\n", "utf-8")

    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.adoc"
        f.write_bytes(b"")
        assert read_file_with_encoding(f) == ("", "utf-8")

    def test_legacy_encoding_detected(self, tmp_path):
        f = tmp_path / "legacy.adoc"
        text = "= Uputstvo\n\nOvo je primer stranice sa dijakritičkim znakovima: čćžšđ.\n" * 4
        f.write_bytes(text.encode("cp1250"))
        content, _ = read_file_with_encoding(f)
        assert content.startswith("= Uputstvo")
        assert "Ovo je primer stranice" in content

    def test_read_page_returns_text(self, tmp_path):
        f = tmp_path / "page.adoc"
        f.write_text("= A\n", encoding="utf-8")
        assert read_page(f) == "= A\n"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_page(tmp_path / "missing.adoc")


class TestWriteFile:
    def test_creates_parents(self, tmp_path):
        target = tmp_path / "docs-sr" / "modules" / "ROOT" / "pages" / "index.adoc"
        written = write_file(target, "= Početak\n")
        assert target.read_text(encoding="utf-8") == "= Početak\n"
        assert written == len("= Početak\n".encode("utf-8"))

    def test_replaces_whole_file(self, tmp_path):
        target = tmp_path / "page.adoc"
        target.write_text("old content that is longer\n", encoding="utf-8")
        write_file(target, "new\n")
        assert target.read_text(encoding="utf-8") == "new\n"

    def test_no_newline_translation(self, tmp_path):
        target = tmp_path / "page.adoc"
        write_file(target, "a\nb")
        assert target.read_bytes() == b"a\nb"
