"""Tests for adoc_sync.bootstrap.load_context."""

import pytest

from adoc_sync.bootstrap import load_context
from adoc_sync.translation.client import OpenAITranslator


@pytest.fixture
def root(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("ADOC_SYNC_CONFIG", raising=False)
    monkeypatch.delenv("TRANSLATION_MODE", raising=False)
    # empty .env keeps a developer's own file out of the run
    (tmp_path / ".env").write_text("", encoding="utf-8")
    return tmp_path


def _write_config(root, text):
    config = root / ".adoc_sync" / "config.yml"
    config.parent.mkdir(exist_ok=True)
    config.write_text(text, encoding="utf-8")


class TestLoadContext:
    def test_zero_config(self, root):
        ctx = load_context(root)
        assert ctx.repo_root == root.resolve()
        assert ctx.translator_config.policy == "normal"
        assert [t.root for t in ctx.config.trees] == ["docs-en", "docs-sr"]
        assert ctx.ledger.path == root.resolve() / ".translation-usage.jsonl"
        assert ctx.sources == ["environment variables"]

    def test_yaml_values(self, root):
        _write_config(
            root,
            "translation:\n"
            "  policy: strict\n"
            "ledger:\n"
            "  path: build/usage.jsonl\n",
        )
        ctx = load_context(root)
        assert ctx.translator_config.policy == "strict"
        assert ctx.ledger.path == root.resolve() / "build" / "usage.jsonl"
        assert ctx.sources[0].startswith("config file: ")

    def test_env_beats_yaml(self, root, monkeypatch):
        _write_config(root, "translation:\n  policy: strict\n")
        monkeypatch.setenv("TRANSLATION_MODE", "off")
        assert load_context(root).translator_config.policy == "off"

    def test_cli_beats_env(self, root, monkeypatch):
        monkeypatch.setenv("TRANSLATION_MODE", "off")
        ctx = load_context(root, {"policy": "strict"})
        assert ctx.translator_config.policy == "strict"
        assert "CLI arguments" in ctx.sources

    def test_unset_overrides_ignored(self, root):
        ctx = load_context(root, {"policy": None})
        assert "CLI arguments" not in ctx.sources

    def test_invalid_policy(self, root, monkeypatch):
        monkeypatch.setenv("TRANSLATION_MODE", "fast")
        with pytest.raises(ValueError, match="Invalid TRANSLATION_MODE"):
            load_context(root)

    def test_mapper_uses_configured_trees(self, root):
        _write_config(
            root,
            "trees:\n"
            "  - {lang: en, root: en-docs}\n"
            "  - {lang: sr, root: sr-docs}\n",
        )
        pair = load_context(root).mapper().pair_for(
            "en-docs/modules/ROOT/pages/a.adoc"
        )
        assert pair.secondary_path == (
            root.resolve() / "sr-docs" / "modules" / "ROOT" / "pages" / "a.adoc"
        )

    def test_translator_without_credentials(self, root):
        # credentials are checked on the first translate call, not here
        translator = load_context(root).translator()
        assert isinstance(translator, OpenAITranslator)
