"""Shared pytest fixtures for adoc-sync tests."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

from adoc_sync.config_schema import TreeConfig
from adoc_sync.pages import PageMapper

load_dotenv()

PRIMARY_PAGE = """\
:primary-lang: en
= Guide

== Install

Install the library.

[source,bash]
----
pip install foo
----

See xref:other.adoc[Other].
"""

TRANSLATED_PAGE = """\
:primary-lang: en
= Vodič

== Instalacija

Instalirajte biblioteku.

[source,bash]
----
pip install foo
----

Pogledajte xref:other.adoc[Ostalo].
"""


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that call a live translation endpoint",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live translation endpoint"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def primary_page():
    """English primary page with one source block and one xref."""
    return PRIMARY_PAGE


@pytest.fixture
def translated_page():
    """Structurally faithful Serbian counterpart of ``primary_page``."""
    return TRANSLATED_PAGE


@pytest.fixture
def trees():
    return [
        TreeConfig(lang="en", root="docs-en"),
        TreeConfig(lang="sr", root="docs-sr"),
    ]


@pytest.fixture
def repo(tmp_path):
    """Factory fixture: write ``{relative_path: content}`` under a temp repo."""

    def _write(files: dict[str, str]) -> Path:
        for rel_path, content in files.items():
            fp = tmp_path / rel_path
            fp.parent.mkdir(parents=True, exist_ok=True)
            fp.write_text(content, encoding="utf-8")
        return tmp_path

    return _write


@pytest.fixture
def mapper(tmp_path, trees):
    return PageMapper(tmp_path, trees)
