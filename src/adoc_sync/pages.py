"""Config-driven page pairing across the two language trees.

A page is addressed by its *key*, the path relative to a tree root
(``modules/ROOT/pages/index.adoc``). The same key names the page in both
trees; the tree a staged file lives in is its primary side.

Mapping resolution:

1. **Tree lookup** -- the path must sit under one of the configured roots.
2. **Exclude check** -- keys matching any exclude glob are skipped.
3. **Page globs** -- the key must match at least one page glob.

Staged pages without a marker get one naming their tree's language, then
preflight checks run on the staged set before anything is classified.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from adoc_sync.config_schema import (
    DEFAULT_EXCLUDES,
    DEFAULT_PAGE_GLOBS,
    PreflightConfig,
    TreeConfig,
    UnifiedConfig,
)
from adoc_sync.errors import PreflightError
from adoc_sync.file_handler import read_page, resolve_page_path, write_file
from adoc_sync.translation.prompts import Direction
from adoc_sync.validators import validate_page_filename

logger = logging.getLogger(__name__)

_PRIMARY_LANG = re.compile(r"^:primary-lang:\s*(.+?)\s*$", re.MULTILINE | re.IGNORECASE)
_HAS_MARKER = re.compile(r"^:primary-lang:", re.MULTILINE | re.IGNORECASE)
NAV_FILE = "nav.adoc"


def read_primary_lang(content: str) -> str | None:
    """Return the ``:primary-lang:`` tag declared in *content*.

    Values starting with ``en`` or ``sr`` are normalised to those tags;
    anything else is returned lower-cased.

    Examples:
        >>> read_primary_lang(":primary-lang: en-US\\n= Title")
        'en'
        >>> read_primary_lang("= Title") is None
        True
    """
    match = _PRIMARY_LANG.search(content)
    if not match:
        return None
    value = match.group(1).strip().lower()
    for tag in ("en", "sr"):
        if value.startswith(tag):
            return tag
    return value or None


@dataclass(frozen=True)
class PagePair:
    """A primary page and its counterpart in the other tree."""

    key: str
    primary_path: Path
    secondary_path: Path
    primary_lang: str
    secondary_lang: str

    @property
    def direction(self) -> Direction:
        return Direction(self.primary_lang, self.secondary_lang)


class PageMapper:
    """Map files to page keys and pair them across the two trees.

    Args:
        repo_root: Repository root; tree roots are relative to it.
        trees: Exactly two language trees.
        pages: Page globs matched against keys.
        exclude: Exclude globs matched against keys.
    """

    def __init__(
        self,
        repo_root: Path,
        trees: list[TreeConfig],
        pages: list[str] | None = None,
        exclude: list[str] | None = None,
    ) -> None:
        if len(trees) != 2:
            raise ValueError("PageMapper needs exactly two language trees")
        self.repo_root = repo_root.resolve()
        self.trees = list(trees)
        self.pages = list(DEFAULT_PAGE_GLOBS if pages is None else pages)
        self.exclude = list(DEFAULT_EXCLUDES if exclude is None else exclude)

    @classmethod
    def from_config(cls, repo_root: Path, config: UnifiedConfig) -> PageMapper:
        return cls(repo_root, config.trees, config.pages, config.exclude)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def tree_root(self, tree: TreeConfig) -> Path:
        return (self.repo_root / tree.root).resolve()

    def other_tree(self, tree: TreeConfig) -> TreeConfig:
        return self.trees[1] if tree == self.trees[0] else self.trees[0]

    def tree_for_lang(self, lang: str) -> TreeConfig | None:
        for tree in self.trees:
            if tree.lang == lang:
                return tree
        return None

    def locate(self, path: str | Path) -> tuple[TreeConfig, str] | None:
        """Return the tree and page key of *path*.

        Args:
            path: Absolute path, or a path relative to the repository root.

        Returns:
            ``(tree, key)``, or ``None`` when the path is outside both trees.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.repo_root / candidate
        candidate = candidate.resolve()
        for tree in self.trees:
            root = self.tree_root(tree)
            if candidate.is_relative_to(root):
                key = candidate.relative_to(root).as_posix()
                return (tree, key)
        return None

    def is_page(self, key: str) -> bool:
        """True when *key* matches a page glob and no exclude glob."""
        for pattern in self.exclude:
            if fnmatch.fnmatch(key, pattern):
                return False
        return any(fnmatch.fnmatch(key, pattern) for pattern in self.pages)

    def path_for(self, tree: TreeConfig, key: str) -> Path:
        return resolve_page_path(self.tree_root(tree), key)

    def relative(self, path: Path) -> str:
        """Repository-relative POSIX path, as git reports it."""
        resolved = path.resolve()
        if resolved.is_relative_to(self.repo_root):
            return resolved.relative_to(self.repo_root).as_posix()
        return resolved.as_posix()

    # ------------------------------------------------------------------
    # Pairing
    # ------------------------------------------------------------------

    def pair_for(self, path: str | Path) -> PagePair | None:
        """Pair *path* with its counterpart.

        The tree *path* lives in is the primary side.

        Returns:
            The pair, or ``None`` when *path* is not a page.
        """
        located = self.locate(path)
        if located is None:
            return None
        tree, key = located
        if not self.is_page(key):
            return None
        other = self.other_tree(tree)
        return PagePair(
            key=key,
            primary_path=self.path_for(tree, key),
            secondary_path=self.path_for(other, key),
            primary_lang=tree.lang,
            secondary_lang=other.lang,
        )

    def discover(self, tree: TreeConfig) -> list[str]:
        """Sorted page keys present in *tree*."""
        root = self.tree_root(tree)
        if not root.is_dir():
            return []
        keys = []
        for path in sorted(root.rglob("*.adoc")):
            if path.is_file():
                key = path.relative_to(root).as_posix()
                if self.is_page(key):
                    keys.append(key)
        return keys


# =============================================================================
# Preflight
# =============================================================================


def ensure_primary_lang(mapper: PageMapper, paths: Iterable[str]) -> list[str]:
    """Mark staged pages that do not declare ``:primary-lang:``.

    The marker names the language of the tree the file lives in and is
    followed by a blank line. ``nav.adoc`` files, non-AsciiDoc files and
    paths outside both trees are left alone.

    Args:
        mapper: Page mapper for the repository.
        paths: Repository-relative paths of staged files.

    Returns:
        The paths that were rewritten and need re-staging.
    """
    marked = []
    for path in paths:
        name = PurePosixPath(path).name
        if not name.endswith(".adoc") or name == NAV_FILE:
            continue
        located = mapper.locate(path)
        if located is None:
            continue
        file = mapper.repo_root / path
        if not file.is_file():
            continue
        content = read_page(file)
        if _HAS_MARKER.search(content):
            continue
        tree, _ = located
        logger.info("Adding :primary-lang: %s to %s", tree.lang, path)
        write_file(file, f":primary-lang: {tree.lang}\n\n{content}")
        marked.append(path)
    return marked


def check_filenames(paths: Iterable[str]) -> list[str]:
    """Return ``"<path> (<reason>)"`` for every page with an unsafe name."""
    problems = []
    for path in paths:
        ok, reason = validate_page_filename(path)
        if not ok:
            problems.append(f"{path} ({reason})")
    return problems


def _declared_lang(path: Path) -> str | None:
    if not path.is_file():
        return None
    return read_primary_lang(read_page(path))


def check_marker_consistency(
    mapper: PageMapper, paths: Iterable[str]
) -> list[str]:
    """Files whose ``:primary-lang:`` names a language other than their tree."""
    problems = []
    for path in paths:
        located = mapper.locate(path)
        if located is None:
            continue
        tree, _ = located
        declared = _declared_lang(mapper.repo_root / path)
        if declared and declared != tree.lang:
            problems.append(
                f"{path} (folder={tree.root}, :primary-lang: {declared})"
            )
    return problems


def check_manual_secondary_edits(
    mapper: PageMapper, paths: Iterable[str]
) -> list[str]:
    """Staged generated files whose primary counterpart is not staged.

    A counterpart is primary when it declares its own tree's language.
    """
    staged = list(paths)
    staged_resolved = {(mapper.repo_root / p).resolve() for p in staged}
    problems = []
    for path in staged:
        pair = mapper.pair_for(path)
        if pair is None:
            continue
        counterpart = pair.secondary_path
        if _declared_lang(counterpart) != pair.secondary_lang:
            continue
        if counterpart in staged_resolved:
            continue
        problems.append(
            f"{path} (generated from {mapper.relative(counterpart)})"
        )
    return problems


def run_preflight(
    mapper: PageMapper,
    staged: list[str],
    settings: PreflightConfig | None = None,
) -> None:
    """Run the enabled preflight checks on *staged* paths.

    Args:
        mapper: Page mapper for the repository.
        staged: Repository-relative paths of staged files.
        settings: Which checks to run (all by default).

    Raises:
        PreflightError: If any check reports an offending file.
    """
    settings = settings or PreflightConfig()
    page_paths = [p for p in staged if mapper.pair_for(p) is not None]

    checks = []
    if settings.filename_policy:
        checks.append(
            ("invalid page file name(s)", check_filenames(page_paths))
        )
    if settings.marker_consistency:
        checks.append(
            (
                "inconsistent :primary-lang: marker(s)",
                check_marker_consistency(mapper, page_paths),
            )
        )
    if settings.manual_secondary_edits:
        checks.append(
            (
                "manual edits to generated page(s)",
                check_manual_secondary_edits(mapper, page_paths),
            )
        )

    for title, problems in checks:
        if problems:
            logger.debug("Preflight failed: %s", title)
            raise PreflightError(f"Preflight failed: {title}", problems)
