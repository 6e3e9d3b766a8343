"""Change detection: staged content and diffs for primary pages.

Two sources implement the ``ChangeSource`` protocol:

- ``GitChangeSource`` reads the git index (``git diff --cached -U0``,
  ``git show :<path>``); this is what the commit-time run uses.
- ``FileChangeSource`` compares two directory snapshots without git.

A failing git call raises ``ChangeDetectionError``. It is never turned
into an empty diff, since that would classify as "no change".
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from adoc_sync.errors import ChangeDetectionError
from adoc_sync.file_handler import read_page
from .diffparse import unified_diff

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30


class ChangeSource(Protocol):
    """Supplies the staged content of a page and its diff."""

    def diff(self, path: Path) -> str:
        """Unified diff from the last committed version to the staged one."""
        ...  # pragma: no cover

    def content(self, path: Path) -> str:
        """Staged content of *path*."""
        ...  # pragma: no cover


@dataclass(frozen=True)
class StagedEntry:
    """One ``--name-status`` entry; renames and copies carry the new path."""

    status: str
    path: str


def parse_name_status(output: str) -> list[StagedEntry]:
    """Parse ``git diff --name-status -z`` output.

    Rename and copy records (``R100``, ``C075``) are followed by two paths;
    the second (new) one is kept.
    """
    fields = output.split("\0")
    entries: list[StagedEntry] = []
    i = 0
    while i < len(fields):
        raw_status = fields[i].strip()
        i += 1
        if not raw_status:
            continue
        status = raw_status[0]
        if status in ("R", "C"):
            if i + 1 >= len(fields):
                break
            path = fields[i + 1]
            i += 2
        else:
            if i >= len(fields):
                break
            path = fields[i]
            i += 1
        if path:
            entries.append(StagedEntry(status=status, path=path))
    return entries


class GitChangeSource:
    """Read staged changes from the git index of *repo_root*."""

    def __init__(self, repo_root: Path, timeout: float = GIT_TIMEOUT) -> None:
        self.repo_root = repo_root
        self.timeout = timeout

    def _git(self, *args: str) -> str:
        command = ["git", *args]
        try:
            result = subprocess.run(
                command,
                cwd=str(self.repo_root),
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as exc:
            raise ChangeDetectionError(
                f"git {' '.join(args)} failed: {exc}"
            ) from exc
        if result.returncode != 0:
            raise ChangeDetectionError(
                f"git {' '.join(args)} exited with {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    def _relative(self, path: Path) -> str:
        resolved = Path(path)
        if resolved.is_absolute():
            try:
                resolved = resolved.relative_to(self.repo_root.resolve())
            except ValueError:
                raise ChangeDetectionError(
                    f"{path} is outside repository {self.repo_root}"
                ) from None
        return resolved.as_posix()

    @classmethod
    def discover(cls, start: Path | None = None) -> GitChangeSource:
        """Build a source for the repository containing *start*.

        Falls back to *start* (or the current directory) when git cannot
        report a top-level directory.
        """
        start = start or Path.cwd()
        try:
            top = cls(start)._git("rev-parse", "--show-toplevel").strip()
        except ChangeDetectionError as exc:
            logger.debug("Not inside a git work tree: %s", exc)
            return cls(start)
        return cls(Path(top) if top else start)

    def diff(self, path: Path) -> str:
        return self._git("diff", "--cached", "-U0", "--", self._relative(path))

    def content(self, path: Path) -> str:
        """Staged blob of *path*, or the working tree file if not in the index."""
        rel = self._relative(path)
        try:
            return self._git("show", f":{rel}")
        except ChangeDetectionError:
            full = self.repo_root / rel
            if not full.is_file():
                raise
            logger.debug("%s not in index; reading working tree", rel)
            return read_page(full)

    def staged_entries(
        self, patterns: Sequence[str] = ()
    ) -> list[StagedEntry]:
        args = ["diff", "--cached", "--name-status", "-z"]
        if patterns:
            args += ["--", *patterns]
        return parse_name_status(self._git(*args))

    def staged_files(self, patterns: Sequence[str] = ()) -> list[str]:
        """Staged paths matching *patterns*, deletions excluded."""
        return [
            e.path for e in self.staged_entries(patterns) if e.status != "D"
        ]

    def stage(self, path: Path) -> None:
        self._git("add", "--", self._relative(path))


class FileChangeSource:
    """Compare a staged directory snapshot against a base snapshot.

    Args:
        base_dir: Directory holding the previous versions.
        staged_dir: Directory holding the new versions; paths passed to
            ``diff`` and ``content`` live under it.
    """

    def __init__(self, base_dir: Path, staged_dir: Path) -> None:
        self.base_dir = base_dir
        self.staged_dir = staged_dir

    def _base_path(self, path: Path) -> Path:
        try:
            rel = Path(path).resolve().relative_to(self.staged_dir.resolve())
        except ValueError:
            raise ChangeDetectionError(
                f"{path} is outside staged directory {self.staged_dir}"
            ) from None
        return self.base_dir / rel

    def content(self, path: Path) -> str:
        try:
            return read_page(Path(path))
        except OSError as exc:
            raise ChangeDetectionError(f"Cannot read {path}: {exc}") from exc

    def diff(self, path: Path) -> str:
        base = self._base_path(path)
        old = read_page(base) if base.is_file() else ""
        return unified_diff(
            old,
            self.content(path),
            from_label=f"a/{base.name}",
            to_label=f"b/{Path(path).name}",
        )
