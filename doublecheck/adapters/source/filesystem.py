"""Filesystem source adapter.

Implements SourcePort by walking the local filesystem with pathlib.
Blocking filesystem calls run in worker threads.
"""

import asyncio
import fnmatch
import logging
from pathlib import Path

from doublecheck.core.extractors import language_for
from doublecheck.core.models import SourceFile
from doublecheck.core.ports import SourcePort

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = (
    ".git",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    "build",
    "dist",
)


class FilesystemSourceAdapter(SourcePort):
    """Discovers and reads checkable files from disk."""

    def __init__(
        self,
        include_globs: list[str] | None = None,
        exclude_dirs: list[str] | tuple[str, ...] = DEFAULT_EXCLUDE_DIRS,
        exclude_paths: list[str] | None = None,
    ):
        """Initialize the filesystem source.

        Args:
            include_globs: Optional filename patterns (e.g. 'test_*.py').
                If empty, every file with a supported extension is included.
            exclude_dirs: Directory names that are never descended into.
            exclude_paths: Specific directories (e.g. the report directory)
                skipped while walking a root that contains them.
        """
        self.include_globs = list(include_globs or [])
        self.exclude_dirs = set(exclude_dirs)
        self.exclude_paths = [Path(p).resolve() for p in exclude_paths or []]

    def _included(self, path: Path) -> bool:
        if language_for(path.name) is None:
            return False
        if not self.include_globs:
            return True
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.include_globs)

    def _walk(self, root: Path) -> list[Path]:
        if root.is_file():
            # Explicitly named files are checked whatever the globs say
            return [root] if language_for(root.name) is not None else []
        # An excluded path only prunes below a root, never the root itself
        resolved_root = root.resolve()
        pruned = [
            p for p in self.exclude_paths
            if p != resolved_root and resolved_root in p.parents
        ]
        found: list[Path] = []
        for candidate in root.rglob("*"):
            relative_parts = candidate.relative_to(root).parts[:-1]
            if any(part in self.exclude_dirs for part in relative_parts):
                continue
            if not candidate.is_file() or not self._included(candidate):
                continue
            if pruned and any(candidate.resolve().is_relative_to(p) for p in pruned):
                continue
            found.append(candidate)
        return found

    def _discover_sync(self, paths: list[str]) -> list[str]:
        files: set[str] = set()
        for raw in paths:
            root = Path(raw)
            if not root.exists():
                raise FileNotFoundError(f"Path does not exist: {raw}")
            files.update(str(path) for path in self._walk(root))
        return sorted(files)

    async def discover(self, paths: list[str]) -> list[str]:
        files = await asyncio.to_thread(self._discover_sync, paths)
        logger.debug(f"Discovered {len(files)} files under {paths}")
        return files

    async def read(self, path: str) -> SourceFile:
        language = language_for(path)
        if language is None:
            raise ValueError(f"Unsupported file type: {path}")
        text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        return SourceFile(path=path, text=text, language=language)

    async def get_modification_times(self, paths: list[str]) -> dict[str, float]:
        def _stat_all() -> dict[str, float]:
            times: dict[str, float] = {}
            for path in self._discover_sync(paths):
                try:
                    times[path] = Path(path).stat().st_mtime
                except OSError:
                    # Deleted between discovery and stat
                    continue
            return times

        return await asyncio.to_thread(_stat_all)
