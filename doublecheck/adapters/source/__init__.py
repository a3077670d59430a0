"""Source adapters for discovering and reading checked files."""

from .filesystem import FilesystemSourceAdapter

__all__ = ["FilesystemSourceAdapter"]
