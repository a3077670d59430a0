"""Report adapters for presenting check results."""

from .json_file import JSONFileReporter
from .markdown import MarkdownReporter
from .stdout import StdoutReporter

__all__ = ["JSONFileReporter", "MarkdownReporter", "StdoutReporter"]
