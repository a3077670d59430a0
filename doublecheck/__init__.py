"""doublecheck: lint test names and test doubles against their conventions."""

__version__ = "0.1.0"
