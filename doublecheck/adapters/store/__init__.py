"""Baseline store adapters."""

from .sqlite import SQLiteBaselineStore

__all__ = ["SQLiteBaselineStore"]
