"""Scheduler adapters for driving repeated check runs."""

from .watch import WatchScheduler

__all__ = ["WatchScheduler"]
