"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without touching the filesystem or a database:

- FakeSourcePort: In-memory files keyed by path
- FakeBaselineStorePort: In-memory baseline persistence
- FakeReporterPort: Captured reports for assertion
- FakeCheckPort: Canned check results
- FakeBaselinePort: Captured baseline operations
"""

from .baseline import FakeBaselinePort
from .check import FakeCheckPort
from .reporter import FakeReporterPort
from .source import FakeSourcePort
from .store import FakeBaselineStorePort

__all__ = [
    "FakeBaselinePort",
    "FakeBaselineStorePort",
    "FakeCheckPort",
    "FakeReporterPort",
    "FakeSourcePort",
]
