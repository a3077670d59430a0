"""Core domain logic for the doublecheck linter.

This package contains zero external dependencies and represents
the pure logic of the application. All adapters and external
integrations are handled by the adapters package.
"""

from .models import (
    BaselineEntry,
    BaselineStats,
    CheckResult,
    CodeFence,
    DocSection,
    DoubleKind,
    DoubleProfile,
    Finding,
    FindingDetails,
    FindingStatus,
    Language,
    Location,
    Severity,
    SourceFile,
    TestCase,
)

__all__ = [
    "BaselineEntry",
    "BaselineStats",
    "CheckResult",
    "CodeFence",
    "DocSection",
    "DoubleKind",
    "DoubleProfile",
    "Finding",
    "FindingDetails",
    "FindingStatus",
    "Language",
    "Location",
    "Severity",
    "SourceFile",
    "TestCase",
]
