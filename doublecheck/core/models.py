"""Domain models for the doublecheck test-suite linter.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType


class Language(Enum):
    """Source languages the extractor understands."""

    PYTHON = "python"
    CSHARP = "csharp"
    MARKDOWN = "markdown"


class Severity(Enum):
    """Finding severity levels."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Higher rank = more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 3, Severity.WARNING: 2, Severity.INFO: 1}


class DoubleKind(Enum):
    """The five kinds of test double.

    - DUMMY: passed to satisfy a parameter, never exercised
    - FAKE: a working, simplified implementation (e.g. in-memory storage)
    - STUB: returns predetermined values to control test inputs
    - SPY: records calls for inspection after the fact
    - MOCK: pre-configured with expected interactions and verifies them
    """

    DUMMY = "dummy"
    FAKE = "fake"
    STUB = "stub"
    SPY = "spy"
    MOCK = "mock"


@dataclass(frozen=True)
class Location:
    """A position in a checked file."""

    path: str
    lineno: int
    symbol: str = ""

    def __post_init__(self) -> None:
        """Validate location invariants on creation."""
        if not self.path or not self.path.strip():
            raise ValueError("path must be a non-empty string")
        if self.lineno < 1:
            raise ValueError(f"lineno must be >= 1, got {self.lineno}")

    def __str__(self) -> str:
        return f"{self.path}:{self.lineno}"


@dataclass(frozen=True)
class SourceFile:
    """A file read from disk, ready for extraction."""

    path: str
    text: str
    language: Language


@dataclass(frozen=True)
class TestCase:
    """A single test found in source."""

    __test__ = False  # keep pytest from collecting this class

    name: str
    location: Location
    language: Language
    class_name: str | None = None
    fence_line: int | None = None  # opening line of the guide snippet, if any

    @property
    def scope(self) -> tuple[str, int | None, str | None]:
        """Tests with the same name in one scope shadow each other.

        Each snippet in a guide is its own scope.
        """
        return (self.location.path, self.fence_line, self.class_name)


@dataclass(frozen=True)
class DoubleProfile:
    """Structural facts about a class named as a test double.

    The facts are extracted from source without executing it. The
    classifier in core/doubles.py turns them into an observed kind.
    """

    name: str
    location: Location
    language: Language
    declared_kind: DoubleKind
    method_count: int
    records_calls: bool = False
    verifies_calls: bool = False
    returns_canned: bool = False
    holds_state: bool = False
    inert: bool = False


@dataclass(frozen=True)
class DocSection:
    """A Markdown heading and the lines up to the next heading."""

    title: str
    level: int
    location: Location
    body_lines: tuple[str, ...]  # immutable for frozen dataclass

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"heading level must be 1-6, got {self.level}")


@dataclass(frozen=True)
class CodeFence:
    """A fenced code block in a Markdown document."""

    info: str  # language tag, may be empty
    location: Location  # line of the opening fence
    body: str


@dataclass(frozen=True)
class Finding:
    """A single rule violation."""

    rule_id: str
    severity: Severity
    message: str
    location: Location
    fingerprint: str = ""

    def with_fingerprint(self, fingerprint: str) -> "Finding":
        """Return a copy carrying the given fingerprint."""
        return replace(self, fingerprint=fingerprint)


class FindingStatus(Enum):
    """Lifecycle states for a baselined finding.

    - NEW: seen by a check and not yet triaged by a human
    - ACCEPTED: known and tolerated; suppressed from reports
    - FIXED: no longer produced by the code it was found in
    """

    NEW = "new"
    ACCEPTED = "accepted"
    FIXED = "fixed"


@dataclass
class BaselineEntry:
    """A persisted finding, identified by its fingerprint.

    Represents a class of finding across runs, not a single occurrence.

    State Transitions:
        - NEW → ACCEPTED (accept)
        - FIXED → ACCEPTED (accept)
        - ACCEPTED → NEW (reopen)
        - FIXED → NEW (reopen, or record_occurrence on regression)
        - NEW → FIXED (mark_fixed)

    Note: This dataclass is intentionally mutable so status and
    occurrence counters can be updated in place before persisting.
    """

    id: str  # UUID
    fingerprint: str
    rule_id: str
    path: str
    symbol: str
    message: str
    first_seen: datetime
    last_seen: datetime
    occurrence_count: int
    status: FindingStatus
    reason: str | None = None

    def __post_init__(self) -> None:
        """Validate entry invariants on creation or deserialization."""
        if self.occurrence_count < 1:
            raise ValueError(
                f"occurrence_count must be >= 1, got {self.occurrence_count}"
            )
        if self.last_seen < self.first_seen:
            raise ValueError(
                f"last_seen ({self.last_seen}) cannot be before "
                f"first_seen ({self.first_seen})"
            )

    def accept(self, reason: str | None = None) -> None:
        """Tolerate this finding from now on."""
        if self.status == FindingStatus.ACCEPTED:
            raise ValueError("Finding is already accepted")
        self.status = FindingStatus.ACCEPTED
        self.reason = reason

    def reopen(self) -> None:
        """Return an accepted or fixed finding to NEW."""
        if self.status == FindingStatus.NEW:
            raise ValueError("Finding is already new")
        self.status = FindingStatus.NEW
        self.reason = None

    def mark_fixed(self) -> None:
        """Record that the finding no longer occurs."""
        if self.status != FindingStatus.NEW:
            raise ValueError(
                f"Can only mark NEW findings as fixed, current status: {self.status}"
            )
        self.status = FindingStatus.FIXED

    def record_occurrence(self, timestamp: datetime) -> None:
        """Record a new occurrence and update last_seen.

        A FIXED finding that shows up again is a regression and goes back
        to NEW. ACCEPTED findings stay accepted.
        """
        if timestamp < self.first_seen:
            raise ValueError(
                f"Occurrence timestamp {timestamp} cannot be before first_seen {self.first_seen}"
            )
        self.occurrence_count += 1
        self.last_seen = timestamp
        if self.status == FindingStatus.FIXED:
            self.status = FindingStatus.NEW


@dataclass(frozen=True)
class CheckResult:
    """Summary of a single check run."""

    files_checked: int
    tests_checked: int
    doubles_checked: int
    findings: tuple[Finding, ...]  # ordered for reporting
    new_findings: int
    suppressed: int
    timestamp: datetime
    files_failed: int = 0
    fixed: int = 0

    @property
    def counts_by_severity(self) -> dict[str, int]:
        """Number of reported findings per severity value."""
        counts = {severity.value: 0 for severity in Severity}
        for finding in self.findings:
            counts[finding.severity.value] += 1
        return counts

    def to_summary(self) -> dict[str, object]:
        """Flatten counters for reporters and the CLI."""
        return {
            "files_checked": self.files_checked,
            "files_failed": self.files_failed,
            "tests_checked": self.tests_checked,
            "doubles_checked": self.doubles_checked,
            "findings": len(self.findings),
            "new_findings": self.new_findings,
            "suppressed": self.suppressed,
            "fixed": self.fixed,
            "by_severity": self.counts_by_severity,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class BaselineStats:
    """Statistics about the baseline store."""

    total_entries: int
    by_status: Mapping[str, int]  # status -> count (immutable at runtime)
    by_rule: Mapping[str, int]  # rule_id -> count (immutable at runtime)

    def __post_init__(self) -> None:
        """Convert mutable dicts to immutable proxies."""
        object.__setattr__(self, "by_status", MappingProxyType(dict(self.by_status)))
        object.__setattr__(self, "by_rule", MappingProxyType(dict(self.by_rule)))


@dataclass(frozen=True)
class FindingDetails:
    """A baseline entry plus the other entries recorded for its file.

    WARNING: the contained BaselineEntry is mutable and may change after
    this object is created.
    """

    entry: BaselineEntry
    related_entries: tuple[BaselineEntry, ...] = field(default_factory=tuple)
