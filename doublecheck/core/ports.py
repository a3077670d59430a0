"""Port interfaces for the doublecheck linter.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - SourcePort: Discover and read files to check
   - BaselineStorePort: Persist and query baselined findings
   - ReporterPort: Render check results for developers

2. **Driving Ports** (adapters/external systems call into core)
   - CheckPort: Entry point for a check run
   - BaselinePort: Human-initiated actions (accept, reopen, etc.)
"""

from abc import ABC, abstractmethod
from typing import Any

from .models import (
    BaselineEntry,
    BaselineStats,
    CheckResult,
    FindingDetails,
    FindingStatus,
    SourceFile,
)


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class SourcePort(ABC):
    """Port for finding and reading the files to check.

    Implementations must handle:
    - Expanding directories into individual files
    - Skipping excluded directories and unsupported extensions
    - Decoding text (a file that cannot be decoded is an error)
    """

    @abstractmethod
    async def discover(self, paths: list[str]) -> list[str]:
        """Expand the given files and directories into checkable file paths.

        Args:
            paths: Files or directories to check.

        Returns:
            Sorted, de-duplicated list of file paths with a supported
            extension. Empty list if nothing matched.

        Raises:
            FileNotFoundError: If a given path does not exist.
        """

    @abstractmethod
    async def read(self, path: str) -> SourceFile:
        """Read a single file.

        Args:
            path: A path previously returned by discover().

        Returns:
            SourceFile with text and detected language.

        Raises:
            OSError: If the file cannot be read.
            UnicodeDecodeError: If the file is not valid UTF-8.
            ValueError: If the file extension is not supported.
        """

    @abstractmethod
    async def get_modification_times(self, paths: list[str]) -> dict[str, float]:
        """Return the modification time of every checkable file under paths.

        Used by the watch loop to decide whether a re-check is needed.
        """


class BaselineStorePort(ABC):
    """Port for persisting baselined findings.

    Implementations must handle:
    - Unique fingerprints (one entry per fingerprint)
    - Filtering by status and rule
    - Concurrent access from a single event loop
    """

    @abstractmethod
    async def get_by_id(self, entry_id: str) -> BaselineEntry | None:
        """Retrieve an entry by ID, or None if not found."""

    @abstractmethod
    async def get_by_fingerprint(self, fingerprint: str) -> BaselineEntry | None:
        """Retrieve an entry by finding fingerprint, or None if not found."""

    @abstractmethod
    async def save(self, entry: BaselineEntry) -> None:
        """Persist a new entry.

        Raises:
            Exception: If the store is unavailable.
        """

    @abstractmethod
    async def update(self, entry: BaselineEntry) -> None:
        """Persist changes to an existing entry.

        Raises:
            ValueError: If the entry does not exist.
        """

    @abstractmethod
    async def query(
        self,
        status: FindingStatus | None = None,
        rule_id: str | None = None,
        path: str | None = None,
    ) -> list[BaselineEntry]:
        """Return entries matching all given filters, newest last_seen first."""

    @abstractmethod
    async def get_stats(self) -> BaselineStats:
        """Return counts of entries by status and rule."""


class ReporterPort(ABC):
    """Port for presenting check results.

    Implementations must handle formatting for their medium (terminal,
    Markdown file, JSON file).
    """

    @abstractmethod
    async def report(self, result: CheckResult) -> None:
        """Render the findings of one check run.

        Raises:
            Exception: If the output medium is unavailable. The caller
                logs the failure and does not fail the run.
        """

    @abstractmethod
    async def report_summary(self, stats: dict[str, Any]) -> None:
        """Render a short statistics summary (e.g. baseline stats)."""


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class CheckPort(ABC):
    """Port for executing check runs.

    Driving port: the composition root, the watch scheduler or a test
    invokes these methods.
    """

    @abstractmethod
    async def run_check(self, paths: list[str]) -> CheckResult:
        """Execute one discover → extract → check → baseline → report run.

        Should handle errors gracefully:
        - If a file cannot be read or parsed, log, count and continue
        - If the baseline store fails for a finding, still report it
        - If the reporter fails, log but return the result

        Raises:
            Exception: Only for fatal errors.
        """

    @abstractmethod
    async def get_last_summary(self) -> dict[str, Any]:
        """Return counters of the last run (empty dict before the first)."""


class BaselinePort(ABC):
    """Port for human-initiated baseline operations.

    Driving port: the interactive CLI invokes these methods.
    """

    @abstractmethod
    async def accept_finding(self, finding_id: str, reason: str | None = None) -> None:
        """Accept a finding so it is suppressed from reports.

        Raises:
            ValueError: If the finding doesn't exist or is already accepted.
        """

    @abstractmethod
    async def reopen_finding(self, finding_id: str) -> None:
        """Return a finding to NEW so it is reported again.

        Raises:
            ValueError: If the finding doesn't exist or is already new.
        """

    @abstractmethod
    async def get_finding_details(self, finding_id: str) -> FindingDetails:
        """Return an entry and the other entries recorded for its file.

        Raises:
            ValueError: If the finding doesn't exist.
        """

    @abstractmethod
    async def list_findings(
        self,
        status: FindingStatus | None = None,
        rule_id: str | None = None,
    ) -> list[BaselineEntry]:
        """List baseline entries, optionally filtered."""

    @abstractmethod
    async def get_stats(self) -> BaselineStats:
        """Return baseline statistics."""
