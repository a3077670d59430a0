"""Fake CheckPort implementation for testing."""

from datetime import datetime, timezone
from typing import Any

from doublecheck.core.models import CheckResult
from doublecheck.core.ports import CheckPort


class FakeCheckPort(CheckPort):
    """Check port that returns canned results.

    Records the paths of every run for test assertions.
    """

    def __init__(self, result: CheckResult | None = None):
        """Initialize with an optional canned result."""
        self.result = result or CheckResult(
            files_checked=0,
            tests_checked=0,
            doubles_checked=0,
            findings=(),
            new_findings=0,
            suppressed=0,
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        self.run_calls: list[list[str]] = []
        self.should_fail: bool = False
        self.fail_message: str = "Check failed"

    async def run_check(self, paths: list[str]) -> CheckResult:
        self.run_calls.append(list(paths))
        if self.should_fail:
            raise RuntimeError(self.fail_message)
        return self.result

    async def get_last_summary(self) -> dict[str, Any]:
        if not self.run_calls:
            return {}
        return self.result.to_summary()

    def reset(self) -> None:
        """Reset all state."""
        self.run_calls.clear()
        self.should_fail = False
