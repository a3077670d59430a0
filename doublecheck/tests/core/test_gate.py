"""Tests for the reporting and failure gate."""

from datetime import datetime, timezone

import pytest

from doublecheck.core.gate import GateEngine
from doublecheck.core.models import (
    BaselineEntry,
    CheckResult,
    Finding,
    FindingStatus,
    Location,
    Severity,
)


def finding(severity: Severity, path: str = "a.py", lineno: int = 1, rule_id: str = "NAM001") -> Finding:
    return Finding(rule_id, severity, "message", Location(path, lineno))


def result(*findings: Finding) -> CheckResult:
    return CheckResult(
        files_checked=1,
        tests_checked=1,
        doubles_checked=0,
        findings=tuple(findings),
        new_findings=len(findings),
        suppressed=0,
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def accepted_entry() -> BaselineEntry:
    """Create an accepted baseline entry."""
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return BaselineEntry(
        id="e-1", fingerprint="fp", rule_id="NAM001", path="a.py", symbol="",
        message="message", first_seen=now, last_seen=now, occurrence_count=1,
        status=FindingStatus.ACCEPTED,
    )


class TestShouldReport:
    def test_reports_by_default(self) -> None:
        assert GateEngine().should_report(finding(Severity.INFO))

    def test_severity_floor(self) -> None:
        gate = GateEngine(min_severity=Severity.WARNING)
        assert not gate.should_report(finding(Severity.INFO))
        assert gate.should_report(finding(Severity.ERROR))

    def test_accepted_findings_are_suppressed(self, accepted_entry: BaselineEntry) -> None:
        assert not GateEngine().should_report(finding(Severity.ERROR), accepted_entry)

    def test_new_entries_are_reported(self, accepted_entry: BaselineEntry) -> None:
        accepted_entry.reopen()
        assert GateEngine().should_report(finding(Severity.ERROR), accepted_entry)


class TestOrdering:
    def test_most_severe_first_then_position(self) -> None:
        findings = [
            finding(Severity.INFO, "a.py", 1),
            finding(Severity.WARNING, "b.py", 5),
            finding(Severity.ERROR, "b.py", 2),
            finding(Severity.WARNING, "a.py", 9),
        ]
        ordered = GateEngine().order(findings)
        assert [(f.severity, f.location.path, f.location.lineno) for f in ordered] == [
            (Severity.ERROR, "b.py", 2),
            (Severity.WARNING, "a.py", 9),
            (Severity.WARNING, "b.py", 5),
            (Severity.INFO, "a.py", 1),
        ]


class TestExitCode:
    @pytest.mark.parametrize(
        "fail_on,severities,expected",
        [
            ("error", [Severity.WARNING, Severity.INFO], 0),
            ("error", [Severity.ERROR], 1),
            ("warning", [Severity.WARNING], 1),
            ("warning", [Severity.INFO], 0),
            ("info", [Severity.INFO], 1),
            ("never", [Severity.ERROR], 0),
            ("error", [], 0),
        ],
    )
    def test_threshold(self, fail_on: str, severities: list[Severity], expected: int) -> None:
        gate = GateEngine(fail_on=fail_on)  # type: ignore[arg-type]
        assert gate.exit_code(result(*(finding(s) for s in severities))) == expected

    def test_invalid_fail_on(self) -> None:
        with pytest.raises(ValueError, match="fail_on"):
            GateEngine(fail_on="sometimes")  # type: ignore[arg-type]
