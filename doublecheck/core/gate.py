"""Reporting and failure policy for check results.

This module implements the rules that decide which findings are shown,
in what order, and whether a run fails.
"""

from typing import Literal, TypeAlias

from .models import BaselineEntry, CheckResult, Finding, FindingStatus, Severity

FailOn: TypeAlias = Literal["error", "warning", "info", "never"]


class GateEngine:
    """Decides what to do with each finding.

    Pure decision logic with no side effects.
    """

    def __init__(
        self,
        fail_on: FailOn = "error",
        min_severity: Severity = Severity.INFO,
    ):
        if fail_on not in ("error", "warning", "info", "never"):
            raise ValueError(f"fail_on must be error, warning, info or never, got {fail_on!r}")
        self.fail_on = fail_on
        self.min_severity = min_severity

    def should_report(self, finding: Finding, entry: BaselineEntry | None = None) -> bool:
        """Is this finding shown to the developer?

        Considers:
        - Severity floor (min_severity)
        - Baseline status (accepted findings are suppressed)
        """
        if finding.severity.rank < self.min_severity.rank:
            return False
        if entry is not None and entry.status == FindingStatus.ACCEPTED:
            return False
        return True

    @staticmethod
    def sort_key(finding: Finding) -> tuple[int, str, int, str]:
        """Most severe first, then by position in the tree."""
        return (
            -finding.severity.rank,
            finding.location.path,
            finding.location.lineno,
            finding.rule_id,
        )

    def order(self, findings: list[Finding]) -> list[Finding]:
        return sorted(findings, key=self.sort_key)

    def exit_code(self, result: CheckResult) -> int:
        """0 when the run passes the gate, 1 when it fails."""
        if self.fail_on == "never":
            return 0
        threshold = Severity(self.fail_on).rank
        if any(finding.severity.rank >= threshold for finding in result.findings):
            return 1
        return 0
