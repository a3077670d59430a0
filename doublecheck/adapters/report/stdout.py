"""Stdout report adapter.

Implements ReporterPort by printing findings to the terminal with
human-readable formatting, one line per finding in compiler style.
"""

import asyncio
import logging
from typing import Any

from doublecheck.core.models import CheckResult, Finding
from doublecheck.core.ports import ReporterPort

logger = logging.getLogger(__name__)


class StdoutReporter(ReporterPort):
    """Prints check results to stdout."""

    def __init__(self, verbose: bool = False):
        """Initialize stdout reporter.

        Args:
            verbose: If True, include fingerprints and a summary block.
        """
        self.verbose = verbose

    async def report(self, result: CheckResult) -> None:
        """Report a check result to stdout."""
        for finding in result.findings:
            await asyncio.to_thread(print, self._format_finding(finding))
        await asyncio.to_thread(print, self._format_footer(result))

    async def report_summary(self, stats: dict[str, Any]) -> None:
        """Print the summary block; the footer already covers non-verbose runs."""
        if self.verbose:
            await asyncio.to_thread(print, self._format_summary(stats))

    def _format_finding(self, finding: Finding) -> str:
        line = (
            f"{finding.location}: {finding.severity.value} "
            f"{finding.rule_id} {finding.message}"
        )
        if self.verbose and finding.fingerprint:
            line += f" [{finding.fingerprint[:12]}]"
        return line

    @staticmethod
    def _format_footer(result: CheckResult) -> str:
        counts = result.counts_by_severity
        parts = [
            f"{result.files_checked} files",
            f"{result.tests_checked} tests",
            f"{result.doubles_checked} doubles",
        ]
        findings = ", ".join(f"{count} {severity}" for severity, count in counts.items() if count)
        line = f"Checked {', '.join(parts)}: " + (findings or "no findings")
        if result.suppressed:
            line += f" ({result.suppressed} suppressed by baseline)"
        return line

    @staticmethod
    def _format_summary(stats: dict[str, Any]) -> str:
        """Format a summary statistics report."""
        lines = [
            "=" * 80,
            "SUMMARY REPORT",
            "=" * 80,
            "",
        ]
        for key, value in stats.items():
            if isinstance(value, dict):
                if not value:
                    continue
                lines.append(f"{key.replace('_', ' ').title()}:")
                for name, count in sorted(value.items(), key=lambda x: (-x[1], x[0])):
                    lines.append(f"  {name.upper()}: {count}")
            else:
                lines.append(f"{key.replace('_', ' ').title()}: {value}")

        lines.append("")
        lines.append("=" * 80)

        return "\n".join(lines)
