"""Markdown file report adapter.

Implements ReporterPort by writing each check run to a markdown report
file organized in date-based directories (YYYY-MM-DD). Useful for keeping
an audit trail of how a test suite's hygiene changes over time.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from doublecheck.core.models import CheckResult, Finding
from doublecheck.core.ports import ReporterPort

logger = logging.getLogger(__name__)


class MarkdownReporter(ReporterPort):
    """Writes check results to markdown report files organized by date."""

    def __init__(self, report_dir: str):
        """Initialize markdown reporter.

        Args:
            report_dir: Base directory where date-based subdirectories will be
                created. Summary reports are written to report_dir/summary.md.

        Raises:
            ValueError: If report_dir is a filesystem root.
            OSError: If the base directory cannot be created.
        """
        self.base_dir = Path(report_dir).resolve()

        if self.base_dir.parent == self.base_dir:
            raise ValueError(f"report_dir cannot be a filesystem root: {report_dir}")

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create base directory {report_dir}: {e}") from e
        self._lock = asyncio.Lock()

    def _get_report_file_path(self, result: CheckResult) -> Path:
        """Compute the report file path for a run (no I/O)."""
        date_str = result.timestamp.strftime("%Y-%m-%d")
        time_str = result.timestamp.strftime("%H-%M-%S")
        return self.base_dir / date_str / f"{time_str}_check.md"

    async def report(self, result: CheckResult) -> None:
        """Write a check result to its markdown file."""
        entry = self._format_report(result)
        report_file = self._get_report_file_path(result)

        async with self._lock:
            try:
                await asyncio.to_thread(report_file.parent.mkdir, parents=True, exist_ok=True)
                await asyncio.to_thread(report_file.write_text, entry, encoding="utf-8")

                logger.info(
                    f"Wrote check report to {report_file}",
                    extra={"findings": len(result.findings)},
                )

            except OSError as e:
                logger.error(
                    f"Failed to write markdown report: {e}",
                    extra={"path": str(report_file)},
                    exc_info=True,
                )
                raise

    async def report_summary(self, stats: dict[str, Any]) -> None:
        """Write summary statistics to summary.md.

        Raises:
            OSError: If the file cannot be written.
        """
        summary = self._format_summary(stats)
        summary_file = self.base_dir / "summary.md"

        async with self._lock:
            try:
                await asyncio.to_thread(summary_file.write_text, summary, encoding="utf-8")
                logger.info(f"Wrote summary report to {summary_file}")
            except OSError as e:
                logger.error(
                    f"Failed to write markdown summary: {e}",
                    extra={"path": str(summary_file)},
                    exc_info=True,
                )
                raise

    @staticmethod
    def _format_finding(finding: Finding) -> str:
        symbol = f" `{finding.location.symbol}`" if finding.location.symbol else ""
        return (
            f"- **{finding.severity.value.upper()}** `{finding.rule_id}` "
            f"line {finding.location.lineno}{symbol}: {finding.message}"
        )

    def _format_report(self, result: CheckResult) -> str:
        """Format one check run as markdown, findings grouped by file."""
        lines = [f"## Check Report - {result.timestamp.isoformat()}", ""]

        lines.append("### Overview")
        lines.append(f"- **Files Checked**: {result.files_checked}")
        if result.files_failed:
            lines.append(f"- **Files Failed**: {result.files_failed}")
        lines.append(f"- **Tests Checked**: {result.tests_checked}")
        lines.append(f"- **Doubles Checked**: {result.doubles_checked}")
        lines.append(f"- **Findings**: {len(result.findings)}")
        lines.append(f"- **New**: {result.new_findings}")
        lines.append(f"- **Suppressed**: {result.suppressed}")
        if result.fixed:
            lines.append(f"- **Fixed**: {result.fixed}")
        lines.append("")

        by_file: dict[str, list[Finding]] = defaultdict(list)
        for finding in result.findings:
            by_file[finding.location.path].append(finding)

        if by_file:
            lines.append("### Findings")
            lines.append("")
            for path in sorted(by_file):
                lines.append(f"#### `{path}`")
                lines.extend(self._format_finding(f) for f in by_file[path])
                lines.append("")
        else:
            lines.append("No findings.")
            lines.append("")

        lines.append("---")
        return "\n".join(lines)

    @staticmethod
    def _format_summary(stats: dict[str, Any]) -> str:
        """Format a summary statistics report as markdown."""
        lines = [f"## Summary Report - {datetime.now(timezone.utc).isoformat()}", ""]

        scalars = {k: v for k, v in stats.items() if not isinstance(v, dict)}
        if scalars:
            lines.append("### Overall Statistics")
            for key, value in scalars.items():
                lines.append(f"- **{key.replace('_', ' ').title()}**: {value}")
            lines.append("")

        for key, value in stats.items():
            if isinstance(value, dict) and value:
                lines.append(f"### {key.replace('_', ' ').title()}")
                for name, count in sorted(value.items(), key=lambda x: (-x[1], x[0])):
                    lines.append(f"- **{name}**: {count}")
                lines.append("")

        lines.append("---")
        return "\n".join(lines)
