"""JSON file report adapter.

Implements ReporterPort by writing a machine-readable report that CI
systems and editors can consume.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from doublecheck.core.models import CheckResult, Finding
from doublecheck.core.ports import ReporterPort

logger = logging.getLogger(__name__)


class JSONFileReporter(ReporterPort):
    """Writes check results to <report_dir>/doublecheck.json."""

    def __init__(self, report_dir: str, filename: str = "doublecheck.json"):
        self.report_path = Path(report_dir) / filename
        self.summary_path = Path(report_dir) / "summary.json"

    @staticmethod
    def finding_to_dict(finding: Finding) -> dict[str, Any]:
        return {
            "rule_id": finding.rule_id,
            "severity": finding.severity.value,
            "message": finding.message,
            "path": finding.location.path,
            "line": finding.location.lineno,
            "symbol": finding.location.symbol,
            "fingerprint": finding.fingerprint,
        }

    async def _write(self, path: Path, payload: dict[str, Any]) -> None:
        text = json.dumps(payload, indent=2, default=str)
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_text, text + "\n", encoding="utf-8")
        except OSError as e:
            logger.error(
                f"Failed to write JSON report: {e}",
                extra={"path": str(path)},
                exc_info=True,
            )
            raise
        logger.info(f"Wrote JSON report to {path}")

    async def report(self, result: CheckResult) -> None:
        await self._write(
            self.report_path,
            {
                "summary": result.to_summary(),
                "findings": [self.finding_to_dict(f) for f in result.findings],
            },
        )

    async def report_summary(self, stats: dict[str, Any]) -> None:
        await self._write(self.summary_path, stats)
