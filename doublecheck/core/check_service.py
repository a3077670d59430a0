"""Check run logic for the linter.

This module implements a single check run: discover files, extract tests,
doubles and document structure, apply every rule, reconcile the findings
with the baseline and hand the result to the reporter.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from .documents import DocumentRules
from .doubles import DoubleInspector
from .extractors import Extraction, ExtractionError, SourceExtractor
from .fingerprint import FindingFingerprinter
from .gate import GateEngine
from .models import (
    BaselineEntry,
    CheckResult,
    Finding,
    FindingStatus,
    Location,
    Severity,
    TestCase,
)
from .naming import NamingPolicy
from .ports import BaselineStorePort, CheckPort, ReporterPort, SourcePort

logger = logging.getLogger(__name__)


class CheckService(CheckPort):
    """Implements the check run.

    This service orchestrates:
    - Discovering and reading files
    - Extracting tests, doubles and sections
    - Applying naming, double and document rules
    - Deduplicating findings against the baseline
    - Reporting
    """

    def __init__(
        self,
        source: SourcePort,
        reporter: ReporterPort,
        naming: NamingPolicy,
        gate: GateEngine,
        store: BaselineStorePort | None = None,
        extractor: SourceExtractor | None = None,
        doubles: DoubleInspector | None = None,
        documents: DocumentRules | None = None,
        fingerprinter: FindingFingerprinter | None = None,
        prune_fixed: bool = False,
    ):
        self.source = source
        self.reporter = reporter
        self.naming = naming
        self.gate = gate
        self.store = store
        self.extractor = extractor or SourceExtractor()
        self.doubles = doubles or DoubleInspector()
        self.documents = documents or DocumentRules()
        self.fingerprinter = fingerprinter or FindingFingerprinter()
        self.prune_fixed = prune_fixed
        self._last_result: CheckResult | None = None

    async def run_check(self, paths: list[str]) -> CheckResult:
        """Check the given files and directories.

        Returns a summary of what was found.
        """
        now = datetime.now(timezone.utc)

        try:
            files = await self.source.discover(paths)
        except Exception as e:
            logger.error(f"Failed to discover files under {paths}: {e}", exc_info=True)
            result = CheckResult(
                files_checked=0,
                tests_checked=0,
                doubles_checked=0,
                findings=(),
                new_findings=0,
                suppressed=0,
                timestamp=now,
            )
            self._last_result = result
            return result

        findings: list[Finding] = []
        tests: list[TestCase] = []
        doubles_checked = 0
        files_failed = 0
        checked_paths: set[str] = set()

        for path in files:
            try:
                source = await self.source.read(path)
                extraction = self.extractor.extract(source)
            except ExtractionError as e:
                files_failed += 1
                logger.warning(f"Failed to parse {path}: {e.reason}")
                findings.append(
                    Finding(
                        rule_id="SRC001",
                        severity=Severity.ERROR,
                        message=f"Cannot be parsed: {e.reason}",
                        location=Location(path, e.lineno),
                    )
                )
                continue
            except (OSError, ValueError) as e:
                files_failed += 1
                logger.error(f"Failed to read {path}: {e}", exc_info=True)
                continue

            checked_paths.add(self.fingerprinter.normalize_path(path))
            findings.extend(self._check_extraction(extraction))
            tests.extend(extraction.tests)
            doubles_checked += len(extraction.doubles)

        findings.extend(self.naming.check_duplicates(tests))

        reported, new_findings, suppressed, seen = await self._reconcile(findings, now)

        fixed = 0
        if self.prune_fixed and self.store is not None:
            fixed = await self._mark_fixed(self.store, checked_paths, seen)

        result = CheckResult(
            files_checked=len(files) - files_failed,
            tests_checked=len(tests),
            doubles_checked=doubles_checked,
            findings=tuple(self.gate.order(reported)),
            new_findings=new_findings,
            suppressed=suppressed,
            timestamp=now,
            files_failed=files_failed,
            fixed=fixed,
        )
        self._last_result = result

        logger.info(
            f"Checked {result.files_checked} files: {len(result.findings)} findings "
            f"({new_findings} new, {suppressed} suppressed, {fixed} fixed)",
            extra={"summary": result.to_summary()},
        )

        try:
            await self.reporter.report(result)
        except Exception as e:
            logger.error(f"Failed to report check result: {e}", exc_info=True)

        try:
            await self.reporter.report_summary(await self.get_last_summary())
        except Exception as e:
            logger.error(f"Failed to report check summary: {e}", exc_info=True)

        return result

    async def get_last_summary(self) -> dict[str, Any]:
        """Summary of the last run, with baseline totals when a store is wired."""
        if self._last_result is None:
            return {}
        summary = self._last_result.to_summary()
        if self.store is None:
            return summary

        try:
            stats = await self.store.get_stats()
        except Exception as e:
            logger.error(f"Failed to read baseline stats: {e}", exc_info=True)
            return summary
        summary["baseline_entries"] = stats.total_entries
        summary["by_status"] = dict(stats.by_status)
        summary["by_rule"] = dict(stats.by_rule)
        return summary

    def _check_extraction(self, extraction: Extraction) -> list[Finding]:
        findings: list[Finding] = []
        for test in extraction.tests:
            findings.extend(self.naming.check(test))
        for profile in extraction.doubles:
            findings.extend(self.doubles.check(profile))
        findings.extend(self.documents.check_sections(extraction.sections))
        findings.extend(self.documents.check_fences(extraction.fences))
        return findings

    async def _reconcile(
        self, findings: list[Finding], now: datetime
    ) -> tuple[list[Finding], int, int, set[str]]:
        """Fingerprint findings and match them against the baseline.

        Returns (reported findings, new count, suppressed count, fingerprints seen).
        """
        reported: list[Finding] = []
        new_findings = 0
        suppressed = 0
        seen: set[str] = set()

        for finding in findings:
            finding = finding.with_fingerprint(self.fingerprinter.fingerprint(finding))
            seen.add(finding.fingerprint)

            entry: BaselineEntry | None = None
            if self.store is None:
                new_findings += 1
            else:
                try:
                    entry = await self.store.get_by_fingerprint(finding.fingerprint)
                    if entry is None:
                        entry = self._new_entry(finding, now)
                        await self.store.save(entry)
                        new_findings += 1
                    else:
                        entry.record_occurrence(now)
                        await self.store.update(entry)
                except Exception as e:
                    logger.error(
                        f"Failed to reconcile finding {finding.rule_id} at "
                        f"{finding.location} with baseline: {e}",
                        exc_info=True,
                    )
                    entry = None
                    # Still report the finding below

            if self.gate.should_report(finding, entry):
                reported.append(finding)
            else:
                suppressed += 1

        return reported, new_findings, suppressed, seen

    def _new_entry(self, finding: Finding, now: datetime) -> BaselineEntry:
        return BaselineEntry(
            id=str(uuid.uuid4()),
            fingerprint=finding.fingerprint,
            rule_id=finding.rule_id,
            path=self.fingerprinter.normalize_path(finding.location.path),
            symbol=finding.location.symbol,
            message=finding.message,
            first_seen=now,
            last_seen=now,
            occurrence_count=1,
            status=FindingStatus.NEW,
        )

    async def _mark_fixed(
        self, store: BaselineStorePort, checked_paths: set[str], seen: set[str]
    ) -> int:
        """Mark NEW entries for checked files that no longer occur as FIXED."""
        try:
            candidates = await store.query(status=FindingStatus.NEW)
        except Exception as e:
            logger.error(f"Failed to query baseline for fixed findings: {e}", exc_info=True)
            return 0

        fixed = 0
        for entry in candidates:
            if entry.path not in checked_paths or entry.fingerprint in seen:
                continue
            try:
                entry.mark_fixed()
                await store.update(entry)
                fixed += 1
            except Exception as e:
                logger.error(
                    f"Failed to mark baseline entry {entry.id} as fixed: {e}",
                    exc_info=True,
                )
        return fixed
