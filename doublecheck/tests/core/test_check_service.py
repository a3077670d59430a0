"""Tests for the check run orchestration.

Uses fake ports so the whole discover, extract, check, baseline and
report flow runs in memory.
"""

import pytest

from doublecheck.core.check_service import CheckService
from doublecheck.core.gate import GateEngine
from doublecheck.core.models import FindingStatus, Severity
from doublecheck.core.naming import NamingPolicy
from doublecheck.tests.fakes import FakeBaselineStorePort, FakeReporterPort, FakeSourcePort

ORDERS_TESTS = """\
def test_it():
    pass

def test_save_when_full_raises():
    pass

def test_save_when_full_raises():
    pass

class StubClock:
    def now(self):
        self.calls += 1
        return "noon"
"""

GUIDE = "# Guide\n\n## Empty\n"


@pytest.fixture
def source() -> FakeSourcePort:
    """Source with one test module, one guide and one broken file."""
    source = FakeSourcePort()
    source.add_file("tests/test_orders.py", ORDERS_TESTS)
    source.add_file("docs/guide.md", GUIDE)
    source.add_file("tests/test_broken.py", "def test_(:\n")
    return source


@pytest.fixture
def reporter() -> FakeReporterPort:
    """Reporter that captures results."""
    return FakeReporterPort()


@pytest.fixture
def store() -> FakeBaselineStorePort:
    """Empty in-memory baseline."""
    return FakeBaselineStorePort()


def make_service(
    source: FakeSourcePort,
    reporter: FakeReporterPort,
    store: FakeBaselineStorePort | None = None,
    gate: GateEngine | None = None,
    prune_fixed: bool = False,
) -> CheckService:
    return CheckService(
        source=source,
        reporter=reporter,
        naming=NamingPolicy(),
        gate=gate or GateEngine(),
        store=store,
        prune_fixed=prune_fixed,
    )


class TestCheckRun:
    @pytest.mark.asyncio
    async def test_finds_every_rule_violation(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        service = make_service(source, reporter)
        result = await service.run_check(["."])

        assert [(f.rule_id, f.location.path, f.location.lineno) for f in result.findings] == [
            ("SRC001", "tests/test_broken.py", 1),
            ("NAM004", "tests/test_orders.py", 7),
            ("DOC001", "docs/guide.md", 3),
            ("NAM002", "tests/test_orders.py", 1),
            ("DBL001", "tests/test_orders.py", 10),
        ]
        assert result.files_checked == 2
        assert result.files_failed == 1
        assert result.tests_checked == 3
        assert result.doubles_checked == 1
        assert result.new_findings == 5
        assert all(f.fingerprint for f in result.findings)

    @pytest.mark.asyncio
    async def test_result_is_reported(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        result = await make_service(source, reporter).run_check(["."])
        assert reporter.get_last_result() is result

    @pytest.mark.asyncio
    async def test_unreadable_file_is_counted_and_skipped(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        source.unreadable.add("docs/guide.md")
        result = await make_service(source, reporter).run_check(["."])

        assert result.files_failed == 2
        assert "DOC001" not in {f.rule_id for f in result.findings}

    @pytest.mark.asyncio
    async def test_discover_failure_returns_empty_result(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        source.should_fail = True
        result = await make_service(source, reporter).run_check(["missing"])

        assert result.files_checked == 0
        assert result.findings == ()
        assert reporter.report_call_count == 0

    @pytest.mark.asyncio
    async def test_reporter_failure_does_not_fail_the_run(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        reporter.should_fail = True
        result = await make_service(source, reporter).run_check(["."])

        assert len(result.findings) == 5
        assert reporter.report_call_count == 1

    @pytest.mark.asyncio
    async def test_min_severity_suppresses_lower_findings(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        gate = GateEngine(min_severity=Severity.ERROR)
        result = await make_service(source, reporter, gate=gate).run_check(["."])

        assert {f.rule_id for f in result.findings} == {"SRC001", "NAM004"}
        assert result.suppressed == 3

    @pytest.mark.asyncio
    async def test_last_summary(self, source: FakeSourcePort, reporter: FakeReporterPort) -> None:
        service = make_service(source, reporter)
        assert await service.get_last_summary() == {}

        await service.run_check(["."])
        summary = await service.get_last_summary()
        assert summary["findings"] == 5
        assert summary["by_severity"] == {"error": 2, "warning": 3, "info": 0}

    @pytest.mark.asyncio
    async def test_summary_is_reported_after_each_run(
        self, source: FakeSourcePort, reporter: FakeReporterPort
    ) -> None:
        await make_service(source, reporter).run_check(["."])

        assert len(reporter.reported_summaries) == 1
        assert reporter.reported_summaries[0]["findings"] == 5
        assert "baseline_entries" not in reporter.reported_summaries[0]

    @pytest.mark.asyncio
    async def test_summary_includes_baseline_totals(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        await make_service(source, reporter, store).run_check(["."])
        summary = reporter.reported_summaries[-1]

        assert summary["baseline_entries"] == 5
        assert summary["by_status"] == {"new": 5}
        assert summary["by_rule"]["NAM004"] == 1


class TestBaselineReconciliation:
    @pytest.mark.asyncio
    async def test_first_run_saves_new_entries(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        result = await make_service(source, reporter, store).run_check(["."])

        assert result.new_findings == 5
        assert len(store.saved_entries) == 5
        assert all(e.status == FindingStatus.NEW for e in store.entries.values())

    @pytest.mark.asyncio
    async def test_second_run_updates_existing_entries(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        service = make_service(source, reporter, store)
        await service.run_check(["."])
        result = await service.run_check(["."])

        assert result.new_findings == 0
        assert len(store.entries) == 5
        assert len(store.updated_entries) == 5
        assert all(e.occurrence_count == 2 for e in store.entries.values())

    @pytest.mark.asyncio
    async def test_accepted_findings_are_suppressed(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        service = make_service(source, reporter, store)
        await service.run_check(["."])
        vague = next(e for e in store.entries.values() if e.rule_id == "NAM002")
        vague.accept("legacy name")

        result = await service.run_check(["."])

        assert result.suppressed == 1
        assert "NAM002" not in {f.rule_id for f in result.findings}
        assert vague.status == FindingStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_accepting_one_untagged_block_keeps_others_reported(
        self, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        source = FakeSourcePort()
        source.add_file("docs/guide.md", "# Guide\n\nText.\n\n```\nfirst\n```\n")
        service = make_service(source, reporter, store)
        await service.run_check(["docs"])
        next(iter(store.entries.values())).accept("known")

        source.add_file(
            "docs/guide.md",
            "# Guide\n\nText.\n\n```\nfirst\n```\n\n```\nsecond\n```\n\n```\nthird\n```\n",
        )
        result = await service.run_check(["docs"])

        assert [f.rule_id for f in result.findings] == ["DOC002", "DOC002"]
        assert result.suppressed == 1
        assert result.new_findings == 2

    @pytest.mark.asyncio
    async def test_vanished_findings_are_marked_fixed(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        service = make_service(source, reporter, store, prune_fixed=True)
        await service.run_check(["."])

        source.add_file(
            "tests/test_orders.py",
            ORDERS_TESTS.replace("def test_it():", "def test_total_when_empty_is_zero():"),
        )
        result = await service.run_check(["."])

        assert result.fixed == 1
        vague = next(e for e in store.entries.values() if e.rule_id == "NAM002")
        assert vague.status == FindingStatus.FIXED

    @pytest.mark.asyncio
    async def test_findings_in_unchecked_files_are_not_marked_fixed(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        service = make_service(source, reporter, store, prune_fixed=True)
        await service.run_check(["."])

        result = await service.run_check(["docs"])

        assert result.fixed == 0
        assert all(e.status == FindingStatus.NEW for e in store.entries.values())

    @pytest.mark.asyncio
    async def test_store_failure_still_reports_findings(
        self, source: FakeSourcePort, reporter: FakeReporterPort, store: FakeBaselineStorePort
    ) -> None:
        store.should_fail = True
        result = await make_service(source, reporter, store, prune_fixed=True).run_check(["."])

        assert len(result.findings) == 5
        assert result.new_findings == 0
        assert result.fixed == 0
