"""Unit tests for fake port implementations.

These tests verify that the fakes behave like the real adapters so they
can be used confidently in tests of core domain logic.
"""

from datetime import datetime, timezone

import pytest

from doublecheck.core.models import BaselineEntry, FindingStatus
from doublecheck.tests.fakes import (
    FakeBaselinePort,
    FakeBaselineStorePort,
    FakeCheckPort,
    FakeReporterPort,
    FakeSourcePort,
)


def make_entry(entry_id: str = "e-1", fingerprint: str = "fp-1", path: str = "tests/test_a.py") -> BaselineEntry:
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return BaselineEntry(
        id=entry_id,
        fingerprint=fingerprint,
        rule_id="NAM002",
        path=path,
        symbol="test_it",
        message="Test 'test_it' is too vague to say what it verifies",
        first_seen=now,
        last_seen=now,
        occurrence_count=1,
        status=FindingStatus.NEW,
    )


class TestFakeSourcePort:
    @pytest.mark.asyncio
    async def test_discover_filters_by_directory_and_extension(self) -> None:
        source = FakeSourcePort()
        source.add_file("tests/test_a.py", "")
        source.add_file("tests/notes.txt", "")
        source.add_file("docs/guide.md", "")

        assert await source.discover(["tests"]) == ["tests/test_a.py"]
        assert await source.discover(["."]) == ["docs/guide.md", "tests/test_a.py"]
        assert source.discover_calls == [["tests"], ["."]]

    @pytest.mark.asyncio
    async def test_read_detects_language(self) -> None:
        source = FakeSourcePort()
        source.add_file("Tests.cs", "class A {}")
        read = await source.read("Tests.cs")
        assert read.language.value == "csharp"

    @pytest.mark.asyncio
    async def test_should_fail_raises_on_discover(self) -> None:
        source = FakeSourcePort()
        source.should_fail = True
        with pytest.raises(FileNotFoundError):
            await source.discover(["."])

    @pytest.mark.asyncio
    async def test_touch_changes_modification_time(self) -> None:
        source = FakeSourcePort()
        source.add_file("test_a.py", "")
        before = await source.get_modification_times(["."])
        source.touch("test_a.py")
        assert await source.get_modification_times(["."]) != before


class TestFakeBaselineStorePort:
    @pytest.mark.asyncio
    async def test_save_then_lookup(self) -> None:
        store = FakeBaselineStorePort()
        entry = make_entry()
        await store.save(entry)

        assert await store.get_by_fingerprint("fp-1") is entry
        assert await store.get_by_id("e-1") is entry
        assert store.saved_entries == [entry]

    @pytest.mark.asyncio
    async def test_update_missing_entry_raises(self) -> None:
        store = FakeBaselineStorePort()
        with pytest.raises(ValueError, match="not found"):
            await store.update(make_entry())

    @pytest.mark.asyncio
    async def test_query_and_stats(self) -> None:
        store = FakeBaselineStorePort()
        accepted = make_entry("e-2", "fp-2")
        accepted.accept("legacy")
        await store.save(make_entry())
        await store.save(accepted)

        assert [e.id for e in await store.query(status=FindingStatus.ACCEPTED)] == ["e-2"]
        stats = await store.get_stats()
        assert stats.total_entries == 2
        assert stats.by_status == {"new": 1, "accepted": 1}

    @pytest.mark.asyncio
    async def test_reset_clears_state(self) -> None:
        store = FakeBaselineStorePort()
        await store.save(make_entry())
        store.should_fail = True
        store.reset()
        assert store.entries == {}
        assert await store.get_by_id("e-1") is None


class TestFakeReporterPort:
    @pytest.mark.asyncio
    async def test_captures_summaries_and_fails_on_demand(self) -> None:
        reporter = FakeReporterPort()
        await reporter.report_summary({"files_checked": 3})
        assert reporter.reported_summaries == [{"files_checked": 3}]

        reporter.should_fail = True
        with pytest.raises(RuntimeError, match="Report failed"):
            await reporter.report_summary({})


class TestFakeCheckPort:
    @pytest.mark.asyncio
    async def test_records_runs(self) -> None:
        check = FakeCheckPort()
        assert await check.get_last_summary() == {}
        result = await check.run_check(["tests"])
        assert result.files_checked == 0
        assert check.run_calls == [["tests"]]
        assert (await check.get_last_summary())["findings"] == 0


class TestFakeBaselinePort:
    @pytest.mark.asyncio
    async def test_accept_and_reopen(self) -> None:
        baseline = FakeBaselinePort()
        baseline.add_entry(make_entry())

        await baseline.accept_finding("e-1", "legacy")
        assert baseline.entries["e-1"].status == FindingStatus.ACCEPTED
        await baseline.reopen_finding("e-1")
        assert baseline.entries["e-1"].status == FindingStatus.NEW
        assert baseline.accepted == [("e-1", "legacy")]
        assert baseline.reopened == ["e-1"]

    @pytest.mark.asyncio
    async def test_unknown_id_raises(self) -> None:
        baseline = FakeBaselinePort()
        with pytest.raises(ValueError, match="not found"):
            await baseline.get_finding_details("missing")
