"""Tests for the watch scheduler."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from doublecheck.adapters.report.markdown import MarkdownReporter
from doublecheck.adapters.scheduler.watch import WatchScheduler
from doublecheck.adapters.source.filesystem import FilesystemSourceAdapter
from doublecheck.core.check_service import CheckService
from doublecheck.core.gate import GateEngine
from doublecheck.core.naming import NamingPolicy
from doublecheck.tests.fakes import FakeCheckPort, FakeSourcePort


@pytest.fixture
def source() -> FakeSourcePort:
    """Source with a single test module."""
    source = FakeSourcePort()
    source.add_file("tests/test_orders.py", "def test_total_when_empty_is_zero():\n    pass\n")
    return source


@pytest.fixture
def check() -> FakeCheckPort:
    """Check port returning an empty result."""
    return FakeCheckPort()


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_first_cycle_always_checks(self, check: FakeCheckPort, source: FakeSourcePort) -> None:
        scheduler = WatchScheduler(check, source, ["tests"])

        assert await scheduler.run_once() is True
        assert check.run_calls == [["tests"]]
        assert scheduler.runs_completed == 1

    @pytest.mark.asyncio
    async def test_unchanged_files_are_not_rechecked(self, check: FakeCheckPort, source: FakeSourcePort) -> None:
        scheduler = WatchScheduler(check, source, ["tests"])
        await scheduler.run_once()

        assert await scheduler.run_once() is False
        assert len(check.run_calls) == 1

    @pytest.mark.asyncio
    async def test_modified_file_triggers_check(self, check: FakeCheckPort, source: FakeSourcePort) -> None:
        scheduler = WatchScheduler(check, source, ["tests"])
        await scheduler.run_once()

        source.touch("tests/test_orders.py")
        assert await scheduler.run_once() is True

        source.add_file("tests/test_cart.py", "")
        assert await scheduler.run_once() is True
        assert scheduler.runs_completed == 3

    @pytest.mark.asyncio
    async def test_failed_check_is_retried(self, check: FakeCheckPort, source: FakeSourcePort) -> None:
        scheduler = WatchScheduler(check, source, ["tests"])
        check.should_fail = True
        with pytest.raises(RuntimeError, match="Check failed"):
            await scheduler.run_once()

        check.should_fail = False
        assert await scheduler.run_once() is True
        assert scheduler.runs_completed == 1


class TestOwnReports:
    @pytest.mark.asyncio
    async def test_reports_written_inside_watched_tree_do_not_retrigger(self, tmp_path: Path) -> None:
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "test_orders.py").write_text(
            "def test_it():\n    pass\n", encoding="utf-8"
        )
        report_dir = tmp_path / "doublecheck-reports"
        source = FilesystemSourceAdapter(exclude_paths=[str(report_dir)])
        service = CheckService(
            source=source,
            reporter=MarkdownReporter(str(report_dir)),
            naming=NamingPolicy(),
            gate=GateEngine(),
        )
        scheduler = WatchScheduler(service, source, [str(tmp_path)])

        assert await scheduler.run_once() is True
        assert await scheduler.run_once() is False
        assert await scheduler.run_once() is False

        assert (await service.get_last_summary())["files_checked"] == 1
        assert (report_dir / "summary.md").exists()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_without_check_port_raises(self, source: FakeSourcePort) -> None:
        scheduler = WatchScheduler(None, source, ["tests"])
        with pytest.raises(ValueError, match="check_port must be set"):
            await scheduler.start()

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self, check: FakeCheckPort, source: FakeSourcePort) -> None:
        scheduler = WatchScheduler(check, source, ["tests"], interval_seconds=0.01)

        with patch.object(scheduler, "_setup_signal_handlers"):
            task = asyncio.create_task(scheduler.start())
            await asyncio.sleep(0.1)
            assert scheduler.running
            await scheduler.stop()
            await asyncio.wait_for(task, timeout=1.0)

        assert not scheduler.running
        assert check.run_calls == [["tests"]]

    @pytest.mark.asyncio
    async def test_loop_survives_failing_checks(self, check: FakeCheckPort, source: FakeSourcePort) -> None:
        check.should_fail = True
        scheduler = WatchScheduler(check, source, ["tests"], interval_seconds=0.01)

        with patch.object(scheduler, "_setup_signal_handlers"):
            task = asyncio.create_task(scheduler.start())
            await asyncio.sleep(0.1)
            assert scheduler._failure_count >= 2
            await scheduler.stop()
            await asyncio.wait_for(task, timeout=1.0)

        assert scheduler.runs_completed == 0
