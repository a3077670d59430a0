"""Watch scheduler adapter.

Implements a long-running asyncio loop that polls file modification
times and triggers a check run whenever something changed.
"""

import asyncio
import logging
import signal
from typing import cast

from doublecheck.core.ports import CheckPort, SourcePort

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_FAILURES = 5


class WatchScheduler:
    """Asyncio-based scheduler that re-checks paths when files change."""

    def __init__(
        self,
        check_port: CheckPort | None,
        source: SourcePort,
        paths: list[str],
        interval_seconds: float = 2.0,
    ):
        """Initialize watch scheduler.

        Args:
            check_port: CheckPort implementation to call (can be set later).
            source: SourcePort used to read modification times.
            paths: Files and directories to watch and check.
            interval_seconds: Seconds between modification-time polls.
        """
        self.check_port = check_port
        self.source = source
        self.paths = paths
        self.interval_seconds = interval_seconds
        self.running = False
        self.runs_completed = 0
        self._snapshot: dict[str, float] | None = None
        self._failure_count = 0  # consecutive failed cycles

    async def start(self) -> None:
        """Start the watch loop.

        Raises:
            ValueError: If check_port is not set.
        """
        if self.check_port is None:
            raise ValueError("check_port must be set before starting the scheduler")

        if self.running:
            logger.warning("Watch scheduler already running")
            return

        self.running = True
        logger.info(
            f"Watching {', '.join(self.paths)} every {self.interval_seconds}s"
        )

        self._setup_signal_handlers()

        try:
            await self._run_loop()
        except asyncio.CancelledError:
            logger.info("Watch scheduler cancelled")
        except Exception as e:
            logger.error(f"Watch scheduler error: {e}", exc_info=True)
        finally:
            self.running = False
            logger.info("Watch scheduler stopped")

    async def stop(self) -> None:
        """Stop the watch loop after the current cycle."""
        if not self.running:
            return
        logger.info("Stopping watch scheduler...")
        self.running = False

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        try:
            loop = asyncio.get_running_loop()

            def _handle_signal(sig: int) -> None:
                logger.info(f"Received signal {sig}, initiating graceful shutdown...")
                asyncio.create_task(self.stop())

            loop.add_signal_handler(signal.SIGTERM, _handle_signal, signal.SIGTERM)
            loop.add_signal_handler(signal.SIGINT, _handle_signal, signal.SIGINT)
        except NotImplementedError:
            # Signal handlers not available on Windows
            logger.debug("Signal handlers not available on this platform")
        except Exception as e:
            logger.warning(f"Failed to set up signal handlers: {e}")

    async def has_changes(self) -> bool:
        """Compare modification times with the previous snapshot.

        The first call always reports a change so the initial check runs.
        """
        snapshot = await self.source.get_modification_times(self.paths)
        changed = snapshot != self._snapshot
        self._snapshot = snapshot
        return changed

    async def run_once(self) -> bool:
        """Run one watch cycle. Returns True if a check was executed."""
        check_port = cast(CheckPort, self.check_port)

        if not await self.has_changes():
            return False

        try:
            result = await check_port.run_check(self.paths)
        except Exception:
            # Forget the snapshot so the next cycle retries
            self._snapshot = None
            raise
        self.runs_completed += 1
        logger.info(
            f"Check #{self.runs_completed}: {len(result.findings)} findings "
            f"in {result.files_checked} files"
        )
        return True

    async def _run_loop(self) -> None:
        """Main watch loop."""
        while self.running:
            try:
                await self.run_once()
                self._failure_count = 0
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failure_count += 1
                logger.error(
                    f"Error in watch cycle: {e} "
                    f"(consecutive failures: {self._failure_count})",
                    exc_info=True,
                )
                if self._failure_count >= MAX_CONSECUTIVE_FAILURES:
                    logger.critical(
                        f"Watch cycle has failed {self._failure_count} consecutive times. "
                        f"Manual intervention may be required."
                    )

            if self.running:
                await asyncio.sleep(self.interval_seconds)
