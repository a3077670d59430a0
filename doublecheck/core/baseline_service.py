"""Baseline service: implements BaselinePort for human-initiated operations.

This is a core service that performs baseline operations (accept, reopen,
details, list, stats) against the baseline store. All state changes are
logged so that accepting a finding leaves an audit trail.
"""

import logging

from .models import BaselineEntry, BaselineStats, FindingDetails, FindingStatus
from .ports import BaselinePort, BaselineStorePort

logger = logging.getLogger(__name__)


class BaselineService(BaselinePort):
    """Core implementation of BaselinePort."""

    def __init__(self, store: BaselineStorePort):
        """Initialize the baseline service.

        Args:
            store: BaselineStorePort implementation for persistence.
        """
        self.store = store

    async def _require(self, finding_id: str) -> BaselineEntry:
        entry = await self.store.get_by_id(finding_id)
        if entry is None:
            raise ValueError(f"Finding {finding_id} not found")
        return entry

    async def accept_finding(self, finding_id: str, reason: str | None = None) -> None:
        """Accept a finding so later runs suppress it.

        Raises:
            ValueError: If the finding doesn't exist or is already accepted.
            Exception: If database error occurs.
        """
        entry = await self._require(finding_id)

        try:
            entry.accept(reason)
        except ValueError as e:
            raise ValueError(f"Cannot accept finding: {e}") from e

        await self.store.update(entry)

        logger.info(
            f"Finding {finding_id} accepted",
            extra={
                "finding_id": finding_id,
                "reason": reason,
                "rule_id": entry.rule_id,
                "fingerprint": entry.fingerprint,
            },
        )

    async def reopen_finding(self, finding_id: str) -> None:
        """Return a finding to NEW so later runs report it again.

        Raises:
            ValueError: If the finding doesn't exist or is already new.
            Exception: If database error occurs.
        """
        entry = await self._require(finding_id)

        try:
            entry.reopen()
        except ValueError as e:
            raise ValueError(f"Cannot reopen finding: {e}") from e

        await self.store.update(entry)

        logger.info(
            f"Finding {finding_id} reopened",
            extra={"finding_id": finding_id, "rule_id": entry.rule_id},
        )

    async def get_finding_details(self, finding_id: str) -> FindingDetails:
        """Retrieve an entry plus the other entries for the same file.

        Raises:
            ValueError: If the finding doesn't exist.
        """
        entry = await self._require(finding_id)

        try:
            same_file = await self.store.query(path=entry.path)
        except Exception as e:
            logger.warning(
                f"Failed to load related findings for {finding_id}: {e}",
                exc_info=True,
            )
            same_file = []

        return FindingDetails(
            entry=entry,
            related_entries=tuple(other for other in same_file if other.id != entry.id),
        )

    async def list_findings(
        self,
        status: FindingStatus | None = None,
        rule_id: str | None = None,
    ) -> list[BaselineEntry]:
        return await self.store.query(status=status, rule_id=rule_id)

    async def get_stats(self) -> BaselineStats:
        return await self.store.get_stats()
