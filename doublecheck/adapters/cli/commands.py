"""CLI command implementations for baseline management.

Provides human-initiated actions through the command-line interface.

This adapter maps CLI commands (list, details, accept, reopen, stats) to
BaselinePort operations. It handles CLI-specific formatting and error
reporting.
"""

import logging
from typing import Any

from doublecheck.core.models import BaselineEntry, FindingStatus
from doublecheck.core.ports import BaselinePort

logger = logging.getLogger(__name__)


def _entry_to_dict(entry: BaselineEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "fingerprint": entry.fingerprint,
        "rule_id": entry.rule_id,
        "path": entry.path,
        "symbol": entry.symbol,
        "message": entry.message,
        "status": entry.status.value,
        "reason": entry.reason,
        "occurrence_count": entry.occurrence_count,
        "first_seen": entry.first_seen.isoformat(),
        "last_seen": entry.last_seen.isoformat(),
    }


class CLICommandHandler:
    """Handles CLI commands by delegating to BaselinePort."""

    def __init__(self, baseline: BaselinePort):
        """Initialize the CLI command handler.

        Args:
            baseline: BaselinePort implementation to execute commands.
        """
        self.baseline = baseline

    async def accept_finding(
        self, finding_id: str, reason: str | None = None, verbose: bool = False
    ) -> dict[str, Any]:
        """Accept a finding via CLI.

        Returns:
            Dictionary with status and message.
        """
        try:
            await self.baseline.accept_finding(finding_id, reason)

            result = {
                "status": "success",
                "operation": "accept",
                "finding_id": finding_id,
                "message": f"Finding {finding_id} accepted",
            }
            if reason:
                result["reason"] = reason

            if verbose:
                logger.info(
                    f"Accepted finding {finding_id}",
                    extra={"reason": reason, "verbose": True},
                )

            return result

        except ValueError as e:
            logger.error(f"Failed to accept finding: {e}")
            return {
                "status": "error",
                "operation": "accept",
                "finding_id": finding_id,
                "message": str(e),
            }

    async def reopen_finding(
        self, finding_id: str, verbose: bool = False
    ) -> dict[str, Any]:
        """Reopen a finding via CLI."""
        try:
            await self.baseline.reopen_finding(finding_id)

            if verbose:
                logger.info(f"Reopened finding {finding_id}", extra={"verbose": True})

            return {
                "status": "success",
                "operation": "reopen",
                "finding_id": finding_id,
                "message": f"Finding {finding_id} reopened and will be reported again",
            }

        except ValueError as e:
            logger.error(f"Failed to reopen finding: {e}")
            return {
                "status": "error",
                "operation": "reopen",
                "finding_id": finding_id,
                "message": str(e),
            }

    async def list_findings(
        self,
        status: str | None = None,
        rule_id: str | None = None,
        output_format: str = "json",
    ) -> dict[str, Any]:
        """List baseline entries, optionally filtered by status and rule."""
        try:
            status_filter = FindingStatus(status) if status else None
        except ValueError:
            valid = ", ".join(s.value for s in FindingStatus)
            return {
                "status": "error",
                "operation": "list",
                "message": f"Invalid status: {status}. Use one of: {valid}",
            }

        entries = await self.baseline.list_findings(status=status_filter, rule_id=rule_id)

        if output_format == "text":
            data: Any = "\n".join(
                f"{e.id}  {e.status.value:<8}  {e.rule_id}  {e.path}  {e.message}"
                for e in entries
            )
        elif output_format == "json":
            data = [_entry_to_dict(e) for e in entries]
        else:
            return {
                "status": "error",
                "operation": "list",
                "message": f"Unsupported format: {output_format}",
            }

        return {
            "status": "success",
            "operation": "list",
            "count": len(entries),
            "data": data,
        }

    async def get_finding_details(
        self, finding_id: str, output_format: str = "json"
    ) -> dict[str, Any]:
        """Retrieve finding details via CLI."""
        try:
            details = await self.baseline.get_finding_details(finding_id)
        except ValueError as e:
            logger.error(f"Failed to get finding details: {e}")
            return {
                "status": "error",
                "operation": "get_details",
                "finding_id": finding_id,
                "message": str(e),
            }

        payload = _entry_to_dict(details.entry)
        payload["related_findings"] = [_entry_to_dict(e) for e in details.related_entries]

        if output_format == "json":
            return {"status": "success", "operation": "get_details", "data": payload}
        if output_format == "text":
            return {
                "status": "success",
                "operation": "get_details",
                "data": self._format_details_as_text(payload),
            }
        return {
            "status": "error",
            "operation": "get_details",
            "message": f"Unsupported format: {output_format}",
        }

    async def get_stats(self) -> dict[str, Any]:
        stats = await self.baseline.get_stats()
        return {
            "status": "success",
            "operation": "stats",
            "data": {
                "total_entries": stats.total_entries,
                "by_status": dict(stats.by_status),
                "by_rule": dict(stats.by_rule),
            },
        }

    @staticmethod
    def _format_details_as_text(details: dict[str, Any]) -> str:
        """Format finding details as human-readable text."""
        lines = [
            f"Finding ID: {details.get('id')}",
            f"Fingerprint: {details.get('fingerprint')}",
            f"Rule: {details.get('rule_id')}",
            f"Path: {details.get('path')}",
            f"Symbol: {details.get('symbol')}",
            "",
            f"Status: {details.get('status')}",
        ]
        if details.get("reason"):
            lines.append(f"Reason: {details['reason']}")
        lines.extend(
            [
                f"Occurrences: {details.get('occurrence_count')}",
                f"First Seen: {details.get('first_seen')}",
                f"Last Seen: {details.get('last_seen')}",
                "",
                f"Message: {details.get('message')}",
                "",
            ]
        )

        related = details.get("related_findings") or []
        if related:
            lines.append("Other Findings In This File:")
            for other in related:
                lines.append(f"  - {other.get('id')}: {other.get('rule_id')} ({other.get('status')})")
            lines.append("")

        return "\n".join(lines)


async def run_command(
    baseline: BaselinePort,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run a CLI command.

    Entry point for executing CLI commands. Maps command names to handler methods.

    Raises:
        ValueError: If command is not recognized or a required argument is missing.
    """
    handler = CLICommandHandler(baseline)

    if command in {"accept", "reopen", "details"} and "finding_id" not in args:
        raise ValueError("Missing required parameter: finding_id")

    if command == "list":
        return await handler.list_findings(
            status=args.get("status"),
            rule_id=args.get("rule_id"),
            output_format=args.get("format", "json"),
        )

    elif command == "details":
        return await handler.get_finding_details(
            args["finding_id"],
            args.get("format", "json"),
        )

    elif command == "accept":
        return await handler.accept_finding(
            args["finding_id"],
            args.get("reason"),
            args.get("verbose", False),
        )

    elif command == "reopen":
        return await handler.reopen_finding(
            args["finding_id"],
            args.get("verbose", False),
        )

    elif command == "stats":
        return await handler.get_stats()

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")
