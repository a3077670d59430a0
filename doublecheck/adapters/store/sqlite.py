"""SQLite baseline store adapter.

Implements BaselineStorePort using SQLite with aiosqlite for async access.
Keeps the baseline in a single file that can be committed next to the tests.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from doublecheck.core.models import BaselineEntry, BaselineStats, FindingStatus
from doublecheck.core.ports import BaselineStorePort

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, fingerprint, rule_id, path, symbol, message, first_seen, "
    "last_seen, occurrence_count, status, reason"
)


class SQLiteBaselineStore(BaselineStorePort):
    """SQLite-backed baseline store with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        return await aiosqlite.connect(str(self.db_path))

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return
        async with self._schema_lock:
            # Check again after acquiring lock to prevent race
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS baseline (
                        id TEXT PRIMARY KEY,
                        fingerprint TEXT UNIQUE NOT NULL,
                        rule_id TEXT NOT NULL,
                        path TEXT NOT NULL,
                        symbol TEXT NOT NULL DEFAULT '',
                        message TEXT NOT NULL,
                        first_seen TIMESTAMP NOT NULL,
                        last_seen TIMESTAMP NOT NULL,
                        occurrence_count INTEGER NOT NULL DEFAULT 1,
                        status TEXT NOT NULL DEFAULT 'new',
                        reason TEXT
                    )
                    """
                )
                # Index for common queries
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_status ON baseline(status)"
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_path ON baseline(path)"
                )
                await conn.commit()
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)

    async def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> BaselineEntry | None:
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_entry(row)
        finally:
            await self._return_connection(conn)

    async def get_by_id(self, entry_id: str) -> BaselineEntry | None:
        """Look up an entry by its ID."""
        return await self._fetch_one(
            f"SELECT {_COLUMNS} FROM baseline WHERE id = ?", (entry_id,)
        )

    async def get_by_fingerprint(self, fingerprint: str) -> BaselineEntry | None:
        """Look up an entry by finding fingerprint."""
        return await self._fetch_one(
            f"SELECT {_COLUMNS} FROM baseline WHERE fingerprint = ?", (fingerprint,)
        )

    async def save(self, entry: BaselineEntry) -> None:
        """Insert a new entry."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            await conn.execute(
                f"INSERT INTO baseline ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._entry_to_row(entry),
            )
            await conn.commit()
        finally:
            await self._return_connection(conn)

    async def update(self, entry: BaselineEntry) -> None:
        """Update an existing entry.

        Raises:
            ValueError: If no entry with this ID exists.
        """
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                """
                UPDATE baseline
                SET last_seen = ?, occurrence_count = ?, status = ?, reason = ?,
                    message = ?
                WHERE id = ?
                """,
                (
                    entry.last_seen.isoformat(),
                    entry.occurrence_count,
                    entry.status.value,
                    entry.reason,
                    entry.message,
                    entry.id,
                ),
            )
            await conn.commit()
            if cursor.rowcount == 0:
                raise ValueError(f"Baseline entry {entry.id} not found")
        finally:
            await self._return_connection(conn)

    async def query(
        self,
        status: FindingStatus | None = None,
        rule_id: str | None = None,
        path: str | None = None,
    ) -> list[BaselineEntry]:
        """Return entries matching the filters, most recently seen first."""
        await self._init_schema()

        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if rule_id is not None:
            clauses.append("rule_id = ?")
            params.append(rule_id)
        if path is not None:
            clauses.append("path = ?")
            params.append(path)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = await self._get_connection()
        try:
            cursor = await conn.execute(
                f"SELECT {_COLUMNS} FROM baseline {where} "
                "ORDER BY last_seen DESC, path ASC",
                tuple(params),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]
        finally:
            await self._return_connection(conn)

    async def get_stats(self) -> BaselineStats:
        """Summary statistics for reporting."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            cursor = await conn.execute("SELECT COUNT(*) FROM baseline")
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                "SELECT status, COUNT(*) FROM baseline GROUP BY status"
            )
            status_counts = {row[0]: row[1] for row in await cursor.fetchall()}

            cursor = await conn.execute(
                "SELECT rule_id, COUNT(*) FROM baseline GROUP BY rule_id"
            )
            rule_counts = {row[0]: row[1] for row in await cursor.fetchall()}

            return BaselineStats(
                total_entries=total,
                by_status=status_counts,
                by_rule=rule_counts,
            )
        finally:
            await self._return_connection(conn)

    @staticmethod
    def _entry_to_row(entry: BaselineEntry) -> tuple[Any, ...]:
        return (
            entry.id,
            entry.fingerprint,
            entry.rule_id,
            entry.path,
            entry.symbol,
            entry.message,
            entry.first_seen.isoformat(),
            entry.last_seen.isoformat(),
            entry.occurrence_count,
            entry.status.value,
            entry.reason,
        )

    @staticmethod
    def _row_to_entry(row: tuple[Any, ...]) -> BaselineEntry:
        """Convert a database row to a BaselineEntry.

        Raises:
            ValueError: If row is malformed or contains invalid data.
        """
        if not row or len(row) != 11:
            raise ValueError(f"Invalid row length: expected 11, got {len(row) if row else 0}")

        (
            entry_id,
            fingerprint,
            rule_id,
            path,
            symbol,
            message,
            first_seen,
            last_seen,
            occurrence_count,
            status,
            reason,
        ) = row

        if not entry_id or not fingerprint:
            raise ValueError("Missing required fields: id or fingerprint")

        try:
            first_seen_dt = datetime.fromisoformat(first_seen)
            last_seen_dt = datetime.fromisoformat(last_seen)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid date format: {e}") from e

        return BaselineEntry(
            id=entry_id,
            fingerprint=fingerprint,
            rule_id=rule_id,
            path=path,
            symbol=symbol,
            message=message,
            first_seen=first_seen_dt,
            last_seen=last_seen_dt,
            occurrence_count=occurrence_count,
            status=FindingStatus(status),
            reason=reason,
        )
