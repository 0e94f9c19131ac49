"""SQLite job archive for persistent job history.

This backend uses aiosqlite so finished job records survive process
restarts.
"""

import aiosqlite
import json
import logging
from typing import Dict, Any, Optional
from pathlib import Path

logger = logging.getLogger(__name__)


class SQLiteArchive:
    """SQLite-based job archive.

    The database schema:
    - job_id: TEXT PRIMARY KEY
    - flow_id: TEXT
    - status: TEXT
    - record: TEXT (JSON-encoded job record)
    - archived_at: TIMESTAMP
    """

    def __init__(self, db_path: str = "flowbuild_jobs.db"):
        """Initialize SQLite archive.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._initialized = False

    async def _ensure_initialized(self):
        """Ensure database and table exist."""
        if self._initialized:
            return

        db_dir = Path(self.db_path).parent
        if db_dir and not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS flowbuild_jobs (
                    job_id TEXT PRIMARY KEY,
                    flow_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    record TEXT NOT NULL,
                    archived_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_flowbuild_jobs_archived_at
                ON flowbuild_jobs(archived_at)
                """
            )
            await db.commit()

        self._initialized = True
        logger.debug("Job archive initialized at %s", self.db_path)

    async def save(self, record: Dict[str, Any]) -> None:
        await self._ensure_initialized()

        # Vertex results are opaque; anything json can't encode is stored as text
        record_json = json.dumps(record, default=str)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO flowbuild_jobs (job_id, flow_id, status, record, archived_at)
                VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(job_id)
                DO UPDATE SET
                    status = excluded.status,
                    record = excluded.record,
                    archived_at = CURRENT_TIMESTAMP
                """,
                (record["job_id"], record["flow_id"], record["status"], record_json),
            )
            await db.commit()

    async def load(self, job_id: str) -> Optional[Dict[str, Any]]:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT record FROM flowbuild_jobs WHERE job_id = ?",
                (job_id,),
            ) as cursor:
                row = await cursor.fetchone()
                if row:
                    return json.loads(row[0])
                return None

    async def delete(self, job_id: str) -> None:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "DELETE FROM flowbuild_jobs WHERE job_id = ?",
                (job_id,),
            )
            await db.commit()

    async def exists(self, job_id: str) -> bool:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT 1 FROM flowbuild_jobs WHERE job_id = ? LIMIT 1",
                (job_id,),
            ) as cursor:
                row = await cursor.fetchone()
                return row is not None

    async def list_jobs(self) -> list[str]:
        """List archived job IDs, most recently archived first."""
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT job_id FROM flowbuild_jobs ORDER BY archived_at DESC, rowid DESC"
            ) as cursor:
                rows = await cursor.fetchall()
                return [row[0] for row in rows]

    async def cleanup_old_jobs(self, max_age_days: int = 30) -> int:
        """Delete records archived more than ``max_age_days`` ago.

        Returns:
            Number of records deleted
        """
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                DELETE FROM flowbuild_jobs
                WHERE archived_at < datetime('now', '-' || ? || ' days')
                """,
                (max_age_days,),
            )
            deleted = cursor.rowcount
            await db.commit()
            return deleted

    def __repr__(self) -> str:
        return f"SQLiteArchive(db_path='{self.db_path}')"
