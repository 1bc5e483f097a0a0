"""SQLite-backed persistence for job records."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from ..db import Database
from .models import ACTIVE_STATUSES, JobRecord, JobStatus, MetricSample

# Terminal rows are never written again; every mutation is filtered on this.
_ACTIVE_FILTER = "status IN ({})".format(", ".join(f"'{s.value}'" for s in sorted(ACTIVE_STATUSES)))


def _dump_metrics(metrics: Sequence[MetricSample]) -> str:
    return json.dumps([m.model_dump(by_alias=True) for m in metrics])


class JobStore:
    """Async SQLite store for job lifecycle tracking."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def _execute(self, sql: str, params: Sequence[Any]) -> int:
        """Run one mutating statement, commit, and return the affected row count."""
        conn = self._db.connection
        cur = await conn.execute(sql, params)
        await conn.commit()
        return cur.rowcount

    # ── Create / read ────────────────────────────────────────────────

    async def create_queued_job(
        self,
        project_id: int,
        model_id: Optional[int] = None,
        job_type: str = "train",
        config: Dict[str, Any] | None = None,
    ) -> int:
        """Insert a new queued job and return its id."""
        conn = self._db.connection
        cur = await conn.execute(
            "INSERT INTO jobs (project_id, model_id, type, status, progress, config_json, metrics_json) "
            "VALUES (?, ?, ?, ?, 0, ?, '[]')",
            (project_id, model_id, job_type, JobStatus.queued.value, json.dumps(config or {})),
        )
        await conn.commit()
        return cur.lastrowid

    async def get_job(self, job_id: int) -> Optional[JobRecord]:
        """Fetch a single job by id."""
        async with self._db.connection.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)) as cur:
            row = await cur.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    async def list_jobs(self, project_id: int, limit: int = 100) -> List[JobRecord]:
        """List a project's jobs, newest first."""
        async with self._db.connection.execute(
            "SELECT * FROM jobs WHERE project_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (project_id, limit),
        ) as cur:
            rows = await cur.fetchall()
        return [self._row_to_record(r) for r in rows]

    async def count_active(self) -> int:
        async with self._db.connection.execute(
            f"SELECT COUNT(*) FROM jobs WHERE {_ACTIVE_FILTER}"
        ) as cur:
            row = await cur.fetchone()
        return int(row[0])

    # ── Lifecycle writes ─────────────────────────────────────────────

    async def set_running(self, job_id: int) -> bool:
        """Move a queued job to running.  Returns False if it was not queued."""
        changed = await self._execute(
            "UPDATE jobs SET status = ? WHERE id = ? AND status = ?",
            (JobStatus.running.value, job_id, JobStatus.queued.value),
        )
        return changed > 0

    async def update_progress(self, job_id: int, progress: int, metrics: Sequence[MetricSample]) -> bool:
        """Persist progress and the full metrics buffer of a live job.

        Returns False when the job is no longer queued/running, in which
        case nothing was written.
        """
        changed = await self._execute(
            f"UPDATE jobs SET progress = ?, metrics_json = ? WHERE id = ? AND {_ACTIVE_FILTER}",
            (int(progress), _dump_metrics(metrics), job_id),
        )
        return changed > 0

    async def set_terminal(
        self,
        job_id: int,
        status: JobStatus,
        progress: Optional[int] = None,
        metrics: Optional[Sequence[MetricSample]] = None,
        error: Optional[str] = None,
    ) -> bool:
        """Move a live job to a terminal status.

        ``progress`` and ``metrics`` left as ``None`` keep their stored
        values.  Returns False if the job was already terminal or unknown.
        """
        if not status.is_terminal:
            raise ValueError(f"{status.value!r} is not a terminal status")
        sets = ["status = ?"]
        vals: list = [status.value]
        if progress is not None:
            sets.append("progress = ?")
            vals.append(int(progress))
        if metrics is not None:
            sets.append("metrics_json = ?")
            vals.append(_dump_metrics(metrics))
        if error is not None:
            sets.append("error = ?")
            vals.append(error)
        vals.append(job_id)
        changed = await self._execute(
            f"UPDATE jobs SET {', '.join(sets)} WHERE id = ? AND {_ACTIVE_FILTER}", vals
        )
        return changed > 0

    async def fail_orphaned(self, message: str = "interrupted by server restart") -> int:
        """Fail every queued/running row left behind by a previous process."""
        return await self._execute(
            f"UPDATE jobs SET status = ?, error = ? WHERE {_ACTIVE_FILTER}",
            (JobStatus.failed.value, message),
        )

    # ── Helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _row_to_record(row) -> JobRecord:
        d = dict(row)
        d["config"] = json.loads(d.pop("config_json", None) or "{}")
        d["metrics"] = json.loads(d.pop("metrics_json", None) or "[]")
        return JobRecord(**d)
