"""SQLite-backed persistence for projects, datasets and model configs."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from ..db import Database
from .models import DatasetRecord, ModelRecord, ProjectRecord

_PROJECT_SELECT = """
    SELECT
        p.*,
        (SELECT COUNT(*) FROM datasets d WHERE d.project_id = p.id) AS dataset_count,
        (SELECT COUNT(*) FROM models m WHERE m.project_id = p.id) AS model_count
    FROM projects p
"""


class CatalogStore:
    """Async SQLite store for everything a project owns except jobs."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def _insert(self, sql: str, params: tuple) -> int:
        conn = self._db.connection
        cur = await conn.execute(sql, params)
        await conn.commit()
        return cur.lastrowid

    async def _fetchone(self, sql: str, params: tuple):
        async with self._db.connection.execute(sql, params) as cur:
            return await cur.fetchone()

    async def _fetchall(self, sql: str, params: tuple = ()):
        async with self._db.connection.execute(sql, params) as cur:
            return await cur.fetchall()

    # ── Projects ─────────────────────────────────────────────────────

    async def create_project(self, name: str, description: str = "") -> ProjectRecord:
        project_id = await self._insert(
            "INSERT INTO projects (name, description) VALUES (?, ?)", (name, description)
        )
        return await self.get_project(project_id)

    async def get_project(self, project_id: int) -> Optional[ProjectRecord]:
        row = await self._fetchone(_PROJECT_SELECT + " WHERE p.id = ?", (project_id,))
        return ProjectRecord(**dict(row)) if row is not None else None

    async def find_project_by_name(self, name: str) -> Optional[ProjectRecord]:
        row = await self._fetchone(
            _PROJECT_SELECT + " WHERE p.name = ? ORDER BY p.id LIMIT 1", (name,)
        )
        return ProjectRecord(**dict(row)) if row is not None else None

    async def list_projects(self) -> List[ProjectRecord]:
        """All projects, newest first, with dataset/model counts."""
        rows = await self._fetchall(_PROJECT_SELECT + " ORDER BY p.created_at DESC, p.id DESC")
        return [ProjectRecord(**dict(r)) for r in rows]

    # ── Datasets ─────────────────────────────────────────────────────

    async def create_dataset(
        self,
        project_id: int,
        name: str,
        filename: str,
        size_bytes: int,
        rows: Optional[int],
    ) -> DatasetRecord:
        dataset_id = await self._insert(
            "INSERT INTO datasets (project_id, name, filename, size_bytes, rows) VALUES (?, ?, ?, ?, ?)",
            (project_id, name, filename, size_bytes, rows),
        )
        return await self.get_dataset(dataset_id)

    async def get_dataset(self, dataset_id: int) -> Optional[DatasetRecord]:
        row = await self._fetchone("SELECT * FROM datasets WHERE id = ?", (dataset_id,))
        return DatasetRecord(**dict(row)) if row is not None else None

    async def list_datasets(self, project_id: int) -> List[DatasetRecord]:
        rows = await self._fetchall(
            "SELECT * FROM datasets WHERE project_id = ? ORDER BY created_at DESC, id DESC",
            (project_id,),
        )
        return [DatasetRecord(**dict(r)) for r in rows]

    # ── Model configs ────────────────────────────────────────────────

    async def create_model(self, project_id: int, name: str, config: Dict[str, Any] | None = None) -> ModelRecord:
        model_id = await self._insert(
            "INSERT INTO models (project_id, name, config_json) VALUES (?, ?, ?)",
            (project_id, name, json.dumps(config or {})),
        )
        return await self.get_model(model_id)

    async def get_model(self, model_id: int) -> Optional[ModelRecord]:
        row = await self._fetchone("SELECT * FROM models WHERE id = ?", (model_id,))
        return self._row_to_model(row) if row is not None else None

    async def list_models(self, project_id: int) -> List[ModelRecord]:
        rows = await self._fetchall(
            "SELECT * FROM models WHERE project_id = ? ORDER BY created_at DESC, id DESC",
            (project_id,),
        )
        return [self._row_to_model(r) for r in rows]

    @staticmethod
    def _row_to_model(row) -> ModelRecord:
        d = dict(row)
        try:
            d["config"] = json.loads(d.pop("config_json", None) or "{}")
        except json.JSONDecodeError:
            d["config"] = {}
        return ModelRecord(**d)
