"""PostgreSQL-backed state store keeping each record as a JSONB document."""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Mapping, Optional, Sequence

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from content_factory_schemas import AgentLog, Chapter, ChapterStatus, Project
from content_factory_schemas.models.common import utcnow

from .base import StateStore

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS cf_projects (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        doc JSONB NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS cf_projects_user_idx ON cf_projects (user_id, updated_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS cf_chapters (
        id TEXT PRIMARY KEY,
        project_id TEXT NOT NULL,
        chapter_order INTEGER NOT NULL,
        status TEXT NOT NULL,
        doc JSONB NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS cf_chapters_project_idx ON cf_chapters (project_id, chapter_order)",
    """
    CREATE TABLE IF NOT EXISTS cf_agent_logs (
        seq BIGSERIAL PRIMARY KEY,
        id TEXT UNIQUE NOT NULL,
        project_id TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        doc JSONB NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS cf_agent_logs_project_idx ON cf_agent_logs (project_id, created_at DESC)",
)


def _status_values(statuses: Optional[Sequence[ChapterStatus]]) -> Optional[list[str]]:
    if statuses is None:
        return None
    return [ChapterStatus(status).value for status in statuses]


class PostgresStateStore(StateStore):
    def __init__(self, conninfo: str, *, min_size: int = 1, max_size: int = 10) -> None:
        self._conninfo = conninfo
        self._min_size = min_size
        self._max_size = max_size
        self._pool: Optional[ConnectionPool] = None
        self._pool_lock = threading.Lock()

    @property
    def pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        with self._pool_lock:
            if self._pool is None:
                self._pool = ConnectionPool(
                    self._conninfo, min_size=self._min_size, max_size=self._max_size, open=True
                )
        return self._pool

    def close(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.close()
                self._pool = None

    def ensure_schema(self) -> None:
        with self.pool.connection() as conn, conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
            conn.commit()
        logger.info("State store schema ensured")

    # Projects

    def insert_project(self, project: Project) -> Project:
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute(
                "INSERT INTO cf_projects (id, user_id, updated_at, doc) VALUES (%s, %s, %s, %s)",
                (project.id, project.user_id, project.updated_at, Jsonb(project.model_dump(mode="json"))),
            )
            conn.commit()
        return project

    def find_project(self, project_id: str, user_id: Optional[str] = None) -> Optional[Project]:
        query = "SELECT doc FROM cf_projects WHERE id = %s"
        params: list[Any] = [project_id]
        if user_id is not None:
            query += " AND user_id = %s"
            params.append(user_id)
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            row = cur.fetchone()
        return Project.model_validate(row["doc"]) if row else None

    def list_projects(self, user_id: str) -> list[Project]:
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                "SELECT doc FROM cf_projects WHERE user_id = %s ORDER BY updated_at DESC",
                (user_id,),
            )
            rows = cur.fetchall()
        return [Project.model_validate(row["doc"]) for row in rows]

    def save_project(self, project: Project) -> Project:
        project.touch()
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute(
                "UPDATE cf_projects SET updated_at = %s, doc = %s WHERE id = %s",
                (project.updated_at, Jsonb(project.model_dump(mode="json")), project.id),
            )
            conn.commit()
        return project

    def delete_project(self, project_id: str) -> bool:
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM cf_projects WHERE id = %s", (project_id,))
            deleted = cur.rowcount
            conn.commit()
        return deleted > 0

    # Chapters

    def insert_chapters(self, chapters: Iterable[Chapter]) -> list[Chapter]:
        inserted = list(chapters)
        if not inserted:
            return inserted
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.executemany(
                """
                INSERT INTO cf_chapters (id, project_id, chapter_order, status, doc)
                VALUES (%s, %s, %s, %s, %s)
                """,
                [
                    (
                        chapter.id,
                        chapter.project_id,
                        chapter.order,
                        chapter.status.value,
                        Jsonb(chapter.model_dump(mode="json")),
                    )
                    for chapter in inserted
                ],
            )
            conn.commit()
        return inserted

    def find_chapters(
        self,
        project_id: str,
        *,
        statuses: Optional[Sequence[ChapterStatus]] = None,
    ) -> list[Chapter]:
        query = "SELECT doc FROM cf_chapters WHERE project_id = %s"
        params: list[Any] = [project_id]
        values = _status_values(statuses)
        if values is not None:
            query += " AND status = ANY(%s)"
            params.append(values)
        query += " ORDER BY chapter_order"
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            rows = cur.fetchall()
        return [Chapter.model_validate(row["doc"]) for row in rows]

    def find_chapter(self, chapter_id: str, project_id: Optional[str] = None) -> Optional[Chapter]:
        query = "SELECT doc FROM cf_chapters WHERE id = %s"
        params: list[Any] = [chapter_id]
        if project_id is not None:
            query += " AND project_id = %s"
            params.append(project_id)
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            row = cur.fetchone()
        return Chapter.model_validate(row["doc"]) if row else None

    def save_chapter(self, chapter: Chapter) -> Chapter:
        chapter.touch()
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute(
                "UPDATE cf_chapters SET status = %s, chapter_order = %s, doc = %s WHERE id = %s",
                (
                    chapter.status.value,
                    chapter.order,
                    Jsonb(chapter.model_dump(mode="json")),
                    chapter.id,
                ),
            )
            conn.commit()
        return chapter

    def update_chapters(
        self,
        project_id: str,
        values: Mapping[str, Any],
        *,
        status_in: Optional[Sequence[ChapterStatus]] = None,
        status_not_in: Optional[Sequence[ChapterStatus]] = None,
    ) -> int:
        query = "SELECT doc FROM cf_chapters WHERE project_id = %s"
        params: list[Any] = [project_id]
        included = _status_values(status_in)
        if included is not None:
            query += " AND status = ANY(%s)"
            params.append(included)
        excluded = _status_values(status_not_in)
        if excluded is not None:
            query += " AND NOT (status = ANY(%s))"
            params.append(excluded)
        query += " FOR UPDATE"

        touched = 0
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            for row in cur.fetchall():
                chapter = Chapter.model_validate({**row["doc"], **values, "updated_at": utcnow()})
                cur.execute(
                    "UPDATE cf_chapters SET status = %s, doc = %s WHERE id = %s",
                    (chapter.status.value, Jsonb(chapter.model_dump(mode="json")), chapter.id),
                )
                touched += 1
            conn.commit()
        return touched

    def count_chapters(self, project_id: str, *, status: Optional[ChapterStatus] = None) -> int:
        query = "SELECT COUNT(*) AS total FROM cf_chapters WHERE project_id = %s"
        params: list[Any] = [project_id]
        if status is not None:
            query += " AND status = %s"
            params.append(ChapterStatus(status).value)
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, params)
            row = cur.fetchone()
        return int(row["total"]) if row else 0

    def delete_chapters(self, project_id: str) -> int:
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM cf_chapters WHERE project_id = %s", (project_id,))
            deleted = cur.rowcount
            conn.commit()
        return deleted

    # Agent logs

    def insert_log(self, log: AgentLog) -> AgentLog:
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute(
                "INSERT INTO cf_agent_logs (id, project_id, created_at, doc) VALUES (%s, %s, %s, %s)",
                (log.id, log.project_id, log.created_at, Jsonb(log.model_dump(mode="json"))),
            )
            conn.commit()
        return log

    def find_logs(self, project_id: str, *, limit: int) -> list[AgentLog]:
        with self.pool.connection() as conn, conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT doc FROM cf_agent_logs
                WHERE project_id = %s
                ORDER BY created_at DESC, seq DESC
                LIMIT %s
                """,
                (project_id, limit),
            )
            rows = cur.fetchall()
        return [AgentLog.model_validate(row["doc"]) for row in rows]

    def delete_logs(self, project_id: str) -> int:
        with self.pool.connection() as conn, conn.cursor() as cur:
            cur.execute("DELETE FROM cf_agent_logs WHERE project_id = %s", (project_id,))
            deleted = cur.rowcount
            conn.commit()
        return deleted
