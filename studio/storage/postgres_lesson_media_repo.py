"""Postgres-backed lesson media repository using SQLAlchemy."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studio.core.database import get_session_factory
from studio.jobs.models import MEDIA_COLUMNS, JobKind, JobStatus, MediaResult
from studio.schema.lessons import Lesson, Student
from studio.storage.lesson_media_repo import LessonMediaRepository

logger = logging.getLogger(__name__)


def build_media_values(kind: JobKind, status: JobStatus, result: MediaResult | None) -> dict[str, Any]:
  """Map a status/result pair onto the lesson columns owned by the job kind."""
  columns = MEDIA_COLUMNS[kind]
  values: dict[str, Any] = {columns.status: status}
  if result is None:
    return values
  if columns.url and result.url is not None:
    values[columns.url] = result.url
  if columns.pages and result.pages is not None:
    values[columns.pages] = list(result.pages)
  if columns.manifest and result.manifest is not None:
    values[columns.manifest] = result.manifest
  return values


class PostgresLessonMediaRepository(LessonMediaRepository):
  """Persist media status to the lessons table and read learner interests."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def update_media(self, lesson_id: str, kind: JobKind, status: JobStatus, result: MediaResult | None = None) -> None:
    values = build_media_values(kind, status, result)
    async with self._session_factory() as session:
      outcome = await session.execute(update(Lesson).where(Lesson.lesson_id == lesson_id).values(**values))
      await session.commit()
    if outcome.rowcount == 0:
      logger.warning("Lesson %s not found while recording %s=%s", lesson_id, MEDIA_COLUMNS[kind].status, status)

  async def get_student_interests(self, student_id: str) -> list[str]:
    async with self._session_factory() as session:
      result = await session.execute(select(Student.interest).where(Student.student_id == student_id))
      interests = result.scalar_one_or_none()
    return [str(item) for item in interests or []]
