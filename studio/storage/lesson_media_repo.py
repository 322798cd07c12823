"""Storage interface for lesson media status and results."""

from __future__ import annotations

from typing import Protocol

from studio.jobs.models import JobKind, JobStatus, MediaResult


class LessonMediaRepository(Protocol):
  """Metadata-store contract required by the media pipeline."""

  async def update_media(self, lesson_id: str, kind: JobKind, status: JobStatus, result: MediaResult | None = None) -> None:
    """Apply a keyed update of the kind's status column and, when given, its result columns."""

  async def get_student_interests(self, student_id: str) -> list[str]:
    """Return the learner's interests, or an empty list when unknown."""
