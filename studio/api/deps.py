"""Shared FastAPI dependencies for the trigger routes."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status

from studio.jobs.coordinator import PipelineCoordinator
from studio.jobs.models import JobKind
from studio.schema.requests import JobAccepted
from studio.services.skill_tree import SkillTreeBuilder


def get_coordinator(request: Request) -> PipelineCoordinator:
  """Return the coordinator wired at startup, or 503 when it is unavailable."""
  coordinator = getattr(request.app.state, "coordinator", None)
  if coordinator is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Media studio is not ready")
  return coordinator


def start_job(coordinator: PipelineCoordinator, lesson_id: str, kind: JobKind, payload: dict[str, Any], message: str) -> JobAccepted:
  """Schedule the job and build the acknowledgement; duplicates are acknowledged too."""
  task = coordinator.run(lesson_id, kind, payload)
  if task is None:
    return JobAccepted(message=f"{kind} for lesson {lesson_id} is already in progress", lesson_id=lesson_id, kind=kind, accepted=False)
  return JobAccepted(message=message, lesson_id=lesson_id, kind=kind, accepted=True)


def get_skill_tree_builder(request: Request) -> SkillTreeBuilder:
  builder = getattr(request.app.state, "skill_tree_builder", None)
  if builder is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Media studio is not ready")
  return builder
