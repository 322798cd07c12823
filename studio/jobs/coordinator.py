"""Fire-and-forget orchestration of media production jobs."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from studio.ai.providers.base import MediaClient
from studio.ai.stages import StageRunner
from studio.core.errors import InvalidJobPayloadError
from studio.jobs.context import StudioContext
from studio.jobs.models import Job, JobKind
from studio.jobs.registry import GuardToken, JobRegistry
from studio.pipelines import MediaPipeline, PipelineRun, build_pipelines
from studio.schema.requests import validate_payload

logger = logging.getLogger(__name__)


class PipelineCoordinator:
  """Deduplicate, schedule, and converge every job on a terminal status."""

  def __init__(
    self,
    ctx: StudioContext,
    *,
    registry: JobRegistry | None = None,
    pipelines: Mapping[JobKind, MediaPipeline] | None = None,
    runner_factory: Callable[[MediaClient, str], StageRunner] = StageRunner,
  ) -> None:
    self._ctx = ctx
    self._registry = registry or JobRegistry()
    self._pipelines = dict(pipelines) if pipelines is not None else build_pipelines(ctx)
    self._runner_factory = runner_factory
    # Strong references so the event loop cannot collect running jobs.
    self._tasks: set[asyncio.Task[None]] = set()

  @property
  def registry(self) -> JobRegistry:
    return self._registry

  def in_flight(self) -> int:
    return len(self._tasks)

  def run(self, job_id: str, kind: JobKind, payload: Any) -> asyncio.Task[None] | None:
    """Validate, dedup, and schedule a job; returns None for a duplicate.

    Must be called from within a running event loop. Invalid payloads raise
    InvalidJobPayloadError before anything is scheduled or written.
    """
    if not job_id:
      raise InvalidJobPayloadError("job_id must be a non-empty string.")
    if kind not in self._pipelines:
      raise InvalidJobPayloadError(f"No pipeline registered for kind {kind!r}.")
    model = validate_payload(kind, payload)

    token = self._registry.try_acquire(kind, job_id)
    if token is None:
      logger.info("[%s] %s already in progress; ignoring duplicate trigger", job_id, kind)
      return None

    job = Job(job_id=job_id, kind=kind)
    try:
      task = asyncio.create_task(self._execute(job, model, token), name=f"media:{job.label}")
    except BaseException:
      self._registry.release(token)
      raise
    self._tasks.add(task)
    task.add_done_callback(self._tasks.discard)
    logger.info("[%s] %s production scheduled", job_id, kind)
    return task

  async def _execute(self, job: Job, payload: BaseModel, token: GuardToken) -> None:
    scratch: Path | None = None
    try:
      # Persist processing before any external service is called.
      await self._ctx.repo.update_media(job.job_id, job.kind, "processing")
      job.transition("processing")
      logger.info("[%s] %s production started", job.job_id, job.kind)

      scratch = await self._ctx.stager.acquire(job)
      run = PipelineRun(job=job, payload=payload, scratch=scratch, stages=self._runner_factory(self._ctx.media_client, job.job_id))
      result = await self._pipelines[job.kind].produce(run)

      await self._ctx.publisher.mark_ready(job, result)
      job.transition("ready")
      elapsed = (job.finished_at - job.started_at).total_seconds() if job.finished_at else 0.0
      logger.info("[%s] %s production complete in %.1fs", job.job_id, job.kind, elapsed)
    except Exception as exc:  # noqa: BLE001
      job.error = f"{type(exc).__name__}: {exc}"
      logger.error("[%s] %s production failed: %s", job.job_id, job.kind, job.error, exc_info=True)
      await self._mark_failed(job)
    finally:
      try:
        if scratch is not None:
          await self._ctx.stager.release(scratch)
      finally:
        self._registry.release(token)

  async def _mark_failed(self, job: Job) -> None:
    if job.status not in ("ready", "failed"):
      job.transition("failed")
    try:
      await self._ctx.repo.update_media(job.job_id, job.kind, "failed")
    except Exception:  # noqa: BLE001
      logger.error("[%s] Could not record failed status for %s", job.job_id, job.kind, exc_info=True)

  async def drain(self) -> None:
    """Wait for every in-flight job to finish."""
    while self._tasks:
      await asyncio.gather(*list(self._tasks), return_exceptions=True)
