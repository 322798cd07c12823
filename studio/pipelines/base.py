"""Shared pipeline contracts and small helpers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from studio.ai.stages import StageRunner
from studio.core.errors import InvalidJobPayloadError
from studio.jobs.models import Job, JobKind, MediaResult


@dataclass(frozen=True)
class RenderedSegment:
  """One rendered media file in scratch, ordered by ``index``."""

  index: int
  path: Path


P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class PipelineRun(Generic[P]):
  """Everything a pipeline needs for a single job."""

  job: Job
  payload: P
  scratch: Path
  stages: StageRunner


class MediaPipeline(Protocol):
  kind: JobKind

  async def produce(self, run: PipelineRun[Any]) -> MediaResult:
    """Run every stage for the job and return the fields to persist with ``ready``."""


async def write_asset(path: Path, data: bytes) -> Path:
  await run_in_threadpool(path.write_bytes, data)
  return path


async def gather_all(*awaitables: Awaitable[Any]) -> list[Any]:
  """Await every branch to completion, then raise the first failure if any."""
  results = await asyncio.gather(*awaitables, return_exceptions=True)
  for result in results:
    if isinstance(result, BaseException):
      raise result
  return list(results)


def payload_of(run: PipelineRun[Any], model: type[P]) -> P:
  """Return the run's payload as ``model`` or reject a job routed to the wrong pipeline."""
  if not isinstance(run.payload, model):
    raise InvalidJobPayloadError(f"{run.job.kind} expects {model.__name__}, got {type(run.payload).__name__}")
  return run.payload
