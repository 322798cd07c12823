"""Job-scoped scratch directories for intermediate media files."""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from studio.jobs.models import Job, JobKind

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]+")

SCRATCH_PREFIXES: dict[JobKind, str] = {
  "cinematic-video": "veo",
  "slideshow-video": "slides",
  "dialogue-audio": "pod",
  "illustrated-story": "comic",
}


def scratch_name(job: Job) -> str:
  """Readable slug of the job id plus a digest of the raw id; stable per (kind, job_id)."""
  safe_id = _UNSAFE_CHARS_RE.sub("_", job.job_id).strip("._") or "job"
  digest = hashlib.sha256(job.job_id.encode("utf-8")).hexdigest()[:10]
  return f"{SCRATCH_PREFIXES[job.kind]}_{safe_id}_{digest}"


class AssetStager:
  """Create and tear down per-job scratch directories under one root."""

  def __init__(self, root: Path, *, retain: bool = False) -> None:
    self._root = root
    self._retain = retain

  @property
  def root(self) -> Path:
    return self._root

  async def acquire(self, job: Job) -> Path:
    """Provision a fresh directory, clearing leftovers from an earlier failed run."""
    path = self._root / scratch_name(job)

    def _provision() -> None:
      if path.exists():
        shutil.rmtree(path)
      path.mkdir(parents=True)

    await run_in_threadpool(_provision)
    logger.debug("[%s] Scratch directory ready at %s", job.job_id, path)
    return path

  async def release(self, path: Path) -> bool:
    """Remove the directory recursively; returns False when retained for debugging."""
    if self._retain:
      logger.warning("Retaining scratch directory %s for debugging", path)
      return False
    await run_in_threadpool(shutil.rmtree, path, ignore_errors=True)
    logger.debug("Scratch directory %s removed", path)
    return True
