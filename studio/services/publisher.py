"""Upload finished artifacts and record terminal job status."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal, Protocol

from studio.core.errors import UploadError
from studio.jobs.models import Job, MediaResult
from studio.storage.lesson_media_repo import LessonMediaRepository

logger = logging.getLogger(__name__)

ContentKind = Literal["cinematic", "slides", "podcast", "comic_page"]


@dataclass(frozen=True)
class ContentProfile:
  """Object naming and MIME type for one kind of published artifact."""

  stem: str
  extension: str
  content_type: str


CONTENT_PROFILES: Final[dict[ContentKind, ContentProfile]] = {
  "cinematic": ContentProfile(stem="cinematic", extension="mp4", content_type="video/mp4"),
  "slides": ContentProfile(stem="slides", extension="mp4", content_type="video/mp4"),
  "podcast": ContentProfile(stem="podcast", extension="mp3", content_type="audio/mpeg"),
  "comic_page": ContentProfile(stem="p", extension="jpg", content_type="image/jpeg"),
}


class ObjectStore(Protocol):
  """Object-store operations the publisher relies on."""

  async def upload_file(self, local_path: Path, object_name: str, content_type: str) -> None: ...

  def public_url(self, object_name: str) -> str: ...


def _epoch_ms() -> int:
  return int(time.time() * 1000)


class ResultPublisher:
  """Publish artifacts under job-namespaced, timestamped names and write back status."""

  def __init__(self, store: ObjectStore, repo: LessonMediaRepository, clock: Callable[[], int] = _epoch_ms) -> None:
    self._store = store
    self._repo = repo
    self._clock = clock

  def object_name(self, job_id: str, content_kind: ContentKind, sequence: int | None = None) -> str:
    """Build the storage path; the timestamp keeps repeated runs from overwriting each other."""
    profile = CONTENT_PROFILES[content_kind]
    stamp = self._clock()
    if content_kind == "comic_page":
      return f"comics/{job_id}/{profile.stem}{sequence or 1}_{stamp}.{profile.extension}"
    return f"{job_id}/{profile.stem}_{stamp}.{profile.extension}"

  async def publish(self, job_id: str, local_path: Path, content_kind: ContentKind, *, sequence: int | None = None) -> str:
    """Upload once and return the public URL; failures surface as UploadError."""
    profile = CONTENT_PROFILES[content_kind]
    object_name = self.object_name(job_id, content_kind, sequence)
    try:
      await self._store.upload_file(local_path, object_name, profile.content_type)
      url = self._store.public_url(object_name)
    except Exception as exc:
      raise UploadError(f"Upload of {local_path.name} to {object_name} failed: {exc}") from exc
    logger.info("[%s] Uploaded %s -> %s", job_id, local_path.name, url)
    return url

  async def mark_ready(self, job: Job, result: MediaResult) -> None:
    """Write the terminal ready status together with the result fields."""
    await self._repo.update_media(job.job_id, job.kind, "ready", result)
