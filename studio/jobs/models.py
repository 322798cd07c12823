"""Domain models for media production jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Final, Literal, get_args

JobStatus = Literal["idle", "processing", "ready", "failed"]
JobKind = Literal["cinematic-video", "slideshow-video", "dialogue-audio", "illustrated-story"]

JOB_KINDS: Final[tuple[JobKind, ...]] = get_args(JobKind)
TERMINAL_STATUSES: Final[frozenset[str]] = frozenset({"ready", "failed"})


@dataclass(frozen=True)
class MediaColumns:
  """Metadata-store field names written for one job kind."""

  status: str
  url: str | None = None
  pages: str | None = None
  manifest: str | None = None


MEDIA_COLUMNS: Final[dict[JobKind, MediaColumns]] = {
  "slideshow-video": MediaColumns(status="video_status", url="video_url", manifest="video_manifest"),
  "cinematic-video": MediaColumns(status="animated_video_status", url="animated_video_url"),
  "dialogue-audio": MediaColumns(status="podcast_status", url="podcast_url"),
  "illustrated-story": MediaColumns(status="comic_status", pages="comic_pages"),
}


@dataclass
class Job:
  """One in-flight media production run; status here is advisory only."""

  job_id: str
  kind: JobKind
  status: JobStatus = "idle"
  started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
  finished_at: datetime | None = None
  error: str | None = None

  @property
  def label(self) -> str:
    """Short tag used in log lines."""
    return f"{self.kind}:{self.job_id}"

  def transition(self, status: JobStatus) -> None:
    """Move along idle -> processing -> ready|failed; terminal states are final."""
    if self.status in TERMINAL_STATUSES:
      raise ValueError(f"Job {self.label} is already {self.status}.")
    if status == "processing" and self.status != "idle":
      raise ValueError(f"Job {self.label} cannot enter processing from {self.status}.")
    if status in TERMINAL_STATUSES:
      self.finished_at = datetime.now(UTC)
    self.status = status


@dataclass(frozen=True)
class MediaResult:
  """Fields persisted alongside the ready status."""

  url: str | None = None
  pages: list[str] | None = None
  manifest: list[dict] | None = None
