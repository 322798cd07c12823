"""Long-lived service handles shared by the coordinator and pipelines."""

from __future__ import annotations

from dataclasses import dataclass

from studio.ai.providers.base import MediaClient
from studio.ai.providers.gemini import GeminiMediaClient
from studio.config import Settings
from studio.media.ffmpeg import FFmpegTool
from studio.media.scratch import AssetStager
from studio.services.publisher import ObjectStore, ResultPublisher
from studio.services.storage_client import build_storage_client
from studio.storage.lesson_media_repo import LessonMediaRepository
from studio.storage.postgres_lesson_media_repo import PostgresLessonMediaRepository
from studio.storage.postgres_skill_tree_repo import PostgresSkillTreeRepository
from studio.storage.skill_tree_repo import SkillTreeRepository


@dataclass(frozen=True)
class StudioContext:
  """Built once at startup; nothing in it is mutated per job."""

  settings: Settings
  media_client: MediaClient
  media_tool: FFmpegTool
  stager: AssetStager
  publisher: ResultPublisher
  repo: LessonMediaRepository
  skill_trees: SkillTreeRepository


def build_context(
  settings: Settings,
  *,
  media_client: MediaClient | None = None,
  media_tool: FFmpegTool | None = None,
  store: ObjectStore | None = None,
  repo: LessonMediaRepository | None = None,
  skill_trees: SkillTreeRepository | None = None,
) -> StudioContext:
  """Wire default implementations for anything not supplied."""
  repo = repo or PostgresLessonMediaRepository()
  store = store or build_storage_client(settings)
  return StudioContext(
    settings=settings,
    media_client=media_client or GeminiMediaClient(settings),
    media_tool=media_tool or FFmpegTool.from_settings(settings),
    stager=AssetStager(settings.scratch_root, retain=settings.retain_scratch),
    publisher=ResultPublisher(store, repo),
    repo=repo,
    skill_trees=skill_trees or PostgresSkillTreeRepository(),
  )
