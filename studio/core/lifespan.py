import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from studio.core.database import dispose_engine
from studio.core.logging import initialize_logging
from studio.jobs.context import build_context
from studio.jobs.coordinator import PipelineCoordinator
from studio.media.ffmpeg import FFmpegTool
from studio.services.skill_tree import SkillTreeBuilder
from studio.services.storage_client import build_storage_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Initialize logging, probe the media tool, and wire the coordinator onto app state."""
  from studio.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("studio.core.lifespan")
  initialize_logging(settings)
  app.state.coordinator = None
  app.state.skill_tree_builder = None

  tool = FFmpegTool.from_settings(settings)
  probe = await tool.probe()
  if not probe.available:
    logger.error("ffmpeg not found; video and audio jobs will fail until it is installed.")
  elif not probe.has_drawtext:
    logger.error("ffmpeg at %s lacks the drawtext filter; slideshow renders will fail.", probe.ffmpeg_path)
  else:
    logger.info("Using ffmpeg at %s (drawtext available)", probe.ffmpeg_path)
  app.state.media_probe = probe

  try:
    storage = build_storage_client(settings)
    try:
      await storage.ensure_bucket()
      logger.info("Media bucket ensured: %s", storage.bucket_name)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Failed to ensure media bucket at startup: %s", exc)
    ctx = build_context(settings, media_tool=tool, store=storage)
    app.state.coordinator = PipelineCoordinator(ctx)
    app.state.skill_tree_builder = SkillTreeBuilder(ctx.media_client, ctx.skill_trees)
    logger.info("Startup complete.")
  except Exception:  # noqa: BLE001
    # The process stays up for health checks; triggers answer 503 until fixed.
    logger.error("Media studio could not be initialized.", exc_info=True)

  yield

  coordinator: PipelineCoordinator | None = app.state.coordinator
  if coordinator is not None and coordinator.in_flight():
    logger.info("Waiting for %d in-flight media jobs before shutdown", coordinator.in_flight())
    await coordinator.drain()
  await dispose_engine()
