"""Illustrated story: storyboard, per-page art, JPEG pages published in order."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from studio.ai.prompts import render_comic_page_prompt, render_storyboard_prompt
from studio.jobs.context import StudioContext
from studio.jobs.models import JobKind, MediaResult
from studio.media.images import convert_to_jpeg
from studio.pipelines.base import PipelineRun, payload_of, write_asset
from studio.schema.manifests import Storyboard
from studio.schema.requests import StoryPayload

logger = logging.getLogger(__name__)


class ComicPipeline:
  kind: JobKind = "illustrated-story"

  def __init__(self, ctx: StudioContext) -> None:
    self._ctx = ctx

  async def produce(self, run: PipelineRun[StoryPayload]) -> MediaResult:
    payload = payload_of(run, StoryPayload)
    job_id = run.job.job_id
    page_count = self._ctx.settings.comic_page_count

    board: Storyboard = await run.stages.structured(
      "storyboard",
      render_storyboard_prompt(payload, page_count),
      Storyboard,
      expected_count=page_count,
      items=lambda value: value.pages,
    )
    logger.info("[%s] Storyboard ready: era=%s", job_id, board.thematic_era or "-")

    page_urls: list[str] = []
    for position, page in enumerate(board.pages, start=1):
      art = await run.stages.image(f"page-{position}-art", render_comic_page_prompt(board, page))
      jpeg = await run_in_threadpool(convert_to_jpeg, art.data)
      # Numbered by position; model page numbers may repeat.
      path = await write_asset(run.scratch / f"p{position}.jpg", jpeg)
      page_urls.append(await self._ctx.publisher.publish(job_id, path, "comic_page", sequence=position))
      logger.info("[%s] Page %d/%d published", job_id, position, len(board.pages))

    return MediaResult(pages=page_urls)
