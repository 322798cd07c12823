"""Narrated slideshow: per-slide illustration and narration, composite, re-encoded stitch."""

from __future__ import annotations

import logging
from typing import Final

from studio.ai.prompts import render_slide_illustration_prompt, render_slide_manifest_prompt
from studio.jobs.context import StudioContext
from studio.jobs.models import JobKind, MediaResult
from studio.media.ffmpeg import SlideLayout
from studio.media.images import extension_for
from studio.pipelines.base import PipelineRun, RenderedSegment, gather_all, payload_of, write_asset
from studio.schema.manifests import Slide
from studio.schema.requests import SlideshowPayload

logger = logging.getLogger(__name__)

NARRATION_VOICE: Final[str] = "Kore"


class SlideshowPipeline:
  kind: JobKind = "slideshow-video"

  def __init__(self, ctx: StudioContext) -> None:
    self._ctx = ctx

  async def produce(self, run: PipelineRun[SlideshowPayload]) -> MediaResult:
    payload = payload_of(run, SlideshowPayload)
    job_id = run.job.job_id
    settings = self._ctx.settings
    tool = self._ctx.media_tool

    prompt = render_slide_manifest_prompt(payload, settings.slide_max_seconds, SlideLayout().max_bullets)
    slides: list[Slide] = await run.stages.structured("slide-manifest", prompt, list[Slide], min_count=1)
    logger.info("[%s] Manifest ready with %d slides", job_id, len(slides))

    segments: list[RenderedSegment] = []
    for index, slide in enumerate(slides):
      # Illustration and narration do not depend on each other.
      image, pcm = await gather_all(
        run.stages.image(f"slide-{index}-illustration", render_slide_illustration_prompt(slide)),
        run.stages.speech(f"slide-{index}-narration", slide.narration, voice=NARRATION_VOICE),
      )
      image_path = await write_asset(run.scratch / f"i{index}.{extension_for(image.mime_type)}", image.data)
      pcm_path = await write_asset(run.scratch / f"a{index}.pcm", pcm)

      wav_path = await tool.transcode_pcm(pcm_path, run.scratch / f"a{index}.wav", "wav")
      segment = await tool.render_slide(image_path, wav_path, run.scratch / f"s{index}.mp4", title=slide.title, bullets=slide.bullets, max_seconds=settings.slide_max_seconds)
      segments.append(RenderedSegment(index=index, path=segment))
      logger.info("[%s] Slide %d/%d rendered", job_id, index + 1, len(slides))

    final = await tool.concat_reencode([segment.path for segment in segments], run.scratch / "final.mp4")
    url = await self._ctx.publisher.publish(job_id, final, "slides")
    return MediaResult(url=url, manifest=[slide.model_dump(mode="json") for slide in slides])
