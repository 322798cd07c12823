"""Cinematic explainer: reference images, per-scene video renders, stream-copy stitch."""

from __future__ import annotations

import logging
from typing import Final

from studio.ai.prompts import render_character_grid_prompt, render_scene_anchor_prompt, render_scene_script_prompt, render_scene_video_prompt, render_visual_identity_prompt
from studio.ai.providers.base import GenerationConfig, GenerationMode, GenerationRequest
from studio.jobs.context import StudioContext
from studio.jobs.models import JobKind, MediaResult
from studio.media.images import extension_for
from studio.pipelines.base import PipelineRun, RenderedSegment, payload_of, write_asset
from studio.schema.manifests import Scene, VisualIdentity
from studio.schema.requests import CinematicPayload

logger = logging.getLogger(__name__)

SCENE_SECONDS: Final[int] = 8
SCENE_RESOLUTION: Final[str] = "720p"
SCENE_ASPECT_RATIO: Final[str] = "16:9"


class CinematicPipeline:
  kind: JobKind = "cinematic-video"

  def __init__(self, ctx: StudioContext) -> None:
    self._ctx = ctx

  async def produce(self, run: PipelineRun[CinematicPayload]) -> MediaResult:
    payload = payload_of(run, CinematicPayload)
    job_id = run.job.job_id
    settings = self._ctx.settings

    interests: list[str] = []
    if payload.student_id:
      interests = await self._ctx.repo.get_student_interests(payload.student_id)
    logger.info("[%s] Designing visual identity (interests=%s)", job_id, interests or "default")
    identity: VisualIdentity = await run.stages.structured("visual-identity", render_visual_identity_prompt(payload, interests), VisualIdentity)

    grid = await run.stages.image("character-grid", render_character_grid_prompt(identity))
    await write_asset(run.scratch / f"character_grid.{extension_for(grid.mime_type)}", grid.data)

    scenes: list[Scene] = await run.stages.structured(
      "scene-script",
      render_scene_script_prompt(payload, identity, settings.cinematic_scene_count, SCENE_SECONDS),
      list[Scene],
      expected_count=settings.cinematic_scene_count,
    )
    logger.info("[%s] Script ready with %d scenes", job_id, len(scenes))

    segments: list[RenderedSegment] = []
    for index, scene in enumerate(scenes, start=1):
      anchor = await run.stages.image(f"scene-{index}-anchor", render_scene_anchor_prompt(scene, identity))
      await write_asset(run.scratch / f"scene_{index}_anchor.{extension_for(anchor.mime_type)}", anchor.data)

      config = GenerationConfig(resolution=SCENE_RESOLUTION, aspect_ratio=SCENE_ASPECT_RATIO, duration_seconds=SCENE_SECONDS, reference_images=(grid, anchor))
      request = GenerationRequest(mode=GenerationMode.VIDEO, prompt=render_scene_video_prompt(scene), config=config)
      clip = await run.stages.video(f"scene-{index}-render", request, run.scratch / f"scene_{index}.mp4")
      segments.append(RenderedSegment(index=index, path=clip))
      logger.info("[%s] Scene %d/%d rendered", job_id, index, len(scenes))

    ordered = [segment.path for segment in sorted(segments, key=lambda segment: segment.index)]
    final = await self._ctx.media_tool.concat_copy(ordered, run.scratch / "final_cinematic.mp4")
    url = await self._ctx.publisher.publish(job_id, final, "cinematic")
    return MediaResult(url=url)
