"""Per-kind media production pipelines."""

from __future__ import annotations

from studio.jobs.context import StudioContext
from studio.jobs.models import JobKind
from studio.pipelines.base import MediaPipeline, PipelineRun, RenderedSegment
from studio.pipelines.cinematic import CinematicPipeline
from studio.pipelines.comic import ComicPipeline
from studio.pipelines.podcast import PodcastPipeline
from studio.pipelines.slideshow import SlideshowPipeline


def build_pipelines(ctx: StudioContext) -> dict[JobKind, MediaPipeline]:
  """One pipeline instance per job kind."""
  pipelines: list[MediaPipeline] = [CinematicPipeline(ctx), SlideshowPipeline(ctx), PodcastPipeline(ctx), ComicPipeline(ctx)]
  return {pipeline.kind: pipeline for pipeline in pipelines}


__all__ = ["MediaPipeline", "PipelineRun", "RenderedSegment", "CinematicPipeline", "ComicPipeline", "PodcastPipeline", "SlideshowPipeline", "build_pipelines"]
