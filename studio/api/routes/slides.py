from __future__ import annotations

from fastapi import APIRouter, Depends, status

from studio.api.deps import get_coordinator, get_skill_tree_builder, start_job
from studio.jobs.coordinator import PipelineCoordinator
from studio.schema.requests import DialogueRequest, JobAccepted, SkillTreeRequest, SkillTreeResult, SlideshowRequest, StoryRequest
from studio.services.skill_tree import SkillTreeBuilder

router = APIRouter()


@router.post("/generate", status_code=status.HTTP_202_ACCEPTED, response_model=JobAccepted)
async def generate_slideshow(body: SlideshowRequest, coordinator: PipelineCoordinator = Depends(get_coordinator)) -> JobAccepted:  # noqa: B008
  """Start a narrated slideshow render for a lesson."""
  return start_job(coordinator, body.lesson_id, "slideshow-video", body.model_dump(exclude={"lesson_id"}), "Generation started")


@router.post("/generate-podcast", status_code=status.HTTP_202_ACCEPTED, response_model=JobAccepted)
async def generate_podcast(body: DialogueRequest, coordinator: PipelineCoordinator = Depends(get_coordinator)) -> JobAccepted:  # noqa: B008
  """Start a two-host dialogue audio render for a lesson."""
  return start_job(coordinator, body.lesson_id, "dialogue-audio", body.model_dump(exclude={"lesson_id"}), "Podcast generation started")


@router.post("/generate-comic", status_code=status.HTTP_202_ACCEPTED, response_model=JobAccepted)
async def generate_comic(body: StoryRequest, coordinator: PipelineCoordinator = Depends(get_coordinator)) -> JobAccepted:  # noqa: B008
  """Start an illustrated story for a lesson."""
  return start_job(coordinator, body.lesson_id, "illustrated-story", body.model_dump(exclude={"lesson_id"}), "Comic book production initiated")


@router.post("/generate-tree", response_model=SkillTreeResult)
async def generate_skill_tree(body: SkillTreeRequest, builder: SkillTreeBuilder = Depends(get_skill_tree_builder)) -> SkillTreeResult:  # noqa: B008
  """Lay out the course's lessons as a skill tree; returns the existing tree when there is one."""
  return await builder.generate(body.course_id)
