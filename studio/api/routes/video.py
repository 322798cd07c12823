from __future__ import annotations

from fastapi import APIRouter, Depends, status

from studio.api.deps import get_coordinator, start_job
from studio.jobs.coordinator import PipelineCoordinator
from studio.schema.requests import CinematicRequest, JobAccepted

router = APIRouter()


@router.post("/generate-cinematic", status_code=status.HTTP_202_ACCEPTED, response_model=JobAccepted)
async def generate_cinematic(body: CinematicRequest, coordinator: PipelineCoordinator = Depends(get_coordinator)) -> JobAccepted:  # noqa: B008
  """Start a cinematic explainer render for a lesson."""
  return start_job(coordinator, body.lesson_id, "cinematic-video", body.model_dump(exclude={"lesson_id"}), "Cinematic production sequence initiated")
