from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from studio.api.routes import slides, video
from studio.config import get_settings
from studio.core.errors import CourseNotFoundError, InvalidJobPayloadError, StageError
from studio.core.exceptions import (
  course_not_found_exception_handler,
  global_exception_handler,
  invalid_payload_exception_handler,
  request_validation_exception_handler,
  stage_exception_handler,
)
from studio.core.lifespan import lifespan

settings = get_settings()

app = FastAPI(title="Lesson Media Studio", lifespan=lifespan, docs_url=None, redoc_url=None)

if settings.allowed_origins:
  app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(InvalidJobPayloadError, invalid_payload_exception_handler)
app.add_exception_handler(CourseNotFoundError, course_not_found_exception_handler)
app.add_exception_handler(StageError, stage_exception_handler)


@app.get("/health", include_in_schema=False)
async def health_check(request: Request) -> dict[str, object]:
  """Return process health plus media tool and coordinator readiness."""
  probe = getattr(request.app.state, "media_probe", None)
  coordinator = getattr(request.app.state, "coordinator", None)
  return {
    "status": "ok",
    "version": "0.1.0",
    "ffmpeg": bool(probe and probe.available),
    "drawtext": bool(probe and probe.has_drawtext),
    "ready": coordinator is not None,
    "jobs_in_flight": coordinator.in_flight() if coordinator is not None else 0,
  }


app.include_router(slides.router, prefix="/slides", tags=["slides"])
app.include_router(video.router, prefix="/video", tags=["video"])
