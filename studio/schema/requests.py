"""Job payload models, one per media kind, plus the HTTP trigger bodies."""

from __future__ import annotations

from typing import Any, Final

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr, ValidationError

from studio.core.errors import InvalidJobPayloadError
from studio.jobs.models import JobKind


class _Payload(BaseModel):
  model_config = ConfigDict(extra="forbid", frozen=True)


class CinematicPayload(_Payload):
  summary: StrictStr = Field(min_length=1, description="Lesson summary the scenes dramatize.")
  title: StrictStr = Field(min_length=1)
  student_id: StrictStr | None = Field(default=None, validation_alias=AliasChoices("student_id", "studentId"), description="Learner whose interests steer the art style.")


class SlideshowPayload(_Payload):
  summary: StrictStr = Field(min_length=1)
  thoughts: StrictStr = Field(default="", description="Free-form notes kept alongside the summary.")
  title: StrictStr = Field(min_length=1)


class DialoguePayload(_Payload):
  summary: StrictStr = Field(min_length=1)
  title: StrictStr = Field(min_length=1)


class StoryPayload(_Payload):
  ai_notes: StrictStr = Field(min_length=1, validation_alias=AliasChoices("ai_notes", "aiNotes"))
  title: StrictStr = Field(min_length=1)


PAYLOAD_MODELS: Final[dict[JobKind, type[_Payload]]] = {
  "cinematic-video": CinematicPayload,
  "slideshow-video": SlideshowPayload,
  "dialogue-audio": DialoguePayload,
  "illustrated-story": StoryPayload,
}


def validate_payload(kind: JobKind, payload: Any) -> _Payload:
  """Coerce a raw payload into the kind's model or raise InvalidJobPayloadError."""
  model = PAYLOAD_MODELS.get(kind)
  if model is None:
    raise InvalidJobPayloadError(f"Unknown job kind {kind!r}.")
  if isinstance(payload, model):
    return payload
  try:
    return model.model_validate(payload)
  except ValidationError as exc:
    fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
    raise InvalidJobPayloadError(f"Invalid {kind} payload; check fields: {', '.join(fields) or 'body'}") from exc


class CinematicRequest(CinematicPayload):
  lesson_id: StrictStr = Field(min_length=1, validation_alias=AliasChoices("lesson_id", "lessonId"))


class SlideshowRequest(SlideshowPayload):
  lesson_id: StrictStr = Field(min_length=1, validation_alias=AliasChoices("lesson_id", "lessonId"))


class DialogueRequest(DialoguePayload):
  lesson_id: StrictStr = Field(min_length=1, validation_alias=AliasChoices("lesson_id", "lessonId"))


class StoryRequest(StoryPayload):
  lesson_id: StrictStr = Field(min_length=1, validation_alias=AliasChoices("lesson_id", "lessonId"))


class JobAccepted(BaseModel):
  """Acknowledgement returned before the job runs."""

  message: str
  lesson_id: str
  kind: JobKind
  accepted: bool = Field(description="False when an identical job was already in flight.")


class SkillTreeRequest(BaseModel):
  course_id: StrictStr = Field(min_length=1, validation_alias=AliasChoices("course_id", "courseId"))


class SkillTreeResult(BaseModel):
  """Outcome of a skill-tree request; generation runs inline, not as a background job."""

  status: str = "done"
  message: str
  tree_id: str
  created: bool = Field(description="False when the course already had a tree.")
  node_count: int = 0
