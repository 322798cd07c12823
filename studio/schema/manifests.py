"""Structured records produced by the planning stages of each pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator


class _Manifest(BaseModel):
  # Parsed manifests are read-only; extra keys from the model are ignored.
  model_config = ConfigDict(frozen=True, extra="ignore")


class VisualIdentity(_Manifest):
  """Protagonist, location and art style shared by every cinematic scene."""

  protagonist_description: StrictStr = Field(min_length=1)
  location_description: StrictStr = Field(min_length=1)
  art_style: StrictStr = Field(min_length=1)


class Scene(_Manifest):
  scene: StrictInt
  action_prompt: StrictStr = Field(min_length=1)
  dialogue_sfx: StrictStr = ""


class Slide(_Manifest):
  title: StrictStr = ""
  bullets: tuple[StrictStr, ...] = ()
  image_prompt: StrictStr = Field(min_length=1)
  narration: StrictStr = Field(min_length=1)

  @field_validator("bullets", mode="before")
  @classmethod
  def coerce_single_bullet(cls, value: object) -> object:
    # Models occasionally return one bullet as a bare string.
    if isinstance(value, str):
      return (value,)
    return value


class ComicPage(_Manifest):
  page: StrictInt = Field(ge=1)
  panel_desc: StrictStr = Field(min_length=1)
  caption: StrictStr = ""


class Storyboard(_Manifest):
  """Art direction plus ordered pages for an illustrated story."""

  thematic_era: StrictStr = ""
  style_guide: StrictStr = Field(min_length=1)
  visual_anchors: StrictStr = ""
  pages: tuple[ComicPage, ...]


class SkillNode(_Manifest):
  """Layout of one lesson on the course skill map; coordinates are canvas percentages."""

  lesson_id: StrictStr = Field(min_length=1)
  x: float = Field(ge=0, le=100)
  y: float = Field(ge=0, le=100)
  dependencies: tuple[StrictStr, ...] = ()
