"""Provider-neutral request/response contracts for generative media calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol


class GenerationMode(str, Enum):
  """What kind of output a request asks for."""

  TEXT = "text"
  IMAGE = "image"
  AUDIO = "audio"
  VIDEO = "video"


@dataclass(frozen=True)
class ReferenceImage:
  """Image bytes reused read-only as a visual reference by later stages."""

  data: bytes
  mime_type: str = "image/png"


@dataclass(frozen=True)
class SpeakerVoice:
  """Maps a script speaker name onto a prebuilt voice."""

  speaker: str
  voice: str


@dataclass(frozen=True)
class GenerationConfig:
  """The only knobs a stage may set on a request."""

  resolution: str | None = None
  aspect_ratio: str | None = None
  duration_seconds: int | None = None
  voice: str | None = None
  speakers: tuple[SpeakerVoice, ...] = ()
  response_modality: str | None = None
  reference_images: tuple[ReferenceImage, ...] = ()
  json_output: bool = False


@dataclass(frozen=True)
class GenerationRequest:
  mode: GenerationMode
  prompt: str
  config: GenerationConfig = field(default_factory=GenerationConfig)
  # Overrides the per-mode default model when set.
  model: str | None = None


@dataclass(frozen=True)
class GenerationResponse:
  """Text and/or inline binary returned by one call."""

  text: str | None = None
  data: bytes | None = None
  mime_type: str | None = None
  usage: dict[str, int] | None = None


class MediaClient(Protocol):
  """Generative service contract used by stage runners and pipelines."""

  async def generate(self, request: GenerationRequest) -> GenerationResponse:
    """Run a text, image, or audio request to completion."""

  async def generate_video(self, request: GenerationRequest, destination: Path) -> Path:
    """Submit a video render, wait for it, and download the result to ``destination``."""
