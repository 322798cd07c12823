"""Single-attempt execution of generative stages with typed results."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence, Sized
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from studio.ai.extraction import ExtractionFailed, extract_structured
from studio.ai.providers.base import GenerationConfig, GenerationMode, GenerationRequest, GenerationResponse, MediaClient, ReferenceImage, SpeakerVoice
from studio.core.errors import MissingAssetError, StageError, StructuredOutputError, StudioError

logger = logging.getLogger(__name__)

ResultShape = Literal["structured", "text", "binary"]


@dataclass(frozen=True)
class StageSpec:
  """Name, request, and expected result shape of one stage."""

  name: str
  request: GenerationRequest
  shape: ResultShape
  output_type: Any = None
  expected_count: int | None = None
  min_count: int | None = None
  items: Callable[[Any], Sized] | None = None


class StageRunner:
  """Run stages against a media client; every call is attempted exactly once."""

  def __init__(self, client: MediaClient, job_id: str = "-") -> None:
    self._client = client
    self._job_id = job_id

  async def _call(self, name: str, request: GenerationRequest) -> GenerationResponse:
    started = time.monotonic()
    try:
      response = await self._client.generate(request)
    except StudioError:
      raise
    except Exception as exc:
      raise StageError(name, f"service call failed: {exc}") from exc
    logger.info("[%s] Stage %s finished in %.1fs", self._job_id, name, time.monotonic() - started)
    return response

  async def invoke(self, spec: StageSpec) -> Any:
    """Run one stage and return its validated result, or raise a StageError subclass."""
    response = await self._call(spec.name, spec.request)

    if spec.shape == "binary":
      if not response.data:
        raise MissingAssetError(spec.name, "response carried no inline binary payload")
      return response

    if spec.shape == "text":
      text = (response.text or "").strip()
      if not text:
        raise StructuredOutputError(spec.name, "response text was empty")
      return text

    outcome = extract_structured(response.text, spec.output_type, expected_count=spec.expected_count, min_count=spec.min_count, items=spec.items)
    if isinstance(outcome, ExtractionFailed):
      logger.warning("[%s] Stage %s returned unusable output: %s | %s", self._job_id, spec.name, outcome.reason, outcome.excerpt)
      raise StructuredOutputError(spec.name, outcome.reason)
    return outcome.value

  async def structured(
    self,
    name: str,
    prompt: str,
    output_type: Any,
    *,
    expected_count: int | None = None,
    min_count: int | None = None,
    items: Callable[[Any], Sized] | None = None,
    model: str | None = None,
  ) -> Any:
    request = GenerationRequest(mode=GenerationMode.TEXT, prompt=prompt, config=GenerationConfig(json_output=True), model=model)
    spec = StageSpec(name=name, request=request, shape="structured", output_type=output_type, expected_count=expected_count, min_count=min_count, items=items)
    return await self.invoke(spec)

  async def text(self, name: str, prompt: str, *, model: str | None = None) -> str:
    request = GenerationRequest(mode=GenerationMode.TEXT, prompt=prompt, model=model)
    return await self.invoke(StageSpec(name=name, request=request, shape="text"))

  async def image(self, name: str, prompt: str, *, references: Sequence[ReferenceImage] = (), aspect_ratio: str | None = None) -> ReferenceImage:
    config = GenerationConfig(response_modality="IMAGE", reference_images=tuple(references), aspect_ratio=aspect_ratio)
    response = await self.invoke(StageSpec(name=name, request=GenerationRequest(mode=GenerationMode.IMAGE, prompt=prompt, config=config), shape="binary"))
    return ReferenceImage(data=response.data, mime_type=response.mime_type or "image/png")

  async def speech(self, name: str, prompt: str, *, voice: str | None = None, speakers: Sequence[SpeakerVoice] = ()) -> bytes:
    """Return raw PCM audio for the prompt."""
    config = GenerationConfig(response_modality="AUDIO", voice=voice, speakers=tuple(speakers))
    response = await self.invoke(StageSpec(name=name, request=GenerationRequest(mode=GenerationMode.AUDIO, prompt=prompt, config=config), shape="binary"))
    return response.data

  async def video(self, name: str, request: GenerationRequest, destination: Path) -> Path:
    """Render a video through a long-running operation and download it."""
    started = time.monotonic()
    try:
      path = await self._client.generate_video(request, destination)
    except StudioError:
      raise
    except Exception as exc:
      raise StageError(name, f"video render failed: {exc}") from exc
    logger.info("[%s] Stage %s finished in %.1fs", self._job_id, name, time.monotonic() - started)
    return path
