"""Gemini/Veo media client using the google-genai SDK async surface."""

from __future__ import annotations

import asyncio
import base64
import logging
import time
import warnings
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from pydantic.warnings import ArbitraryTypeWarning
from starlette.concurrency import run_in_threadpool

with warnings.catch_warnings():
  warnings.filterwarnings("ignore", message=r"<built-in function any> is not a Python type.*", category=ArbitraryTypeWarning)
  from google import genai
  from google.genai import types

from studio.ai.providers.base import GenerationConfig, GenerationMode, GenerationRequest, GenerationResponse, MediaClient
from studio.config import Settings
from studio.core.errors import MissingAssetError, OperationTimeoutError, StageError

logger = logging.getLogger(__name__)

_VIDEO_STAGE = "video-render"
_DEFAULT_PERSON_GENERATION = "allow_adult"


def _usage(response: Any) -> dict[str, int] | None:
  metadata = getattr(response, "usage_metadata", None)
  if not metadata:
    return None
  return {"prompt_tokens": metadata.prompt_token_count, "completion_tokens": metadata.candidates_token_count, "total_tokens": metadata.total_token_count}


def _inline_payload(response: Any) -> tuple[bytes, str | None] | None:
  """Return the first inline binary part, decoding base64 text when needed."""
  for candidate in response.candidates or []:
    content = candidate.content
    if content is None or not content.parts:
      continue
    for part in content.parts:
      inline = part.inline_data
      if inline is None or not inline.data:
        continue
      data = inline.data
      if isinstance(data, str):
        data = base64.b64decode(data)
      return data, inline.mime_type
  return None


def _text_of(response: Any) -> str | None:
  try:
    return response.text
  except ValueError:
    # The SDK raises when a response carries no text parts.
    return None


def _speech_config(config: GenerationConfig) -> types.SpeechConfig | None:
  if config.speakers:
    return types.SpeechConfig(
      multi_speaker_voice_config=types.MultiSpeakerVoiceConfig(
        speaker_voice_configs=[
          types.SpeakerVoiceConfig(speaker=item.speaker, voice_config=types.VoiceConfig(prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=item.voice)))
          for item in config.speakers
        ]
      )
    )
  if config.voice:
    return types.SpeechConfig(voice_config=types.VoiceConfig(prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=config.voice)))
  return None


class GeminiMediaClient(MediaClient):
  """Uniform text/image/audio/video generation over one configured genai client."""

  def __init__(
    self,
    settings: Settings,
    client: Any | None = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
  ) -> None:
    if client is None:
      if not settings.gemini_api_key:
        raise ValueError("GEMINI_API_KEY environment variable is required")
      client = genai.Client(api_key=settings.gemini_api_key, http_options={"api_version": settings.gemini_api_version})
    self._client = client
    self._models = settings.models
    self._poll_interval = settings.poll_interval_seconds
    self._timeout = settings.operation_timeout_seconds
    self._sleep = sleep
    self._clock = clock

  def _model_for(self, request: GenerationRequest) -> str:
    if request.mode is GenerationMode.IMAGE:
      return self._models.image
    if request.mode is GenerationMode.AUDIO:
      return self._models.speech
    if request.mode is GenerationMode.VIDEO:
      return self._models.video
    return self._models.text

  def _content_config(self, request: GenerationRequest) -> types.GenerateContentConfig | None:
    config = request.config
    if request.mode is GenerationMode.IMAGE:
      image_config = types.ImageConfig(aspect_ratio=config.aspect_ratio) if config.aspect_ratio else None
      return types.GenerateContentConfig(response_modalities=[config.response_modality or "IMAGE"], image_config=image_config)
    if request.mode is GenerationMode.AUDIO:
      return types.GenerateContentConfig(response_modalities=[config.response_modality or "AUDIO"], speech_config=_speech_config(config))
    if config.json_output:
      return types.GenerateContentConfig(response_mime_type="application/json")
    return None

  def _contents(self, request: GenerationRequest) -> list[Any] | str:
    if not request.config.reference_images:
      return request.prompt
    parts: list[Any] = [types.Part.from_bytes(data=ref.data, mime_type=ref.mime_type) for ref in request.config.reference_images]
    parts.append(request.prompt)
    return parts

  async def generate(self, request: GenerationRequest) -> GenerationResponse:
    """Run a single text, image, or audio request."""
    if request.mode is GenerationMode.VIDEO:
      raise ValueError("Video requests go through generate_video().")

    model_name = request.model or self._model_for(request)
    logger.debug("Gemini %s request model=%s prompt_chars=%d", request.mode.value, model_name, len(request.prompt))
    # Use the async client to avoid blocking the asyncio event loop.
    response = await self._client.aio.models.generate_content(model=model_name, contents=self._contents(request), config=self._content_config(request))

    inline = _inline_payload(response)
    data, mime_type = inline if inline is not None else (None, None)
    text = _text_of(response) if request.mode is GenerationMode.TEXT else None
    logger.debug("Gemini %s response text_chars=%d bytes=%d", request.mode.value, len(text or ""), len(data or b""))
    return GenerationResponse(text=text, data=data, mime_type=mime_type, usage=_usage(response))

  def _video_config(self, config: GenerationConfig) -> types.GenerateVideosConfig:
    references = [
      types.VideoGenerationReferenceImage(image=types.Image(image_bytes=ref.data, mime_type=ref.mime_type), reference_type=types.VideoGenerationReferenceType.ASSET) for ref in config.reference_images
    ]
    return types.GenerateVideosConfig(
      resolution=config.resolution,
      aspect_ratio=config.aspect_ratio,
      duration_seconds=config.duration_seconds,
      person_generation=_DEFAULT_PERSON_GENERATION,
      reference_images=references or None,
    )

  async def submit_video(self, request: GenerationRequest) -> Any:
    """Start a long-running video render and return the operation handle."""
    operation = await self._client.aio.models.generate_videos(model=request.model or self._models.video, prompt=request.prompt, config=self._video_config(request.config))
    logger.info("Submitted video render operation %s", getattr(operation, "name", "<unnamed>"))
    return operation

  async def wait_for_operation(self, operation: Any) -> Any:
    """Re-fetch the operation at a fixed interval until done or the timeout elapses."""
    deadline = None if self._timeout == 0 else self._clock() + self._timeout
    while not operation.done:
      if deadline is not None and self._clock() >= deadline:
        raise OperationTimeoutError(_VIDEO_STAGE, f"operation {getattr(operation, 'name', '')} not done after {self._timeout:.0f}s")
      await self._sleep(self._poll_interval)
      operation = await self._client.aio.operations.get(operation)
      logger.debug("Polled operation %s done=%s", getattr(operation, "name", ""), operation.done)

    if operation.error:
      raise StageError(_VIDEO_STAGE, f"operation failed: {operation.error}")
    return operation

  async def download_video(self, operation: Any, destination: Path) -> Path:
    """Write the first generated video of a finished operation to ``destination``."""
    response = operation.response
    generated = list(response.generated_videos or []) if response is not None else []
    if not generated or generated[0].video is None:
      raise MissingAssetError(_VIDEO_STAGE, "operation finished without a generated video")

    video = generated[0].video
    data = video.video_bytes
    if not data:
      data = await self._client.aio.files.download(file=video)
    if not data:
      raise MissingAssetError(_VIDEO_STAGE, "generated video could not be downloaded")

    await run_in_threadpool(destination.write_bytes, data)
    logger.info("Downloaded video to %s (%d bytes)", destination.name, len(data))
    return destination

  async def generate_video(self, request: GenerationRequest, destination: Path) -> Path:
    operation = await self.submit_video(request)
    finished = await self.wait_for_operation(operation)
    return await self.download_video(finished, destination)
