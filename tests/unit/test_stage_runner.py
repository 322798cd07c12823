"""Unit tests for single-attempt stage execution."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from studio.ai.providers.base import GenerationMode, GenerationRequest, GenerationResponse
from studio.ai.stages import StageRunner
from studio.core.errors import MissingAssetError, StageError, StructuredOutputError
from studio.schema.manifests import VisualIdentity
from tests.fakes import PNG_BYTES, FakeMediaClient


@pytest.mark.anyio
async def test_structured_stage_requests_json_and_validates() -> None:
  client = FakeMediaClient(['{"protagonist_description": "a fox", "location_description": "a lab", "art_style": "ink"}'])
  identity = await StageRunner(client, "lesson-1").structured("visual-identity", "describe", VisualIdentity)

  assert identity.art_style == "ink"
  (request,) = client.requests
  assert request.mode is GenerationMode.TEXT
  assert request.config.json_output is True


@pytest.mark.anyio
async def test_structured_stage_fails_once_without_retrying() -> None:
  client = FakeMediaClient(["Sorry, here is a poem instead.", "unused"])
  with pytest.raises(StructuredOutputError) as excinfo:
    await StageRunner(client).structured("visual-identity", "describe", VisualIdentity)

  assert excinfo.value.stage == "visual-identity"
  assert "not JSON" in str(excinfo.value)
  assert len(client.requests) == 1


@pytest.mark.anyio
async def test_text_stage_rejects_blank_output() -> None:
  with pytest.raises(StructuredOutputError):
    await StageRunner(FakeMediaClient(["   "])).text("dialogue-script", "write")


@pytest.mark.anyio
async def test_text_stage_passes_model_override() -> None:
  client = FakeMediaClient(["Alex: hi\nSam: hello"])
  assert await StageRunner(client).text("dialogue-script", "write", model="dialogue-model") == "Alex: hi\nSam: hello"
  assert client.requests[0].model == "dialogue-model"


@pytest.mark.anyio
async def test_image_stage_returns_reference_image() -> None:
  client = FakeMediaClient()
  image = await StageRunner(client).image("character-grid", "draw", aspect_ratio="16:9")

  assert image.data == PNG_BYTES
  assert image.mime_type == "image/png"
  assert client.requests[0].config.aspect_ratio == "16:9"
  assert client.requests[0].config.response_modality == "IMAGE"


@pytest.mark.anyio
async def test_binary_stage_without_payload_is_missing_asset() -> None:
  client = FakeMediaClient()
  client.audio_bytes = None
  with pytest.raises(MissingAssetError):
    await StageRunner(client).speech("slide-0-narration", "say", voice="Kore")


@pytest.mark.anyio
async def test_transport_errors_become_stage_errors() -> None:
  client = AsyncMock()
  client.generate.side_effect = ConnectionError("reset by peer")
  with pytest.raises(StageError) as excinfo:
    await StageRunner(client).text("dialogue-script", "write")

  assert excinfo.value.stage == "dialogue-script"
  assert "reset by peer" in str(excinfo.value)
  client.generate.assert_awaited_once()


@pytest.mark.anyio
async def test_video_stage_wraps_unexpected_failures(tmp_path: Path) -> None:
  client = AsyncMock()
  client.generate_video.side_effect = RuntimeError("quota exceeded")
  request = GenerationRequest(mode=GenerationMode.VIDEO, prompt="scene")

  with pytest.raises(StageError, match="video render failed: quota exceeded"):
    await StageRunner(client).video("scene-1-render", request, tmp_path / "scene_1.mp4")


@pytest.mark.anyio
async def test_video_stage_keeps_typed_failures(tmp_path: Path) -> None:
  client = AsyncMock()
  client.generate_video.side_effect = MissingAssetError("video-render", "no video")
  with pytest.raises(MissingAssetError):
    await StageRunner(client).video("scene-1-render", GenerationRequest(mode=GenerationMode.VIDEO, prompt="scene"), tmp_path / "scene_1.mp4")


@pytest.mark.anyio
async def test_binary_stage_returns_response_mime_type() -> None:
  client = AsyncMock()
  client.generate.return_value = GenerationResponse(data=b"jpeg", mime_type="image/jpeg")
  image = await StageRunner(client).image("page-1-art", "draw")
  assert image.mime_type == "image/jpeg"
