"""End-to-end pipeline runs against scripted services."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from studio.ai.providers.base import GenerationMode
from studio.ai.stages import StageRunner
from studio.core.errors import InvalidJobPayloadError
from studio.jobs.context import StudioContext
from studio.jobs.coordinator import PipelineCoordinator
from studio.jobs.models import Job
from studio.pipelines.base import PipelineRun
from studio.pipelines.podcast import HOST_VOICES
from studio.pipelines.slideshow import SlideshowPipeline
from studio.schema.requests import DialoguePayload
from tests.fakes import FIXED_EPOCH_MS, PNG_BYTES, FakeMediaClient, FakeMediaTool, FakeObjectStore, InMemoryLessonMediaRepo

IDENTITY = json.dumps({"protagonist_description": "a young botanist", "location_description": "a greenhouse", "art_style": "3D animation"})


def _scenes(count: int) -> str:
  return json.dumps([{"scene": n, "action_prompt": f"Shot {n} of the botanist.", "dialogue_sfx": f"Line {n}"} for n in range(1, count + 1)])


def _slides(count: int) -> str:
  return json.dumps(
    [{"title": f"Slide {n}", "bullets": [f"Point {n}a", f"Point {n}b"], "image_prompt": f"diagram {n}", "narration": f"Narration {n}."} for n in range(count)]
  )


def _storyboard(count: int) -> str:
  return json.dumps({"thematic_era": "1920s", "style_guide": "ink wash", "visual_anchors": "red scarf", "pages": [{"page": n, "panel_desc": f"Panel {n}", "caption": f"Caption {n}"} for n in range(1, count + 1)]})


async def _run(ctx: StudioContext, kind: str, payload: dict) -> None:
  task = PipelineCoordinator(ctx).run("lesson-1", kind, payload)
  assert task is not None
  await task


@pytest.mark.anyio
async def test_slideshow_renders_one_segment_per_slide_then_reencodes(
  ctx: StudioContext, media_client: FakeMediaClient, media_tool: FakeMediaTool, repo: InMemoryLessonMediaRepo, store: FakeObjectStore
) -> None:
  media_client.texts.append(_slides(3))

  await _run(ctx, "slideshow-video", {"summary": "Cells", "thoughts": "keep it short", "title": "Cell Biology"})

  assert repo.statuses("lesson-1") == ["processing", "ready"]
  renders = [call for call in media_tool.calls if call[0] == "render_slide"]
  assert [call[1:4] for call in renders] == [("i0.png", "a0.wav", "s0.mp4"), ("i1.png", "a1.wav", "s1.mp4"), ("i2.png", "a2.wav", "s2.mp4")]
  assert renders[1][4:] == ("Slide 1", ("Point 1a", "Point 1b"), 30)
  assert media_tool.calls[-1] == ("concat_reencode", ("s0.mp4", "s1.mp4", "s2.mp4"), "final.mp4")

  narration = media_client.requests_of(GenerationMode.AUDIO)
  assert [request.prompt for request in narration] == ["Narration 0.", "Narration 1.", "Narration 2."]
  assert {request.config.voice for request in narration} == {"Kore"}

  result = repo.last_result("lesson-1")
  assert result.url == f"https://cdn.test/seeker/lesson-1/slides_{FIXED_EPOCH_MS}.mp4"
  assert [slide["title"] for slide in result.manifest] == ["Slide 0", "Slide 1", "Slide 2"]
  assert result.manifest[0]["bullets"] == ["Point 0a", "Point 0b"]
  assert store.content_types[f"lesson-1/slides_{FIXED_EPOCH_MS}.mp4"] == "video/mp4"


@pytest.mark.anyio
async def test_slideshow_missing_narration_fails_before_rendering(ctx: StudioContext, media_client: FakeMediaClient, media_tool: FakeMediaTool, repo: InMemoryLessonMediaRepo) -> None:
  media_client.texts.append(_slides(2))
  media_client.audio_bytes = None

  await _run(ctx, "slideshow-video", {"summary": "Cells", "title": "Cell Biology"})

  assert repo.statuses("lesson-1") == ["processing", "failed"]
  assert media_tool.calls == []


@pytest.mark.anyio
async def test_cinematic_renders_scenes_in_order_with_two_references(
  ctx: StudioContext, media_client: FakeMediaClient, media_tool: FakeMediaTool, repo: InMemoryLessonMediaRepo, store: FakeObjectStore
) -> None:
  media_client.texts.extend([IDENTITY, _scenes(4)])
  repo.interests["student-7"] = ["Anime", "Space"]

  await _run(ctx, "cinematic-video", {"summary": "Photosynthesis basics", "title": "Photosynthesis", "studentId": "student-7"})

  assert repo.statuses("lesson-1") == ["processing", "ready"]
  assert "Preferred style: Anime, Space" in media_client.requests_of(GenerationMode.TEXT)[0].prompt
  assert len(media_client.requests_of(GenerationMode.IMAGE)) == 1 + 4

  assert [destination.name for _, destination in media_client.video_requests] == ["scene_1.mp4", "scene_2.mp4", "scene_3.mp4", "scene_4.mp4"]
  for request, _ in media_client.video_requests:
    assert request.mode is GenerationMode.VIDEO
    assert request.config.resolution == "720p"
    assert request.config.aspect_ratio == "16:9"
    assert request.config.duration_seconds == 8
    assert [reference.data for reference in request.config.reference_images] == [PNG_BYTES, PNG_BYTES]

  assert media_tool.calls == [("concat_copy", ("scene_1.mp4", "scene_2.mp4", "scene_3.mp4", "scene_4.mp4"), "final_cinematic.mp4")]
  name = f"lesson-1/cinematic_{FIXED_EPOCH_MS}.mp4"
  assert store.objects[name] == b"clip:scene_1.mp4clip:scene_2.mp4clip:scene_3.mp4clip:scene_4.mp4"
  assert repo.last_result("lesson-1").url == f"https://cdn.test/seeker/{name}"


@pytest.mark.anyio
async def test_cinematic_without_student_uses_default_style(ctx: StudioContext, media_client: FakeMediaClient) -> None:
  media_client.texts.extend([IDENTITY, _scenes(4)])

  await _run(ctx, "cinematic-video", {"summary": "Photosynthesis basics", "title": "Photosynthesis"})

  assert "Preferred style: Cinematic Realism" in media_client.requests_of(GenerationMode.TEXT)[0].prompt


@pytest.mark.anyio
async def test_cinematic_wrong_scene_count_stops_before_any_render(ctx: StudioContext, media_client: FakeMediaClient, media_tool: FakeMediaTool, repo: InMemoryLessonMediaRepo) -> None:
  media_client.texts.extend([IDENTITY, _scenes(3)])

  await _run(ctx, "cinematic-video", {"summary": "Photosynthesis basics", "title": "Photosynthesis"})

  assert repo.statuses("lesson-1") == ["processing", "failed"]
  assert media_client.video_requests == []
  assert media_tool.calls == []


@pytest.mark.anyio
async def test_cinematic_non_json_identity_makes_no_further_calls(ctx: StudioContext, media_client: FakeMediaClient, repo: InMemoryLessonMediaRepo) -> None:
  media_client.texts.append("The protagonist is a botanist in a greenhouse.")

  await _run(ctx, "cinematic-video", {"summary": "Photosynthesis basics", "title": "Photosynthesis"})

  assert repo.statuses("lesson-1") == ["processing", "failed"]
  assert len(media_client.requests) == 1


@pytest.mark.anyio
async def test_podcast_uses_dialogue_model_and_two_voices(
  ctx: StudioContext, media_client: FakeMediaClient, media_tool: FakeMediaTool, repo: InMemoryLessonMediaRepo, store: FakeObjectStore
) -> None:
  media_client.texts.append("Alex: So what is a cell?\nSam: The smallest unit of life.")

  await _run(ctx, "dialogue-audio", {"summary": "Cells", "title": "Cell Biology"})

  (script,) = media_client.requests_of(GenerationMode.TEXT)
  assert script.model == "dialogue-model"
  (speech,) = media_client.requests_of(GenerationMode.AUDIO)
  assert speech.config.speakers == HOST_VOICES
  assert "Alex: So what is a cell?" in speech.prompt
  assert media_tool.calls == [("transcode", "pod.pcm", "pod.mp3", "mp3")]

  name = f"lesson-1/podcast_{FIXED_EPOCH_MS}.mp3"
  assert store.content_types[name] == "audio/mpeg"
  assert repo.last_result("lesson-1").url == f"https://cdn.test/seeker/{name}"


@pytest.mark.anyio
async def test_comic_publishes_jpeg_pages_in_order(ctx: StudioContext, media_client: FakeMediaClient, repo: InMemoryLessonMediaRepo, store: FakeObjectStore) -> None:
  media_client.texts.append(_storyboard(5))

  await _run(ctx, "illustrated-story", {"aiNotes": "A story about " + "mitochondria " * 300, "title": "Powerhouse"})

  assert repo.statuses("lesson-1") == ["processing", "ready"]
  names = [f"comics/lesson-1/p{n}_{FIXED_EPOCH_MS}.jpg" for n in range(1, 6)]
  assert sorted(store.objects) == sorted(names)
  assert all(store.content_types[name] == "image/jpeg" for name in names)
  assert all(store.objects[name][:2] == b"\xff\xd8" for name in names)
  assert repo.last_result("lesson-1").pages == [f"https://cdn.test/seeker/{name}" for name in names]

  storyboard_prompt = media_client.requests_of(GenerationMode.TEXT)[0].prompt
  assert storyboard_prompt.count("mitochondria") < 300


@pytest.mark.anyio
async def test_comic_with_wrong_page_count_fails(ctx: StudioContext, media_client: FakeMediaClient, repo: InMemoryLessonMediaRepo, store: FakeObjectStore) -> None:
  media_client.texts.append(_storyboard(3))

  await _run(ctx, "illustrated-story", {"ai_notes": "Notes", "title": "Powerhouse"})

  assert repo.statuses("lesson-1") == ["processing", "failed"]
  assert store.objects == {}


@pytest.mark.anyio
async def test_pipeline_rejects_a_payload_of_another_kind(ctx: StudioContext, media_client: FakeMediaClient, tmp_path: Path) -> None:
  run = PipelineRun(job=Job(job_id="lesson-1", kind="slideshow-video"), payload=DialoguePayload(summary="Cells", title="Cell Biology"), scratch=tmp_path, stages=StageRunner(media_client, "lesson-1"))

  with pytest.raises(InvalidJobPayloadError, match="expects SlideshowPayload"):
    await SlideshowPipeline(ctx).produce(run)

  assert media_client.requests == []
