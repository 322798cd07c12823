"""Render real media with the installed ffmpeg/ffprobe binaries."""

from __future__ import annotations

import asyncio
import json
import shutil
from pathlib import Path

import pytest

from studio.core.errors import MediaToolError
from studio.media.ffmpeg import FFmpegTool
from tests.fakes import PNG_BYTES

pytestmark = [
  pytest.mark.integration,
  pytest.mark.skipif(shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None, reason="ffmpeg/ffprobe not installed"),
]

# One second of 24 kHz mono s16le silence.
ONE_SECOND_PCM = b"\x00\x00" * 24000


@pytest.fixture
async def tool() -> FFmpegTool:
  tool = FFmpegTool()
  probe = await tool.probe()
  if not probe.has_drawtext:
    pytest.skip("ffmpeg build lacks the drawtext filter")
  return tool


async def _audio_stream(path: Path) -> dict:
  process = await asyncio.create_subprocess_exec(
    "ffprobe", "-v", "error", "-select_streams", "a:0", "-show_entries", "stream=channels,sample_rate", "-of", "json", str(path), stdout=asyncio.subprocess.PIPE
  )
  stdout, _ = await process.communicate()
  (stream,) = json.loads(stdout)["streams"]
  return stream


@pytest.fixture
def pcm(tmp_path: Path) -> Path:
  path = tmp_path / "a0.pcm"
  path.write_bytes(ONE_SECOND_PCM)
  return path


@pytest.mark.anyio
async def test_pcm_wraps_into_wav_and_mp3(tool: FFmpegTool, pcm: Path, tmp_path: Path) -> None:
  wav = await tool.transcode_pcm(pcm, tmp_path / "a0.wav", "wav")
  mp3 = await tool.transcode_pcm(pcm, tmp_path / "pod.mp3", "mp3")

  assert wav.read_bytes()[:4] == b"RIFF"
  assert await tool.probe_duration(wav) == pytest.approx(1.0, abs=0.05)
  assert await tool.probe_duration(mp3) == pytest.approx(1.0, abs=0.15)
  for audio in (wav, mp3):
    stream = await _audio_stream(audio)
    assert stream["channels"] == 1
    assert int(stream["sample_rate"]) == 24000


@pytest.mark.anyio
async def test_slide_with_hostile_copy_renders(tool: FFmpegTool, pcm: Path, tmp_path: Path) -> None:
  image = tmp_path / "i0.png"
  image.write_bytes(PNG_BYTES)
  wav = await tool.transcode_pcm(pcm, tmp_path / "a0.wav", "wav")

  segment = await tool.render_slide(
    image,
    wav,
    tmp_path / "s0.mp4",
    title="Newton's 2nd law: F=ma [really]; yes, really",
    bullets=["a:b", "'", "c,d;e", "100% \\ done"],
    max_seconds=30,
  )

  assert segment.stat().st_size > 0
  assert await tool.probe_duration(segment) == pytest.approx(1.0, abs=0.3)


@pytest.mark.anyio
async def test_long_narration_is_cut_at_the_slide_limit(tool: FFmpegTool, tmp_path: Path) -> None:
  image = tmp_path / "i0.png"
  image.write_bytes(PNG_BYTES)
  long_pcm = tmp_path / "a0.pcm"
  long_pcm.write_bytes(ONE_SECOND_PCM * 5)
  wav = await tool.transcode_pcm(long_pcm, tmp_path / "a0.wav", "wav")

  segment = await tool.render_slide(image, wav, tmp_path / "s0.mp4", title="Long", bullets=["Point"], max_seconds=2)

  assert await tool.probe_duration(wav) == pytest.approx(5.0, abs=0.05)
  assert await tool.probe_duration(segment) == pytest.approx(2.0, abs=0.3)

@pytest.mark.anyio
async def test_segments_concatenate_in_both_modes(tool: FFmpegTool, pcm: Path, tmp_path: Path) -> None:
  image = tmp_path / "i0.png"
  image.write_bytes(PNG_BYTES)
  wav = await tool.transcode_pcm(pcm, tmp_path / "a0.wav", "wav")
  segments = [await tool.render_slide(image, wav, tmp_path / f"s{index}.mp4", title=f"Slide {index}", bullets=["Point"], max_seconds=30) for index in range(3)]
  expected = sum([await tool.probe_duration(segment) for segment in segments])

  reencoded = await tool.concat_reencode(segments, tmp_path / "final.mp4")
  copied = await tool.concat_copy(segments, tmp_path / "final_cinematic.mp4")

  assert await tool.probe_duration(reencoded) == pytest.approx(expected, abs=0.5)
  assert await tool.probe_duration(copied) == pytest.approx(expected, abs=0.5)
  assert (tmp_path / "clips.txt").read_text(encoding="utf-8").splitlines() == ["file 's0.mp4'", "file 's1.mp4'", "file 's2.mp4'"]


@pytest.mark.anyio
async def test_unreadable_input_fails_without_leaving_output(tool: FFmpegTool, tmp_path: Path) -> None:
  broken = tmp_path / "broken.mp4"
  broken.write_bytes(b"not a video")
  output = tmp_path / "final.mp4"

  with pytest.raises(MediaToolError) as excinfo:
    await tool.concat_reencode([broken], output)

  assert excinfo.value.returncode != 0
  assert not output.exists()
