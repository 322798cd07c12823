"""ffmpeg/ffprobe adapter: command construction and execution."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from starlette.concurrency import run_in_threadpool

from studio.config import Settings
from studio.core.errors import MediaToolError, MediaToolUnavailableError
from studio.media.filter_graph import DrawnText, FilterGraph, FilterNode, sanitize_text
from studio.media.fonts import FontChoice, system_font

logger = logging.getLogger(__name__)

AudioContainer = Literal["wav", "mp3"]

_COMMON_FLAGS = ("-hide_banner", "-loglevel", "error", "-y")
_LOGGED_COMMAND_CHARS = 200


@dataclass(frozen=True)
class PcmFormat:
  """Raw PCM has no header, so every parameter is passed to ffmpeg explicitly."""

  sample_format: str = "s16le"
  sample_rate: int = 24000
  channels: int = 1


# Gemini speech models return headerless 16-bit little-endian mono at 24 kHz.
GEMINI_PCM = PcmFormat()


@dataclass(frozen=True)
class SlideLayout:
  """Fixed geometry for a rendered slide."""

  canvas_size: str = "1920x1080"
  background: str = "0x062012"
  image_side: int = 960
  image_x: int = 900
  image_y: int = 60
  title_x: int = 100
  title_y: int = 150
  title_size: int = 65
  title_color: str = "0x22c55e"
  bullet_x: int = 100
  bullet_y: int = 350
  bullet_step: int = 80
  bullet_size: int = 36
  bullet_color: str = "white"
  bullet_glyph: str = "• "
  max_bullets: int = 8


@dataclass(frozen=True)
class ToolProbe:
  """Result of the startup availability check."""

  ffmpeg_path: str | None
  ffprobe_path: str | None
  has_drawtext: bool

  @property
  def available(self) -> bool:
    return self.ffmpeg_path is not None


def build_slide_filter_graph(title: str, bullets: Sequence[str], font: FontChoice, layout: SlideLayout = SlideLayout()) -> FilterGraph:
  """Square-crop the image, place it on the canvas, and draw title plus bullets."""
  side = layout.image_side
  text_nodes: list[FilterNode] = []
  if sanitize_text(title):
    text_nodes.append(FilterNode.of("drawtext", **font.drawtext_options(), text=DrawnText(title), x=layout.title_x, y=layout.title_y, fontsize=layout.title_size, fontcolor=layout.title_color))

  drawable = [bullet for bullet in bullets if sanitize_text(bullet)]
  if len(drawable) > layout.max_bullets:
    logger.warning("Slide has %d bullets; drawing the first %d", len(drawable), layout.max_bullets)
    drawable = drawable[: layout.max_bullets]
  for index, bullet in enumerate(drawable):
    y = layout.bullet_y + index * layout.bullet_step
    text_nodes.append(FilterNode.of("drawtext", **font.drawtext_options(), text=DrawnText(bullet, prefix=layout.bullet_glyph), x=layout.bullet_x, y=y, fontsize=layout.bullet_size, fontcolor=layout.bullet_color))

  graph = FilterGraph()
  graph.chain([FilterNode.of("scale", side, side, force_original_aspect_ratio="increase"), FilterNode.of("crop", side, side)], inputs=["0:v"], outputs=["scaled"])
  graph.chain([FilterNode.of("color", s=layout.canvas_size, c=layout.background)], outputs=["bg"])
  graph.chain([FilterNode.of("overlay", layout.image_x, layout.image_y), *text_nodes], inputs=["bg", "scaled"], outputs=["outv"])
  return graph


def build_concat_filter_graph(segment_count: int) -> FilterGraph:
  """Concatenate N inputs that each carry one video and one audio stream."""
  if segment_count < 1:
    raise ValueError("Concatenation needs at least one segment.")
  inputs = [label for index in range(segment_count) for label in (f"{index}:v", f"{index}:a")]
  return FilterGraph().chain([FilterNode.of("concat", n=segment_count, v=1, a=1)], inputs=inputs, outputs=["outv", "outa"])


def build_concat_manifest(segments: Sequence[Path], manifest_dir: Path) -> str:
  """Render a concat-demuxer list, one ``file '...'`` line per segment in order."""
  lines = []
  for segment in segments:
    name = segment.name if segment.parent == manifest_dir else str(segment.resolve())
    escaped = name.replace("'", "'\\''")
    lines.append(f"file '{escaped}'")
  return "\n".join(lines) + "\n"


def build_transcode_command(binary: str, source: Path, output: Path, container: AudioContainer, pcm: PcmFormat = GEMINI_PCM) -> list[str]:
  command = [binary, *_COMMON_FLAGS, "-f", pcm.sample_format, "-ar", str(pcm.sample_rate), "-ac", str(pcm.channels), "-i", str(source)]
  if container == "wav":
    command += ["-c:a", "pcm_s16le", "-ar", str(pcm.sample_rate), "-ac", str(pcm.channels), "-f", "wav"]
  else:
    command += ["-c:a", "libmp3lame", "-b:a", "128k", "-f", "mp3"]
  command.append(str(output))
  return command


def build_slide_command(binary: str, image: Path, audio: Path, output: Path, graph: FilterGraph, max_seconds: int) -> list[str]:
  # Audio drives the duration (-shortest); -t caps overly long narration.
  return [
    binary,
    *_COMMON_FLAGS,
    "-loop",
    "1",
    "-i",
    str(image),
    "-i",
    str(audio),
    "-filter_complex",
    graph.serialize(),
    "-map",
    "[outv]",
    "-map",
    "1:a",
    "-t",
    str(max_seconds),
    "-pix_fmt",
    "yuv420p",
    "-c:v",
    "libx264",
    "-c:a",
    "aac",
    "-b:a",
    "128k",
    "-preset",
    "ultrafast",
    "-shortest",
    str(output),
  ]


def build_concat_copy_command(binary: str, manifest: Path, output: Path) -> list[str]:
  return [binary, *_COMMON_FLAGS, "-f", "concat", "-safe", "0", "-i", str(manifest), "-c", "copy", str(output)]


def build_concat_reencode_command(binary: str, segments: Sequence[Path], output: Path) -> list[str]:
  command = [binary, *_COMMON_FLAGS]
  for segment in segments:
    command += ["-i", str(segment)]
  graph = build_concat_filter_graph(len(segments))
  command += ["-filter_complex", graph.serialize(), "-map", "[outv]", "-map", "[outa]", "-pix_fmt", "yuv420p", "-c:v", "libx264", "-preset", "ultrafast", "-c:a", "aac", "-b:a", "128k", str(output)]
  return command


def build_duration_probe_command(binary: str, path: Path) -> list[str]:
  return [binary, "-v", "error", "-show_entries", "format=duration", "-of", "default=noprint_wrappers=1:nokey=1", str(path)]


class FFmpegTool:
  """Run ffmpeg/ffprobe as subprocesses and report structured failures."""

  def __init__(self, ffmpeg_path: str | None = None, ffprobe_path: str | None = None, *, font: FontChoice | None = None, layout: SlideLayout | None = None) -> None:
    self._ffmpeg = ffmpeg_path or shutil.which("ffmpeg")
    self._ffprobe = ffprobe_path or shutil.which("ffprobe")
    self._font = font
    self._layout = layout or SlideLayout()

  @classmethod
  def from_settings(cls, settings: Settings) -> FFmpegTool:
    return cls(settings.ffmpeg_path, settings.ffprobe_path)

  @property
  def font(self) -> FontChoice:
    if self._font is None:
      self._font = system_font()
    return self._font

  def _require(self, binary: str | None, name: str) -> str:
    if binary is None:
      raise MediaToolUnavailableError(f"{name} is not installed or not on PATH.")
    return binary

  async def probe(self) -> ToolProbe:
    """Locate the binaries and confirm drawtext support."""
    if self._ffmpeg is None:
      return ToolProbe(ffmpeg_path=None, ffprobe_path=self._ffprobe, has_drawtext=False)
    try:
      filters = await self._execute([self._ffmpeg, "-hide_banner", "-filters"])
    except (MediaToolError, MediaToolUnavailableError):
      logger.warning("Unable to list ffmpeg filters from %s", self._ffmpeg, exc_info=True)
      return ToolProbe(ffmpeg_path=self._ffmpeg, ffprobe_path=self._ffprobe, has_drawtext=False)
    return ToolProbe(ffmpeg_path=self._ffmpeg, ffprobe_path=self._ffprobe, has_drawtext=" drawtext " in filters)

  async def _execute(self, command: list[str], output: Path | None = None) -> str:
    """Run one command; non-zero exit or missing output raises MediaToolError."""
    rendered = " ".join(command)
    logger.debug("Media tool command: %s", rendered[:_LOGGED_COMMAND_CHARS])
    try:
      process = await asyncio.create_subprocess_exec(*command, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE)
    except FileNotFoundError as exc:
      raise MediaToolUnavailableError(f"{command[0]} could not be executed: {exc}") from exc
    stdout, stderr = await process.communicate()
    error_text = stderr.decode(errors="ignore")

    if process.returncode != 0:
      logger.error("Media tool failed rc=%s command=%s stderr:\n%s", process.returncode, rendered[:_LOGGED_COMMAND_CHARS], error_text.strip())
      if output is not None:
        output.unlink(missing_ok=True)
      raise MediaToolError(command, process.returncode, error_text)

    if output is not None and (not output.exists() or output.stat().st_size == 0):
      output.unlink(missing_ok=True)
      raise MediaToolError(command, process.returncode, error_text or f"no output written to {output}")
    return stdout.decode(errors="ignore")

  async def transcode_pcm(self, source: Path, output: Path, container: AudioContainer, pcm: PcmFormat = GEMINI_PCM) -> Path:
    """Wrap raw PCM into a playable WAV or MP3 file."""
    binary = self._require(self._ffmpeg, "ffmpeg")
    output.unlink(missing_ok=True)
    await self._execute(build_transcode_command(binary, source, output, container, pcm), output)
    return output

  async def render_slide(self, image: Path, audio: Path, output: Path, *, title: str, bullets: Sequence[str], max_seconds: int) -> Path:
    """Composite one still and its narration into a video segment."""
    binary = self._require(self._ffmpeg, "ffmpeg")
    graph = build_slide_filter_graph(title, bullets, self.font, self._layout)
    await self._execute(build_slide_command(binary, image, audio, output, graph, max_seconds), output)
    return output

  async def concat_copy(self, segments: Sequence[Path], output: Path, manifest: Path | None = None) -> Path:
    """Join uniform segments without re-encoding, via a concat list file."""
    if not segments:
      raise ValueError("Nothing to concatenate.")
    binary = self._require(self._ffmpeg, "ffmpeg")
    manifest_path = manifest or output.parent / "clips.txt"
    content = build_concat_manifest(segments, manifest_path.parent)
    await run_in_threadpool(manifest_path.write_text, content, encoding="utf-8")
    await self._execute(build_concat_copy_command(binary, manifest_path, output), output)
    return output

  async def concat_reencode(self, segments: Sequence[Path], output: Path) -> Path:
    """Join segments through the concat filter, re-encoding video and audio."""
    if not segments:
      raise ValueError("Nothing to concatenate.")
    binary = self._require(self._ffmpeg, "ffmpeg")
    await self._execute(build_concat_reencode_command(binary, segments, output), output)
    return output

  async def probe_duration(self, path: Path) -> float:
    """Return the container duration in seconds."""
    binary = self._require(self._ffprobe, "ffprobe")
    raw = await self._execute(build_duration_probe_command(binary, path))
    try:
      return float(raw.strip())
    except ValueError as exc:
      raise MediaToolError(build_duration_probe_command(binary, path), 0, f"unparseable duration {raw!r}") from exc
