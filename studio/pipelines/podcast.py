"""Two-host dialogue audio: script, multi-speaker speech, MP3 transcode."""

from __future__ import annotations

import logging
from typing import Final

from studio.ai.prompts import DialogueHost, render_dialogue_script_prompt, render_dialogue_speech_prompt
from studio.ai.providers.base import SpeakerVoice
from studio.jobs.context import StudioContext
from studio.jobs.models import JobKind, MediaResult
from studio.pipelines.base import PipelineRun, payload_of, write_asset
from studio.schema.requests import DialoguePayload

logger = logging.getLogger(__name__)

HOSTS: Final[tuple[DialogueHost, ...]] = (
  DialogueHost(name="Alex", persona="enthusiastic, curious", delivery="youthful"),
  DialogueHost(name="Sam", persona="expert, calm", delivery="mature and authoritative"),
)
HOST_VOICES: Final[tuple[SpeakerVoice, ...]] = (SpeakerVoice(speaker="Alex", voice="Puck"), SpeakerVoice(speaker="Sam", voice="Charon"))


class PodcastPipeline:
  kind: JobKind = "dialogue-audio"

  def __init__(self, ctx: StudioContext) -> None:
    self._ctx = ctx

  async def produce(self, run: PipelineRun[DialoguePayload]) -> MediaResult:
    payload = payload_of(run, DialoguePayload)
    job_id = run.job.job_id

    transcript = await run.stages.text("dialogue-script", render_dialogue_script_prompt(payload, HOSTS), model=self._ctx.settings.models.dialogue_script)
    if not any(line.lstrip().startswith(f"{host.name}:") for line in transcript.splitlines() for host in HOSTS):
      logger.warning("[%s] Dialogue script has no recognizable speaker lines", job_id)

    pcm = await run.stages.speech("dialogue-speech", render_dialogue_speech_prompt(transcript, HOSTS), speakers=HOST_VOICES)
    pcm_path = await write_asset(run.scratch / "pod.pcm", pcm)
    mp3_path = await self._ctx.media_tool.transcode_pcm(pcm_path, run.scratch / "pod.mp3", "mp3")

    url = await self._ctx.publisher.publish(job_id, mp3_path, "podcast")
    return MediaResult(url=url)
