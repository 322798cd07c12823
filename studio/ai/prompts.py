"""Prompt rendering for every generative stage."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from studio.schema.manifests import ComicPage, Scene, Slide, Storyboard, VisualIdentity
from studio.storage.skill_tree_repo import CourseOutline
from studio.schema.requests import CinematicPayload, DialoguePayload, SlideshowPayload, StoryPayload

_TEMPLATE_DIR = Path(__file__).with_name("templates")

DEFAULT_INTEREST = "Cinematic Realism"
# Storyboards only need the gist of the notes.
STORY_NOTES_LIMIT = 1500


@dataclass(frozen=True)
class DialogueHost:
  """A podcast host: script name, character note, and delivery note for speech."""

  name: str
  persona: str
  delivery: str


@lru_cache(maxsize=None)
def _load_prompt(name: str) -> str:
  return (_TEMPLATE_DIR / name).read_text(encoding="utf-8")


def _replace_placeholders(template: str, values: dict[str, str]) -> str:
  """Substitute {{PLACEHOLDER}} markers with concrete context."""
  rendered = template
  for key, value in values.items():
    rendered = rendered.replace(f"{{{{{key}}}}}", value)
  return rendered


def _render(name: str, values: dict[str, str]) -> str:
  return _replace_placeholders(_load_prompt(name), values).strip()


def render_visual_identity_prompt(payload: CinematicPayload, interests: Sequence[str]) -> str:
  style = ", ".join(item for item in interests if item) or DEFAULT_INTEREST
  return _render("visual_identity.md", {"TITLE": payload.title, "SUMMARY": payload.summary, "INTERESTS": style})


def render_character_grid_prompt(identity: VisualIdentity) -> str:
  return _render("character_grid.md", {"PROTAGONIST": identity.protagonist_description, "ART_STYLE": identity.art_style})


def render_scene_script_prompt(payload: CinematicPayload, identity: VisualIdentity, scene_count: int, scene_seconds: int) -> str:
  values = {
    "SUMMARY": payload.summary,
    "TITLE": payload.title,
    "PROTAGONIST": identity.protagonist_description,
    "LOCATION": identity.location_description,
    "ART_STYLE": identity.art_style,
    "SCENE_COUNT": str(scene_count),
    "SCENE_SECONDS": str(scene_seconds),
  }
  return _render("scene_script.md", values)


def render_scene_anchor_prompt(scene: Scene, identity: VisualIdentity) -> str:
  values = {"ACTION": scene.action_prompt, "ART_STYLE": identity.art_style, "LOCATION": identity.location_description, "PROTAGONIST": identity.protagonist_description}
  return _render("scene_anchor.md", values)


def render_scene_video_prompt(scene: Scene) -> str:
  return _render("scene_video.md", {"ACTION": scene.action_prompt.rstrip(". "), "DIALOGUE": scene.dialogue_sfx.rstrip(". ") or "No dialogue"})


def render_slide_manifest_prompt(payload: SlideshowPayload, slide_seconds: int, max_bullets: int) -> str:
  values = {"TITLE": payload.title, "SUMMARY": payload.summary, "THOUGHTS": payload.thoughts or "-", "SLIDE_SECONDS": str(slide_seconds), "MAX_BULLETS": str(max_bullets)}
  return _render("slide_manifest.md", values)


def render_slide_illustration_prompt(slide: Slide) -> str:
  return _render("slide_illustration.md", {"IMAGE_PROMPT": slide.image_prompt.strip()})


def render_dialogue_script_prompt(payload: DialoguePayload, hosts: Sequence[DialogueHost]) -> str:
  described = " and ".join(f"{host.name} ({host.persona})" for host in hosts)
  line_format = "\n".join(f"{host.name}: [text]" for host in hosts)
  return _render("dialogue_script.md", {"TITLE": payload.title, "SUMMARY": payload.summary, "HOSTS": described, "FORMAT": line_format})


def render_dialogue_speech_prompt(transcript: str, hosts: Sequence[DialogueHost]) -> str:
  notes = " ".join(f"{host.name} sounds {host.delivery}." for host in hosts)
  return _render("dialogue_speech.md", {"VOICE_NOTES": notes, "TRANSCRIPT": transcript.strip()})


def render_storyboard_prompt(payload: StoryPayload, page_count: int) -> str:
  return _render("storyboard.md", {"TITLE": payload.title, "NOTES": payload.ai_notes[:STORY_NOTES_LIMIT], "PAGE_COUNT": str(page_count)})


def render_comic_page_prompt(board: Storyboard, page: ComicPage) -> str:
  values = {
    "STYLE_GUIDE": board.style_guide,
    "VISUAL_ANCHORS": board.visual_anchors or "-",
    "ERA": board.thematic_era or "-",
    "PAGE": str(page.page),
    "PAGE_COUNT": str(len(board.pages)),
    "PANEL": page.panel_desc,
    "CAPTION": page.caption,
  }
  return _render("comic_page.md", values)


def render_skill_tree_prompt(outline: CourseOutline) -> str:
  lessons = json.dumps([{"id": lesson.lesson_id, "title": lesson.title} for lesson in outline.lessons], ensure_ascii=False)
  return _render("skill_tree.md", {"TITLE": outline.title, "LESSONS": lessons})
