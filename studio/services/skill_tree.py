"""Lay out a course's lessons as a skill tree and persist it once per course."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from studio.ai.prompts import render_skill_tree_prompt
from studio.ai.providers.base import MediaClient
from studio.ai.stages import StageRunner
from studio.core.errors import CourseNotFoundError, InvalidJobPayloadError, StructuredOutputError
from studio.schema.manifests import SkillNode
from studio.schema.requests import SkillTreeResult
from studio.storage.skill_tree_repo import CourseOutline, SkillNodeRecord, SkillTreeRepository

logger = logging.getLogger(__name__)

STAGE_NAME = "skill-tree"


def build_node_records(outline: CourseOutline, layout: Sequence[SkillNode]) -> list[SkillNodeRecord]:
  """Keep nodes that name a lesson of the course, once each, with dependencies on known lessons only."""
  lessons = {lesson.lesson_id: lesson for lesson in outline.lessons}
  records: list[SkillNodeRecord] = []
  placed: set[str] = set()
  for node in layout:
    lesson = lessons.get(node.lesson_id)
    if lesson is None or node.lesson_id in placed:
      logger.warning("Skill tree for course %s: dropping node for %s lesson %s", outline.course_id, "unknown" if lesson is None else "repeated", node.lesson_id)
      continue
    placed.add(node.lesson_id)
    dependencies = tuple(dict.fromkeys(parent for parent in node.dependencies if parent in lessons and parent != node.lesson_id))
    records.append(SkillNodeRecord(lesson_id=lesson.lesson_id, label=lesson.title, x=node.x, y=node.y, dependencies=dependencies, status=lesson.status or "locked"))
  return records


class SkillTreeBuilder:
  """Generate a course skill tree inline; an existing tree is returned untouched."""

  def __init__(self, client: MediaClient, repo: SkillTreeRepository) -> None:
    self._client = client
    self._repo = repo
    self._locks: dict[str, asyncio.Lock] = {}

  async def generate(self, course_id: str) -> SkillTreeResult:
    # Concurrent requests for one course wait for the first instead of racing to insert.
    async with self._locks.setdefault(course_id, asyncio.Lock()):
      return await self._generate(course_id)

  async def _generate(self, course_id: str) -> SkillTreeResult:
    outline = await self._repo.get_course_outline(course_id)
    if outline is None:
      raise CourseNotFoundError(f"Course {course_id} not found")

    existing = await self._repo.find_tree(course_id)
    if existing is not None:
      logger.info("Skill tree for course %s already exists (%s)", course_id, existing)
      return SkillTreeResult(message="Tree already exists", tree_id=existing, created=False)

    if not outline.lessons:
      raise InvalidJobPayloadError(f"Course {course_id} has no lessons to arrange")

    stages = StageRunner(self._client, course_id)
    layout: list[SkillNode] = await stages.structured(STAGE_NAME, render_skill_tree_prompt(outline), list[SkillNode], min_count=1)
    records = build_node_records(outline, layout)
    if not records:
      raise StructuredOutputError(STAGE_NAME, "no node referenced a lesson of the course")

    tree_id = await self._repo.create_tree(course_id, records)
    logger.info("Skill tree generated for course %s: %d of %d lessons placed", course_id, len(records), len(outline.lessons))
    return SkillTreeResult(message="Tree Generated", tree_id=tree_id, created=True, node_count=len(records))
