"""Storage interface for course outlines and their skill-tree layouts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class OutlineLesson:
  lesson_id: str
  title: str
  module: str
  status: str | None = None


@dataclass(frozen=True)
class CourseOutline:
  """A course title plus its lessons in module order, then lesson order."""

  course_id: str
  title: str
  lessons: tuple[OutlineLesson, ...] = ()


@dataclass(frozen=True)
class SkillNodeRecord:
  lesson_id: str
  label: str
  x: float
  y: float
  dependencies: tuple[str, ...] = field(default_factory=tuple)
  status: str = "locked"


class SkillTreeRepository(Protocol):
  async def get_course_outline(self, course_id: str) -> CourseOutline | None:
    """Return the course with its ordered lessons, or None when it does not exist."""

  async def find_tree(self, course_id: str) -> str | None:
    """Return the id of the course's existing tree, if any."""

  async def create_tree(self, course_id: str, nodes: Sequence[SkillNodeRecord]) -> str:
    """Insert a tree and all of its nodes in one transaction and return the tree id."""
