"""Postgres-backed skill-tree repository using SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studio.core.database import get_session_factory
from studio.schema.lessons import Course, CourseModule, LessonPlan, SkillTree, SkillTreeNode
from studio.storage.skill_tree_repo import CourseOutline, OutlineLesson, SkillNodeRecord, SkillTreeRepository

logger = logging.getLogger(__name__)


class PostgresSkillTreeRepository(SkillTreeRepository):
  """Read course outlines and persist skill trees to Postgres."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or get_session_factory()
    if self._session_factory is None:
      raise RuntimeError("Database not initialized")

  async def get_course_outline(self, course_id: str) -> CourseOutline | None:
    async with self._session_factory() as session:
      course = await session.get(Course, course_id)
      if course is None:
        return None
      stmt = (
        select(LessonPlan.id, LessonPlan.title, LessonPlan.status, CourseModule.title)
        .join(CourseModule, CourseModule.id == LessonPlan.module_id)
        .where(CourseModule.course_id == course_id)
        .order_by(CourseModule.order_index, LessonPlan.order_index)
      )
      rows = (await session.execute(stmt)).all()
    lessons = tuple(OutlineLesson(lesson_id=lesson_id, title=title, module=module, status=status) for lesson_id, title, status, module in rows)
    return CourseOutline(course_id=course.id, title=course.title, lessons=lessons)

  async def find_tree(self, course_id: str) -> str | None:
    async with self._session_factory() as session:
      result = await session.execute(select(SkillTree.id).where(SkillTree.course_id == course_id))
      return result.scalar_one_or_none()

  async def create_tree(self, course_id: str, nodes: Sequence[SkillNodeRecord]) -> str:
    async with self._session_factory() as session:
      tree = SkillTree(course_id=course_id)
      session.add(tree)
      # Flush to obtain the tree id before inserting nodes.
      await session.flush()
      session.add_all(
        [
          SkillTreeNode(
            tree_id=tree.id,
            lesson_plan_id=node.lesson_id,
            label=node.label,
            x_position=node.x,
            y_position=node.y,
            dependencies=list(node.dependencies),
            status=node.status,
          )
          for node in nodes
        ]
      )
      await session.commit()
      tree_id = tree.id
    logger.info("Skill tree %s stored for course %s with %d nodes", tree_id, course_id, len(nodes))
    return tree_id
