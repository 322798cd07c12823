from __future__ import annotations

import uuid

from sqlalchemy import ARRAY, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from studio.core.database import Base


class Lesson(Base):
  """Lesson row carrying the status and result columns for each media kind."""

  __tablename__ = "lessons"

  lesson_id: Mapped[str] = mapped_column(String, primary_key=True)
  title: Mapped[str | None] = mapped_column(String, nullable=True)

  video_status: Mapped[str | None] = mapped_column(String, nullable=True)
  video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
  video_manifest: Mapped[list | None] = mapped_column(JSONB, nullable=True)

  animated_video_status: Mapped[str | None] = mapped_column(String, nullable=True)
  animated_video_url: Mapped[str | None] = mapped_column(Text, nullable=True)

  podcast_status: Mapped[str | None] = mapped_column(String, nullable=True)
  podcast_url: Mapped[str | None] = mapped_column(Text, nullable=True)

  comic_status: Mapped[str | None] = mapped_column(String, nullable=True)
  comic_pages: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)


class Student(Base):
  """Learner profile; only interests are read by the studio."""

  __tablename__ = "students"

  student_id: Mapped[str] = mapped_column(String, primary_key=True)
  interest: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)


class Course(Base):
  __tablename__ = "courses"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  title: Mapped[str] = mapped_column(String)


class CourseModule(Base):
  __tablename__ = "modules"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"))
  title: Mapped[str] = mapped_column(String)
  order_index: Mapped[int] = mapped_column(Integer, default=0)


class LessonPlan(Base):
  """A planned lesson inside a course module; its status seeds the skill node."""

  __tablename__ = "lesson_plans"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  module_id: Mapped[str] = mapped_column(ForeignKey("modules.id"))
  title: Mapped[str] = mapped_column(String)
  order_index: Mapped[int] = mapped_column(Integer, default=0)
  status: Mapped[str | None] = mapped_column(String, nullable=True)


class SkillTree(Base):
  __tablename__ = "skill_trees"

  id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
  course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), unique=True)


class SkillTreeNode(Base):
  """One lesson placed on the course map, as canvas percentages."""

  __tablename__ = "skill_nodes"

  id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
  tree_id: Mapped[str] = mapped_column(ForeignKey("skill_trees.id"))
  lesson_plan_id: Mapped[str] = mapped_column(ForeignKey("lesson_plans.id"))
  label: Mapped[str] = mapped_column(String)
  x_position: Mapped[float] = mapped_column(Float)
  y_position: Mapped[float] = mapped_column(Float)
  dependencies: Mapped[list[str]] = mapped_column(ARRAY(Text), default=list)
  status: Mapped[str] = mapped_column(String, default="locked")
