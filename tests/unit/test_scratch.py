"""Unit tests for per-job scratch directories."""

from __future__ import annotations

from pathlib import Path

import pytest

from studio.jobs.models import Job
from studio.media.scratch import AssetStager, scratch_name


def test_scratch_names_are_prefixed_by_kind_and_path_safe() -> None:
  assert scratch_name(Job(job_id="lesson-1", kind="cinematic-video")).startswith("veo_lesson-1_")
  assert scratch_name(Job(job_id="lesson-1", kind="slideshow-video")).startswith("slides_lesson-1_")
  assert scratch_name(Job(job_id="../../etc", kind="dialogue-audio")).startswith("pod_etc_")
  assert scratch_name(Job(job_id="..", kind="illustrated-story")).startswith("comic_job_")
  assert "/" not in scratch_name(Job(job_id="../../etc", kind="dialogue-audio"))


def test_scratch_names_are_stable_for_one_identity() -> None:
  job = Job(job_id="lesson-1", kind="slideshow-video")
  assert scratch_name(job) == scratch_name(Job(job_id="lesson-1", kind="slideshow-video"))


@pytest.mark.parametrize(
  "first, second",
  [("lesson/1", "lesson_1"), ("../../etc", "etc"), ("..", "job"), (".", "..")],
)
def test_ids_that_slug_alike_get_distinct_names(first: str, second: str) -> None:
  assert scratch_name(Job(job_id=first, kind="slideshow-video")) != scratch_name(Job(job_id=second, kind="slideshow-video"))


@pytest.mark.anyio
async def test_acquire_keeps_a_running_job_with_a_similar_id_intact(tmp_path: Path) -> None:
  stager = AssetStager(tmp_path)
  first = await stager.acquire(Job(job_id="lesson/1", kind="slideshow-video"))
  (first / "s0.mp4").write_bytes(b"segment")

  second = await stager.acquire(Job(job_id="lesson_1", kind="slideshow-video"))

  assert second != first
  assert (first / "s0.mp4").read_bytes() == b"segment"


@pytest.mark.anyio
async def test_acquire_clears_leftovers_from_a_failed_run(tmp_path: Path) -> None:
  stager = AssetStager(tmp_path)
  job = Job(job_id="lesson-1", kind="illustrated-story")
  leftover = tmp_path / scratch_name(job)
  leftover.mkdir()
  (leftover / "p1.jpg").write_bytes(b"stale")

  path = await stager.acquire(job)

  assert path == leftover
  assert list(path.iterdir()) == []


@pytest.mark.anyio
async def test_release_removes_the_tree(tmp_path: Path) -> None:
  stager = AssetStager(tmp_path / "scratch")
  path = await stager.acquire(Job(job_id="lesson-1", kind="slideshow-video"))
  (path / "nested").mkdir()
  (path / "nested" / "s0.mp4").write_bytes(b"segment")

  assert await stager.release(path) is True
  assert not path.exists()


@pytest.mark.anyio
async def test_release_keeps_the_tree_when_retaining(tmp_path: Path) -> None:
  stager = AssetStager(tmp_path, retain=True)
  path = await stager.acquire(Job(job_id="lesson-1", kind="dialogue-audio"))

  assert await stager.release(path) is False
  assert path.exists()
