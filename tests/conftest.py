"""Shared fixtures for the media studio tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from studio.config import Settings
from studio.jobs.context import StudioContext
from studio.media.scratch import AssetStager
from studio.services.publisher import ResultPublisher
from tests.fakes import FIXED_EPOCH_MS, FakeMediaClient, FakeMediaTool, FakeObjectStore, InMemoryLessonMediaRepo, InMemorySkillTreeRepo, build_settings


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
  return build_settings(tmp_path)


@pytest.fixture
def repo() -> InMemoryLessonMediaRepo:
  return InMemoryLessonMediaRepo()


@pytest.fixture
def skill_trees() -> InMemorySkillTreeRepo:
  return InMemorySkillTreeRepo()


@pytest.fixture
def store() -> FakeObjectStore:
  return FakeObjectStore()


@pytest.fixture
def media_client() -> FakeMediaClient:
  return FakeMediaClient()


@pytest.fixture
def media_tool() -> FakeMediaTool:
  return FakeMediaTool()


@pytest.fixture
def ctx(
  settings: Settings, repo: InMemoryLessonMediaRepo, skill_trees: InMemorySkillTreeRepo, store: FakeObjectStore, media_client: FakeMediaClient, media_tool: FakeMediaTool
) -> StudioContext:
  publisher = ResultPublisher(store, repo, clock=lambda: FIXED_EPOCH_MS)
  stager = AssetStager(settings.scratch_root, retain=settings.retain_scratch)
  return StudioContext(settings=settings, media_client=media_client, media_tool=media_tool, stager=stager, publisher=publisher, repo=repo, skill_trees=skill_trees)
