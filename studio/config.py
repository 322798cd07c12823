"""Studio configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from studio.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class ModelSettings:
  """Model names used per generation mode."""

  text: str
  dialogue_script: str
  image: str
  speech: str
  video: str


@dataclass(frozen=True)
class Settings:
  """Typed settings for the media studio."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_max_bytes: int
  log_backup_count: int
  scratch_root: Path
  retain_scratch: bool
  media_bucket: str
  public_base_url: str | None
  gcs_storage_host: str | None
  gcp_project_id: str | None
  pg_dsn: str | None
  pg_connect_timeout: int
  gemini_api_key: str | None
  gemini_api_version: str
  models: ModelSettings
  poll_interval_seconds: float
  operation_timeout_seconds: float
  slide_max_seconds: int
  cinematic_scene_count: int
  comic_page_count: int
  ffmpeg_path: str | None
  ffprobe_path: str | None


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _non_negative_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value < 0:
    raise ValueError(f"{name} must be zero or a positive number.")
  return value


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  # The trigger surface is internal by default; an empty list disables CORS.
  if not raw:
    return ()

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
  if "*" in origins:
    raise ValueError("STUDIO_ALLOWED_ORIGINS must not include wildcard origins.")
  return tuple(origins)


def _database_dsn() -> str | None:
  return _optional_str(os.getenv("STUDIO_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("STUDIO_ENV", "development").lower()
  debug = _parse_bool(os.getenv("STUDIO_DEBUG"))

  log_max_bytes = _positive_int("STUDIO_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("STUDIO_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("STUDIO_LOG_BACKUP_COUNT must be zero or a positive integer.")

  scratch_root = Path(os.getenv("STUDIO_SCRATCH_ROOT", "./temp")).expanduser().resolve()

  # Polling cadence and the upper bound for long-running video renders; 0 disables the bound.
  poll_interval_seconds = _non_negative_float("STUDIO_POLL_INTERVAL_SECONDS", "10")
  operation_timeout_seconds = _non_negative_float("STUDIO_OPERATION_TIMEOUT_SECONDS", "900")

  models = ModelSettings(
    text=os.getenv("STUDIO_TEXT_MODEL", "gemini-3-pro-preview"),
    dialogue_script=os.getenv("STUDIO_DIALOGUE_SCRIPT_MODEL", "gemini-2.0-flash"),
    image=os.getenv("STUDIO_IMAGE_MODEL", "gemini-3-pro-image-preview"),
    speech=os.getenv("STUDIO_SPEECH_MODEL", "gemini-2.5-flash-preview-tts"),
    video=os.getenv("STUDIO_VIDEO_MODEL", "veo-3.1-generate-preview"),
  )

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("STUDIO_ALLOWED_ORIGINS")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    scratch_root=scratch_root,
    retain_scratch=_parse_bool(os.getenv("STUDIO_RETAIN_SCRATCH")),
    media_bucket=os.getenv("STUDIO_MEDIA_BUCKET", "seeker"),
    public_base_url=_optional_str(os.getenv("STUDIO_PUBLIC_BASE_URL")),
    gcs_storage_host=_optional_str(os.getenv("GCS_STORAGE_HOST")),
    gcp_project_id=_optional_str(os.getenv("GCP_PROJECT_ID")),
    pg_dsn=_database_dsn(),
    pg_connect_timeout=_positive_int("STUDIO_PG_CONNECT_TIMEOUT", "5"),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_api_version=os.getenv("STUDIO_GEMINI_API_VERSION", "v1alpha"),
    models=models,
    poll_interval_seconds=poll_interval_seconds,
    operation_timeout_seconds=operation_timeout_seconds,
    slide_max_seconds=_positive_int("STUDIO_SLIDE_MAX_SECONDS", "30"),
    cinematic_scene_count=_positive_int("STUDIO_CINEMATIC_SCENE_COUNT", "4"),
    comic_page_count=_positive_int("STUDIO_COMIC_PAGE_COUNT", "5"),
    ffmpeg_path=_optional_str(os.getenv("STUDIO_FFMPEG_PATH")),
    ffprobe_path=_optional_str(os.getenv("STUDIO_FFPROBE_PATH")),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring the rest of the runtime configuration."""
  debug = _parse_bool(os.getenv("STUDIO_DEBUG"))
  return DatabaseSettings(debug=debug, pg_dsn=_database_dsn(), pg_connect_timeout=_positive_int("STUDIO_PG_CONNECT_TIMEOUT", "5"))
