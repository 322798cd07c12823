"""Minimal .env support so local runs pick up studio credentials."""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_OVERRIDE = "STUDIO_ENV_FILE"


def default_env_path() -> Path:
  """Return the .env path, honouring STUDIO_ENV_FILE when set."""

  override = os.getenv(ENV_FILE_OVERRIDE)
  if override:
    return Path(override).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def _parse_line(raw_line: str) -> tuple[str, str] | None:
  """Split one dotenv line into a key/value pair, or None for noise."""
  line = raw_line.strip()
  if not line or line.startswith("#"):
    return None
  if line.startswith("export "):
    line = line[len("export ") :].lstrip()
  key, sep, value = line.partition("=")
  key = key.strip()
  if not sep or not key:
    return None
  value = value.strip()
  if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
    value = value[1:-1]
  return key, value


def load_env_file(path: Path, *, override: bool = False) -> list[str]:
  """Load key=value pairs into os.environ and return the keys that were applied."""

  if not path.is_file():
    return []

  applied: list[str] = []
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = _parse_line(raw_line)
    if parsed is None:
      continue
    key, value = parsed
    # Real environment wins over the file unless explicitly overridden.
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    applied.append(key)
  return applied
