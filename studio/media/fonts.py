"""Font resolution for drawn slide text."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from studio.media.filter_graph import OptionValue

logger = logging.getLogger(__name__)

FONT_CANDIDATES: tuple[str, ...] = (
  "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
  "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
  "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
)
DEFAULT_FONT_FACE = "Arial"


@dataclass(frozen=True)
class FontChoice:
  """Either a concrete font file or a named face resolved by fontconfig."""

  path: str | None = None
  face: str | None = None

  def drawtext_options(self) -> dict[str, OptionValue]:
    if self.path:
      return {"fontfile": self.path}
    return {"font": self.face or DEFAULT_FONT_FACE}


def resolve_font(candidates: Sequence[str] = FONT_CANDIDATES) -> FontChoice:
  """Return the first existing candidate path, else the default face."""
  for candidate in candidates:
    if Path(candidate).is_file():
      return FontChoice(path=candidate)
  return FontChoice(face=DEFAULT_FONT_FACE)


@lru_cache(maxsize=1)
def system_font() -> FontChoice:
  """Resolve the system font once per process."""
  choice = resolve_font()
  if choice.path:
    logger.info("Using font %s for slide text", choice.path)
  else:
    logger.warning("No system font found, falling back to face %s", DEFAULT_FONT_FACE)
  return choice
