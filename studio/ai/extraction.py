"""Turn model text into validated structured values without raising."""

from __future__ import annotations

import json
from collections.abc import Callable, Sized
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, get_origin

from pydantic import TypeAdapter, ValidationError

from studio.ai.json_parser import parse_json_with_fallback

T = TypeVar("T")

_EXCERPT_CHARS = 200


@dataclass(frozen=True)
class Extracted(Generic[T]):
  value: T


@dataclass(frozen=True)
class ExtractionFailed:
  """Why a structured value could not be produced, plus a short excerpt of the input."""

  reason: str
  excerpt: str = ""


def _excerpt(raw: str) -> str:
  flat = " ".join(raw.split())
  return flat if len(flat) <= _EXCERPT_CHARS else f"{flat[:_EXCERPT_CHARS]}..."


def _unwrap_single_list(parsed: Any) -> Any:
  # {"slides": [...]} is accepted where a bare list is expected.
  if isinstance(parsed, dict) and len(parsed) == 1:
    (only,) = parsed.values()
    if isinstance(only, list):
      return only
  return parsed


def _expects_sequence(shape: Any) -> bool:
  return get_origin(shape) in (list, tuple)


def extract_structured(
  raw: str | None,
  shape: type[T] | Any,
  *,
  expected_count: int | None = None,
  min_count: int | None = None,
  items: Callable[[T], Sized] | None = None,
) -> Extracted[T] | ExtractionFailed:
  """Parse ``raw`` (optionally fenced) and validate it against ``shape``.

  ``items`` selects the collection that ``expected_count``/``min_count`` apply to;
  by default it is the value itself.
  """
  if raw is None or not raw.strip():
    return ExtractionFailed("empty response")

  try:
    parsed = parse_json_with_fallback(raw)
  except json.JSONDecodeError as exc:
    return ExtractionFailed(f"not JSON ({exc.msg} at char {exc.pos})", _excerpt(raw))

  if _expects_sequence(shape):
    parsed = _unwrap_single_list(parsed)

  try:
    value = TypeAdapter(shape).validate_python(parsed)
  except ValidationError as exc:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return ExtractionFailed(f"wrong shape at {location}: {first['msg']} ({exc.error_count()} errors)", _excerpt(raw))

  if expected_count is not None or min_count is not None:
    collection = items(value) if items is not None else value
    count = len(collection)
    if expected_count is not None and count != expected_count:
      return ExtractionFailed(f"expected {expected_count} entries, got {count}", _excerpt(raw))
    if min_count is not None and count < min_count:
      return ExtractionFailed(f"expected at least {min_count} entries, got {count}", _excerpt(raw))

  return Extracted(value)
