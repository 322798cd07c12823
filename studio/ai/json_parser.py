"""Lenient JSON recovery for model text that should contain a JSON document."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_-]*)(\s*:)")


def strip_json_fences(raw: str) -> str:
  """Remove one surrounding markdown code fence, with or without a language tag."""
  match = _FENCE_RE.match(raw)
  if match:
    return match.group(1).strip()
  return raw.strip()


def extract_json_block(raw: str) -> str | None:
  """Return the first balanced object/array, skipping over string contents."""
  start: int | None = None
  depth = 0
  in_string = False
  escaped = False

  for index, char in enumerate(raw):
    if start is None:
      if char in "{[":
        start = index
        depth = 1
      continue

    if in_string:
      if escaped:
        escaped = False
      elif char == "\\":
        escaped = True
      elif char == '"':
        in_string = False
      continue

    if char == '"':
      in_string = True
    elif char in "{[":
      depth += 1
    elif char in "}]":
      depth -= 1
      if depth == 0:
        return raw[start : index + 1]

  return None


def _strip_trailing_commas(raw: str) -> str:
  return _TRAILING_COMMA_RE.sub(r"\1", raw)


def _quote_bare_keys(raw: str) -> str:
  # Only applied after strict parsing failed, so string contents are rarely touched.
  return _BARE_KEY_RE.sub(r'\1"\2"\3', raw)


_REPAIRS: tuple[Callable[[str], str], ...] = (_strip_trailing_commas, _quote_bare_keys)


def parse_json_with_fallback(raw: str) -> Any:
  """Parse strictly first, then retry on progressively repaired candidates.

  Raises ``json.JSONDecodeError`` from the last attempt when nothing parses.
  """
  text = strip_json_fences(raw)
  try:
    return json.loads(text)
  except json.JSONDecodeError as exc:
    last_error = exc

  candidate = extract_json_block(text)
  if candidate is None:
    raise last_error

  for repair in (None, *_REPAIRS):
    if repair is not None:
      candidate = repair(candidate)
    try:
      return json.loads(candidate)
    except json.JSONDecodeError as exc:
      last_error = exc

  raise last_error
