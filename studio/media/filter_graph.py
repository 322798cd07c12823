"""Deterministic builder for ffmpeg filter graphs.

Callers describe *what* to render as an ordered list of chains made of
filter nodes with typed options. Serialization owns *how* values are escaped
for the filter-graph grammar, so no caller ever concatenates raw strings.

Two kinds of option values exist:

* plain values (numbers, colours, sizes, font paths) are escaped for both
  parsing levels ffmpeg applies: the filter option level (``\\ ' :``) and the
  graph level (``\\ ' [ ] , ;``);
* ``DrawnText`` values carry user-supplied copy. They are reduced to a safe
  alphanumeric/space alphabet and emitted single-quoted, because drawtext
  content from a language model routinely contains quotes, colons and brackets.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

_UNSAFE_TEXT_RE = re.compile(r"[^A-Za-z0-9 ]")
_LABEL_RE = re.compile(r"^[A-Za-z0-9_:.]+$")
_FILTER_NAME_RE = re.compile(r"^[a-z0-9_]+$")

_LEVEL1_SPECIALS = ("\\", "'", ":")
_LEVEL2_SPECIALS = ("\\", "'", "[", "]", ",", ";")


def sanitize_text(text: str) -> str:
  """Replace every character outside [A-Za-z0-9 ] with a space."""
  return _UNSAFE_TEXT_RE.sub(" ", text).strip()


def _escape(value: str, specials: tuple[str, ...]) -> str:
  # Backslash must be escaped first so later escapes are not doubled.
  for special in specials:
    value = value.replace(special, f"\\{special}")
  return value


def escape_value(value: str) -> str:
  """Escape a plain option value for embedding in a -filter_complex argument."""
  return _escape(_escape(value, _LEVEL1_SPECIALS), _LEVEL2_SPECIALS)


@dataclass(frozen=True)
class DrawnText:
  """User-facing copy to be drawn onto video.

  ``prefix`` is trusted decoration (for example a bullet glyph) emitted verbatim.
  """

  value: str
  prefix: str = ""

  def __post_init__(self) -> None:
    if any(char in self.prefix for char in ("'", "\\", ":", ",", ";", "[", "]")):
      raise ValueError("DrawnText prefix must not contain filter-graph syntax characters.")

  def serialize(self) -> str:
    return f"'{self.prefix}{sanitize_text(self.value)}'"


OptionValue = str | int | float | DrawnText


def _serialize_value(value: OptionValue) -> str:
  if isinstance(value, DrawnText):
    return value.serialize()
  if isinstance(value, bool):
    return "1" if value else "0"
  if isinstance(value, int | float):
    return str(value)
  return escape_value(str(value))


@dataclass(frozen=True)
class FilterNode:
  """One filter invocation, e.g. ``scale=960:960:force_original_aspect_ratio=increase``."""

  name: str
  args: tuple[OptionValue, ...] = ()
  options: tuple[tuple[str, OptionValue], ...] = ()

  def __post_init__(self) -> None:
    if not _FILTER_NAME_RE.match(self.name):
      raise ValueError(f"Invalid filter name {self.name!r}.")

  @classmethod
  def of(cls, name: str, *args: OptionValue, **options: OptionValue) -> FilterNode:
    """Build a node; keyword order is preserved so serialization stays deterministic."""
    return cls(name=name, args=tuple(args), options=tuple(options.items()))

  def serialize(self) -> str:
    parts = [_serialize_value(arg) for arg in self.args]
    parts.extend(f"{key}={_serialize_value(value)}" for key, value in self.options)
    if not parts:
      return self.name
    return f"{self.name}={':'.join(parts)}"


def _labels(labels: Iterable[str]) -> str:
  rendered = []
  for label in labels:
    if not _LABEL_RE.match(label):
      raise ValueError(f"Invalid pad label {label!r}.")
    rendered.append(f"[{label}]")
  return "".join(rendered)


@dataclass(frozen=True)
class FilterChain:
  """Linear sequence of nodes between input and output pad labels."""

  nodes: tuple[FilterNode, ...]
  inputs: tuple[str, ...] = ()
  outputs: tuple[str, ...] = ()

  def serialize(self) -> str:
    if not self.nodes:
      raise ValueError("A filter chain needs at least one node.")
    body = ",".join(node.serialize() for node in self.nodes)
    return f"{_labels(self.inputs)}{body}{_labels(self.outputs)}"


@dataclass
class FilterGraph:
  """Ordered collection of chains serialized with ``;`` separators."""

  chains: list[FilterChain] = field(default_factory=list)

  def chain(self, nodes: Iterable[FilterNode], *, inputs: Iterable[str] = (), outputs: Iterable[str] = ()) -> FilterGraph:
    self.chains.append(FilterChain(nodes=tuple(nodes), inputs=tuple(inputs), outputs=tuple(outputs)))
    return self

  def serialize(self) -> str:
    if not self.chains:
      raise ValueError("Cannot serialize an empty filter graph.")
    return ";".join(chain.serialize() for chain in self.chains)
