"""Unit tests for filter graph construction and escaping."""

from __future__ import annotations

import pytest

from studio.media.ffmpeg import build_concat_filter_graph, build_slide_filter_graph
from studio.media.filter_graph import DrawnText, FilterGraph, FilterNode, escape_value, sanitize_text
from studio.media.fonts import FontChoice, resolve_font


def test_sanitize_text_replaces_everything_outside_the_safe_alphabet() -> None:
  assert sanitize_text("Newton's 2nd law: F=ma [really]; yes, really") == "Newton s 2nd law  F ma  really   yes  really"
  assert sanitize_text("'; drawtext=text='pwned") == "drawtext text  pwned"
  assert sanitize_text("Ünïcödé « dash »") == "n c d    dash"


def test_escape_value_handles_both_parsing_levels() -> None:
  assert escape_value("C:/Fonts/Arial Bold.ttf") == "C\\\\:/Fonts/Arial Bold.ttf"
  assert escape_value("a,b") == "a\\,b"
  assert escape_value("x[y]") == "x\\[y\\]"


def test_drawn_text_serializes_sanitized_and_single_quoted() -> None:
  assert DrawnText("It's 100% done: ok?", prefix="• ").serialize() == "'• It s 100  done  ok'"


def test_drawn_text_prefix_rejects_graph_syntax() -> None:
  with pytest.raises(ValueError):
    DrawnText("value", prefix="'")


def test_filter_node_keeps_positional_then_keyword_order() -> None:
  node = FilterNode.of("scale", 960, 960, force_original_aspect_ratio="increase")
  assert node.serialize() == "scale=960:960:force_original_aspect_ratio=increase"


def test_filter_graph_rejects_bad_labels_and_empty_graphs() -> None:
  with pytest.raises(ValueError):
    FilterGraph().chain([FilterNode.of("null")], inputs=["bad label"]).serialize()
  with pytest.raises(ValueError):
    FilterGraph().serialize()


def test_slide_graph_matches_layout() -> None:
  graph = build_slide_filter_graph("Photosynthesis", ["Light", "Water"], FontChoice(path="/fonts/Sans.ttf"))
  serialized = graph.serialize()

  assert serialized.startswith("[0:v]scale=960:960:force_original_aspect_ratio=increase,crop=960:960[scaled];color=s=1920x1080:c=0x062012[bg];[bg][scaled]overlay=900:60,")
  assert "drawtext=fontfile=/fonts/Sans.ttf:text='Photosynthesis':x=100:y=150:fontsize=65:fontcolor=0x22c55e" in serialized
  assert "text='• Light':x=100:y=350:fontsize=36:fontcolor=white" in serialized
  assert "text='• Water':x=100:y=430" in serialized
  assert serialized.endswith("[outv]")


def test_slide_graph_neutralizes_hostile_copy() -> None:
  hostile_title = "Title'[x];movie=/etc/passwd,"
  graph = build_slide_filter_graph(hostile_title, ["a:b", "'", "c,d;e"], FontChoice(face="Arial"))
  serialized = graph.serialize()

  assert "movie" not in serialized.replace("text='Title  x  movie  etc passwd'", "")
  assert "font=Arial" in serialized
  # The bullet consisting only of a quote sanitizes to nothing and is skipped.
  assert serialized.count("drawtext=") == 3
  assert serialized.count(";") == 2


def test_slide_graph_caps_bullets() -> None:
  graph = build_slide_filter_graph("T", [f"point {index}" for index in range(12)], FontChoice(face="Arial"))
  assert graph.serialize().count("drawtext=") == 1 + 8


def test_concat_graph_lists_every_input_pair() -> None:
  assert build_concat_filter_graph(3).serialize() == "[0:v][0:a][1:v][1:a][2:v][2:a]concat=n=3:v=1:a=1[outv][outa]"
  with pytest.raises(ValueError):
    build_concat_filter_graph(0)


def test_resolve_font_prefers_first_existing_candidate(tmp_path) -> None:
  present = tmp_path / "Present.ttf"
  present.write_bytes(b"font")
  assert resolve_font([str(tmp_path / "missing.ttf"), str(present)]) == FontChoice(path=str(present))
  assert resolve_font([str(tmp_path / "missing.ttf")]) == FontChoice(face="Arial")
