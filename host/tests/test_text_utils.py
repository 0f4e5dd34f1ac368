"""Tests for text normalization utilities."""

import pytest
from context_grabber.utils.text_utils import SegmentCollector, deduplicated, normalize_text


def test_normalize_text_converts_line_endings():
    """CRLF and lone CR should become LF."""
    assert normalize_text("a\r\nb\rc") == "a\nb\nc"


def test_normalize_text_strips_trailing_blanks_before_newline():
    """Spaces and tabs before a newline should be dropped."""
    assert normalize_text("line one \t\nline two") == "line one\nline two"


def test_normalize_text_collapses_excess_newlines():
    """Three or more newlines should collapse to one blank line."""
    assert normalize_text("para\n\n\n\n\npara") == "para\n\npara"


def test_normalize_text_trims_outer_whitespace():
    """Leading and trailing whitespace should be stripped."""
    assert normalize_text("  \n\thello\n\n ") == "hello"


def test_normalize_text_combined():
    """All rules apply together."""
    assert normalize_text("Title\r\n\r\n\r\nBody  \n") == "Title\n\nBody"


@pytest.mark.parametrize("value", [None, "", "   ", "\r\n\r\n", "\t \n"])
def test_normalize_text_empty_inputs(value):
    """Absent or whitespace-only input normalizes to the empty string."""
    assert normalize_text(value) == ""


def test_normalize_text_is_idempotent():
    """Normalizing twice changes nothing."""
    once = normalize_text("a  \r\n\r\n\r\n\r\nb \n")
    assert normalize_text(once) == once


def test_normalize_text_keeps_inner_spaces():
    """Spaces not followed by a newline are preserved."""
    assert normalize_text("a   b") == "a   b"


def test_deduplicated_keeps_first_seen_order():
    assert deduplicated(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_segment_collector_skips_empty_and_duplicates():
    """Collector normalizes before comparing."""
    segments = SegmentCollector()

    assert segments.add("Hello \r\n") is True
    assert segments.add("Hello") is False
    assert segments.add("   ") is False
    assert segments.add(None) is False
    assert segments.add("World") is True

    assert len(segments) == 2
    assert segments.joined() == "Hello\n\nWorld"


def test_segment_collector_empty_joined_is_none():
    assert SegmentCollector().joined() is None
