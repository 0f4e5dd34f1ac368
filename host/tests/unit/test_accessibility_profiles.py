"""Unit tests for per-application extraction profiles."""

import pytest
from context_grabber.accessibility.profiles import (
    DEFAULT_CHILD_ATTRIBUTES,
    DEFAULT_TEXT_ATTRIBUTES,
    accessibility_profile_for_app,
)


def test_default_profile():
    profile = accessibility_profile_for_app("com.apple.Notes", "Notes")

    assert profile.minimumTextChars == 240
    assert profile.traversalDepth == 2
    assert profile.traversalMaxElements == 96
    assert profile.textAttributes == DEFAULT_TEXT_ATTRIBUTES
    assert profile.childAttributes == DEFAULT_CHILD_ATTRIBUTES


@pytest.mark.parametrize("bundle_id", [
    "com.microsoft.VSCode",
    "com.jetbrains.pycharm",
    "com.apple.dt.Xcode",
])
def test_dense_editor_profile(bundle_id):
    profile = accessibility_profile_for_app(bundle_id, "Editor")

    assert profile.minimumTextChars == 220
    assert profile.traversalDepth == 3
    assert profile.traversalMaxElements == 160
    assert "AXDocument" in profile.textAttributes
    assert "AXFilename" in profile.textAttributes
    assert "AXURL" in profile.textAttributes


@pytest.mark.parametrize("bundle_id,app_name", [
    ("com.apple.Terminal", "Terminal"),
    ("com.googlecode.iterm2", "iTerm2"),
    (None, "My Terminal"),
])
def test_terminal_profile(bundle_id, app_name):
    profile = accessibility_profile_for_app(bundle_id, app_name)

    assert profile.minimumTextChars == 180
    assert profile.traversalDepth == 3
    assert profile.traversalMaxElements == 128


def test_text_attributes_are_deduplicated_in_order():
    """Editor and terminal extras overlap; each attribute appears once."""
    profile = accessibility_profile_for_app("com.microsoft.VSCode", "Visual Studio Code Terminal")

    assert len(profile.textAttributes) == len(set(profile.textAttributes))
    assert profile.textAttributes[: len(DEFAULT_TEXT_ATTRIBUTES)] == DEFAULT_TEXT_ATTRIBUTES
    # Terminal rules apply last but keep the larger element budget
    assert profile.minimumTextChars == 180
    assert profile.traversalMaxElements == 160


def test_unknown_app_uses_default_profile():
    profile = accessibility_profile_for_app(None, None)

    assert profile.minimumTextChars == 240
