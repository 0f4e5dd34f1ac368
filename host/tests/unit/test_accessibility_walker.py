"""Unit tests for the accessibility tree walker."""

from collections import Counter
from typing import Any, Dict, List, Optional

import pytest
from context_grabber.accessibility.profiles import AccessibilityExtractionProfile
from context_grabber.accessibility.walker import (
    AccessibilityAPI,
    AccessibilityTreeWalker,
    ElementIdentitySet,
    extract_string_values,
)


class Node:
    """In-memory UI element."""

    def __init__(self, name: str, **attributes: Any):
        self.name = name
        self.attributes: Dict[str, Any] = dict(attributes)

    def __eq__(self, other):
        # Value equality that must never be used for visited tracking
        return isinstance(other, Node)

    def __hash__(self):
        return 0

    def __repr__(self):
        return f"Node({self.name})"


class FakeAccessibilityAPI(AccessibilityAPI):
    """Reads attributes off Node objects and counts text reads per node."""

    def __init__(self):
        self.reads: Counter = Counter()

    def read_attribute(self, element, attribute):
        if attribute == "AXValue":
            self.reads[element.name] += 1
        return element.attributes.get(attribute)

    def is_element(self, value):
        return isinstance(value, Node)


class AttributedString:
    def __init__(self, text: str):
        self._text = text

    def string(self):
        return self._text


class URLValue:
    def __init__(self, url: str):
        self._url = url

    def absoluteString(self):
        return self._url


def make_profile(
    depth: int = 2,
    max_elements: int = 96,
    text_attributes: Optional[List[str]] = None,
) -> AccessibilityExtractionProfile:
    return AccessibilityExtractionProfile(
        minimumTextChars=240,
        textAttributes=text_attributes or ["AXValue", "AXTitle"],
        childAttributes=["AXChildren"],
        traversalDepth=depth,
        traversalMaxElements=max_elements,
    )


@pytest.fixture
def api():
    return FakeAccessibilityAPI()


def test_collects_text_breadth_first(api):
    """Root text comes before children, children before grandchildren."""
    grandchild = Node("gc", AXValue="Grandchild")
    child_a = Node("a", AXValue="Child A", AXChildren=[grandchild])
    child_b = Node("b", AXValue="Child B")
    root = Node("root", AXValue="Root", AXChildren=[child_a, child_b])

    text = AccessibilityTreeWalker(api).collect_text(root, make_profile())

    assert text == "Root\n\nChild A\n\nChild B\n\nGrandchild"


def test_depth_limit_stops_expansion(api):
    """Nodes at the traversal depth are visited but not expanded."""
    deep = Node("deep", AXValue="Too deep")
    level1 = Node("l1", AXValue="Level 1", AXChildren=[deep])
    root = Node("root", AXValue="Root", AXChildren=[level1])

    text = AccessibilityTreeWalker(api).collect_text(root, make_profile(depth=1))

    assert text == "Root\n\nLevel 1"
    assert "deep" not in api.reads


def test_cyclic_graph_visits_each_element_once(api):
    """Cycles through children and parent links terminate, one visit per element."""
    root = Node("root", AXValue="Root")
    a = Node("a", AXValue="A")
    b = Node("b", AXValue="B")
    root.attributes["AXChildren"] = [a, b]
    a.attributes["AXChildren"] = [b, root]
    b.attributes["AXChildren"] = [a]
    a.attributes["AXParent"] = root
    b.attributes["AXParent"] = a

    traversal = AccessibilityTreeWalker(api).traverse(root, make_profile(depth=10))

    assert traversal.visited_elements == 3
    assert all(count == 1 for count in api.reads.values())
    assert traversal.text == "Root\n\nA\n\nB"


def test_max_elements_bounds_work(api):
    """A wide tree is cut off at traversalMaxElements."""
    children = [Node(f"c{i}", AXValue=f"Child {i}") for i in range(50)]
    root = Node("root", AXValue="Root", AXChildren=children)

    traversal = AccessibilityTreeWalker(api).traverse(root, make_profile(max_elements=5))

    assert traversal.visited_elements == 5
    assert sum(api.reads.values()) == 5
    assert traversal.text.split("\n\n") == ["Root", "Child 0", "Child 1", "Child 2", "Child 3"]


def test_follows_parent_and_title_element(api):
    """Textless focused leaves reach content through parent and title links."""
    label = Node("label", AXValue="Field label")
    container = Node("container", AXValue="Container body")
    leaf = Node("leaf", AXParent=container, AXTitleUIElement=label)

    text = AccessibilityTreeWalker(api).collect_text(leaf, make_profile())

    assert text == "Container body\n\nField label"


def test_duplicate_text_is_kept_once(api):
    first = Node("first", AXValue="Same text")
    second = Node("second", AXValue="Same text  \r\n")
    root = Node("root", AXChildren=[first, second])

    text = AccessibilityTreeWalker(api).collect_text(root, make_profile())

    assert text == "Same text"


def test_node_text_combines_attributes(api):
    """Each node's attribute strings are deduped and joined with blank lines."""
    node = Node("n", AXValue="Value", AXTitle="Value")
    other = Node("o", AXValue="Body", AXTitle="Heading")

    walker = AccessibilityTreeWalker(api)

    assert walker.collect_text_from_element(node, ["AXValue", "AXTitle"]) == "Value"
    assert walker.collect_text_from_element(other, ["AXValue", "AXTitle"]) == "Body\n\nHeading"


def test_empty_tree_returns_none(api):
    root = Node("root", AXChildren=[Node("empty")])

    assert AccessibilityTreeWalker(api).collect_text(root, make_profile()) is None


def test_collect_text_from_roots_walks_each_root_independently(api):
    """Every root gets its own visited set; per-root results are concatenated."""
    shared = Node("shared", AXValue="Shared")
    first = Node("first", AXValue="First", AXChildren=[shared])
    second = Node("second", AXValue="Second", AXChildren=[shared])

    text = AccessibilityTreeWalker(api).collect_text_from_roots([first, None, second], make_profile())

    assert text == "First\n\nShared\n\nSecond\n\nShared"
    assert api.reads["shared"] == 2


def test_collect_text_from_roots_drops_identical_root_results(api):
    """The same focused element reached through two seeds contributes once."""
    focused = Node("focused", AXValue="Focused text")

    text = AccessibilityTreeWalker(api).collect_text_from_roots([focused, focused], make_profile())

    assert text == "Focused text"


def test_non_element_children_are_ignored(api):
    root = Node("root", AXValue="Root", AXChildren=["not an element", None, Node("c", AXValue="Child")])

    assert AccessibilityTreeWalker(api).collect_text(root, make_profile()) == "Root\n\nChild"


def test_extract_string_values_flattens_nested_values():
    value = ["a", AttributedString("b"), [URLValue("https://example.com"), None], 42]

    assert extract_string_values(value) == ["a", "b", "https://example.com"]


def test_identity_set_uses_api_identity_not_value_equality(api):
    """Distinct nodes that compare equal by value are still distinct elements."""
    first, second = Node("first"), Node("second")
    assert first == second

    visited = ElementIdentitySet(api)

    assert visited.add(first) is True
    assert visited.add(second) is True
    assert visited.add(first) is False
    assert len(visited) == 2
    assert second in visited


def test_identity_set_buckets_colliding_hashes():
    """Hash collisions fall back to the API's equality check."""

    class CollidingAPI(FakeAccessibilityAPI):
        def element_hash(self, element):
            return 7

    api = CollidingAPI()
    visited = ElementIdentitySet(api)
    nodes = [Node(str(i)) for i in range(3)]

    assert [visited.add(node) for node in nodes] == [True, True, True]
    assert all(node in visited for node in nodes)
    assert Node("other") not in visited
