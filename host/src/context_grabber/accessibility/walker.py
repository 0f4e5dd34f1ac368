"""Breadth-first accessibility tree traversal."""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Deque, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .profiles import AccessibilityExtractionProfile
from ..utils.text_utils import SegmentCollector

logger = logging.getLogger(__name__)

PARENT_ATTRIBUTE = "AXParent"
TITLE_ELEMENT_ATTRIBUTE = "AXTitleUIElement"


def extract_string_values(value: Any) -> List[str]:
    """
    Flatten an attribute value into strings.

    Handles plain strings, attributed strings (``string()``), URLs
    (``absoluteString()``) and arbitrarily nested lists of those.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        strings: List[str] = []
        for item in value:
            strings.extend(extract_string_values(item))
        return strings

    for accessor in ("string", "absoluteString"):
        method = getattr(value, accessor, None)
        if callable(method):
            resolved = method()
            if resolved is not None:
                return [str(resolved)]

    return []


class AccessibilityAPI(ABC):
    """
    Attribute-level access to an OS accessibility tree.

    Element identity is defined by ``element_hash``/``elements_equal``; the
    default is Python object identity, which suits in-memory trees.
    """

    @abstractmethod
    def read_attribute(self, element: Any, attribute: str) -> Any:
        """Raw attribute value, or None when unavailable."""
        pass

    def is_element(self, value: Any) -> bool:
        """Whether ``value`` is a traversable UI element."""
        return value is not None

    def element_hash(self, element: Any) -> int:
        return id(element)

    def elements_equal(self, first: Any, second: Any) -> bool:
        return first is second

    def string_values(self, element: Any, attribute: str) -> List[str]:
        return extract_string_values(self.read_attribute(element, attribute))

    def element_attribute(self, element: Any, attribute: str) -> Optional[Any]:
        """Single-element relation such as AXParent."""
        value = self.read_attribute(element, attribute)
        return value if value is not None and self.is_element(value) else None

    def element_list_attribute(self, element: Any, attribute: str) -> List[Any]:
        """Element-array relation such as AXChildren."""
        value = self.read_attribute(element, attribute)
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if item is not None and self.is_element(item)]


class ElementIdentitySet:
    """
    Visited set keyed by element identity.

    Elements are bucketed by ``api.element_hash`` and compared with
    ``api.elements_equal``, never by the wrapper's value equality.
    """

    def __init__(self, api: AccessibilityAPI):
        self._api = api
        self._buckets: Dict[int, List[Any]] = {}
        self._size = 0

    def __contains__(self, element: Any) -> bool:
        bucket = self._buckets.get(self._api.element_hash(element))
        if not bucket:
            return False
        return any(self._api.elements_equal(existing, element) for existing in bucket)

    def add(self, element: Any) -> bool:
        """Insert ``element``; returns False if it was already present."""
        key = self._api.element_hash(element)
        bucket = self._buckets.setdefault(key, [])
        if any(self._api.elements_equal(existing, element) for existing in bucket):
            return False
        bucket.append(element)
        self._size += 1
        return True

    def __len__(self) -> int:
        return self._size


class AccessibilityTraversal(NamedTuple):
    """Outcome of walking one root."""
    text: Optional[str]
    visited_elements: int


class AccessibilityTreeWalker:
    """
    Collects text from an accessibility tree under an extraction profile.

    Traversal is breadth-first from the root and follows children, table
    rows/columns/contents, and also the parent and title-element relations:
    focused leaf fields are often textless while their container or label
    holds the content. Work per root is capped by
    ``profile.traversalMaxElements`` however large or cyclic the graph is.
    """

    def __init__(self, api: AccessibilityAPI):
        self.api = api

    def collect_text_from_element(self, element: Any, attributes: Sequence[str]) -> Optional[str]:
        """Unique normalized strings of one element, joined by blank lines."""
        segments = SegmentCollector()
        for attribute in attributes:
            for value in self.api.string_values(element, attribute):
                segments.add(value)
        return segments.joined()

    def traverse(self, root: Any, profile: AccessibilityExtractionProfile) -> AccessibilityTraversal:
        """Walk the graph from ``root`` and collect unique text segments."""
        queue: Deque[Tuple[Any, int]] = deque([(root, 0)])
        visited = ElementIdentitySet(self.api)
        segments = SegmentCollector()
        visited_elements = 0

        while queue and visited_elements < profile.traversalMaxElements:
            element, depth = queue.popleft()

            if not visited.add(element):
                continue
            visited_elements += 1

            segments.add(self.collect_text_from_element(element, profile.textAttributes))

            if depth >= profile.traversalDepth:
                continue

            for neighbor in self._neighbors(element, profile.childAttributes):
                if neighbor not in visited:
                    queue.append((neighbor, depth + 1))

        logger.debug(
            f"AX traversal visited {visited_elements} element(s), "
            f"collected {len(segments)} segment(s)"
        )
        return AccessibilityTraversal(text=segments.joined(), visited_elements=visited_elements)

    def collect_text(self, root: Any, profile: AccessibilityExtractionProfile) -> Optional[str]:
        return self.traverse(root, profile).text

    def collect_text_from_roots(
        self, roots: Iterable[Any], profile: AccessibilityExtractionProfile
    ) -> Optional[str]:
        """
        Walk each root independently and merge their text.

        Every root gets its own visited set and element budget.
        """
        segments = SegmentCollector()
        for root in roots:
            if root is None:
                continue
            segments.add(self.collect_text(root, profile))
        return segments.joined()

    def _neighbors(self, element: Any, child_attributes: Sequence[str]) -> Iterator[Any]:
        for attribute in child_attributes:
            yield from self.api.element_list_attribute(element, attribute)

        for attribute in (PARENT_ATTRIBUTE, TITLE_ELEMENT_ATTRIBUTE):
            related = self.api.element_attribute(element, attribute)
            if related is not None:
                yield related


__all__ = [
    "AccessibilityAPI",
    "AccessibilityTraversal",
    "AccessibilityTreeWalker",
    "ElementIdentitySet",
    "extract_string_values",
]
