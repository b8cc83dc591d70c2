"""OFX element tree node.

An :class:`OFXElement` is one tag of the parsed document: its upper-cased name, the
accumulated text content, and its children in document order. All name
comparisons are case-insensitive.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


@dataclass
class OFXElement:
    """Represents a single OFX element in the document tree.

    Equality is structural: two elements are equal when their names, contents and
    children are equal.

    Example:
        >>> root = OFXElement("ofx", children=[OFXElement("acctid", "12345")])
        >>> root["ACCTID"].content
        '12345'
        >>> root.lookup("acctid").name
        'ACCTID'
    """

    name: str
    content: str = ""
    children: List["OFXElement"] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Normalize the element name to upper case."""
        self.name = self.name.upper()

    def lookup(self, *tags: str) -> Optional["OFXElement"]:
        """Descend through children along a path of tag names.

        At each step the first child whose name matches the tag, ignoring case, is
        chosen. An empty path returns the element itself.

        Args:
            *tags: Tag names to descend through, outermost first

        Returns:
            The element at the end of the path, or None if any step fails
        """
        element: Optional[OFXElement] = self
        for tag in tags:
            element = element.find_child(tag)
            if element is None:
                return None
        return element

    def __getitem__(self, tags: Union[str, Tuple[str, ...]]) -> Optional["OFXElement"]:
        """Path lookup with subscript syntax: ``element["STMTRS", "CURDEF"]``."""
        if isinstance(tags, str):
            return self.lookup(tags)
        return self.lookup(*tags)

    def find_child(self, tag: str) -> Optional["OFXElement"]:
        """Find first direct child with matching tag name, ignoring case."""
        tag = tag.upper()
        for child in self.children:
            if child.name == tag:
                return child
        return None

    def find_children(self, tag: str) -> List["OFXElement"]:
        """Find all direct children with matching tag name, ignoring case."""
        tag = tag.upper()
        return [child for child in self.children if child.name == tag]

    def text(self, *tags: str) -> Optional[str]:
        """Return the content at the end of a path, or None if the path fails."""
        element = self.lookup(*tags)
        return element.content if element is not None else None

    def iter(self) -> Iterator["OFXElement"]:
        """Iterate over this element and all descendants, depth first."""
        stack = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    @property
    def element_count(self) -> int:
        """Number of elements in this subtree, including this one."""
        return sum(1 for _ in self.iter())

    @property
    def max_depth(self) -> int:
        """Depth of the deepest element in this subtree (a leaf has depth 1)."""
        deepest = 0
        stack = [(self, 1)]
        while stack:
            element, depth = stack.pop()
            deepest = max(deepest, depth)
            stack.extend((child, depth + 1) for child in element.children)
        return deepest

    @property
    def is_leaf(self) -> bool:
        """Check if element has no children."""
        return not self.children

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result = self._node_dict(self)
        stack = [(self, result)]
        while stack:
            element, node = stack.pop()
            if not element.children:
                continue
            node["children"] = []
            for child in element.children:
                child_node = self._node_dict(child)
                node["children"].append(child_node)
                stack.append((child, child_node))
        return result

    @staticmethod
    def _node_dict(element: "OFXElement") -> Dict[str, Any]:
        node: Dict[str, Any] = {"name": element.name}
        if element.content:
            node["content"] = element.content
        return node

    def to_ofx(self) -> str:
        """Render the subtree back into tag syntax.

        Every element is written with an explicit close tag, so the output parses
        back into an equal tree. Elements constructed directly with an empty name
        render as ``<>``, which does not scan as a tag, so such trees do not
        survive the round trip.
        """
        parts: List[str] = []
        # Items are elements still to render or literal text to emit
        stack: List[Union["OFXElement", str]] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue
            parts.append(f"<{item.name}>\n{item.content}")
            stack.append(f"\n</{item.name}>")
            for index in range(len(item.children) - 1, -1, -1):
                stack.append(item.children[index])
                if index:
                    stack.append("\n")
        return "".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OFXElement):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            left, right = pairs.pop()
            if (left.name != right.name or left.content != right.content
                    or len(left.children) != len(right.children)):
                return False
            pairs.extend(zip(left.children, right.children))
        return True

    def __str__(self) -> str:
        return self.to_ofx()
