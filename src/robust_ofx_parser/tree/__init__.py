"""Tree building engine for robust OFX parsing.

This module turns token streams into element trees, closing OFX's unclosed leaf
tags implicitly when an enclosing close tag arrives.

Key Components:
    OFXTreeBuilder: Stack-based tree construction with statistics
    OFXElement: Element node with case-insensitive path lookup
    ParseResult: Result object with root element, headers and diagnostics
    build_tree: Shortcut returning only the root element
"""

from .builder import (
    OFXTreeBuilder,
    ParseResult,
    build_tree,
)
from .element import OFXElement

__all__ = [
    "OFXElement",
    "OFXTreeBuilder",
    "ParseResult",
    "build_tree",
]
