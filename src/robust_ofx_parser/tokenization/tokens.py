"""Token types produced by the OFX tokenizer.

Tokens are immutable value objects compared structurally: two tokens are equal
when they are the same variant and carry the same payload. They hold no position
information.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import ClassVar, Union


class TokenType(Enum):
    """OFX token types supported by the tokenizer."""

    HEADER = auto()      # KEY:VALUE line before the SGML body
    OPEN_TAG = auto()    # <NAME>
    CLOSE_TAG = auto()   # </NAME>
    NEWLINE = auto()     # \n, \r\n or \r
    CONTENT = auto()     # Text between tags


@dataclass(frozen=True)
class Header:
    """``KEY:VALUE`` header line, key and value trimmed."""

    key: str
    value: str

    type: ClassVar[TokenType] = TokenType.HEADER


@dataclass(frozen=True)
class OpenTag:
    """Opening tag ``<NAME>``, name trimmed but not case-normalized."""

    name: str

    type: ClassVar[TokenType] = TokenType.OPEN_TAG


@dataclass(frozen=True)
class CloseTag:
    """Closing tag ``</NAME>``, name trimmed but not case-normalized."""

    name: str

    type: ClassVar[TokenType] = TokenType.CLOSE_TAG


@dataclass(frozen=True)
class Newline:
    """A single line break."""

    type: ClassVar[TokenType] = TokenType.NEWLINE


@dataclass(frozen=True)
class Content:
    """Run of text between markup, never empty."""

    text: str

    type: ClassVar[TokenType] = TokenType.CONTENT


Token = Union[Header, OpenTag, CloseTag, Newline, Content]
