"""Tokenization engine for robust OFX parsing.

This module converts decoded OFX text into a lazy stream of tokens using
hand-written greedy matchers and a two-phase header/body state machine.

Key Components:
    OFXTokenizer: Lazy iterator over the tokens of a document
    Header, OpenTag, CloseTag, Newline, Content: Token variants
    TokenType: Enumeration of all token types
    TokenizerState: Header/body phase of the state machine
    tokenize: Convenience function materializing a TokenizationResult
"""

from .tokenizer import (
    OFXTokenizer,
    TokenizationResult,
    TokenizerState,
    tokenize,
)
from .tokens import (
    CloseTag,
    Content,
    Header,
    Newline,
    OpenTag,
    Token,
    TokenType,
)

__all__ = [
    "CloseTag",
    "Content",
    "Header",
    "Newline",
    "OFXTokenizer",
    "OpenTag",
    "Token",
    "TokenType",
    "TokenizationResult",
    "TokenizerState",
    "tokenize",
]
