"""Two-phase OFX tokenizer.

This module implements a lazy, single-pass tokenizer that turns OFX text into a
stream of :mod:`tokens <robust_ofx_parser.tokenization.tokens>`. An OFX 1.x file
starts with a block of ``KEY:VALUE`` header lines followed by an SGML body, so the
tokenizer runs as a two-state machine:

* ``HEADER``: only header lines are recognized. The first position where the
  header matcher fails flips the machine to ``BODY``, and that position is
  re-scanned as a body token.
* ``BODY``: open tags, close tags, newlines and content are tried in that order.
  The machine never returns to ``HEADER``.

When no body matcher accepts the text at the current position (end of input, or
an unrecognizable sequence such as a stray ``>``), iteration ends for good.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from robust_ofx_parser.shared.logging import get_logger

from .scanner import (
    match_close_tag,
    match_content,
    match_header,
    match_newline,
    match_open_tag,
    split_header,
    tag_name,
)
from .tokens import CloseTag, Content, Header, Newline, OpenTag, Token, TokenType

logger = get_logger(__name__, component="ofx_tokenizer")

Matcher = Callable[[str, int], Optional[int]]

# Body priority order; the first matcher that accepts wins
BODY_RULES: Tuple[Tuple[Matcher, Callable[[str], Token]], ...] = (
    (match_open_tag, lambda lexeme: OpenTag(tag_name(lexeme))),
    (match_close_tag, lambda lexeme: CloseTag(tag_name(lexeme))),
    (match_newline, lambda lexeme: Newline()),
    (match_content, Content),
)


class TokenizerState(Enum):
    """State machine states for OFX tokenization."""

    HEADER = auto()     # Reading KEY:VALUE header lines
    BODY = auto()       # Reading the SGML body


class OFXTokenizer:
    """Lazy iterator over the tokens of an OFX document.

    The tokenizer is single-pass and not restartable: once exhausted it keeps
    raising :class:`StopIteration`. Callers may stop consuming at any point.

    Example:
        >>> list(OFXTokenizer("KEY:VALUE\\n<OFX>"))
        [Header(key='KEY', value='VALUE'), OpenTag(name='OFX')]
    """

    def __init__(self, text: str, correlation_id: Optional[str] = None) -> None:
        """Initialize the tokenizer.

        Args:
            text: Decoded OFX text
            correlation_id: Optional correlation ID for tracking requests
        """
        self._text = text
        self._position = 0
        self._state = TokenizerState.HEADER
        self._finished = False
        self._tokens_emitted = 0
        self.correlation_id = correlation_id

    @property
    def state(self) -> TokenizerState:
        """Current phase of the state machine."""
        return self._state

    @property
    def position(self) -> int:
        """Offset of the next character to scan."""
        return self._position

    @property
    def tokens_emitted(self) -> int:
        """Number of tokens produced so far."""
        return self._tokens_emitted

    @property
    def finished(self) -> bool:
        """Whether iteration has ended."""
        return self._finished

    @property
    def stopped_early(self) -> bool:
        """Whether iteration ended before consuming all input."""
        return self._finished and self._position < len(self._text)

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self._finished:
            raise StopIteration

        if self._state is TokenizerState.HEADER:
            end = match_header(self._text, self._position)
            if end is not None:
                key, value = split_header(self._text[self._position:end])
                return self._emit(Header(key, value), end)
            self._state = TokenizerState.BODY
            logger.debug(
                "Switching to body phase",
                extra={
                    "correlation_id": self.correlation_id,
                    "position": self._position,
                    "headers": self._tokens_emitted,
                },
            )

        for matcher, build in BODY_RULES:
            end = matcher(self._text, self._position)
            if end is not None:
                return self._emit(build(self._text[self._position:end]), end)

        self._finished = True
        raise StopIteration

    def _emit(self, token: Token, end: int) -> Token:
        self._position = end
        self._tokens_emitted += 1
        return token


@dataclass
class TokenizationResult:
    """Materialized token stream with summary statistics."""

    tokens: List[Token]
    character_count: int = 0
    stop_position: int = 0
    stopped_early: bool = False
    truncated: bool = False
    processing_time_ms: float = 0.0
    diagnostics: List[str] = field(default_factory=list)

    @property
    def token_count(self) -> int:
        """Get the total number of tokens."""
        return len(self.tokens)

    @property
    def token_counts(self) -> Dict[TokenType, int]:
        """Number of tokens per token type, in enum order."""
        counts = {token_type: 0 for token_type in TokenType}
        for token in self.tokens:
            counts[token.type] += 1
        return counts

    @property
    def headers(self) -> Dict[str, str]:
        """Header key/value pairs, a later duplicate key overriding an earlier one."""
        return {
            token.key: token.value for token in self.tokens if isinstance(token, Header)
        }


def tokenize(
    text: str,
    correlation_id: Optional[str] = None,
    max_tokens: Optional[int] = None,
) -> TokenizationResult:
    """Tokenize a complete document into a list.

    Args:
        text: Decoded OFX text
        correlation_id: Optional correlation ID for tracking requests
        max_tokens: Stop after this many tokens when given

    Returns:
        TokenizationResult with tokens and statistics
    """
    start_time = time.perf_counter()
    tokenizer = OFXTokenizer(text, correlation_id)
    tokens: List[Token] = []
    truncated = False

    for token in tokenizer:
        tokens.append(token)
        if max_tokens is not None and len(tokens) >= max_tokens:
            truncated = True
            break

    diagnostics = []
    if truncated:
        diagnostics.append(f"Token limit of {max_tokens} reached")
    elif tokenizer.stopped_early:
        diagnostics.append(
            f"Scanning stopped at offset {tokenizer.position} of {len(text)}"
        )
        logger.debug(
            "Tokenizer stopped before end of input",
            extra={
                "correlation_id": correlation_id,
                "position": tokenizer.position,
                "character_count": len(text),
            },
        )

    return TokenizationResult(
        tokens=tokens,
        character_count=len(text),
        stop_position=tokenizer.position,
        stopped_early=tokenizer.stopped_early,
        truncated=truncated,
        processing_time_ms=(time.perf_counter() - start_time) * 1000,
        diagnostics=diagnostics,
    )
