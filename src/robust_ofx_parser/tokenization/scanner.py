"""Greedy lexical matchers for the OFX token grammar.

Each matcher has the signature ``match_x(text, start) -> Optional[int]`` and returns
the end offset of the longest prefix of ``text[start:]`` accepted by its token
class, or ``None`` when no non-empty prefix is accepted. Matchers never raise for
any ``str`` input and any ``start`` in ``range(len(text) + 1)``.

Grammar::

    header    := [^<>:\\r\\n]+ ':' [^<>:\\r\\n]* ('\\n' | '\\r\\n')
    open_tag  := '<' [^</>]+ '>'
    close_tag := '<' '/' [^</>]+ '>'
    newline   := '\\n' | '\\r' '\\n'?
    content   := [^<>\\r\\n]+
"""

from typing import FrozenSet, Optional, Tuple

HEADER_EXCLUDED: FrozenSet[str] = frozenset("<>:\r\n")
TAG_NAME_EXCLUDED: FrozenSet[str] = frozenset("</>")
CONTENT_EXCLUDED: FrozenSet[str] = frozenset("<>\r\n")


def _run(text: str, start: int, excluded: FrozenSet[str]) -> int:
    """Return the end of the longest run of characters not in ``excluded``."""
    end = start
    length = len(text)
    while end < length and text[end] not in excluded:
        end += 1
    return end


def match_header(text: str, start: int) -> Optional[int]:
    """Match a ``KEY:VALUE`` line including its ``\\n`` or ``\\r\\n`` terminator.

    A bare ``\\r`` does not terminate a header line.
    """
    key_end = _run(text, start, HEADER_EXCLUDED)
    if key_end == start or key_end >= len(text) or text[key_end] != ":":
        return None
    value_end = _run(text, key_end + 1, HEADER_EXCLUDED)
    if text.startswith("\n", value_end):
        return value_end + 1
    if text.startswith("\r\n", value_end):
        return value_end + 2
    return None


def match_open_tag(text: str, start: int) -> Optional[int]:
    """Match ``<NAME>`` where NAME is at least one character."""
    if not text.startswith("<", start):
        return None
    name_end = _run(text, start + 1, TAG_NAME_EXCLUDED)
    if name_end == start + 1 or not text.startswith(">", name_end):
        return None
    return name_end + 1


def match_close_tag(text: str, start: int) -> Optional[int]:
    """Match ``</NAME>`` where NAME is at least one character."""
    if not text.startswith("</", start):
        return None
    name_end = _run(text, start + 2, TAG_NAME_EXCLUDED)
    if name_end == start + 2 or not text.startswith(">", name_end):
        return None
    return name_end + 1


def match_newline(text: str, start: int) -> Optional[int]:
    """Match ``\\n``, ``\\r\\n`` or a bare ``\\r`` as one line break."""
    if text.startswith("\r\n", start):
        return start + 2
    if text.startswith("\n", start) or text.startswith("\r", start):
        return start + 1
    return None


def match_content(text: str, start: int) -> Optional[int]:
    """Match a non-empty run of text free of markup and line breaks."""
    end = _run(text, start, CONTENT_EXCLUDED)
    if end == start:
        return None
    return end


def split_header(lexeme: str) -> Tuple[str, str]:
    """Split a matched header lexeme into its trimmed key and value."""
    key, _, rest = lexeme.partition(":")
    return key.strip(), rest.rstrip("\r\n").strip()


def tag_name(lexeme: str) -> str:
    """Extract the trimmed name from a matched open or close tag lexeme."""
    prefix = 2 if lexeme.startswith("</") else 1
    return lexeme[prefix:-1].strip()
