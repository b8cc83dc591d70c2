"""Stack-based tree building for OFX token streams.

OFX 1.x is SGML: leaf tags such as ``<TRNAMT>`` are usually never closed. The
builder tolerates this by keeping every element on an explicit stack until a
close tag arrives, then unwinding the stack down to the matching element and
attaching everything popped on the way as that element's trailing children.

Processing rules, one token at a time:

* ``Header`` and ``Newline`` leave the stack untouched.
* ``OpenTag`` pushes a new element.
* ``Content`` is appended to the element on top of the stack, joined to any
  earlier content with a single space.
* ``CloseTag`` pops until a name matches, ignoring case. The popped elements
  become trailing children of the match, in document order, and the match is
  pushed back. When nothing matches, the popped elements are dropped.

At the end of the stream the bottom-most element is the document root.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from robust_ofx_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    OFXParseError,
    PerformanceMetrics,
    get_logger,
)
from robust_ofx_parser.tokenization import (
    CloseTag,
    Content,
    Header,
    OpenTag,
    Token,
    TokenizationResult,
)

from .element import OFXElement


@dataclass
class ParseResult:
    """Result object for parse operations.

    Contains the element tree, the OFX header fields, diagnostics and performance
    information following the never-fail philosophy.
    """

    # Core results
    root: Optional[OFXElement] = None
    headers: Dict[str, str] = field(default_factory=dict)
    success: bool = True

    # Metadata and diagnostics
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    encoding: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def element_count(self) -> int:
        """Get total number of elements in the tree."""
        return self.root.element_count if self.root is not None else 0

    @property
    def processing_time_ms(self) -> float:
        """Get processing time in milliseconds."""
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def raise_for_status(self) -> OFXElement:
        """Return the root element, raising if the parse produced none.

        Raises:
            OFXParseError: If the parse failed or the document was empty
        """
        if not self.success or self.root is None:
            errors = [
                diag.message for diag in self.diagnostics
                if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            ]
            message = errors[0] if errors else "Parse produced no document"
            raise OFXParseError(message, self.diagnostics)
        return self.root

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        return {
            "success": self.success,
            "root": self.root.name if self.root is not None else None,
            "element_count": self.element_count,
            "max_depth": self.root.max_depth if self.root is not None else 0,
            "header_count": len(self.headers),
            "encoding": self.encoding,
            "diagnostic_count": len(self.diagnostics),
            "performance": self.performance.to_dict(),
        }

    def to_dict(self, include_headers: bool = True) -> Dict[str, Any]:
        """Convert the result to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "success": self.success,
            "root": self.root.to_dict() if self.root is not None else None,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
        if include_headers:
            result["headers"] = dict(self.headers)
        return result


class OFXTreeBuilder:
    """Tree builder for constructing OFX element trees from token streams.

    Builder statistics are reset at the start of every :meth:`build` call, so one
    instance can be reused for sequential builds.
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        collect_headers: bool = True,
        max_tokens: Optional[int] = None,
    ) -> None:
        """Initialize tree builder.

        Args:
            correlation_id: Optional correlation ID for request tracking
            collect_headers: Record header tokens in the result
            max_tokens: Stop consuming tokens after this many when given
        """
        self.correlation_id = correlation_id
        self.collect_headers = collect_headers
        self.max_tokens = max_tokens
        self.logger = get_logger(__name__, correlation_id, "ofx_tree_builder")

        self._stack: List[OFXElement] = []
        # Parallel to _stack: whether the element has seen its own close tag
        self._closed: List[bool] = []
        self._headers: Dict[str, str] = {}
        self._tokens_consumed = 0
        self._headers_seen = 0
        self._elements_created = 0
        self._implicit_closures = 0
        self._discarded_elements = 0
        self._truncated = False

    def build(self, tokens: Union[TokenizationResult, Iterable[Token]]) -> ParseResult:
        """Build an element tree from a token stream.

        Args:
            tokens: A TokenizationResult, a token list, or a lazy token iterator
                such as :class:`~robust_ofx_parser.tokenization.OFXTokenizer`

        Returns:
            ParseResult with the root element, headers and statistics
        """
        start_time = time.perf_counter()
        token_source = tokens.tokens if isinstance(tokens, TokenizationResult) else tokens

        self.logger.debug("Starting tree building")
        result = ParseResult(correlation_id=self.correlation_id)

        self._reset_state()
        root = self._build_tree(token_source)

        result.root = root
        result.headers = dict(self._headers)
        result.success = root is not None
        if root is None:
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                "Empty document: no elements found",
                "ofx_tree_builder",
                details={"tokens_consumed": self._tokens_consumed},
            )
        if self._truncated:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Token limit of {self.max_tokens} reached, remaining input ignored",
                "ofx_tree_builder",
                details={"max_tokens": self.max_tokens},
            )

        performance = result.performance
        performance.processing_time_ms = (time.perf_counter() - start_time) * 1000
        performance.tokens_generated = self._tokens_consumed
        performance.headers_seen = self._headers_seen
        performance.elements_created = self._elements_created
        performance.implicit_closures = self._implicit_closures
        performance.discarded_elements = self._discarded_elements

        self.logger.info(
            "Tree building completed",
            extra={
                "success": result.success,
                "element_count": result.element_count,
                "implicit_closures": self._implicit_closures,
                "discarded_elements": self._discarded_elements,
            }
        )
        return result

    def _reset_state(self) -> None:
        """Reset internal state for a new tree building operation."""
        self._stack = []
        self._closed = []
        self._headers = {}
        self._tokens_consumed = 0
        self._headers_seen = 0
        self._elements_created = 0
        self._implicit_closures = 0
        self._discarded_elements = 0
        self._truncated = False

    def _build_tree(self, tokens: Iterable[Token]) -> Optional[OFXElement]:
        for token in tokens:
            if self.max_tokens is not None and self._tokens_consumed >= self.max_tokens:
                self._truncated = True
                break
            self._tokens_consumed += 1

            if isinstance(token, OpenTag):
                self._stack.append(OFXElement(token.name))
                self._closed.append(False)
                self._elements_created += 1
            elif isinstance(token, Content):
                self._append_content(token.text)
            elif isinstance(token, CloseTag):
                self._close(token.name)
            elif isinstance(token, Header):
                self._headers_seen += 1
                if self.collect_headers:
                    self._headers[token.key] = token.value
            # Newline tokens carry no structure

        if len(self._stack) > 1:
            unattached = sum(element.element_count for element in self._stack[1:])
            self._discarded_elements += unattached
            self.logger.debug(
                "Elements left open at end of input were not attached to the root",
                extra={"unattached_elements": unattached},
            )
        return self._stack[0] if self._stack else None

    def _append_content(self, text: str) -> None:
        if not self._stack:
            return
        top = self._stack[-1]
        top.content = f"{top.content} {text}" if top.content else text

    def _close(self, name: str) -> None:
        name = name.upper()
        popped: List[OFXElement] = []
        unclosed = 0
        while self._stack:
            element = self._stack.pop()
            closed = self._closed.pop()
            if element.name == name:
                # Popped in reverse document order
                popped.reverse()
                element.children.extend(popped)
                self._stack.append(element)
                self._closed.append(True)
                self._implicit_closures += unclosed
                return
            if not closed:
                unclosed += 1
            popped.append(element)

        discarded = sum(element.element_count for element in popped)
        self._discarded_elements += discarded
        self.logger.debug(
            "Close tag matched no open element, dropping popped elements",
            extra={"close_tag": name, "discarded_elements": discarded},
        )


def build_tree(tokens: Iterable[Token]) -> Optional[OFXElement]:
    """Build an element tree from tokens and return its root.

    Args:
        tokens: Token sequence or lazy tokenizer

    Returns:
        The root element, or None when the tokens produce no element
    """
    return OFXTreeBuilder(collect_headers=False).build(tokens).root
