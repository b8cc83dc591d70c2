"""Core parser API with progressive disclosure for robust OFX parsing.

This module provides the main parsing API, from simple module-level functions to a
reusable configured parser class, following the never-fail philosophy: problems
reading or decoding the input are reported as a failed :class:`ParseResult`
carrying a CRITICAL diagnostic, never as an exception.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from robust_ofx_parser.character import CharacterStreamProcessor
from robust_ofx_parser.finance import FinancialInformation
from robust_ofx_parser.shared import (
    DiagnosticSeverity,
    ParserConfig,
    get_logger,
)
from robust_ofx_parser.tokenization import OFXTokenizer
from robust_ofx_parser.tree import OFXTreeBuilder, ParseResult

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

MS_PER_SECOND = 1000  # Milliseconds per second conversion


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse OFX from various input sources with automatic type detection.

    Args:
        input_data: OFX content as string, bytes, file-like object, or Path
        config: Parser configuration (defaults to ``ParserConfig.default()``)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the element tree, headers and diagnostics

    Examples:
        String parsing:
        >>> result = parse("OFXHEADER:100\\n<OFX><SIGNONMSGSRSV1></SIGNONMSGSRSV1></OFX>")
        >>> result.root.name
        'OFX'
        >>> result.headers["OFXHEADER"]
        '100'

        File parsing:
        >>> result = parse(Path("statement.ofx"))
        >>> result.success
        True
    """
    logger = get_logger(__name__, correlation_id, "parse")
    logger.debug(
        "Starting universal parse operation",
        extra={"input_type": type(input_data).__name__}
    )

    if isinstance(input_data, str):
        return parse_string(input_data, config, correlation_id)
    if isinstance(input_data, (bytes, bytearray)):
        return parse_bytes(bytes(input_data), config, correlation_id)
    if isinstance(input_data, Path):
        return parse_file(input_data, config=config, correlation_id=correlation_id)
    if hasattr(input_data, "read"):
        return _parse_content(input_data, config, correlation_id, time.perf_counter())

    return _create_error_result(
        f"Unsupported input type: {type(input_data).__name__}",
        correlation_id,
        0.0
    )


def parse_string(
    ofx_string: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse OFX from an already decoded string.

    Args:
        ofx_string: OFX content as string
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the element tree and metadata

    Examples:
        Unclosed leaf tags are closed by the enclosing close tag:
        >>> result = parse_string("<STMTTRN><TRNAMT>-10.00<FITID>1</STMTTRN>")
        >>> [child.name for child in result.root.children]
        ['TRNAMT', 'FITID']
    """
    return _parse_content(ofx_string, config, correlation_id, time.perf_counter())


def parse_bytes(
    data: bytes,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse OFX from raw bytes, detecting the character encoding.

    Args:
        data: Raw OFX content
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the element tree, detected encoding and metadata
    """
    return _parse_content(data, config, correlation_id, time.perf_counter())


def parse_file(
    file_path: Union[str, Path],
    encoding: Optional[str] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse OFX from a file with encoding detection.

    Args:
        file_path: Path to OFX file (string or Path object)
        encoding: Optional encoding override (auto-detected if not provided)
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the element tree and metadata

    Examples:
        Non-existent file handling:
        >>> result = parse_file("missing.ofx")
        >>> result.success
        False
        >>> "not found" in result.diagnostics[0].message.lower()
        True
    """
    start_time = time.perf_counter()
    logger = get_logger(__name__, correlation_id, "parse_file")
    config = config or ParserConfig.default()

    path_obj = Path(file_path)

    logger.info(
        "Starting file parse operation",
        extra={"file_path": str(path_obj), "encoding_override": encoding}
    )

    if not path_obj.exists():
        return _create_error_result(
            f"File not found: {path_obj}", correlation_id, _elapsed_ms(start_time)
        )
    if not path_obj.is_file():
        return _create_error_result(
            f"Path is not a file: {path_obj}", correlation_id, _elapsed_ms(start_time)
        )

    try:
        raw_data = path_obj.read_bytes()
    except PermissionError:
        logger.exception("Permission denied reading file")
        return _create_error_result(
            f"Permission denied accessing file: {path_obj}",
            correlation_id,
            _elapsed_ms(start_time)
        )
    except OSError as e:
        logger.exception("Failed to read file")
        return _create_error_result(
            f"Failed to read file {path_obj}: {e}",
            correlation_id,
            _elapsed_ms(start_time)
        )

    if encoding is None:
        return _parse_content(raw_data, config, correlation_id, start_time)

    try:
        content = raw_data.decode(encoding, errors=config.character.decode_errors)
    except LookupError:
        return _create_error_result(
            f"Unknown encoding: {encoding}", correlation_id, _elapsed_ms(start_time)
        )
    except UnicodeDecodeError as e:
        logger.exception("File does not decode with the requested encoding")
        return _create_error_result(
            f"Failed to decode file as {encoding}: {e}",
            correlation_id,
            _elapsed_ms(start_time)
        )

    result = _parse_content(content, config, correlation_id, start_time)
    result.encoding = encoding
    return result


def load_financial_information(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Optional[FinancialInformation]:
    """Parse a document and map it onto financial records.

    Args:
        input_data: OFX content as string, bytes, file-like object, or Path
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        FinancialInformation, or None when the document could not be parsed or
        lacks a usable sign-on response
    """
    config = config or ParserConfig.default()
    result = parse(input_data, config, correlation_id)
    if result.root is None:
        return None
    return FinancialInformation.from_element(
        result.root, strip_values=config.mapping.strip_values
    )


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * MS_PER_SECOND


def _parse_content(
    content: Union[str, bytes, BinaryIO, TextIO],
    config: Optional[ParserConfig],
    correlation_id: Optional[str],
    start_time: float
) -> ParseResult:
    """Run the decode, tokenize and build pipeline on in-memory content.

    Args:
        content: OFX content as string, bytes or file-like object
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking
        start_time: ``time.perf_counter()`` value when the operation began

    Returns:
        ParseResult with parsing information
    """
    config = config or ParserConfig.default()
    logger = get_logger(__name__, correlation_id, "parse_content")

    try:
        char_processor = CharacterStreamProcessor(config.character, correlation_id)
        char_result = char_processor.process(content)
    except (LookupError, UnicodeError) as e:
        logger.exception("Decoding failed")
        return _create_error_result(
            f"Input could not be decoded: {e}", correlation_id, _elapsed_ms(start_time)
        )

    if not char_result.success:
        return _create_error_result(
            char_result.error or "Input could not be read",
            correlation_id,
            _elapsed_ms(start_time)
        )

    tokenizer = OFXTokenizer(char_result.text, correlation_id)
    tree_builder = OFXTreeBuilder(
        correlation_id=correlation_id,
        collect_headers=config.tokenizer.collect_headers,
        max_tokens=config.tokenizer.max_tokens,
    )
    result = tree_builder.build(tokenizer)

    result.encoding = char_result.encoding.encoding
    for message in char_result.diagnostics:
        result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            message,
            "character_stream",
            details={"encoding": char_result.encoding.encoding}
        )
    if tokenizer.stopped_early:
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            f"Scanning stopped at offset {tokenizer.position} "
            f"of {len(char_result.text)}",
            "ofx_tokenizer",
            details={"position": tokenizer.position}
        )

    result.performance.characters_processed = len(char_result.text)
    result.performance.processing_time_ms = _elapsed_ms(start_time)

    logger.info(
        "Parse completed",
        extra={
            "success": result.success,
            "element_count": result.element_count,
            "encoding": result.encoding,
            "processing_time_ms": result.performance.processing_time_ms,
        }
    )
    return result


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    processing_time: float
) -> ParseResult:
    """Create error result following never-fail philosophy.

    Args:
        error_message: Error description
        correlation_id: Optional correlation ID
        processing_time: Processing time in milliseconds

    Returns:
        ParseResult with error information
    """
    result = ParseResult(correlation_id=correlation_id)
    result.success = False
    result.performance.processing_time_ms = processing_time

    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error_message,
        "api_parser"
    )

    return result


class OFXParser:
    """Configured OFX parser for reuse across many documents.

    Attributes:
        config: Parser configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        Parser reuse:
        >>> parser = OFXParser(ParserConfig.lenient())
        >>> results = [parser.parse(path) for path in statement_paths]
        >>> parser.statistics["total_parses"] == len(statement_paths)
        True
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            config: Parser configuration (defaults to ``ParserConfig.default()``)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ParserConfig.default()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "ofx_parser")

        # Parser state for multi-parse scenarios
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

    def parse(self, input_data: InputType) -> ParseResult:
        """Parse a document using this parser's configuration.

        Args:
            input_data: OFX content as string, bytes, file-like object, or Path

        Returns:
            ParseResult with the element tree and metadata
        """
        result = parse(input_data, self.config, self.correlation_id)

        self._parse_count += 1
        self._total_processing_time += result.processing_time_ms
        if result.success:
            self._successful_parses += 1

        self.logger.debug(
            "Configured parse completed",
            extra={
                "success": result.success,
                "total_parses": self._parse_count,
            }
        )
        return result

    def parse_financial(self, input_data: InputType) -> Optional[FinancialInformation]:
        """Parse a document and map it onto financial records.

        Returns:
            FinancialInformation, or None when parsing or mapping failed
        """
        result = self.parse(input_data)
        if result.root is None:
            return None
        return FinancialInformation.from_element(
            result.root, strip_values=self.config.mapping.strip_values
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

        self.logger.info("Parser statistics reset")
