"""Character stream processing for OFX input.

Turns ``str``, ``bytes``, or file-like input into the Unicode text consumed by the
tokenizer, using :class:`OFXEncodingDetector` for byte input.
"""

from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional, TextIO, Union

from robust_ofx_parser.shared.config import CharacterConfig
from robust_ofx_parser.shared.logging import get_logger

from .encoding import DetectionMethod, EncodingResult, OFXEncodingDetector

# Type definitions for input data
InputType = Union[bytes, str, BinaryIO, TextIO]


@dataclass
class CharacterStreamResult:
    """Result of character stream processing.

    Attributes:
        text: Decoded character stream
        encoding: Encoding detection result with confidence and method
        diagnostics: Diagnostic messages from decoding
        metadata: Additional processing metadata
        error: Description of the failure when no text could be produced
    """
    text: str
    encoding: EncodingResult
    diagnostics: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Whether the input was turned into text."""
        return self.error is None


class CharacterStreamProcessor:
    """Character stream processor with never-fail guarantee.

    The only exception that escapes :meth:`process` is :class:`UnicodeDecodeError`
    when the configuration asks for ``decode_errors="strict"``.
    """

    def __init__(
        self,
        config: Optional[CharacterConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the character stream processor.

        Args:
            config: Character layer configuration
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or CharacterConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "character_stream")
        self._encoding_detector = OFXEncodingDetector(
            fallback_encoding=self.config.fallback_encoding,
            detect_bom=self.config.detect_bom,
            use_header_charset=self.config.use_header_charset,
        )

    def process(self, input_data: InputType) -> CharacterStreamResult:
        """Decode input into text.

        Args:
            input_data: Input data as bytes, string, or file-like object

        Returns:
            CharacterStreamResult with decoded text and detection metadata

        Raises:
            UnicodeDecodeError: Only when ``decode_errors`` is ``"strict"`` and the
                bytes do not decode with the detected encoding
        """
        if isinstance(input_data, str):
            return self._process_string(input_data)
        if isinstance(input_data, (bytes, bytearray)):
            return self._process_bytes(bytes(input_data))
        if hasattr(input_data, "read"):
            return self._process_file(input_data)
        return self._create_error_result(
            f"Unsupported input type: {type(input_data).__name__}"
        )

    def _check_size(self, size: int) -> Optional[str]:
        limit = self.config.max_input_size_bytes
        if limit is not None and size > limit:
            return f"Input size {size} exceeds limit of {limit} bytes"
        return None

    def _process_bytes(self, data: bytes) -> CharacterStreamResult:
        """Process bytes input with encoding detection."""
        size_error = self._check_size(len(data))
        if size_error:
            return self._create_error_result(size_error)

        encoding_result = self._encoding_detector.detect(data)
        diagnostics = [f"Encoding detection: {issue}" for issue in encoding_result.issues]

        if encoding_result.method is DetectionMethod.FALLBACK and encoding_result.issues:
            self.logger.warning(
                "Falling back to default encoding",
                extra={"encoding": encoding_result.encoding},
            )

        errors = self.config.decode_errors
        try:
            text = data.decode(encoding_result.encoding, errors=errors)
        except LookupError as e:
            self.logger.error(
                "Detected encoding cannot decode bytes",
                extra={"encoding": encoding_result.encoding},
            )
            return self._create_error_result(
                f"Cannot decode input as {encoding_result.encoding}: {e}"
            )
        if errors == "replace" and "\ufffd" in text:
            diagnostics.append("Some bytes could not be decoded and were replaced")

        self.logger.debug(
            "Decoded byte input",
            extra={
                "encoding": encoding_result.encoding,
                "method": encoding_result.method.value,
                "input_size": len(data),
            },
        )

        return CharacterStreamResult(
            text=text,
            encoding=encoding_result,
            diagnostics=diagnostics,
            metadata={
                "input_type": "bytes",
                "input_size": len(data),
                "output_size": len(text),
            },
        )

    def _process_string(self, text: str) -> CharacterStreamResult:
        """Process string input, which is already decoded."""
        size_error = self._check_size(len(text))
        if size_error:
            return self._create_error_result(size_error)

        # A BOM that survived an external decode is not part of the document
        if text.startswith("\ufeff"):
            text = text[1:]

        return CharacterStreamResult(
            text=text,
            encoding=EncodingResult(
                encoding="utf-8",
                confidence=1.0,
                method=DetectionMethod.FALLBACK,
            ),
            metadata={
                "input_type": "str",
                "input_size": len(text),
                "output_size": len(text),
            },
        )

    def _process_file(self, file_obj: Union[BinaryIO, TextIO]) -> CharacterStreamResult:
        """Process file-like object input."""
        try:
            data = file_obj.read()
        except OSError as e:
            self.logger.warning("Failed to read input stream", exc_info=True)
            return self._create_error_result(f"File processing error: {e}")

        if isinstance(data, (bytes, bytearray)):
            return self._process_bytes(bytes(data))
        if isinstance(data, str):
            return self._process_string(data)
        return self._create_error_result(
            f"File object returned unsupported data: {type(data).__name__}"
        )

    def _create_error_result(self, error_message: str) -> CharacterStreamResult:
        """Create a result object for error conditions."""
        return CharacterStreamResult(
            text="",
            encoding=EncodingResult(
                encoding="utf-8",
                confidence=0.0,
                method=DetectionMethod.FALLBACK,
                issues=[error_message],
            ),
            diagnostics=[error_message],
            metadata={"error": True},
            error=error_message,
        )
