"""Multi-stage encoding detection for OFX byte streams.

OFX 1.x files announce their character set in the plain-text header block
(``ENCODING:USASCII`` / ``CHARSET:1252``) rather than in an XML declaration, and
many bank exports ship Windows-1252 text without saying so. Detection therefore
runs these stages in order:

1. Byte order mark
2. OFX header ``ENCODING`` / ``CHARSET`` lines
3. Strict UTF-8 validation
4. Configured fallback encoding (``cp1252`` by default)
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

# Number of leading bytes searched for the OFX header block
HEADER_SCAN_SIZE = 1024

CONFIDENCE_BOM = 1.0
CONFIDENCE_HEADER = 0.9
CONFIDENCE_UTF8_VALID = 0.8
CONFIDENCE_ASCII_ONLY = 1.0
CONFIDENCE_FALLBACK = 0.5

ASCII_MAX = 0x80


def is_text_encoding(encoding: str) -> bool:
    """Check that ``encoding`` names a codec that decodes bytes to str.

    Codecs such as ``base64`` or ``rot13`` are registered with Python but
    cannot be used with ``bytes.decode``.
    """
    try:
        info = codecs.lookup(encoding)
    except LookupError:
        return False
    return getattr(info, "_is_text_encoding", True)


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    BOM = "bom"
    OFX_HEADER = "ofx_header"
    UTF8_VALIDATION = "utf8_validation"
    FALLBACK = "fallback"


@dataclass
class EncodingResult:
    """Result of encoding detection with confidence scoring.

    Attributes:
        encoding: Detected encoding name, usable with :meth:`bytes.decode`
        confidence: Confidence score from 0.0 to 1.0
        method: Detection method used
        issues: List of issues found during detection
    """
    encoding: str
    confidence: float
    method: DetectionMethod
    issues: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


class BOMDetector:
    """Byte Order Mark detection for the encodings OFX files are seen in."""

    # Ordered longest first so UTF-32 is not mistaken for UTF-16
    BOM_PATTERNS: ClassVar[Tuple[Tuple[bytes, str], ...]] = (
        (b"\xff\xfe\x00\x00", "utf-32"),
        (b"\x00\x00\xfe\xff", "utf-32"),
        (b"\xef\xbb\xbf", "utf-8-sig"),
        (b"\xff\xfe", "utf-16"),
        (b"\xfe\xff", "utf-16"),
    )

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on a leading BOM.

        The returned codec names consume the BOM while decoding, so the mark
        never reaches the tokenizer as header text.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if a BOM was found, None otherwise
        """
        for bom_bytes, encoding in self.BOM_PATTERNS:
            if data.startswith(bom_bytes):
                return EncodingResult(
                    encoding=encoding,
                    confidence=CONFIDENCE_BOM,
                    method=DetectionMethod.BOM,
                )
        return None


class OFXHeaderParser:
    """Parser for the character set announced in an OFX 1.x header block."""

    HEADER_LINE_PATTERN = re.compile(
        rb"^[ \t]*(ENCODING|CHARSET)[ \t]*:[ \t]*([^\r\n<]*)", re.IGNORECASE | re.MULTILINE
    )

    CHARSET_ALIASES: ClassVar[dict] = {
        "1252": "cp1252",
        "WINDOWS-1252": "cp1252",
        "ISO-8859-1": "latin-1",
        "8859-1": "latin-1",
        "LATIN1": "latin-1",
        "UTF-8": "utf-8",
        "UTF8": "utf-8",
    }

    def parse_header(self, data: bytes) -> Optional[EncodingResult]:
        """Read ``ENCODING`` and ``CHARSET`` values from the header block.

        ``ENCODING:UTF-8`` wins over any ``CHARSET`` value. ``CHARSET:NONE`` and
        ``ENCODING:USASCII`` carry no information beyond "ASCII compatible", so
        they yield no result and detection continues with the next stage.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult if the header names a usable charset, None otherwise
        """
        head = data[:HEADER_SCAN_SIZE]
        # The header block ends where the SGML body starts
        body_start = head.find(b"<")
        if body_start != -1:
            head = head[:body_start]

        declared = {}
        for match in self.HEADER_LINE_PATTERN.finditer(head):
            key = match.group(1).decode("ascii").upper()
            value = match.group(2).decode("ascii", errors="ignore").strip().upper()
            declared[key] = value

        if declared.get("ENCODING") in ("UTF-8", "UTF8"):
            return EncodingResult(
                encoding="utf-8",
                confidence=CONFIDENCE_HEADER,
                method=DetectionMethod.OFX_HEADER,
            )

        charset = declared.get("CHARSET")
        if not charset or charset == "NONE":
            return None

        encoding = self.CHARSET_ALIASES.get(charset, charset.lower())
        if not self._is_valid_encoding(encoding):
            return EncodingResult(
                encoding=encoding,
                confidence=0.0,
                method=DetectionMethod.OFX_HEADER,
                issues=[f"Unknown declared charset: {charset}"],
            )

        return EncodingResult(
            encoding=encoding,
            confidence=CONFIDENCE_HEADER,
            method=DetectionMethod.OFX_HEADER,
        )

    def _is_valid_encoding(self, encoding: str) -> bool:
        """Check if encoding is a text codec known to Python."""
        return is_text_encoding(encoding)


class UTF8Validator:
    """Strict UTF-8 validation."""

    def validate(self, data: bytes) -> Optional[EncodingResult]:
        """Return a UTF-8 result if ``data`` decodes strictly, else None."""
        try:
            data.decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            return None

        if all(byte < ASCII_MAX for byte in data):
            confidence = CONFIDENCE_ASCII_ONLY
        else:
            confidence = CONFIDENCE_UTF8_VALID
        return EncodingResult(
            encoding="utf-8",
            confidence=confidence,
            method=DetectionMethod.UTF8_VALIDATION,
        )


class OFXEncodingDetector:
    """Main encoding detection class with never-fail guarantee.

    Implements a cascading detection strategy:
    1. BOM detection
    2. OFX header charset
    3. UTF-8 validation
    4. Fallback to the configured single-byte encoding
    """

    def __init__(
        self,
        fallback_encoding: str = "cp1252",
        detect_bom: bool = True,
        use_header_charset: bool = True,
    ) -> None:
        """Initialize detection components.

        Args:
            fallback_encoding: Encoding used when no stage is conclusive
            detect_bom: Whether to honour byte order marks
            use_header_charset: Whether to honour OFX ``CHARSET`` headers
        """
        self.fallback_encoding = fallback_encoding
        self.detect_bom = detect_bom
        self.use_header_charset = use_header_charset
        self.bom_detector = BOMDetector()
        self.header_parser = OFXHeaderParser()
        self.utf8_validator = UTF8Validator()

    def detect(self, data: bytes) -> EncodingResult:
        """Detect encoding using the multi-stage detection system.

        Args:
            data: Byte data to analyze

        Returns:
            EncodingResult with detected encoding and metadata
        """
        if not data:
            return EncodingResult(
                encoding="utf-8",
                confidence=1.0,
                method=DetectionMethod.FALLBACK,
            )

        issues: List[str] = []

        if self.detect_bom:
            bom_result = self.bom_detector.detect(data)
            if bom_result is not None:
                return bom_result

        if self.use_header_charset:
            header_result = self.header_parser.parse_header(data)
            if header_result is not None:
                if header_result.confidence > 0.0:
                    return header_result
                issues.extend(header_result.issues)

        utf8_result = self.utf8_validator.validate(data)
        if utf8_result is not None:
            utf8_result.issues.extend(issues)
            return utf8_result

        issues.append(
            f"Input is not valid UTF-8, falling back to {self.fallback_encoding}"
        )
        return EncodingResult(
            encoding=self.fallback_encoding,
            confidence=CONFIDENCE_FALLBACK,
            method=DetectionMethod.FALLBACK,
            issues=issues,
        )
