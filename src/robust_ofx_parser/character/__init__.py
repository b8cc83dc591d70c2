"""Character processing layer for the robust OFX parser.

This module provides encoding detection and byte-to-text decoding following the
never-fail philosophy.
"""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingResult,
    OFXEncodingDetector,
    OFXHeaderParser,
    UTF8Validator,
)
from .stream import (
    CharacterStreamProcessor,
    CharacterStreamResult,
)

__all__ = [
    # Encoding detection
    "BOMDetector",
    "DetectionMethod",
    "EncodingResult",
    "OFXEncodingDetector",
    "OFXHeaderParser",
    "UTF8Validator",
    # Stream processing
    "CharacterStreamProcessor",
    "CharacterStreamResult",
]
