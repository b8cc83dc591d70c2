"""Tests for multi-stage OFX encoding detection."""

import pytest

from robust_ofx_parser.character.encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingResult,
    OFXEncodingDetector,
    OFXHeaderParser,
    UTF8Validator,
)

SGML_HEADER = (
    b"OFXHEADER:100\r\n"
    b"DATA:OFXSGML\r\n"
    b"VERSION:102\r\n"
    b"SECURITY:NONE\r\n"
    b"ENCODING:USASCII\r\n"
    b"CHARSET:1252\r\n"
    b"COMPRESSION:NONE\r\n"
    b"OLDFILEUID:NONE\r\n"
    b"NEWFILEUID:NONE\r\n"
    b"\r\n"
)


class TestEncodingResult:
    """Test EncodingResult validation."""

    def test_confidence_out_of_range(self):
        """Test that confidence above 1.0 is rejected."""
        with pytest.raises(ValueError, match="Confidence"):
            EncodingResult("utf-8", 1.5, DetectionMethod.FALLBACK)


class TestBOMDetector:
    """Test byte order mark detection."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            (b"\xef\xbb\xbf<OFX>", "utf-8-sig"),
            (b"\xff\xfe<\x00", "utf-16"),
            (b"\xfe\xff\x00<", "utf-16"),
            (b"\xff\xfe\x00\x00<\x00\x00\x00", "utf-32"),
        ],
    )
    def test_detects_bom(self, data, expected):
        """Test each supported BOM."""
        result = BOMDetector().detect(data)

        assert result is not None
        assert result.encoding == expected
        assert result.method is DetectionMethod.BOM
        assert result.confidence == 1.0

    def test_no_bom(self):
        """Test input without a BOM."""
        assert BOMDetector().detect(b"OFXHEADER:100") is None


class TestOFXHeaderParser:
    """Test OFX header charset extraction."""

    def test_charset_1252(self):
        """Test the common Windows-1252 declaration."""
        result = OFXHeaderParser().parse_header(SGML_HEADER + b"<OFX>")

        assert result.encoding == "cp1252"
        assert result.method is DetectionMethod.OFX_HEADER

    def test_encoding_utf8_wins(self):
        """Test that ENCODING:UTF-8 takes precedence over CHARSET."""
        data = b"ENCODING:UTF-8\nCHARSET:1252\n<OFX>"

        result = OFXHeaderParser().parse_header(data)

        assert result.encoding == "utf-8"

    def test_charset_latin1_alias(self):
        """Test ISO-8859-1 alias resolution."""
        result = OFXHeaderParser().parse_header(b"CHARSET:ISO-8859-1\n<OFX>")

        assert result.encoding == "latin-1"

    def test_charset_none(self):
        """Test that CHARSET:NONE is inconclusive."""
        assert OFXHeaderParser().parse_header(b"CHARSET:NONE\n<OFX>") is None

    def test_unknown_charset(self):
        """Test that an unknown charset is reported with zero confidence."""
        result = OFXHeaderParser().parse_header(b"CHARSET:KLINGON\n<OFX>")

        assert result.confidence == 0.0
        assert "KLINGON" in result.issues[0]

    def test_non_text_charset(self):
        """Test that bytes-to-bytes codecs are not accepted as a charset."""
        result = OFXHeaderParser().parse_header(b"CHARSET:BASE64\n<OFX>")

        assert result.confidence == 0.0
        assert "BASE64" in result.issues[0]

    def test_charset_in_body_ignored(self):
        """Test that text after the first tag is not treated as header."""
        data = b"OFXHEADER:100\n<OFX>\nCHARSET:1252\n"

        assert OFXHeaderParser().parse_header(data) is None


class TestUTF8Validator:
    """Test strict UTF-8 validation."""

    def test_ascii(self):
        """Test that pure ASCII is fully confident."""
        result = UTF8Validator().validate(b"<OFX>")

        assert result.encoding == "utf-8"
        assert result.confidence == 1.0

    def test_multibyte(self):
        """Test valid multi-byte UTF-8."""
        result = UTF8Validator().validate("<NAME>Café".encode("utf-8"))

        assert result.confidence == 0.8

    def test_invalid(self):
        """Test bytes that are not UTF-8."""
        assert UTF8Validator().validate(b"<NAME>Caf\xe9") is None


class TestOFXEncodingDetector:
    """Test the cascading detector."""

    def test_empty_input(self):
        """Test that empty input is treated as UTF-8."""
        result = OFXEncodingDetector().detect(b"")

        assert result.encoding == "utf-8"
        assert result.method is DetectionMethod.FALLBACK

    def test_bom_first(self):
        """Test that a BOM wins over a header charset."""
        result = OFXEncodingDetector().detect(b"\xef\xbb\xbfCHARSET:1252\n<OFX>")

        assert result.method is DetectionMethod.BOM

    def test_bom_disabled(self):
        """Test that BOM detection can be switched off."""
        detector = OFXEncodingDetector(detect_bom=False)

        result = detector.detect(b"\xef\xbb\xbfCHARSET:1252\n<OFX>")

        assert result.method is DetectionMethod.OFX_HEADER

    def test_header_charset(self):
        """Test detection from the OFX header block."""
        result = OFXEncodingDetector().detect(SGML_HEADER + b"<OFX><NAME>Caf\xe9</OFX>")

        assert result.encoding == "cp1252"

    def test_header_charset_disabled(self):
        """Test that header charsets can be ignored."""
        detector = OFXEncodingDetector(use_header_charset=False)

        result = detector.detect(b"CHARSET:1252\n<OFX>")

        assert result.method is DetectionMethod.UTF8_VALIDATION

    def test_unknown_charset_falls_through(self):
        """Test that an unusable header keeps its issue and continues."""
        result = OFXEncodingDetector().detect(b"CHARSET:KLINGON\n<OFX>")

        assert result.method is DetectionMethod.UTF8_VALIDATION
        assert any("KLINGON" in issue for issue in result.issues)

    def test_non_text_charset_falls_through(self):
        """Test that a declared binary codec falls through to UTF-8 validation."""
        result = OFXEncodingDetector().detect(b"OFXHEADER:100\nCHARSET:HEX\n<OFX>")

        assert result.encoding == "utf-8"
        assert result.method is DetectionMethod.UTF8_VALIDATION

    def test_fallback(self):
        """Test the fallback for undeclared non-UTF-8 bytes."""
        result = OFXEncodingDetector().detect(b"<NAME>Caf\xe9")

        assert result.encoding == "cp1252"
        assert result.method is DetectionMethod.FALLBACK
        assert result.confidence == 0.5
        assert result.issues

    def test_custom_fallback(self):
        """Test a configured fallback encoding."""
        result = OFXEncodingDetector(fallback_encoding="latin-1").detect(b"\xe9")

        assert result.encoding == "latin-1"
