"""Tests for the two-phase OFX tokenizer."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from robust_ofx_parser.tokenization import (
    CloseTag,
    Content,
    Header,
    Newline,
    OFXTokenizer,
    OpenTag,
    TokenizerState,
    TokenType,
    tokenize,
)


class TestTokenClasses:
    """Test the token stream for single lines of each class."""

    @pytest.mark.parametrize("text", ["KEY:VALUE\n", "KEY:VALUE\r\n"])
    def test_header_line(self, text):
        """Test that one header line yields exactly one Header."""
        assert list(OFXTokenizer(text)) == [Header("KEY", "VALUE")]

    def test_open_tag_line(self):
        """Test an open tag followed by a line break."""
        assert list(OFXTokenizer("<TAG>\n")) == [OpenTag("TAG"), Newline()]

    def test_close_tag_line(self):
        """Test a close tag followed by a line break."""
        assert list(OFXTokenizer("</TAG>\n")) == [CloseTag("TAG"), Newline()]

    def test_content_line(self):
        """Test a text line with a CRLF terminator."""
        assert list(OFXTokenizer("THIS IS TEXT\r\n")) == [
            Content("THIS IS TEXT"),
            Newline(),
        ]

    def test_empty_input(self):
        """Test that empty input yields no tokens."""
        assert list(OFXTokenizer("")) == []

    def test_tag_case_preserved(self):
        """Test that the tokenizer does not normalize tag names."""
        assert list(OFXTokenizer("<StmtTrn>")) == [OpenTag("StmtTrn")]

    def test_token_types(self):
        """Test the type tag attached to each token class."""
        assert Header("A", "B").type is TokenType.HEADER
        assert OpenTag("A").type is TokenType.OPEN_TAG
        assert CloseTag("A").type is TokenType.CLOSE_TAG
        assert Newline().type is TokenType.NEWLINE
        assert Content("A").type is TokenType.CONTENT


class TestPhaseTransition:
    """Test the header to body state machine."""

    def test_header_block_then_body(self):
        """Test a typical SGML header followed by the body."""
        text = "OFXHEADER:100\r\nDATA:OFXSGML\r\n\r\n<OFX>\r\n<CODE>0\r\n</OFX>"

        tokens = list(OFXTokenizer(text))

        assert tokens == [
            Header("OFXHEADER", "100"),
            Header("DATA", "OFXSGML"),
            Newline(),
            OpenTag("OFX"),
            Newline(),
            OpenTag("CODE"),
            Content("0"),
            Newline(),
            CloseTag("OFX"),
        ]

    def test_transition_is_irreversible(self):
        """Test that header-shaped lines after the body starts are content."""
        tokenizer = OFXTokenizer("A:1\n<OFX>\nB:2\n")

        tokens = list(tokenizer)

        assert tokens == [
            Header("A", "1"),
            OpenTag("OFX"),
            Newline(),
            Content("B:2"),
            Newline(),
        ]
        assert tokenizer.state is TokenizerState.BODY

    def test_state_starts_in_header(self):
        """Test the initial state."""
        tokenizer = OFXTokenizer("A:1\n<OFX>")

        assert tokenizer.state is TokenizerState.HEADER
        next(tokenizer)
        assert tokenizer.state is TokenizerState.HEADER
        next(tokenizer)
        assert tokenizer.state is TokenizerState.BODY

    def test_header_without_body(self):
        """Test a header-only document."""
        assert list(OFXTokenizer("A:1\nB:2\n")) == [Header("A", "1"), Header("B", "2")]


class TestTermination:
    """Test end of iteration and early stops."""

    def test_position_and_counters(self):
        """Test cursor and counters after full consumption."""
        tokenizer = OFXTokenizer("<OFX></OFX>")

        list(tokenizer)

        assert tokenizer.position == 11
        assert tokenizer.tokens_emitted == 2
        assert tokenizer.finished is True
        assert tokenizer.stopped_early is False

    def test_stray_angle_bracket_stops(self):
        """Test that an unrecognizable character ends the stream."""
        tokenizer = OFXTokenizer("<OFX>>rest</OFX>")

        tokens = list(tokenizer)

        assert tokens == [OpenTag("OFX")]
        assert tokenizer.stopped_early is True
        assert tokenizer.position == 5

    def test_exhausted_stays_exhausted(self):
        """Test that the tokenizer cannot be restarted."""
        tokenizer = OFXTokenizer("<OFX>")
        list(tokenizer)

        with pytest.raises(StopIteration):
            next(tokenizer)
        assert list(tokenizer) == []

    def test_caller_may_stop_early(self):
        """Test lazy consumption of the first tokens only."""
        tokenizer = OFXTokenizer("<A><B><C>")

        assert next(tokenizer) == OpenTag("A")
        assert tokenizer.position == 3
        assert tokenizer.finished is False


class TestTokenizeFunction:
    """Test the materializing tokenize() helper."""

    def test_result_statistics(self):
        """Test counts and headers on the result."""
        result = tokenize("A:1\nA:2\n<OFX>\n</OFX>")

        assert result.token_count == 5
        assert result.token_counts[TokenType.HEADER] == 2
        assert result.token_counts[TokenType.NEWLINE] == 1
        assert result.token_counts[TokenType.CONTENT] == 0
        assert result.headers == {"A": "2"}
        assert result.character_count == 20
        assert result.stopped_early is False
        assert result.diagnostics == []

    def test_max_tokens(self):
        """Test truncation at the token limit."""
        result = tokenize("<A><B><C>", max_tokens=2)

        assert result.tokens == [OpenTag("A"), OpenTag("B")]
        assert result.truncated is True
        assert result.stopped_early is False
        assert "Token limit of 2" in result.diagnostics[0]

    def test_stopped_early_diagnostic(self):
        """Test reporting of an early stop."""
        result = tokenize("<A>>")

        assert result.stopped_early is True
        assert result.stop_position == 3
        assert "offset 3" in result.diagnostics[0]


class TestTokenizerInvariants:
    """Property-based tests that must hold for any input."""

    @given(st.text(max_size=500))
    @settings(max_examples=200)
    def test_total_over_any_text(self, text: str) -> None:
        """Tokenizing never raises and never reads past the input."""
        tokenizer = OFXTokenizer(text)

        tokens = list(tokenizer)

        assert tokenizer.finished is True
        assert 0 <= tokenizer.position <= len(text)
        assert tokenizer.tokens_emitted == len(tokens)

    @given(st.text(alphabet="<>/:\r\n AB1", max_size=200))
    @settings(max_examples=300)
    def test_content_never_empty_or_markup(self, text: str) -> None:
        """Content tokens are non-empty and hold no markup or line breaks."""
        for token in OFXTokenizer(text):
            if isinstance(token, Content):
                assert token.text
                assert not set(token.text) & set("<>\r\n")

    @given(st.text(alphabet="<>/:\r\n AB1", max_size=200))
    @settings(max_examples=300)
    def test_headers_only_before_body(self, text: str) -> None:
        """No Header token follows a body token."""
        seen_body = False
        for token in OFXTokenizer(text):
            if isinstance(token, Header):
                assert not seen_body
            else:
                seen_body = True

    @given(st.text(alphabet=":\r\n \tAB1", max_size=200))
    @settings(max_examples=200)
    def test_markup_free_text_is_fully_consumed(self, text: str) -> None:
        """Text without angle brackets always scans to the end."""
        tokenizer = OFXTokenizer(text)
        list(tokenizer)

        assert tokenizer.stopped_early is False
        assert tokenizer.position == len(text)
