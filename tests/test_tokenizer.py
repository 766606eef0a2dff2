"""Tests for the line-oriented XML tokenizer."""

import pytest

from shairportview.metadata import InvalidXMLError
from shairportview.tokenizer import (
    CharData,
    Comment,
    EndElement,
    EndOfInput,
    ProcessingInstruction,
    StartElement,
    XMLTokenizer,
)


class TestXMLTokenizer:
    """Test tokenizing of single and multi-line XML."""

    def setup_method(self):
        """Set up test fixtures."""
        self.tokenizer = XMLTokenizer()

    def test_single_line_item(self):
        tokens = list(self.tokenizer.tokens("<item><type>636f7265</type></item>"))

        assert tokens == [
            StartElement("item", {}),
            StartElement("type", {}),
            CharData("636f7265"),
            EndElement("type"),
            EndElement("item"),
            EndOfInput(),
        ]

    def test_attributes(self):
        tokens = list(self.tokenizer.tokens('<data encoding="base64">QUJD</data>'))

        assert tokens[0] == StartElement("data", {"encoding": "base64"})
        assert tokens[1] == CharData("QUJD")
        assert tokens[2] == EndElement("data")

    def test_ends_with_end_of_input(self):
        tokens = list(self.tokenizer.tokens("<item>"))
        assert tokens == [StartElement("item", {}), EndOfInput()]

    def test_element_spans_lines(self):
        """An element opened on one line can be closed on a later one."""
        first = list(self.tokenizer.tokens("<item><data>"))
        second = list(self.tokenizer.tokens("QUJD</data></item>"))

        assert first == [StartElement("item", {}), StartElement("data", {}), EndOfInput()]
        assert second == [CharData("QUJD"), EndElement("data"), EndElement("item"), EndOfInput()]

    def test_whitespace_between_tags_is_chardata(self):
        tokens = list(self.tokenizer.tokens("<item> <type>"))
        assert tokens == [StartElement("item", {}), CharData(" "), StartElement("type", {}), EndOfInput()]

    def test_comment_and_processing_instruction(self):
        tokens = list(self.tokenizer.tokens("<!-- hello --><?player volume?>"))
        assert tokens == [Comment(" hello "), ProcessingInstruction("player", "volume"), EndOfInput()]

    def test_entities_are_expanded(self):
        tokens = list(self.tokenizer.tokens("<code>a&amp;b</code>"))
        assert CharData("a&b") in tokens

    def test_malformed_line_yields_partial_tokens_then_raises(self):
        tokens = self.tokenizer.tokens("<item></type>")

        assert next(tokens) == StartElement("item", {})
        with pytest.raises(InvalidXMLError):
            next(tokens)

    def test_error_message_includes_line(self):
        with pytest.raises(InvalidXMLError, match="Malformed XML"):
            list(self.tokenizer.tokens("<item></type>"))

    def test_recovers_after_error(self):
        with pytest.raises(InvalidXMLError):
            list(self.tokenizer.tokens("<a></b>"))

        tokens = list(self.tokenizer.tokens("<item></item>"))
        assert tokens == [StartElement("item", {}), EndElement("item"), EndOfInput()]

    def test_reset_discards_open_elements(self):
        list(self.tokenizer.tokens("<item><data>"))
        self.tokenizer.reset()

        # The old <data> is gone, so closing it is now an error
        with pytest.raises(InvalidXMLError):
            list(self.tokenizer.tokens("</data>"))

    def test_stray_close_of_feed_root_starts_new_document(self):
        """Closing the wrapping element ends the document, the next line starts afresh."""
        list(self.tokenizer.tokens("</shairport-feed>"))

        tokens = list(self.tokenizer.tokens("<item></item>"))
        assert tokens == [StartElement("item", {}), EndElement("item"), EndOfInput()]
