"""Tests for the feed driver and the parse_metadata entry points."""

import io
from unittest.mock import Mock, call

import pytest
from conftest import b64, item_line

from shairportview.config import FeedConfig
from shairportview.feed import FeedDriver, decode_and_dispatch, parse_metadata, parse_metadata_ret_err
from shairportview.metadata import Album, Artist, InvalidXMLError, LineSourceError, Track
from shairportview.metadata_reader import MetadataDecoder

CORE = "636f7265"

TITLE = item_line(CORE, "6d696e6d", b64("Test Title"))
ARTIST = item_line(CORE, "61736172", b64("Test Artist"))
ALBUM = item_line(CORE, "6173616c", b64("Test Album"))


class FailingSource:
    """Line source that returns some lines, then fails."""

    def __init__(self, lines, error):
        self._lines = list(lines)
        self._error = error

    def readline(self):
        if self._lines:
            return self._lines.pop(0)
        raise self._error


class TestDecodeAndDispatch:
    """Test delivery of one line's events."""

    def setup_method(self):
        """Set up test fixtures."""
        self.decoder = MetadataDecoder()
        self.handler = Mock()

    def test_delivers_in_order(self):
        count = decode_and_dispatch(self.decoder, TITLE + ARTIST, self.handler)

        assert count == 2
        assert self.handler.call_args_list == [call(Track("Test Title")), call(Artist("Test Artist"))]

    def test_malformed_line_is_skipped(self):
        count = decode_and_dispatch(self.decoder, "<item></oops>", self.handler)

        assert count == 0
        self.handler.assert_not_called()

    def test_partial_events_are_delivered(self):
        count = decode_and_dispatch(self.decoder, TITLE + "<bad></oops>", self.handler)

        assert count == 1
        self.handler.assert_called_once_with(Track("Test Title"))

    def test_strict_mode_raises_after_delivering(self):
        with pytest.raises(InvalidXMLError):
            decode_and_dispatch(self.decoder, TITLE + "<bad></oops>", self.handler, stop_on_xml_error=True)

        self.handler.assert_called_once_with(Track("Test Title"))

    def test_xml_error_is_captured(self):
        capture = Mock()
        decode_and_dispatch(self.decoder, "<item></oops>", self.handler, capture=capture)

        capture.capture_event.assert_called_once()
        assert capture.capture_event.call_args[0][0] == "xml_error"


class TestFeedDriver:
    """Test the read-decode-dispatch loop."""

    def setup_method(self):
        """Set up test fixtures."""
        self.handler = Mock()
        self.sleep = Mock()
        self.decoder = MetadataDecoder()

    def make_driver(self, source, config=None, capture=None):
        return FeedDriver(
            source, self.handler, decoder=self.decoder, config=config, capture=capture, sleep=self.sleep
        )

    def test_delivers_events_until_end_of_stream(self):
        source = io.StringIO(f"{TITLE}\n{ARTIST}\n{ALBUM}\n")
        driver = self.make_driver(source)

        driver.run()

        assert self.handler.call_args_list == [
            call(Track("Test Title")),
            call(Artist("Test Artist")),
            call(Album("Test Album")),
        ]
        assert driver.lines_read == 3
        assert driver.events_delivered == 3

    def test_empty_source(self):
        self.make_driver(io.StringIO("")).run()
        self.handler.assert_not_called()

    def test_blank_line_sleeps(self):
        source = io.StringIO(f"\n{TITLE}\n")
        self.make_driver(source, config=FeedConfig(idle_sleep_seconds=0.05)).run()

        self.sleep.assert_called_once_with(0.05)
        self.handler.assert_called_once_with(Track("Test Title"))

    def test_last_line_without_newline(self):
        self.make_driver(io.StringIO(TITLE)).run()
        self.handler.assert_called_once_with(Track("Test Title"))

    def test_crlf_line_endings(self):
        self.make_driver(io.StringIO(f"{TITLE}\r\n")).run()
        self.handler.assert_called_once_with(Track("Test Title"))

    def test_multi_line_items(self):
        lines = [
            f"<item><type>{CORE}</type><code>61736172</code><length>11</length>",
            '<data encoding="base64">',
            f"{b64('Test Artist')}</data></item>",
        ]
        self.make_driver(io.StringIO("\n".join(lines) + "\n")).run()

        self.handler.assert_called_once_with(Artist("Test Artist"))

    def test_malformed_line_does_not_stop_feed(self):
        source = io.StringIO(f"<item></oops>\n{TITLE}\n")
        self.make_driver(source).run()

        self.handler.assert_called_once_with(Track("Test Title"))

    def test_strict_mode_stops_on_malformed_line(self):
        source = io.StringIO(f"<item></oops>\n{TITLE}\n")

        with pytest.raises(InvalidXMLError):
            self.make_driver(source, config=FeedConfig(stop_on_xml_error=True)).run()

        self.handler.assert_not_called()

    def test_handler_error_stops_feed(self):
        self.handler.side_effect = RuntimeError("handler failed")
        source = io.StringIO(f"{TITLE}\n{ARTIST}\n")
        driver = self.make_driver(source)

        with pytest.raises(RuntimeError, match="handler failed"):
            driver.run()

        assert driver.lines_read == 1
        self.handler.assert_called_once()

    def test_read_error_raises_line_source_error(self):
        source = FailingSource([f"{TITLE}\n"], OSError("pipe broken"))

        with pytest.raises(LineSourceError, match="pipe broken"):
            self.make_driver(source).run()

        self.handler.assert_called_once_with(Track("Test Title"))

    def test_closed_source_raises_line_source_error(self):
        source = io.StringIO(TITLE)
        source.close()

        with pytest.raises(LineSourceError):
            self.make_driver(source).run()

    def test_lines_are_captured(self):
        capture = Mock()
        self.make_driver(io.StringIO(f"{TITLE}\n\n"), capture=capture).run()

        assert capture.capture_line.call_args_list == [call(f"{TITLE}\n"), call("\n")]


class TestParseMetadata:
    """Test the pipe-opening entry points."""

    def setup_method(self):
        """Set up test fixtures."""
        self.handler = Mock()

    def test_reads_pipe_path(self, tmp_path):
        pipe = tmp_path / "metadata"
        pipe.write_text(f"{TITLE}\n{ARTIST}\n", encoding="utf-8")

        parse_metadata_ret_err(str(pipe), self.handler)

        assert self.handler.call_args_list == [call(Track("Test Title")), call(Artist("Test Artist"))]

    def test_reads_path_from_argv(self, tmp_path):
        pipe = tmp_path / "metadata"
        pipe.write_text(f"{ALBUM}\n", encoding="utf-8")

        parse_metadata_ret_err(None, self.handler, argv=["shairport-view", str(pipe)])

        self.handler.assert_called_once_with(Album("Test Album"))

    def test_missing_pipe_raises(self, tmp_path):
        with pytest.raises(LineSourceError, match="Could not open metadata source"):
            parse_metadata_ret_err(str(tmp_path / "missing"), self.handler)

    def test_handler_error_propagates(self, tmp_path):
        pipe = tmp_path / "metadata"
        pipe.write_text(f"{TITLE}\n", encoding="utf-8")
        self.handler.side_effect = ValueError("display gone")

        with pytest.raises(ValueError, match="display gone"):
            parse_metadata_ret_err(str(pipe), self.handler)

    def test_parse_metadata_success(self, tmp_path):
        pipe = tmp_path / "metadata"
        pipe.write_text(f"{TITLE}\n", encoding="utf-8")

        assert parse_metadata(str(pipe), self.handler) is True
        self.handler.assert_called_once_with(Track("Test Title"))

    def test_parse_metadata_failure_is_logged(self, tmp_path, caplog):
        with caplog.at_level("ERROR", logger="feed"):
            assert parse_metadata(str(tmp_path / "missing"), self.handler) is False

        assert "Metadata feed stopped" in caplog.text

    def test_uses_given_decoder(self, tmp_path):
        pipe = tmp_path / "metadata"
        pipe.write_text(f"<item><type>{CORE}</type><code>6d696e6d</code>\n", encoding="utf-8")
        decoder = MetadataDecoder()

        parse_metadata_ret_err(str(pipe), self.handler, decoder=decoder)

        # The unfinished item is still pending in the decoder
        assert decoder.curr_code == "minm"
        self.handler.assert_not_called()
