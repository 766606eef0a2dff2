"""Tests for the console handler."""

import io

from shairportview.console import make_console_handler
from shairportview.metadata import Album, Track


class TestConsoleHandler:
    def test_prints_one_line_per_event(self):
        out = io.StringIO()
        handler = make_console_handler(out)

        handler(Track("Test Title"))
        handler(Album("Test Album"))

        assert out.getvalue() == "Track: Test Title\nAlbum: Test Album\n"

    def test_defaults_to_stdout(self, capsys):
        handler = make_console_handler()

        handler(Track("Test Title"))

        assert capsys.readouterr().out == "Track: Test Title\n"
