"""Tests for the metadata event types and error hierarchy."""

import pygame

from shairportview.art import ArtFormat, CoverArt
from shairportview.metadata import (
    Album,
    Art,
    ArtDecodeError,
    Artist,
    Base64DecodeError,
    CorruptImageError,
    EmptyPayloadError,
    InvalidXMLError,
    Metadata,
    MetadataParsingError,
    Track,
)


class TestMetadataEvents:
    """Test equality and display text of events."""

    def test_display_text(self):
        assert str(Track("Test Title")) == "Track: Test Title"
        assert str(Artist("Test Artist")) == "Artist: Test Artist"
        assert str(Album("Test Album")) == "Album: Test Album"

    def test_art_display_text(self):
        art = CoverArt(ArtFormat.JPEG, pygame.Surface((640, 480)))
        assert str(Art(art)) == "Art is a 640x480 image"

    def test_equality_by_kind_and_value(self):
        assert Track("x") == Track("x")
        assert Track("x") != Artist("x")
        assert Track("x") != Track("y")

    def test_art_equality_by_image_identity(self):
        art = CoverArt(ArtFormat.PNG, pygame.Surface((2, 2)))
        other = CoverArt(ArtFormat.PNG, pygame.Surface((2, 2)))

        assert Art(art) == Art(art)
        assert Art(art) != Art(other)

    def test_common_base(self):
        for event in (Track("a"), Artist("b"), Album("c")):
            assert isinstance(event, Metadata)


class TestErrors:
    """Test the error hierarchy."""

    def test_hierarchy(self):
        assert issubclass(InvalidXMLError, MetadataParsingError)
        assert issubclass(Base64DecodeError, MetadataParsingError)
        assert issubclass(EmptyPayloadError, ArtDecodeError)
        assert issubclass(CorruptImageError, ArtDecodeError)
        assert issubclass(ArtDecodeError, MetadataParsingError)

    def test_invalid_xml_carries_events(self):
        error = InvalidXMLError("bad", [Track("a")])
        assert error.events == [Track("a")]
        assert str(error) == "bad"

    def test_invalid_xml_defaults_to_no_events(self):
        assert InvalidXMLError("bad").events == []
