"""
Metadata events produced by the decoder, and the errors raised while decoding.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .art import CoverArt


class MetadataParsingError(Exception):
    """Specific error for metadata parsing issues."""

    pass


class InvalidXMLError(MetadataParsingError):
    """Error for invalid XML structure.

    ``events`` holds whatever was decoded from the line before the error.
    """

    def __init__(self, message: str, events: Optional[List["Metadata"]] = None):
        super().__init__(message)
        self.events: List["Metadata"] = list(events or [])


class Base64DecodeError(MetadataParsingError):
    """Error for base64 decoding issues."""

    pass


class ArtDecodeError(MetadataParsingError):
    """Cover art bytes could not be turned into an image."""

    pass


class EmptyPayloadError(ArtDecodeError):
    """Cover art payload contained no bytes."""

    pass


class CorruptImageError(ArtDecodeError):
    """The selected image decoder rejected the payload."""

    pass


class LineSourceError(Exception):
    """Reading from the metadata line source failed."""

    pass


class Metadata:
    """Base class for every recognised piece of metadata."""

    __slots__ = ()


@dataclass(frozen=True)
class Track(Metadata):
    """Track title."""

    text: str

    def __str__(self) -> str:
        return f"Track: {self.text}"


@dataclass(frozen=True)
class Artist(Metadata):
    """Track artist."""

    text: str

    def __str__(self) -> str:
        return f"Artist: {self.text}"


@dataclass(frozen=True)
class Album(Metadata):
    """Album name."""

    text: str

    def __str__(self) -> str:
        return f"Album: {self.text}"


@dataclass(frozen=True)
class Art(Metadata):
    """Cover art. ``image`` may be the decoder's shared default art."""

    image: "CoverArt"

    def __str__(self) -> str:
        width, height = self.image.size
        return f"Art is a {width}x{height} image"
