"""
Decoder for shairport-sync XML metadata feeds.

The decoder itself lives in :mod:`shairportview.metadata_reader`; the feed
loop in :mod:`shairportview.feed` and the threaded reader in
:mod:`shairportview.metadata_monitor`.
"""

from .metadata import Album, Art, Artist, Metadata, Track

__version__ = "0.1.0"

__all__ = ["Album", "Art", "Artist", "Metadata", "Track", "__version__"]
