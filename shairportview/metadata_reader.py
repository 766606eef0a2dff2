"""
Shairport-sync metadata decoder.

Reassembles the XML items written by shairport-sync into Track, Artist, Album
and Art events. Each item looks like::

    <item><type>636f7265</type><code>6d696e6d</code><length>10</length>
    <data encoding="base64">
    VGVzdCBUaXRsZQ==</data></item>

and may be split over several lines, so the decoder keeps its state between
calls to :meth:`MetadataDecoder.parse_line`.
"""

from typing import List, Optional

from .art import CoverArt, classify_and_decode, load_default_art
from .codec import decode_base64, decode_base64_bytes, decode_hex
from .config import DecoderConfig
from .metadata import Album, Art, Artist, InvalidXMLError, Metadata, MetadataParsingError, Track
from .module_registry import module_registry
from .tokenizer import CharData, EndElement, EndOfInput, StartElement, XMLTokenizer

# Register the shairport-sync metadata decoder module
module_registry.register_module(
    name="shairport",
    description="Shairport-sync XML metadata decoder",
    logger_name="shairport",
    debug_flag="--debug-shairport",
    category="input",
)

log = module_registry.get_logger("shairport")

NO_TAG = "No tag"

# (type, code) pairs surfaced as text events
TEXT_FIELDS = {
    ("core", "asar"): Artist,
    ("core", "asal"): Album,
    ("core", "minm"): Track,
}

PICTURE_FIELD = ("ssnc", "PICT")


class MetadataDecoder:
    """Turns lines of shairport-sync metadata XML into Metadata events.

    One decoder is created per feed. It owns the open-tag stack, the pending
    type/code pair of the current item and the default cover art that stands in
    for art which cannot be decoded.
    """

    def __init__(self, config: Optional[DecoderConfig] = None):
        """Initialize the decoder and load the default art."""
        self._config = config or DecoderConfig()
        self._tokenizer = XMLTokenizer()

        self.tag_stack: List[str] = []
        self.curr_type = ""
        self.curr_code = ""
        self._data_buffer: List[str] = []

        self.default_art: CoverArt = load_default_art(self._config.default_art_path)

    @property
    def current_tag(self) -> str:
        """Most recently opened tag that is still open."""
        return self.tag_stack[-1] if self.tag_stack else NO_TAG

    def parse_line(self, line: str) -> List[Metadata]:
        """Parse one line of XML and return the metadata found in it.

        Raises InvalidXMLError for malformed markup. The error's ``events``
        holds what was decoded before the problem, and the decoder is reset.
        """
        found_metadata: List[Metadata] = []
        if not line.strip():
            return found_metadata

        try:
            for token in self._tokenizer.tokens(line):
                if isinstance(token, EndOfInput):
                    break
                if isinstance(token, StartElement):
                    self.tag_stack.append(token.name)
                elif isinstance(token, EndElement):
                    self._handle_end(token.name, found_metadata)
                elif isinstance(token, CharData):
                    self._handle_chardata(token.text)
                # Processing instructions and comments carry nothing for us
        except InvalidXMLError as e:
            log.warning("XML parsing error: %s", e)
            self.reset()
            raise InvalidXMLError(str(e), found_metadata) from e

        return found_metadata

    def reset(self) -> None:
        """Forget all open tags and the pending item."""
        self._tokenizer.reset()
        self.tag_stack.clear()
        self.curr_type = ""
        self.curr_code = ""
        self._data_buffer = []

    def _handle_end(self, name: str, found_metadata: List[Metadata]) -> None:
        if self.tag_stack and self.tag_stack[-1] == name:
            self.tag_stack.pop()

        if name == "data":
            chardata = "".join(self._data_buffer)
            self._data_buffer = []
            metadata = self._handle_data(chardata)
            if metadata is not None:
                found_metadata.append(metadata)
        elif name == "item":
            self.curr_type = ""
            self.curr_code = ""
            self._data_buffer = []

    def _handle_chardata(self, chardata: str) -> None:
        curr_tag = self.current_tag

        if curr_tag == "data":
            self._data_buffer.append(chardata)
        elif not chardata.strip():
            # Whitespace between tags
            return
        elif curr_tag == "type":
            self.curr_type = decode_hex(chardata, self._config.hex_error_text)
        elif curr_tag == "code":
            self.curr_code = decode_hex(chardata, self._config.hex_error_text)

    def _handle_data(self, chardata: str) -> Optional[Metadata]:
        field = (self.curr_type, self.curr_code)

        event_type = TEXT_FIELDS.get(field)
        if event_type is not None:
            if not chardata:
                # <data></data> carries no text
                return None
            value = decode_base64(chardata)
            log.debug("%s/%s: %s", self.curr_type, self.curr_code, value)
            return event_type(value)

        if field == PICTURE_FIELD:
            return Art(self._decode_art(chardata))

        log.debug("Ignoring %s/%s data (%d chars)", self.curr_type or "-", self.curr_code or "-", len(chardata))
        return None

    def _decode_art(self, chardata: str) -> CoverArt:
        try:
            art = classify_and_decode(decode_base64_bytes(chardata))
        except MetadataParsingError as e:
            log.warning("Error when processing metadata: %s", e)
            return self.default_art

        width, height = art.size
        log.debug("Decoded %s cover art, %dx%d", art.format, width, height)
        return art
