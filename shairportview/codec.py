"""
Hex and base64 helpers for the values carried in shairport-sync metadata XML.

``type`` and ``code`` elements hold hex-encoded ASCII, ``data`` elements hold
standard base64. The text helpers never raise: a malformed value turns into a
visible diagnostic string so the event stream keeps flowing.
"""

import base64
import binascii

from .metadata import Base64DecodeError
from .module_registry import module_registry

module_registry.register_module(
    name="codec",
    description="Hex and base64 value decoding",
    logger_name="codec",
    debug_flag="--debug-codec",
    category="core",
)

log = module_registry.get_logger("codec")

HEX_ERROR_TEXT = "XML Data Error"


def decode_hex(chardata: str, error_text: str = HEX_ERROR_TEXT) -> str:
    """Decode hex-encoded UTF-8 text, returning ``error_text`` if it is malformed."""
    try:
        return binascii.unhexlify(chardata).decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError):
        log.warning("Got malformed data: %s", chardata)
        return error_text


def decode_base64_bytes(chardata: str) -> bytes:
    """Decode standard base64, ignoring whitespace. Raises Base64DecodeError."""
    compact = "".join(chardata.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise Base64DecodeError(f"Failed to decode base64 data: {e}") from e


def decode_base64(chardata: str) -> str:
    """Decode base64-encoded UTF-8 text.

    On failure the returned string describes the problem instead, and the
    caller uses it as the metadata value as-is.
    """
    try:
        decoded = decode_base64_bytes(chardata.strip())
    except Base64DecodeError as e:
        return f"Error when decoding XML b64: {e.__cause__!r}"

    try:
        return decoded.decode("utf-8")
    except UnicodeDecodeError as e:
        return f"Error when decoding bytes from XML b64: {e!r}"
