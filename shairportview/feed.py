"""
Feed driver: reads metadata lines from a source and hands decoded events to a handler.
"""

import sys
import time
from typing import Callable, List, Optional, Protocol

from .capture_replay import MetadataCapture
from .config import FeedConfig
from .line_source import open_line_source
from .metadata import InvalidXMLError, LineSourceError, Metadata
from .metadata_reader import MetadataDecoder
from .module_registry import module_registry

module_registry.register_module(
    name="feed",
    description="Feed loop delivering decoded metadata to handlers",
    logger_name="feed",
    debug_flag="--debug-feed",
    category="output",
)

log = module_registry.get_logger("feed")

MetadataHandler = Callable[[Metadata], None]


class LineSource(Protocol):
    def readline(self) -> str: ...


def decode_and_dispatch(
    decoder: MetadataDecoder,
    line: str,
    handler: MetadataHandler,
    stop_on_xml_error: bool = False,
    capture: Optional[MetadataCapture] = None,
) -> int:
    """Decode one line and pass each event to ``handler`` in order.

    Returns the number of events delivered. Handler exceptions propagate.
    Malformed XML is logged and skipped unless ``stop_on_xml_error`` is set;
    events decoded before the error are delivered either way.
    """
    try:
        events: List[Metadata] = decoder.parse_line(line)
    except InvalidXMLError as e:
        if capture:
            capture.capture_event("xml_error", str(e))
        for metadata in e.events:
            handler(metadata)
        if stop_on_xml_error:
            raise
        log.warning("Skipping malformed metadata line: %s", e)
        return len(e.events)

    for metadata in events:
        handler(metadata)
    return len(events)


class FeedDriver:
    """Runs the read-decode-dispatch loop over a blocking line source."""

    def __init__(
        self,
        source: LineSource,
        handler: MetadataHandler,
        decoder: Optional[MetadataDecoder] = None,
        config: Optional[FeedConfig] = None,
        capture: Optional[MetadataCapture] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the driver. A decoder is created if none is given."""
        self._source = source
        self._handler = handler
        self._decoder = decoder or MetadataDecoder()
        self._config = config or FeedConfig()
        self._capture = capture
        self._sleep = sleep
        self.lines_read = 0
        self.events_delivered = 0

    def run(self) -> None:
        """Loop until the source reaches end of stream.

        Raises LineSourceError if reading fails, and whatever the handler raises.
        """
        log.info("Metadata feed started")

        while True:
            try:
                line = self._source.readline()
            except (OSError, ValueError) as e:
                # ValueError: reading a closed file
                log.error("Error reading from metadata source: %s", e)
                raise LineSourceError(f"Error reading from metadata source: {e}") from e

            if not line:
                log.info("Metadata source closed after %d lines", self.lines_read)
                return

            self.lines_read += 1
            if self._capture:
                self._capture.capture_line(line)

            line = line.rstrip("\r\n")
            if not line.strip():
                # No data from the source yet
                self._sleep(self._config.idle_sleep_seconds)
                continue

            self.events_delivered += decode_and_dispatch(
                self._decoder, line, self._handler, self._config.stop_on_xml_error, self._capture
            )


def parse_metadata_ret_err(
    pipe_path: Optional[str],
    handler: MetadataHandler,
    argv: Optional[List[str]] = None,
    config: Optional[FeedConfig] = None,
    decoder: Optional[MetadataDecoder] = None,
) -> None:
    """Open the line source, then decode it until it closes.

    Raises the source, decoder or handler failure that stopped the feed.
    """
    config = config or FeedConfig()
    try:
        source = open_line_source(pipe_path, argv, config)
    except OSError as e:
        raise LineSourceError(f"Could not open metadata source: {e}") from e

    try:
        FeedDriver(source, handler, decoder=decoder, config=config).run()
    finally:
        if source is not sys.stdin:
            source.close()


def parse_metadata(
    pipe_path: Optional[str],
    handler: MetadataHandler,
    argv: Optional[List[str]] = None,
    config: Optional[FeedConfig] = None,
    decoder: Optional[MetadataDecoder] = None,
) -> bool:
    """Like parse_metadata_ret_err, but logs the failure instead of raising.

    Returns True when the feed ended normally.
    """
    try:
        parse_metadata_ret_err(pipe_path, handler, argv, config, decoder)
    except Exception as e:
        log.error("Metadata feed stopped: %s", e)
        return False

    log.info("Metadata feed exiting with success")
    return True
