"""Reads the metadata pipe on a worker thread and decodes it on the caller's thread."""

import contextlib
import queue
import sys
import threading
import time
from typing import Callable, Optional

from .capture_replay import MetadataCapture
from .config import FeedConfig
from .feed import LineSource, MetadataHandler, decode_and_dispatch
from .metadata import LineSourceError
from .metadata_reader import MetadataDecoder
from .module_registry import module_registry

module_registry.register_module(
    name="monitor",
    description="Pipe reader thread and metadata queue",
    logger_name="monitor",
    debug_flag="--debug-monitor",
    category="input",
)

log = module_registry.get_logger("monitor")

LineSourceOpener = Callable[[], LineSource]


class _SourceClosed:
    """Queue marker put by the reader thread when it stops."""

    def __init__(self, error: Optional[BaseException] = None, message: str = "Error reading from metadata source"):
        self.error = error
        self.message = message


class MetadataMonitor:
    """
    Decouples blocking pipe reads from metadata handling.

    A reader thread pushes every non-empty line into an unbounded queue. The
    owner calls :meth:`poll` (for example once per UI frame) or :meth:`run`
    to decode queued lines and call the handler, in the order the lines were
    read.

    Pass an ``opener`` instead of a ``source`` to open the source on the
    reader thread; opening a FIFO blocks until shairport-sync opens its end.
    The reader thread owns the source and closes it (unless it is stdin)
    when it exits.
    """

    def __init__(
        self,
        source: Optional[LineSource],
        handler: MetadataHandler,
        decoder: Optional[MetadataDecoder] = None,
        config: Optional[FeedConfig] = None,
        capture: Optional[MetadataCapture] = None,
        sleep: Callable[[float], None] = time.sleep,
        opener: Optional[LineSourceOpener] = None,
    ):
        """Initialize the monitor. A decoder is created if none is given."""
        if (source is None) == (opener is None):
            raise ValueError("MetadataMonitor needs exactly one of source or opener")

        self._source = source
        self._opener = opener
        self._handler = handler
        self._decoder = decoder or MetadataDecoder()
        self._config = config or FeedConfig()
        self._capture = capture
        self._sleep = sleep

        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._finished = False

    def start(self) -> None:
        """Start the reader thread."""
        if self._thread and self._thread.is_alive():
            log.warning("MetadataMonitor is already running.")
            return

        if self._capture:
            self._capture.capture_event("monitor_start", "Started reading metadata source")

        self._stop_event.clear()
        self._finished = False
        self._thread = threading.Thread(
            target=self._read_loop, name="metadata-reader", daemon=self._config.daemon_threads
        )
        self._thread.start()

    def _read_loop(self) -> None:
        """Blocking reads from the source until end of stream, an error or stop()."""
        log.info("Metadata thread started")
        error: Optional[BaseException] = None
        source = self._source

        if source is None:
            try:
                source = self._opener()
            except OSError as e:
                log.error("Could not open metadata source: %s", e)
                self._queue.put(_SourceClosed(e, "could not open metadata source"))
                return
            self._source = source
            log.info("Metadata source opened")

        try:
            while not self._stop_event.is_set():
                line = source.readline()
                if not line:  # EOF
                    break

                if self._capture:
                    self._capture.capture_line(line)

                line = line.rstrip("\r\n")
                if line.strip():
                    self._queue.put(line)
        except (OSError, ValueError) as e:
            if not self._stop_event.is_set():
                log.error("Error reading line from pipe: %s", e)
                error = e
        finally:
            # Only this thread touches the source, so closing cannot race a read
            if source is not sys.stdin:
                close = getattr(source, "close", None)
                if close is not None:
                    with contextlib.suppress(OSError):
                        close()
            self._queue.put(_SourceClosed(error))
            log.info("Metadata thread exited")

    def poll(self) -> bool:
        """Handle every queued line without blocking.

        Returns False once the reader thread has finished and its lines have
        been handled. Raises LineSourceError if the reader stopped on an open
        or read error, and whatever the handler raises.
        """
        if self._finished:
            return False

        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return True

            if isinstance(item, _SourceClosed):
                self._finished = True
                if item.error is not None:
                    raise LineSourceError(f"{item.message}: {item.error}") from item.error
                return False

            decode_and_dispatch(
                self._decoder, item, self._handler, self._config.stop_on_xml_error, self._capture
            )

    def run(self) -> None:
        """Poll until the reader thread finishes or stop() is called."""
        if self._thread is None:
            self.start()

        while not self._stop_event.is_set() and self.poll():
            self._sleep(self._config.poll_interval_seconds)

    def is_finished(self) -> bool:
        """True once the close marker from the reader thread has been handled."""
        return self._finished

    def stop(self) -> None:
        """Ask the reader thread to stop and wait up to ``thread_join_timeout`` for it.

        A reader blocked on an idle pipe notices the request after its next
        line; it is a daemon thread by default, so it does not keep the
        process alive meanwhile.
        """
        self._stop_event.set()

        if self._capture:
            self._capture.capture_event("monitor_stop", "Stopping metadata monitor")

        if self._thread:
            self._thread.join(timeout=self._config.thread_join_timeout)
            if self._thread.is_alive():
                log.info("Metadata thread still waiting for input, leaving it to exit on its own")
            self._thread = None
