"""
Capture and replay of raw metadata feed lines for debugging.

Captures are JSON Lines files: a header, one ``metadata_line`` entry per feed
line with its timing, ``event`` entries for notable moments, and a footer.
A :class:`MetadataReplay` can stand in for the real pipe as a line source.
"""

import gzip
import json
import threading
import time
from pathlib import Path
from typing import Callable, Iterator, Optional, TextIO

from .module_registry import module_registry

module_registry.register_module(
    name="capture",
    description="Metadata capture and replay for debugging",
    logger_name="capture",
    debug_flag="--debug-capture",
    category="debug",
)

log = module_registry.get_logger("capture")

CAPTURE_VERSION = "1.0"


class MetadataCapture:
    """Records feed lines with timestamps for later replay."""

    def __init__(self, capture_file: str):
        """Initialize capture to specified file."""
        self._capture_file = Path(capture_file)
        self._file_handle: Optional[TextIO] = None
        self._start_time = time.time()
        self._lock = threading.Lock()
        self._last_activity_time = self._start_time

        # Ensure capture directory exists
        self._capture_file.parent.mkdir(parents=True, exist_ok=True)

        log.info("Metadata capture initialized: %s", self._capture_file)

    @property
    def is_active(self) -> bool:
        return self._file_handle is not None

    def start_capture(self) -> None:
        """Open the capture file and write the header."""
        self._file_handle = open(self._capture_file, "w", encoding="utf-8")  # noqa: SIM115
        self._start_time = time.time()
        self._last_activity_time = self._start_time

        self._write_entry(
            {
                "type": "capture_header",
                "version": CAPTURE_VERSION,
                "start_time": self._start_time,
                "description": "Shairport-sync metadata capture",
            }
        )
        log.info("Started metadata capture to: %s", self._capture_file)

    def capture_line(self, line: str) -> None:
        """Capture a metadata line with timestamp."""
        if not self._file_handle:
            return

        current_time = time.time()
        gap_since_last = current_time - self._last_activity_time
        self._last_activity_time = current_time

        self._write_entry(
            {
                "type": "metadata_line",
                "timestamp": current_time - self._start_time,
                "gap_since_last": gap_since_last,
                "data": line.strip(),
            }
        )

    def capture_event(self, event_type: str, description: str) -> None:
        """Capture a notable event (feed start, XML error, etc.)."""
        if not self._file_handle:
            return

        self._write_entry(
            {
                "type": "event",
                "timestamp": time.time() - self._start_time,
                "event_type": event_type,
                "description": description,
            }
        )
        log.debug("Captured event: %s - %s", event_type, description)

    def stop_capture(self) -> None:
        """Write the footer and close the file."""
        if not self._file_handle:
            return

        end_time = time.time()
        self._write_entry(
            {"type": "capture_footer", "end_time": end_time, "total_duration": end_time - self._start_time}
        )
        self._file_handle.close()
        self._file_handle = None
        log.info("Stopped metadata capture. Duration: %.2f seconds", end_time - self._start_time)

    def _write_entry(self, entry: dict) -> None:
        # Lines come from the reader thread, events from the decoding thread
        with self._lock:
            json.dump(entry, self._file_handle)
            self._file_handle.write("\n")
            self._file_handle.flush()


class MetadataReplay:
    """Replays captured metadata, usable anywhere a line source is expected."""

    def __init__(
        self,
        capture_file: str,
        fast_forward_gaps: bool = True,
        max_gap_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize replay from captured file.

        Args:
            capture_file: Path to captured metadata file (supports .gz compression)
            fast_forward_gaps: Whether to fast-forward through idle periods
            max_gap_seconds: Maximum gap to preserve in real-time (larger gaps are fast-forwarded)
            sleep: Function used to wait between lines
        """
        self._capture_file = Path(capture_file)
        self._fast_forward_gaps = fast_forward_gaps
        self._max_gap_seconds = max_gap_seconds
        self._sleep = sleep
        self._lines: Optional[Iterator[str]] = None

        if not self._capture_file.exists():
            raise FileNotFoundError(f"Capture file not found: {capture_file}")

        log.info("Metadata replay initialized: %s", self._capture_file)

    def _is_gzipped(self) -> bool:
        if self._capture_file.suffix.lower() == ".gz":
            return True
        with open(self._capture_file, "rb") as f:
            return f.read(2) == b"\x1f\x8b"

    def _open_file(self) -> TextIO:
        if self._is_gzipped():
            return gzip.open(self._capture_file, "rt", encoding="utf-8")
        return open(self._capture_file, "r", encoding="utf-8")

    def _entries(self) -> Iterator[dict]:
        with self._open_file() as f:
            for raw in f:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    yield json.loads(raw)
                except json.JSONDecodeError as e:
                    log.warning("Skipping invalid JSON line: %s", e)

    def iter_lines(self, event_callback: Optional[Callable[[str, str, float], None]] = None) -> Iterator[str]:
        """Yield captured feed lines, waiting as long as the original gaps did."""
        last_timestamp = 0.0
        lines_replayed = 0
        gaps_fast_forwarded = 0

        for entry in self._entries():
            entry_type = entry.get("type")
            timestamp = entry.get("timestamp", 0.0)

            if entry_type == "capture_header":
                start_time = entry.get("start_time")
                log.info("Replay started. Original capture: %s", time.ctime(start_time) if start_time else "unknown")
                continue

            if entry_type == "capture_footer":
                log.info(
                    "Replay completed: %d lines, %d gaps fast-forwarded", lines_replayed, gaps_fast_forwarded
                )
                break

            if entry_type == "metadata_line":
                time_to_wait = timestamp - last_timestamp
                if self._fast_forward_gaps and entry.get("gap_since_last", 0.0) > self._max_gap_seconds:
                    time_to_wait = min(time_to_wait, 0.1)
                    gaps_fast_forwarded += 1
                if time_to_wait > 0:
                    self._sleep(time_to_wait)

                lines_replayed += 1
                yield entry.get("data", "")

            elif entry_type == "event":
                if event_callback:
                    event_callback(entry.get("event_type", ""), entry.get("description", ""), timestamp)
                log.debug("Replayed event at %.2fs: %s", timestamp, entry.get("event_type", ""))

            last_timestamp = timestamp

    def readline(self) -> str:
        """Return the next captured line with a trailing newline, or "" at the end."""
        if self._lines is None:
            self._lines = self.iter_lines()
        line = next(self._lines, None)
        return "" if line is None else line + "\n"

    def close(self) -> None:
        if self._lines is not None:
            self._lines.close()

    def get_capture_info(self) -> dict:
        """Get information about the capture file without replaying it."""
        info: dict = {
            "file_path": str(self._capture_file),
            "file_size": self._capture_file.stat().st_size,
            "compressed": self._is_gzipped(),
            "line_count": 0,
            "event_count": 0,
            "duration": 0.0,
            "start_time": None,
            "end_time": None,
        }

        for entry in self._entries():
            entry_type = entry.get("type")
            if entry_type == "capture_header":
                info["start_time"] = entry.get("start_time")
            elif entry_type == "capture_footer":
                info["end_time"] = entry.get("end_time")
                info["duration"] = entry.get("total_duration", 0.0)
            elif entry_type == "metadata_line":
                info["line_count"] += 1
            elif entry_type == "event":
                info["event_count"] += 1

        return info


def create_capture_filename(prefix: str = "metadata_capture") -> str:
    """Create a timestamped filename for captures."""
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    return f"/tmp/{prefix}_{timestamp}.jsonl"
