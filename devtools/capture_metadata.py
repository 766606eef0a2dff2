#!/usr/bin/env python3
"""
Command-line utility for capturing shairport-sync metadata to file.
"""

import argparse
import sys
import threading

from shairportview.capture_replay import MetadataCapture, create_capture_filename
from shairportview.config_loader import load_config
from shairportview.line_source import open_line_source
from shairportview.metadata_monitor import MetadataMonitor


def main():
    default_pipe = load_config().feed.get_effective_pipe_path()

    parser = argparse.ArgumentParser(description="Capture shairport-sync metadata for debugging")
    parser.add_argument(
        "--pipe",
        default=default_pipe,
        help=f"Path to shairport-sync metadata pipe (default: {default_pipe})",
    )
    parser.add_argument("--output", help="Output capture file (default: auto-generated with timestamp)")
    parser.add_argument("--duration", type=int, help="Capture duration in seconds (default: unlimited)")

    args = parser.parse_args()

    output_file = args.output or create_capture_filename()

    print("Starting metadata capture...")
    print(f"  Pipe: {args.pipe}")
    print(f"  Output: {output_file}")
    print(f"  Duration: {args.duration} seconds" if args.duration else "  Duration: unlimited (Ctrl+C to stop)")
    print("-" * 60)

    capture = MetadataCapture(output_file)
    capture.start_capture()
    monitor = MetadataMonitor(
        None,
        lambda metadata: print(f"♪ {metadata}"),
        capture=capture,
        opener=lambda: open_line_source(args.pipe),
    )

    if args.duration:
        # stop() ends run() even while the pipe is idle
        timer = threading.Timer(args.duration, monitor.stop)
        timer.daemon = True
        timer.start()

    try:
        monitor.run()
    except KeyboardInterrupt:
        print("\nCapture interrupted by user, stopping...")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        monitor.stop()
        capture.stop_capture()
        print(f"\nCapture saved to: {output_file}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
