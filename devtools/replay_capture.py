#!/usr/bin/env python3
"""Command-line utility for replaying captured shairport-sync metadata."""

import argparse
import sys
import time

from shairportview.capture_replay import MetadataReplay
from shairportview.feed import FeedDriver
from shairportview.metadata import Art


def main():
    """Run the metadata replay utility."""
    parser = argparse.ArgumentParser(description="Replay captured shairport-sync metadata for debugging")
    parser.add_argument("capture_file", help="Path to captured metadata file (JSONL format)")
    parser.add_argument(
        "--no-fast-forward",
        action="store_true",
        help="Disable fast-forwarding through idle periods",
    )
    parser.add_argument(
        "--max-gap",
        type=float,
        default=2.0,
        help="Maximum gap in seconds to preserve in real-time (default: 2.0)",
    )
    parser.add_argument(
        "--info-only",
        action="store_true",
        help="Show capture file info without replaying",
    )

    args = parser.parse_args()

    try:
        replay = MetadataReplay(
            args.capture_file,
            fast_forward_gaps=not args.no_fast_forward,
            max_gap_seconds=args.max_gap,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.info_only:
        info = replay.get_capture_info()
        print("Capture File Information:")
        print(f"  File: {info['file_path']}")
        print(f"  Size: {info['file_size']:,} bytes")
        print(f"  Lines: {info['line_count']:,}")
        print(f"  Events: {info['event_count']:,}")
        print(f"  Duration: {info['duration']:.2f} seconds")
        if info["start_time"]:
            print(f"  Start Time: {time.ctime(info['start_time'])}")
        if info["end_time"]:
            print(f"  End Time: {time.ctime(info['end_time'])}")
        return 0

    counts = {"text": 0, "art": 0}

    def print_metadata(metadata) -> None:
        counts["art" if isinstance(metadata, Art) else "text"] += 1
        print(metadata)

    print(f"Starting replay of: {args.capture_file}")
    print(f"Fast-forward gaps: {'disabled' if args.no_fast_forward else f'enabled (>{args.max_gap}s)'}")
    print("-" * 60)

    try:
        start_time = time.time()
        FeedDriver(replay, print_metadata).run()
        print("-" * 60)
        print(f"Replay completed in {time.time() - start_time:.2f} seconds")
        print(f"Decoded {counts['text']} text events and {counts['art']} cover art images")
    except KeyboardInterrupt:
        print("\nReplay interrupted by user")
        return 1
    except Exception as e:
        print(f"Error during replay: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
