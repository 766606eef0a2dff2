#!/usr/bin/env python3
"""Command-line interface entry points for shairport-view."""

import os
import sys

# Set pygame environment variables before any imports
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
os.environ.setdefault("PYGAME_DETECT_AVX2", "0")

USAGE = """\
Usage: {prog} [PIPE] [options]

Reads shairport-sync XML metadata from PIPE (or the configured pipe, or
standard input) and {action}.

Options:
  --config FILE     Load settings from a YAML file (default: config.yaml)
  --capture FILE    Record the raw feed to FILE (JSON Lines)
  --replay FILE     Read the feed from a capture instead of a pipe
  --fast-forward    Skip long idle gaps during replay
  --no-debug        Hide debug messages
  --help, -h        Show this help
"""

GUI_USAGE = """\
Display Modes:
  --windowed        Resizable window (default)
  --fullscreen      Fullscreen window
"""


class UsageError(Exception):
    """Invalid command line."""

    pass


def _option_value(args, flag):
    if flag not in args:
        return None
    idx = args.index(flag)
    if idx + 1 >= len(args) or args[idx + 1].startswith("--"):
        raise UsageError(f"{flag} requires a filename")
    value = args[idx + 1]
    del args[idx : idx + 2]
    return value


def parse_args(argv):
    """Parse the command line into an options dict. Raises UsageError."""
    from .module_registry import module_registry

    args = list(argv[1:])
    options = {
        "help": "--help" in args or "-h" in args,
        "config": _option_value(args, "--config"),
        "capture": _option_value(args, "--capture"),
        "replay": _option_value(args, "--replay"),
        "fast_forward": "--fast-forward" in args,
        "no_debug": "--no-debug" in args,
        "windowed": "--windowed" in args,
        "fullscreen": "--fullscreen" in args,
        "debug_subsystems": module_registry.logger_names_for_flags(args),
        "pipe_path": None,
    }

    positional = [arg for arg in args if not arg.startswith("-")]
    if len(positional) > 1:
        raise UsageError(f"Unexpected arguments: {' '.join(positional[1:])}")
    if positional:
        options["pipe_path"] = positional[0]

    if options["capture"] and options["replay"]:
        raise UsageError("Cannot specify both --capture and --replay")
    if options["fast_forward"] and not options["replay"]:
        raise UsageError("--fast-forward can only be used with --replay")
    if options["replay"] and options["pipe_path"]:
        raise UsageError("Cannot read from a pipe and --replay at the same time")
    if options["windowed"] and options["fullscreen"]:
        raise UsageError("Cannot specify both --windowed and --fullscreen")

    return options


def _print_usage(prog, action, gui=False):
    from .module_registry import CATEGORIES, module_registry

    print(USAGE.format(prog=prog, action=action), end="")
    if gui:
        print()
        print(GUI_USAGE, end="")
    print()
    print("Debug Options:")
    for category in CATEGORIES:
        for subsystem in module_registry.get_modules_by_category(category):
            print(f"  {subsystem.debug_flag:<18}{subsystem.description}")


def _import_modules():
    """Import every module so their debug flags are registered."""
    from . import capture_replay, display, feed, line_source, metadata_monitor  # noqa: F401


def _prepare(argv, prog, action, gui=False):
    """Parse arguments, load config and set up logging. Returns (options, config) or an exit code."""
    from .config_loader import load_config
    from .logging_config import setup_logging

    _import_modules()
    try:
        options = parse_args(argv)
    except UsageError as e:
        print(f"Error: {e}")
        print("Use --help for more information.")
        return 2

    if options["help"]:
        _print_usage(prog, action, gui)
        return 0

    config = load_config(options["config"])

    if options["no_debug"]:
        debug_subsystems = set()
    elif options["debug_subsystems"]:
        debug_subsystems = options["debug_subsystems"]
    else:
        debug_subsystems = None

    level = "DEBUG" if (config.debug or options["debug_subsystems"]) else config.log_level
    setup_logging(level, debug_subsystems)
    return options, config


def _open_source(options, config):
    from .capture_replay import MetadataReplay
    from .line_source import open_line_source

    if options["replay"]:
        return MetadataReplay(options["replay"], fast_forward_gaps=options["fast_forward"])
    return open_line_source(options["pipe_path"], None, config.feed)


def _start_capture(options):
    from .capture_replay import MetadataCapture

    if not options["capture"]:
        return None
    capture = MetadataCapture(options["capture"])
    capture.start_capture()
    return capture


def console_main(argv=None):
    """Entry point for shairport-view-cli: print each metadata event."""
    from .console import make_console_handler
    from .feed import FeedDriver
    from .metadata_reader import MetadataDecoder

    argv = argv if argv is not None else sys.argv
    prepared = _prepare(argv, "shairport-view-cli", "prints each track, artist, album and art event")
    if isinstance(prepared, int):
        return prepared
    options, config = prepared

    try:
        source = _open_source(options, config)
    except OSError as e:
        print(f"Error: could not open metadata source: {e}")
        return 1

    capture = _start_capture(options)
    driver = FeedDriver(
        source,
        make_console_handler(),
        decoder=MetadataDecoder(config.decoder),
        config=config.feed,
        capture=capture,
    )
    try:
        driver.run()
    except KeyboardInterrupt:
        print("Stopping...")
    except Exception as e:
        print(f"Error: {e}")
        return 1
    finally:
        if capture:
            capture.stop_capture()
        if source is not sys.stdin:
            source.close()
    return 0


def display_main(argv=None):
    """Entry point for shairport-view-gui: show the now playing window."""
    from .display import DisplayApp, NowPlayingModel
    from .metadata_monitor import MetadataMonitor
    from .metadata_reader import MetadataDecoder

    argv = argv if argv is not None else sys.argv
    prepared = _prepare(argv, "shairport-view-gui", "shows the current track in a window", gui=True)
    if isinstance(prepared, int):
        return prepared
    options, config = prepared

    capture = _start_capture(options)
    decoder = MetadataDecoder(config.decoder)
    model = NowPlayingModel(decoder.default_art)
    # The pipe is opened on the reader thread so the window appears before shairport-sync starts
    monitor = MetadataMonitor(
        None,
        model.on_metadata,
        decoder=decoder,
        config=config.feed,
        capture=capture,
        opener=lambda: _open_source(options, config),
    )
    app = DisplayApp(model, config.display, fullscreen=options["fullscreen"])

    try:
        app.run(monitor)
    except KeyboardInterrupt:
        print("Stopping...")
    except Exception as e:
        print(f"Error: {e}")
        return 1
    finally:
        if capture:
            capture.stop_capture()
    return 0


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "gui":
        sys.exit(display_main([sys.argv[0]] + sys.argv[2:]))
    sys.exit(console_main())
