"""
Selection of the line source the metadata feed is read from.
"""

import sys
from typing import List, Optional, TextIO

from .config import FeedConfig
from .module_registry import module_registry

module_registry.register_module(
    name="source",
    description="Metadata pipe / stdin line source",
    logger_name="source",
    debug_flag="--debug-source",
    category="input",
)

log = module_registry.get_logger("source")


def select_pipe_path(
    pipe_path: Optional[str] = None,
    argv: Optional[List[str]] = None,
    config: Optional[FeedConfig] = None,
) -> Optional[str]:
    """
    Pick the path of the metadata pipe, or None to read standard input.

    Order: explicit ``pipe_path``, then the first program argument, then the
    configured pipe path.
    """
    if pipe_path:
        return pipe_path
    if argv and len(argv) > 1:
        return argv[1]
    if config and config.pipe_path:
        return config.pipe_path
    return None


def open_line_source(
    pipe_path: Optional[str] = None,
    argv: Optional[List[str]] = None,
    config: Optional[FeedConfig] = None,
) -> TextIO:
    """Open the metadata pipe (or file) chosen by select_pipe_path, else return stdin.

    Raises OSError when the chosen path cannot be opened.
    """
    path = select_pipe_path(pipe_path, argv, config)
    if path is None:
        log.info("Reading metadata from standard input")
        return sys.stdin

    log.info("Reading metadata from pipe: %s", path)
    # Opening a FIFO blocks until shairport-sync opens the write end
    return open(path, "r", encoding="utf-8")  # noqa: SIM115 - caller owns the handle
