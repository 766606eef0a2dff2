"""Console output of decoded metadata."""

from typing import Callable, Optional, TextIO

from .metadata import Metadata


def make_console_handler(out: Optional[TextIO] = None) -> Callable[[Metadata], None]:
    """Return a handler that prints each event on its own line."""

    def print_metadata(metadata: Metadata) -> None:
        print(metadata, file=out, flush=True)

    return print_metadata
