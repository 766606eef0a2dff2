"""
Pull-style XML tokenizer for a line-oriented metadata feed.

Wraps the expat stream parser. Lines are fed into one long-lived document
wrapped in a synthetic root element, so an element opened on one line can be
closed on a later line. Each call to :meth:`XMLTokenizer.tokens` yields the
structural tokens found in one line followed by :class:`EndOfInput`.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Union
from xml.parsers import expat

from .metadata import InvalidXMLError
from .module_registry import module_registry

module_registry.register_module(
    name="tokenizer",
    description="XML tokenizing of metadata lines",
    logger_name="tokenizer",
    debug_flag="--debug-tokenizer",
    category="input",
)

log = module_registry.get_logger("tokenizer")

ROOT_TAG = "shairport-feed"


@dataclass(frozen=True)
class StartElement:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EndElement:
    name: str


@dataclass(frozen=True)
class CharData:
    text: str


@dataclass(frozen=True)
class ProcessingInstruction:
    target: str
    data: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class EndOfInput:
    pass


Token = Union[StartElement, EndElement, CharData, ProcessingInstruction, Comment, EndOfInput]


class XMLTokenizer:
    """Turns lines of XML into a sequence of tokens, keeping open elements across lines."""

    def __init__(self):
        """Initialize the tokenizer with a fresh document."""
        self._parser = None
        self._pending: List[Token] = []
        self._text: List[str] = []
        self._root_closed = False
        self._depth = 0
        self.reset()

    def reset(self) -> None:
        """Discard all open elements and start a new document."""
        parser = expat.ParserCreate()
        parser.StartElementHandler = self._on_start
        parser.EndElementHandler = self._on_end
        parser.CharacterDataHandler = self._on_chardata
        parser.ProcessingInstructionHandler = self._on_proc_inst
        parser.CommentHandler = self._on_comment

        self._pending = []
        self._text = []
        self._root_closed = False
        self._depth = 0
        self._parser = parser
        parser.Parse(f"<{ROOT_TAG}>", False)

    def tokens(self, line: str) -> Iterator[Token]:
        """Yield the tokens of one line, ending with EndOfInput.

        Raises InvalidXMLError after yielding the tokens that preceded the
        malformed markup. The tokenizer is reset before the error is raised.
        """
        if self._root_closed:
            log.debug("Document root was closed, starting a new document")
            self.reset()

        error = None
        try:
            self._parser.Parse(line, False)
        except expat.ExpatError as e:
            error = e

        self._flush_text()
        found, self._pending = self._pending, []

        if error is not None:
            self.reset()

        yield from found

        if error is not None:
            raise InvalidXMLError(f"Malformed XML in line {line!r}: {expat.ErrorString(error.code)}")

        yield EndOfInput()

    def _flush_text(self) -> None:
        if self._text:
            self._pending.append(CharData("".join(self._text)))
            self._text = []

    def _on_start(self, name: str, attributes: Dict[str, str]) -> None:
        self._depth += 1
        if self._depth == 1:
            return
        self._flush_text()
        self._pending.append(StartElement(name, dict(attributes)))

    def _on_end(self, name: str) -> None:
        self._depth -= 1
        self._flush_text()
        if self._depth == 0:
            self._root_closed = True
            return
        self._pending.append(EndElement(name))

    def _on_chardata(self, data: str) -> None:
        self._text.append(data)

    def _on_proc_inst(self, target: str, data: str) -> None:
        self._flush_text()
        self._pending.append(ProcessingInstruction(target, data))

    def _on_comment(self, data: str) -> None:
        self._flush_text()
        self._pending.append(Comment(data))
