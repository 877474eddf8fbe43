"""Template compiler.

A hand-written, single pass parser over the template characters. It tracks:
- the lexer state (text, tag, and two look-ahead states for 2-char delimiters)
- the current delimiters, which {{=<% %>=}} tags can change mid-template
- the line number, for error messages
- a stack of accumulators, one per open section

Delimiters live only for the duration of one parse; compiled segments do not
remember which delimiters produced them.
"""

import logging
from collections.abc import Iterator
from contextlib import closing
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from whisker.errors import ParseError, TemplateLoadError, WhiskerError
from whisker.segments import (
    InvertedSectionSegment,
    PartialSegment,
    SectionSegment,
    Segment,
    TextSegment,
    VariableSegment,
)
from whisker.template import Template

if TYPE_CHECKING:
    from whisker.config import CompilerConfig

logger = logging.getLogger(__name__)

# Used when a delimiter is a single character
NO_CHAR = ""

_READ_SIZE = 8192


class ParserState(Enum):
    """Lexer states."""

    TEXT = "text"
    MATCHING_START = "matching_start"
    TAG = "tag"
    MATCHING_END = "matching_end"


class Delimiters:
    """Current open/close tag markers (one or two characters each)."""

    def __init__(self) -> None:
        self.start1 = "{"
        self.start2 = "{"
        self.end1 = "}"
        self.end2 = "}"

    @property
    def start(self) -> str:
        return self.start1 + self.start2

    @property
    def end(self) -> str:
        return self.end1 + self.end2

    def is_default(self) -> bool:
        """Return True if the delimiters are {{ and }}."""
        return self.start == "{{" and self.end == "}}"

    def update(self, directive: str, line: int | None = None) -> None:
        """Apply a delimiter directive such as "<% %>".

        Args:
            directive: Text of a {{=...=}} tag without the equals signs
            line: Line of the directive, for error messages

        Raises:
            ParseError: If the directive is not two 1-2 character tokens
        """
        tokens = directive.split()
        if len(tokens) != 2 or not all(1 <= len(token) <= 2 for token in tokens):
            raise ParseError(
                f"Invalid delimiter configuration '{directive}'. Must be of the form "
                "{{=1 2=}} or {{=12 34=}} where 1, 2, 3 and 4 are delimiter chars.",
                line,
            )

        start, end = tokens
        self.start1, self.start2 = start[0], start[1:]
        self.end1, self.end2 = end[0], end[1:]

    def __repr__(self) -> str:
        return f"Delimiters({self.start!r}, {self.end!r})"


@dataclass
class _Accumulator:
    """Segments collected for one nesting level.

    The bottom of the stack is the template body (name None); every other
    entry is an open section waiting for its close tag.
    """

    name: str | None
    line: int
    inverted: bool = False
    segments: list[Segment] = field(default_factory=list)


def _characters(source: str | TextIO) -> Iterator[str]:
    if isinstance(source, str):
        yield from source
        return
    while True:
        chunk = source.read(_READ_SIZE)
        if not chunk:
            return
        yield from chunk


def _require_no_newlines(tag: str, line: int) -> None:
    if "\n" in tag or "\r" in tag:
        raise ParseError(f"Invalid tag name: contains newline '{tag}'", line)


class Parser:
    """Compiles template source into segments.

    Usage:
        parser = Parser(config)
        segments = parser.parse("Hello {{name}}")
    """

    def __init__(self, config: "CompilerConfig", including: tuple[str, ...] = ()) -> None:
        """Initialize parser.

        Args:
            config: Compiler configuration
            including: Names of partials currently being compiled, outermost first
        """
        self.config = config
        self._including = including
        self._stack: list[_Accumulator] = []

    def parse(self, source: str | TextIO) -> tuple[Segment, ...]:
        """Parse template source.

        Args:
            source: Template text or a readable text stream

        Returns:
            Top-level segments

        Raises:
            ParseError: If the source is malformed
            TemplateLoadError: If a partial cannot be loaded
        """
        self._stack = [_Accumulator(name=None, line=1)]
        chars = _characters(source)
        delims = Delimiters()
        state = ParserState.TEXT
        text: list[str] = []
        line = 1
        skip_newline = False

        for c in chars:
            if c == "\n":
                line += 1
                # Swallow the newline right after a section open/close tag
                if skip_newline:
                    skip_newline = False
                    continue
            else:
                skip_newline = False

            if state is ParserState.TEXT:
                if c == delims.start1:
                    if delims.start2 == NO_CHAR:
                        self._add_text(text)
                        state = ParserState.TAG
                    else:
                        state = ParserState.MATCHING_START
                else:
                    text.append(c)

            elif state is ParserState.MATCHING_START:
                if c == delims.start2:
                    self._add_text(text)
                    state = ParserState.TAG
                else:
                    text.append(delims.start1)
                    if c != delims.start1:
                        text.append(c)
                        state = ParserState.TEXT

            elif state is ParserState.TAG:
                if c == delims.end1:
                    if delims.end2 == NO_CHAR:
                        skip_newline = self._end_tag(text, line, delims, chars)
                        state = ParserState.TEXT
                    else:
                        state = ParserState.MATCHING_END
                else:
                    text.append(c)

            else:
                if c == delims.end2:
                    skip_newline = self._end_tag(text, line, delims, chars)
                    state = ParserState.TEXT
                else:
                    text.append(delims.end1)
                    if c != delims.end1:
                        text.append(c)
                        state = ParserState.TAG

        if state is ParserState.TAG:
            raise ParseError(f"Template ended while parsing a tag: {''.join(text)}", line)
        if state is ParserState.MATCHING_START:
            text.append(delims.start1)
        elif state is ParserState.MATCHING_END:
            text.append(delims.end1)
        self._add_text(text)

        return self._finish()

    # =========================================================================
    # Tags
    # =========================================================================

    def _end_tag(
        self,
        text: list[str],
        line: int,
        delims: Delimiters,
        chars: Iterator[str],
    ) -> bool:
        """Handle a complete tag; return whether to skip the next newline."""
        tag = "".join(text)
        text.clear()

        if tag.startswith("="):
            if len(tag) < 2 or not tag.endswith("="):
                raise ParseError(f"Invalid delimiter tag '{tag}'", line)
            delims.update(tag[1:-1], line)
            return False

        # {{{name}}} is {{&name}}; the third closing brace is still unread
        if delims.is_default() and tag.startswith(delims.start1):
            if next(chars, NO_CHAR) != "}":
                raise ParseError(f"Invalid triple-mustache tag: {{{{{tag}}}}}", line)
            tag = "&" + tag[1:]

        if delims.start in tag:
            raise ParseError(
                f"Tag contains start tag delimiter, probably missing close delimiter '{tag}'",
                line,
            )

        self._add_tag(tag, line)
        return self._skip_newline()

    def _add_tag(self, raw: str, line: int) -> None:
        tag = raw.strip()
        if not tag:
            raise ParseError("Empty tag", line)

        sigil = tag[0]
        name = tag[1:].strip()
        segments = self._stack[-1].segments

        if sigil in "#^":
            _require_no_newlines(tag, line)
            self._stack.append(_Accumulator(name=name, line=line, inverted=sigil == "^"))
        elif sigil == "/":
            _require_no_newlines(tag, line)
            self._close_section(name, line)
        elif sigil == ">":
            segments.append(self._include(name))
        elif sigil == "!":
            pass
        elif sigil == "&":
            _require_no_newlines(tag, line)
            segments.append(VariableSegment(name, escape_html=False, line=line))
        else:
            _require_no_newlines(tag, line)
            segments.append(VariableSegment(tag, escape_html=self.config.escape_html, line=line))

    def _add_text(self, text: list[str]) -> None:
        if text:
            self._stack[-1].segments.append(TextSegment("".join(text)))
            text.clear()

    def _close_section(self, name: str, line: int) -> None:
        if len(self._stack) == 1:
            raise ParseError(f"Section close tag with no open tag '{name}'", line)

        section = self._stack[-1]
        if section.name != name:
            raise ParseError(
                f"Section close tag with mismatched open tag '{name}' != '{section.name}'",
                line,
            )

        self._stack.pop()
        segment_type = InvertedSectionSegment if section.inverted else SectionSegment
        self._stack[-1].segments.append(
            segment_type(name=name, segments=tuple(section.segments), line=section.line)
        )

    def _skip_newline(self) -> bool:
        current = self._stack[-1]
        # A section was just opened
        if len(self._stack) > 1 and not current.segments:
            return True
        # A section was just closed
        return bool(current.segments) and isinstance(
            current.segments[-1], (SectionSegment, InvertedSectionSegment)
        )

    def _finish(self) -> tuple[Segment, ...]:
        if len(self._stack) > 1:
            section = self._stack[-1]
            kind = "Inverted section" if section.inverted else "Section"
            raise ParseError(f"{kind} missing close tag '{section.name}'", section.line)
        return tuple(self._stack[0].segments)

    # =========================================================================
    # Partials
    # =========================================================================

    def _include(self, name: str) -> PartialSegment:
        """Load and compile a partial with the same configuration."""
        chain = (*self._including, name)
        if name in self._including:
            raise TemplateLoadError(
                f"Recursive partial inclusion: {' -> '.join(chain)}",
                name,
            )

        try:
            source = self.config.loader.get_template(name)
        except WhiskerError:
            raise
        except Exception as e:
            raise TemplateLoadError(f"Unable to load template: {name}", name) from e

        logger.debug("Compiling partial %s", name)
        if isinstance(source, str):
            return PartialSegment(name=name, template=compile_template(source, self.config, chain))
        with closing(source):
            return PartialSegment(name=name, template=compile_template(source, self.config, chain))


def compile_template(
    source: str | TextIO,
    config: "CompilerConfig",
    including: tuple[str, ...] = (),
) -> Template:
    """Compile template source into a Template.

    Args:
        source: Template text or a readable text stream
        config: Compiler configuration
        including: Partial names already being compiled (cycle detection)

    Returns:
        Compiled template

    Raises:
        ParseError: If the source is malformed
        TemplateLoadError: If a partial cannot be loaded
    """
    segments = Parser(config, including).parse(source)
    logger.debug("Compiled template (%d top-level segments)", len(segments))
    return Template(segments=segments, config=config)
