"""Compiled template segments.

A compiled template is a tuple of segments. Segments are immutable and know
nothing about the delimiters they were written with; each one renders itself
against a Context frame into a text sink.

- TextSegment: literal text
- VariableSegment: {{name}} / {{&name}} / {{{name}}}
- SectionSegment: {{#name}}...{{/name}}
- InvertedSectionSegment: {{^name}}...{{/name}}
- PartialSegment: {{> name}}, holding the compiled partial
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TextIO

from whisker.context import MISSING, Context, ValueKind, classify, is_falsy, iter_positions
from whisker.errors import MissingVariableError
from whisker.escaping import escape_html

if TYPE_CHECKING:
    from whisker.template import Template


def to_text(value: Any) -> str:
    """Convert a resolved value to the text a variable tag writes.

    Booleans are written as JSON spells them (true/false) and bytes are
    decoded as UTF-8; everything else goes through str().
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class Segment(ABC):
    """A node of the compiled template."""

    @abstractmethod
    def render(self, template: "Template", ctx: Context, out: TextIO) -> None:
        """Write this segment's output for the given frame.

        Args:
            template: Template being rendered (supplies the configuration)
            ctx: Current context frame
            out: Text sink
        """


@dataclass(frozen=True)
class TextSegment(Segment):
    """Literal text copied to the output."""

    text: str

    def render(self, template: "Template", ctx: Context, out: TextIO) -> None:
        out.write(self.text)


@dataclass(frozen=True)
class VariableSegment(Segment):
    """Substitutes the value of a name, optionally HTML-escaped."""

    name: str
    escape_html: bool
    line: int

    def render(self, template: "Template", ctx: Context, out: TextIO) -> None:
        value = template.get_value(ctx, self.name)
        config = template.config

        if value is MISSING or value is None:
            if config.default_value is not None:
                text = config.default_value
            elif value is MISSING and config.strict_variables:
                raise MissingVariableError(self.name, self.line)
            else:
                return
        else:
            text = to_text(value)

        out.write(escape_html(text) if self.escape_html else text)


@dataclass(frozen=True)
class _CompoundSegment(Segment):
    """Named segment with a body of child segments."""

    name: str
    segments: tuple[Segment, ...]
    line: int

    def render_body(self, template: "Template", ctx: Context, out: TextIO) -> None:
        for segment in self.segments:
            segment.render(template, ctx, out)


@dataclass(frozen=True)
class SectionSegment(_CompoundSegment):
    """Renders its body zero or more times depending on the value.

    - sequence: once per element, in a frame carrying index and position
    - boolean: once in the current frame if true
    - any other value: once in a frame scoped to that value
    """

    def render(self, template: "Template", ctx: Context, out: TextIO) -> None:
        value = template.get_value(ctx, self.name)
        kind = classify(value)

        if kind in (ValueKind.MISSING, ValueKind.NULL):
            return

        if kind is ValueKind.SEQUENCE:
            for index, position, last, element in iter_positions(value):
                self.render_body(template, ctx.nest(element, index, position, last), out)
        elif kind is ValueKind.BOOLEAN:
            if value:
                self.render_body(template, ctx, out)
        else:
            self.render_body(template, ctx.nest(value), out)


@dataclass(frozen=True)
class InvertedSectionSegment(_CompoundSegment):
    """Renders its body once when the value is missing, null, false or empty."""

    def render(self, template: "Template", ctx: Context, out: TextIO) -> None:
        if is_falsy(template.get_value(ctx, self.name)):
            self.render_body(template, ctx, out)


@dataclass(frozen=True)
class PartialSegment(Segment):
    """An included template, compiled when the including template was."""

    name: str
    template: "Template"

    def render(self, template: "Template", ctx: Context, out: TextIO) -> None:
        # Partials start from a fresh root frame over the same data
        self.template.render_to(ctx.data, out)
