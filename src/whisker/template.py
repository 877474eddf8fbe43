"""Compiled, reusable templates."""

import io
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TextIO

from whisker.context import Context, resolve
from whisker.segments import Segment

if TYPE_CHECKING:
    from whisker.config import CompilerConfig


@dataclass(frozen=True)
class Template:
    """The result of compiling template source.

    Templates are immutable and hold no render state, so one instance can be
    rendered any number of times, from any number of threads.

    Usage:
        template = whisker.compile("Hello {{name}}!")
        template.render({"name": "world"})  # 'Hello world!'

    Attributes:
        segments: Top-level segments
        config: Configuration the template was compiled with
    """

    segments: tuple[Segment, ...]
    config: "CompilerConfig"

    def render(self, data: Any) -> str:
        """Render the template against a data value.

        Args:
            data: Root value (mapping, object, sequence or scalar)

        Returns:
            Rendered text
        """
        out = io.StringIO()
        self.render_to(data, out)
        return out.getvalue()

    def render_to(self, data: Any, out: TextIO) -> None:
        """Render the template, writing output to a text sink.

        Output already written is left in place if rendering fails.

        Args:
            data: Root value
            out: Object with a write(str) method
        """
        ctx = Context(data)
        for segment in self.segments:
            segment.render(self, ctx, out)

    def get_value(self, ctx: Context, name: str) -> Any:
        """Resolve a name using this template's lookup rules."""
        return resolve(ctx, name, standards_mode=self.config.standards_mode)
