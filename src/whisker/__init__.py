"""Whisker - Mustache templates for Python.

Templates are compiled once into an immutable intermediate form and then
rendered any number of times against dictionaries, objects, sequences or
scalars:

    import whisker

    template = whisker.compile("Hello {{name}}!")
    template.render({"name": "world"})  # 'Hello world!'

Supported tags: {{name}}, {{{name}}}, {{&name}}, {{#section}}, {{^inverted}},
{{/close}}, {{! comment}}, {{> partial}} and {{=<% %>=}} delimiter changes.
"""

from typing import TextIO

from whisker.config import CompilerConfig, compiler
from whisker.context import Context, Position, register_sequence_type
from whisker.errors import MissingVariableError, ParseError, TemplateLoadError, WhiskerError
from whisker.loaders import DirectoryLoader, FailingLoader, MappingLoader, TemplateLoader
from whisker.template import Template

__version__ = "0.1.0"
__author__ = "Whisker Contributors"


def compile(source: str | TextIO, config: CompilerConfig | None = None) -> Template:  # noqa: A001
    """Compile template source with the given (or default) configuration."""
    return (config or compiler()).compile(source)


__all__ = [
    "CompilerConfig",
    "Context",
    "DirectoryLoader",
    "FailingLoader",
    "MappingLoader",
    "MissingVariableError",
    "ParseError",
    "Position",
    "Template",
    "TemplateLoadError",
    "TemplateLoader",
    "WhiskerError",
    "compile",
    "compiler",
    "register_sequence_type",
]
