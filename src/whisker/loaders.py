"""Template loaders used to resolve partials ({{> name}}).

The compiler never reads files itself. A loader is handed to the compiler
configuration and asked for the source of each partial by name:

    config = whisker.compiler().with_loader(MappingLoader({"user": "{{name}}"}))
    template = config.compile("{{> user}}")

Loaders may raise any exception; WhiskerError subclasses pass through the
compiler unchanged, anything else is wrapped in TemplateLoadError.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from whisker.errors import TemplateLoadError

logger = logging.getLogger(__name__)


class TemplateLoader(ABC):
    """Source provider for partial templates."""

    @abstractmethod
    def get_template(self, name: str) -> str | TextIO:
        """Return the source text (or a readable text stream) for a template.

        Args:
            name: Template name as written in the partial tag

        Returns:
            Template source. Streams are closed by the compiler once read.

        Raises:
            Exception: If the template cannot be loaded for any reason
        """


class FailingLoader(TemplateLoader):
    """Default loader: partials are not configured."""

    def get_template(self, name: str) -> str:
        raise TemplateLoadError("Template loading not configured", name)


FAILING_LOADER = FailingLoader()


class MappingLoader(TemplateLoader):
    """Serves partials from an in-memory mapping of name to source."""

    def __init__(self, templates: Mapping[str, str]) -> None:
        self._templates = dict(templates)

    def get_template(self, name: str) -> str:
        try:
            return self._templates[name]
        except KeyError:
            raise TemplateLoadError(f"Template not found: {name}", name) from None


class DirectoryLoader(TemplateLoader):
    """Serves partials from files below a root directory.

    The partial `{{> users/row}}` maps to `<root>/users/row.mustache` with the
    default suffix. Names that resolve outside the root are rejected.
    """

    def __init__(self, root: Path | str, suffix: str = ".mustache") -> None:
        """Initialize directory loader.

        Args:
            root: Directory containing partial templates
            suffix: File suffix appended to partial names
        """
        self.root = Path(root).resolve()
        self.suffix = suffix

    def path_for(self, name: str) -> Path:
        """Return the file path a partial name maps to."""
        return (self.root / f"{name}{self.suffix}").resolve()

    def get_template(self, name: str) -> str:
        path = self.path_for(name)

        if not path.is_relative_to(self.root):
            raise TemplateLoadError(f"Template outside of {self.root}: {name}", name)

        if not path.is_file():
            logger.debug("Partial file not found: %s", path)
            raise TemplateLoadError(f"Template not found: {path}", name)

        content = path.read_text(encoding="utf-8")
        logger.debug("Loaded partial %s from %s", name, path)
        return content
