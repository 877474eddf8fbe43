"""Exceptions raised while compiling and rendering templates.

All errors derive from WhiskerError so callers can catch one type:
- ParseError: malformed template source (carries the line number)
- TemplateLoadError: a partial could not be loaded
- MissingVariableError: unresolved variable in strict variables mode
"""


class WhiskerError(Exception):
    """Base class for all template errors."""


class ParseError(WhiskerError):
    """Raised when template source cannot be compiled."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        self.message = message
        if line is not None:
            message = f"{message} @ line {line}"
        super().__init__(message)


class TemplateLoadError(WhiskerError):
    """Raised when a partial template cannot be loaded."""

    def __init__(self, message: str, template_name: str | None = None) -> None:
        self.template_name = template_name
        self.message = message
        super().__init__(message)


class MissingVariableError(WhiskerError):
    """Raised for an unresolvable variable when strict variables are enabled."""

    def __init__(self, name: str, line: int) -> None:
        self.name = name
        self.line = line
        super().__init__(f"No key, method or attribute with name '{name}' on line {line}")
