"""Test fixtures for whisker.

This package provides template files and sample data objects for unit and
integration tests.

Templates:
- templates/page.mustache: page with a section over items and an item partial
- templates/item.mustache: partial rendered once per item
- templates/broken.mustache: section that is never closed
"""

from dataclasses import dataclass, field
from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to template fixtures
TEMPLATES_DIR = FIXTURES_DIR / "templates"


@dataclass
class Address:
    """Sample nested object."""

    city: str
    zip_code: str | None = None


@dataclass
class User:
    """Sample object exposing attributes, methods and a property."""

    name: str
    age: int
    address: Address | None = None
    tags: list[str] = field(default_factory=list)
    _secret: str = "hidden"

    def greeting(self) -> str:
        return f"Hello, {self.name}"

    def add(self, years: int) -> int:
        return self.age + years

    @property
    def is_adult(self) -> bool:
        return self.age >= 18
