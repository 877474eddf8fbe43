"""Shared pytest fixtures for whisker tests.

Fixtures are organized by category:
- Path fixtures: template fixture directories
- Compiler fixtures: ready-made configurations
- Data fixtures: sample render data (mappings and objects)
"""

from pathlib import Path
from typing import Any

import pytest

import whisker
from whisker.config import CompilerConfig
from whisker.loaders import MappingLoader
from tests.fixtures import FIXTURES_DIR, TEMPLATES_DIR, Address, User

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def templates_dir() -> Path:
    """Return the path to template fixtures."""
    return TEMPLATES_DIR


# =============================================================================
# Compiler Fixtures
# =============================================================================


@pytest.fixture
def config() -> CompilerConfig:
    """Return the default compiler configuration."""
    return whisker.compiler()


@pytest.fixture
def partials() -> dict[str, str]:
    """Return partial sources keyed by name."""
    return {
        "user": "<b>{{name}}</b>",
        "index": "{{-index}}",
        "title": "{{title}}",
        "nested": "[{{> user}}]",
    }


@pytest.fixture
def partial_config(config: CompilerConfig, partials: dict[str, str]) -> CompilerConfig:
    """Return a compiler configuration serving partials from memory."""
    return config.with_loader(MappingLoader(partials))


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def user() -> User:
    """Return a sample user object."""
    return User(
        name="Ada",
        age=36,
        address=Address(city="London"),
        tags=["math", "engines"],
    )


@pytest.fixture
def shop_data() -> dict[str, Any]:
    """Return nested mapping data."""
    return {
        "title": "Shop",
        "items": [
            {"name": "apple", "price": 3},
            {"name": "pear", "price": 4},
            {"name": "plum", "price": 1},
        ],
        "empty": [],
        "owner": {"name": "Bob", "contact": {"email": "bob@example.com"}},
    }
