"""Whisker configuration.

Two layers:
- CompilerConfig: immutable options consumed by the compiler and renderer.
  Every with_* method returns a new instance; a shared config is never mutated.
- WhiskerConfig: project settings for the command line tool, read from YAML
  with environment variable substitution (${VAR}).

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.whisker/config.yaml
3. ./whisker.yaml
"""

import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, TextIO

import yaml

from whisker.loaders import FAILING_LOADER, DirectoryLoader, TemplateLoader
from whisker.parser import compile_template
from whisker.template import Template

# =============================================================================
# Compiler Configuration
# =============================================================================


@dataclass(frozen=True)
class CompilerConfig:
    """Options for compiling and rendering templates.

    Attributes:
        escape_html: Whether {{name}} output is HTML-escaped by default
        standards_mode: Disable lookups of missing names in enclosing contexts
        default_value: Text used for variables that are missing or None
        loader: Source provider for partials (fails by default)
        strict_variables: Raise MissingVariableError for missing variables
            when no default value is configured
    """

    escape_html: bool = True
    standards_mode: bool = False
    default_value: str | None = None
    loader: TemplateLoader = FAILING_LOADER
    strict_variables: bool = False

    def with_escape_html(self, escape_html: bool) -> "CompilerConfig":
        """Return a config that does or does not escape HTML by default."""
        return replace(self, escape_html=escape_html)

    def with_standards_mode(self, standards_mode: bool) -> "CompilerConfig":
        """Return a config that does or does not use standards mode."""
        return replace(self, standards_mode=standards_mode)

    def with_default_value(self, default_value: str | None) -> "CompilerConfig":
        """Return a config substituting the given text for missing values."""
        return replace(self, default_value=default_value)

    def with_loader(self, loader: TemplateLoader) -> "CompilerConfig":
        """Return a config that loads partials with the given loader."""
        return replace(self, loader=loader)

    def with_strict_variables(self, strict_variables: bool) -> "CompilerConfig":
        """Return a config that does or does not fail on missing variables."""
        return replace(self, strict_variables=strict_variables)

    def compile(self, source: str | TextIO) -> Template:
        """Compile template source into a reusable Template.

        Raises:
            ParseError: If the source is malformed
            TemplateLoadError: If a partial cannot be loaded
        """
        return compile_template(source, self)


def compiler() -> CompilerConfig:
    """Return the default config: HTML escaping on, standards mode off."""
    return CompilerConfig()


# =============================================================================
# Project Configuration Dataclasses
# =============================================================================


@dataclass
class CompilerSettings:
    """Compiler options as written in the config file.

    Attributes:
        escape_html: HTML-escape variables by default
        standards_mode: Disable parent-context lookups
        default_value: Text for missing variables
        strict_variables: Fail on missing variables
    """

    escape_html: bool = True
    standards_mode: bool = False
    default_value: str | None = None
    strict_variables: bool = False


@dataclass
class PartialsConfig:
    """Where the command line tool loads partials from.

    Attributes:
        directory: Partials directory (None disables partials)
        suffix: File suffix appended to partial names
    """

    directory: str | None = None
    suffix: str = ".mustache"

    def __post_init__(self) -> None:
        """Validate partials configuration."""
        if not self.suffix.startswith("."):
            raise ValueError(f"Partial suffix must start with '.': {self.suffix}")


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        path: Output file path (None writes to stdout)
    """

    path: str | None = None


@dataclass
class WhiskerConfig:
    """Top-level project configuration.

    Attributes:
        compiler: Compiler options
        partials: Partial loading
        output: Output destination
    """

    compiler: CompilerSettings = field(default_factory=CompilerSettings)
    partials: PartialsConfig = field(default_factory=PartialsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Runtime overrides (set by loader)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def base_dir(self) -> Path:
        """Directory relative paths in the config are resolved against."""
        if self._config_path is None:
            return Path.cwd()
        parent = self._config_path.parent
        # .whisker/config.yaml is relative to the project root
        return parent.parent if parent.name == ".whisker" else parent

    def make_loader(self) -> TemplateLoader:
        """Build the partial loader described by this config."""
        if self.partials.directory is None:
            return FAILING_LOADER
        return DirectoryLoader(self.base_dir() / self.partials.directory, self.partials.suffix)

    def to_compiler_config(self, loader: TemplateLoader | None = None) -> CompilerConfig:
        """Convert to an immutable CompilerConfig.

        Args:
            loader: Partial loader (defaults to the one from make_loader)
        """
        return CompilerConfig(
            escape_html=self.compiler.escape_html,
            standards_mode=self.compiler.standards_mode,
            default_value=self.compiler.default_value,
            loader=loader if loader is not None else self.make_loader(),
            strict_variables=self.compiler.strict_variables,
        )


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax. Strings, lists and dictionaries are processed
    recursively; other values pass through unchanged.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_RE.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.whisker/config.yaml
    2. ./whisker.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".whisker" / "config.yaml",
        start_path / "whisker.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> WhiskerConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        WhiskerConfig instance
    """
    data = substitute_env_vars(data)

    config = WhiskerConfig()

    if "compiler" in data:
        compiler_data = data["compiler"] or {}
        config.compiler = CompilerSettings(
            escape_html=compiler_data.get("escape_html", True),
            standards_mode=compiler_data.get("standards_mode", False),
            default_value=compiler_data.get("default_value"),
            strict_variables=compiler_data.get("strict_variables", False),
        )

    if "partials" in data:
        partials_data = data["partials"] or {}
        config.partials = PartialsConfig(
            directory=partials_data.get("directory"),
            suffix=partials_data.get("suffix", ".mustache"),
        )

    if "output" in data:
        output_data = data["output"] or {}
        config.output = OutputConfig(path=output_data.get("path"))

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> WhiskerConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        WhiskerConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path.resolve()
    else:
        config = WhiskerConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Whisker Configuration

# Compiler options
compiler:
  escape_html: true        # {{name}} is HTML-escaped; use {{{name}}} or {{&name}} to opt out
  standards_mode: false    # true disables lookups in enclosing sections
  # default_value: ""      # Text substituted for missing variables
  strict_variables: false  # true fails on missing variables (when no default_value)

# Partials ({{> name}}) are loaded from this directory
partials:
  directory: "partials"
  suffix: ".mustache"

# Output settings (omit path to write to stdout)
# output:
#   path: "build/index.html"
'''
