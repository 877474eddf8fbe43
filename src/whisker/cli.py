"""Whisker CLI interface.

Commands:
- render: Render a template against a JSON or YAML data file
- check: Compile a template (and its partials) without rendering
- init: Create a default whisker.yaml

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit

Partials are loaded from --partials, else from partials.directory in the
config file, else from the directory containing the template.
"""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from whisker import __version__
from whisker.config import CompilerConfig, WhiskerConfig, create_default_config, load_config
from whisker.errors import WhiskerError
from whisker.loaders import DirectoryLoader, TemplateLoader
from whisker.template import Template
from whisker.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="whisker",
    help="Compile and render Mustache templates",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: WhiskerConfig = WhiskerConfig()
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"whisker {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log output"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Whisker - Mustache templates for Python."""
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except (OSError, ValueError, yaml.YAMLError) as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


# =============================================================================
# Helpers
# =============================================================================


def _make_loader(template: Path, partials: Path | None) -> TemplateLoader:
    if partials is not None:
        return DirectoryLoader(partials, _config.partials.suffix)
    if _config.partials.directory is not None:
        return _config.make_loader()
    return DirectoryLoader(template.resolve().parent, _config.partials.suffix)


def _compile(template: Path, compiler_config: CompilerConfig) -> Template:
    _logger.debug(f"Compiling template: {template}")
    with open(template, encoding="utf-8") as source:
        return compiler_config.compile(source)


def load_data(path: Path | None) -> Any:
    """Load render data from a JSON or YAML file.

    Files ending in .json are parsed as JSON; anything else as YAML.

    Args:
        path: Data file (None renders against an empty mapping)

    Returns:
        Parsed data
    """
    if path is None:
        return {}

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)

    data = yaml.safe_load(text)
    return {} if data is None else data


# =============================================================================
# render command
# =============================================================================


@app.command()
def render(
    template: Annotated[
        Path,
        typer.Argument(help="Template file to render", exists=True, dir_okay=False),
    ],
    data: Annotated[
        Path | None,
        typer.Option(
            "--data",
            "-d",
            help="JSON or YAML data file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file path (overrides config)"),
    ] = None,
    partials: Annotated[
        Path | None,
        typer.Option(
            "--partials",
            "-p",
            help="Directory containing partial templates",
            exists=True,
            file_okay=False,
        ),
    ] = None,
    no_escape: Annotated[
        bool,
        typer.Option("--no-escape", help="Do not HTML-escape {{name}} output"),
    ] = False,
    standards: Annotated[
        bool,
        typer.Option("--standards", help="Disable lookups in enclosing sections"),
    ] = False,
    default: Annotated[
        str | None,
        typer.Option("--default", help="Text substituted for missing variables"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail on missing variables"),
    ] = False,
) -> None:
    """Render a template.

    Exit codes:
        0: Template rendered
        1: Template, partial or data could not be processed
    """
    compiler_config = _config.to_compiler_config(_make_loader(template, partials))
    if no_escape:
        compiler_config = compiler_config.with_escape_html(False)
    if standards:
        compiler_config = compiler_config.with_standards_mode(True)
    if default is not None:
        compiler_config = compiler_config.with_default_value(default)
    if strict:
        compiler_config = compiler_config.with_strict_variables(True)

    try:
        context = load_data(data)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _logger.error(f"Failed to load data from {data}: {e}")
        raise typer.Exit(1)

    try:
        compiled = _compile(template, compiler_config)
        rendered = compiled.render(context)
    except WhiskerError as e:
        _logger.template_error(e, str(template))
        raise typer.Exit(1)

    output_path = output or (Path(_config.output.path) if _config.output.path else None)
    if output_path is None:
        typer.echo(rendered, nl=False)
    else:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
        _logger.info(f"Wrote {len(rendered)} characters to {output_path}")


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    templates: Annotated[
        list[Path],
        typer.Argument(help="Template files to check", exists=True, dir_okay=False),
    ],
    partials: Annotated[
        Path | None,
        typer.Option(
            "--partials",
            "-p",
            help="Directory containing partial templates",
            exists=True,
            file_okay=False,
        ),
    ] = None,
) -> None:
    """Compile templates and report syntax errors.

    Exit codes:
        0: All templates compiled
        1: One or more templates failed
    """
    failures = 0

    for template in templates:
        compiler_config = _config.to_compiler_config(_make_loader(template, partials))
        try:
            _compile(template, compiler_config)
        except WhiskerError as e:
            failures += 1
            _logger.template_error(e, str(template))
            typer.echo(f"❌ {template}: {e}")
        else:
            typer.echo(f"✅ {template}")

    if failures:
        raise typer.Exit(1)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing config"),
    ] = False,
) -> None:
    """Create a default whisker.yaml in the current directory."""
    config_file = Path("whisker.yaml")

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")
    typer.echo(f"✅ Created {config_file}")


if __name__ == "__main__":
    app()
