"""Entry point for running whisker as a module.

Usage:
    python -m whisker [command] [options]

Example:
    python -m whisker render page.mustache --data page.yaml
    python -m whisker check page.mustache
"""

from whisker.cli import app

if __name__ == "__main__":
    app()
