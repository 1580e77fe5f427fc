"""
CLI layer for splscan.

Provides a Typer application whose sub-commands wire settings into the
pipeline (``splscan.pipeline``). This package handles only terminal
transport: argument parsing, error reporting and coloured output.

Entry point::

    splscan --help
"""

from splscan.cli.app import app

__all__ = ["app"]
