"""Command line interface."""

from .main import create_parser, run_cli

__all__ = ["create_parser", "run_cli"]
