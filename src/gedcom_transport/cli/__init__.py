"""
CLI package for gedcom_transport.

Provides the Typer application entrypoint and shared CLI utilities.
"""

from gedcom_transport.cli.app import app, main

__all__ = [
    "app",
    "main",
]
