"""Command-line interface for chatline."""

from .app import app, main

__all__ = ["app", "main"]
