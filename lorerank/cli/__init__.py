# lorerank/cli/__init__.py
"""Command line interface for lorerank."""

from .cli import app

__all__ = ["app"]
