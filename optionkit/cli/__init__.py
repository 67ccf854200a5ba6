"""optionkit command line tools."""

from .quote import cli

__all__ = ["cli"]
