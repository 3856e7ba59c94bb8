"""Task generation through a locally installed AI CLI."""

__version__ = "0.1.0"
