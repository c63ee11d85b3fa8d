"""acornget - verified bootstrap installer for the acorn CLI."""

__version__ = "0.1.0"
