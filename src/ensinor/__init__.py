"""Ensinor learning platform backend core."""

__version__ = "0.1.0"
