"""Exporter version information."""

__version__ = "0.2.0"
