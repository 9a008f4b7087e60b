"""Resolve, key, record and archive cached APT package installations."""

__version__ = "0.1.0"
