"""Parallel content digests for directory trees."""

__version__ = "0.1.0"
