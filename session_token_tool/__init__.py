"""Obtain temporary AWS session tokens for a named profile."""

__version__ = "0.1.0"
