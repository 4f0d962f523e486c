"""Audit GitHub repositories against a catalog of file-content checks."""

__version__ = "0.1.0"
