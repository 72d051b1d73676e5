"""Lockbox, a zero-knowledge password vault engine."""
from .version import __version__

__all__ = ["__version__"]
