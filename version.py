"""Shortcut Actions plugin version."""

__version__ = "1.4.0"
