"""Radix-tree HTTP routing, a response wrapper and WSGI middleware."""

__version__ = "0.1.0"