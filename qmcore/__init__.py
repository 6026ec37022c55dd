"""Ordered collections, string and path helpers, variable expressions, display strings and .qm translation support."""

__version__ = "0.1.0"