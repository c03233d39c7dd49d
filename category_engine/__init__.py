"""Hierarchical category management engine."""

__version__ = "0.1.0"
