"""Blogging backend: token authentication and ownership-gated posts."""

__version__ = "0.1.0"
