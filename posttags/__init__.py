"""Derived hashtag/mention state for short text posts."""

__version__ = "0.1.0"
