"""
Utilities package for the office resolver.

This package contains the logging setup and the text helpers used by the
matching and merging pipeline.
"""

from . import logging, string_utils

__all__ = [
    "logging",
    "string_utils",
]
