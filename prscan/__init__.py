"""Diff line mapping and inline-review finding detection."""

__version__ = "0.1.0"
