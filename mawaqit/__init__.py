"""Mawaqit — prayer times and reference-text API."""

__version__ = "1.0.0"
