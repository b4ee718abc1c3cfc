"""Adhkar module — remembrance texts and their categories."""

from mawaqit.adhkar.models import AdhkarCategory, Dhikr

__all__ = ["AdhkarCategory", "Dhikr"]
