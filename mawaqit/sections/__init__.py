"""Sections module — the city/region each prayer timetable belongs to."""

from mawaqit.sections.models import Section

__all__ = ["Section"]
